# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Cluster membership discovery.

Architecture:
- PodLister: the one Kubernetes capability used, list pods by namespace and
  label selector
- SnapshotStore: the current membership, replaced whole on every refresh
- DiscoveryPoller: background loop keeping the store fresh
- QueryService: cached and on-demand membership answers

Example:
    >>> from kubediscovery.cluster import (
    ...     DiscoveryPoller, KubernetesPodLister, QueryService, SnapshotStore,
    ... )
    >>> lister = KubernetesPodLister.from_environment()
    >>> store = SnapshotStore()
    >>> poller = DiscoveryPoller(lister, store, label_selector="app=raft")
    >>> await poller.start()
    >>> QueryService(lister, store).list_peers()
    ['raft-0', 'raft-1', 'raft-2']
"""

from kubediscovery.cluster.adapter import KubernetesPodLister, PodLister
from kubediscovery.cluster.models import MemberPod, Snapshot
from kubediscovery.cluster.poller import DiscoveryPoller
from kubediscovery.cluster.query import QueryService
from kubediscovery.cluster.snapshot import SnapshotStore

__all__ = [
    "DiscoveryPoller",
    "KubernetesPodLister",
    "MemberPod",
    "PodLister",
    "QueryService",
    "Snapshot",
    "SnapshotStore",
]
