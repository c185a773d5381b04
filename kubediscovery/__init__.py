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
kubediscovery - Kubernetes pod discovery for bootstrapping cluster peers.

This package polls the Kubernetes API for pods matching a namespace and label
selector and serves the resulting member list over HTTP, so a Raft or gossip
layer can find its initial peers.
"""

__version__ = "0.1.0"
__author__ = "Firefly Software Solutions Inc"
__license__ = "Apache-2.0"

from kubediscovery.cluster import (
    DiscoveryPoller,
    KubernetesPodLister,
    MemberPod,
    PodLister,
    QueryService,
    Snapshot,
    SnapshotStore,
)
from kubediscovery.exceptions import (
    ConfigurationError,
    DiscoveryError,
    DiscoveryUnavailable,
    EncodingError,
    InvalidQuery,
)

__all__ = [
    # Cluster
    "DiscoveryPoller",
    "KubernetesPodLister",
    "MemberPod",
    "PodLister",
    "QueryService",
    "Snapshot",
    "SnapshotStore",
    # Errors
    "ConfigurationError",
    "DiscoveryError",
    "DiscoveryUnavailable",
    "EncodingError",
    "InvalidQuery",
]
