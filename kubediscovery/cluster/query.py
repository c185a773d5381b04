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
Membership queries.

Two kinds of answers are served:

1. Cached: peers from the current Snapshot, fast and non-blocking
2. On-demand: a fresh list call for an explicit namespace and label selector,
   bypassing the Snapshot entirely
"""

from __future__ import annotations

from typing import List

from kubediscovery.cluster.adapter import PodLister
from kubediscovery.cluster.models import Snapshot
from kubediscovery.cluster.snapshot import SnapshotStore
from kubediscovery.exceptions import InvalidQuery


class QueryService:
    """Answers membership questions from the store or from the API."""

    def __init__(self, lister: PodLister, store: SnapshotStore) -> None:
        self._lister = lister
        self._store = store

    def snapshot(self) -> Snapshot:
        """Get the current Snapshot."""
        return self._store.get()

    def list_peers(self) -> List[str]:
        """Names of the currently known members, in Snapshot order."""
        return self._store.get().names()

    def list_reachable_peers(self) -> List[str]:
        """Names of the known members that are reachable.

        No liveness probe exists yet, so every known member is treated as
        reachable and the result equals list_peers().
        """
        return self.list_peers()

    async def query_by_label(self, namespace: str, label_selector: str) -> List[str]:
        """List member names straight from the API.

        Args:
            namespace: Namespace to search, required
            label_selector: Label selector to match, required

        Returns:
            Names of the matching pods in API order

        Raises:
            InvalidQuery: If namespace or label_selector is empty
            DiscoveryUnavailable: If the API call fails
        """
        _validate(namespace, label_selector)
        members = await self._lister.list_pods(namespace, label_selector)
        return [member.name for member in members]


def _validate(namespace: str, label_selector: str) -> None:
    missing = [
        name
        for name, value in (("namespace", namespace), ("label", label_selector))
        if not value
    ]
    if missing:
        raise InvalidQuery(field=missing[0] if len(missing) == 1 else None)
