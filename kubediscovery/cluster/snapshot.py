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

"""In-memory holder of the current membership Snapshot."""

from __future__ import annotations

import threading
from typing import Optional

from kubediscovery.cluster.models import Snapshot


class SnapshotStore:
    """Holds the latest published Snapshot.

    Snapshots are immutable, so publishing is a single reference swap: a
    reader sees either the previous or the new Snapshot, never a mix. Readers
    take no lock; the lock only orders concurrent writers.
    """

    def __init__(self, initial: Optional[Snapshot] = None) -> None:
        self._current = initial or Snapshot.empty()
        self._write_lock = threading.Lock()

    def get(self) -> Snapshot:
        """Get the latest complete Snapshot (empty before the first refresh)."""
        return self._current

    def set(self, snapshot: Snapshot) -> None:
        """Atomically replace the current Snapshot."""
        if not isinstance(snapshot, Snapshot):
            raise TypeError(f"Expected Snapshot, got {type(snapshot).__name__}")
        with self._write_lock:
            self._current = snapshot
