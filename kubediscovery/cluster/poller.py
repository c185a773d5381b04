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
Background discovery loop.

Each cycle lists the configured pods and publishes the result as a new
Snapshot. A failed cycle keeps the previous Snapshot in place: stale
membership is served rather than none. After enough consecutive failures the
kept Snapshot is republished flagged as invalid so callers can tell.

Example:
    >>> poller = DiscoveryPoller(lister, store, label_selector="app=raft")
    >>> await poller.start()
    >>> # store.get() now tracks the cluster every 10 seconds
    >>> await poller.stop()
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from kubediscovery.cluster.adapter import PodLister
from kubediscovery.cluster.models import Snapshot
from kubediscovery.cluster.snapshot import SnapshotStore
from kubediscovery.exceptions import DiscoveryUnavailable
from kubediscovery.utils.logger import logger


class DiscoveryPoller:
    """Periodically refreshes the SnapshotStore from a PodLister.

    The poller is the only writer of the store. Its loop never ends on a
    failed refresh; it only stops once stop() signals cancellation.

    Attributes:
        namespace: Namespace to poll, "" for all namespaces
        label_selector: Label selector to poll, "" for every pod
        interval: Seconds between the end of one cycle and the next
        failure_threshold: Consecutive failures before the Snapshot is
            flagged invalid, 0 to never flag it
    """

    def __init__(
        self,
        lister: PodLister,
        store: SnapshotStore,
        namespace: str = "",
        label_selector: str = "",
        interval: float = 10.0,
        failure_threshold: int = 3,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if failure_threshold < 0:
            raise ValueError("failure_threshold must not be negative")

        self.namespace = namespace
        self.label_selector = label_selector
        self.interval = interval
        self.failure_threshold = failure_threshold

        self._lister = lister
        self._store = store
        self._consecutive_failures = 0
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    async def start(self, require_initial_sync: bool = True) -> None:
        """Run a first refresh, then start the background loop.

        Args:
            require_initial_sync: Fail instead of starting when the first
                refresh cannot reach the API

        Raises:
            DiscoveryUnavailable: If the first refresh fails and
                require_initial_sync is set
        """
        if self.running:
            logger.warning("Discovery poller already running")
            return

        logger.info(
            f"Starting discovery poller (namespace={self.namespace or '*'}, "
            f"selector={self.label_selector or '*'}, interval={self.interval}s)"
        )

        try:
            await self._fetch_and_publish()
        except DiscoveryUnavailable as e:
            if require_initial_sync:
                logger.error(f"Initial discovery failed, aborting. Reason={e}")
                raise
            self._record_failure(e)

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self, timeout: float = 2.0) -> None:
        """Signal the loop to stop and wait for the current cycle to finish.

        A cycle still in flight after timeout seconds is cancelled.
        """
        if self._task is None:
            return

        logger.info("Stopping discovery poller")
        if self._stop_event is not None:
            self._stop_event.set()

        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Discovery poller did not stop within {timeout}s, cancelling"
            )
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None

        logger.info("Discovery poller stopped")

    async def refresh(self) -> bool:
        """Run one discovery cycle.

        Returns:
            True if a new Snapshot was published
        """
        try:
            await self._fetch_and_publish()
            return True
        except DiscoveryUnavailable as e:
            self._record_failure(e)
            return False

    # ==================== Internal Methods ====================

    async def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self.refresh()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Unexpected error in discovery loop: {e}", exc_info=True)

    async def _fetch_and_publish(self) -> None:
        members = await self._lister.list_pods(self.namespace, self.label_selector)
        previous = self._store.get()
        snapshot = Snapshot(
            members=tuple(members),
            refreshed_at=time.time(),
            valid=True,
            generation=previous.generation + 1,
        )
        self._store.set(snapshot)

        if self._consecutive_failures:
            logger.info(
                f"Discovery recovered after {self._consecutive_failures} failed attempt(s)"
            )
        self._consecutive_failures = 0
        logger.debug(
            f"Published snapshot generation {snapshot.generation} "
            f"with {len(snapshot.members)} member(s)"
        )

    def _record_failure(self, error: DiscoveryUnavailable) -> None:
        self._consecutive_failures += 1
        logger.error(
            f"error while retrieving pods (ns={error.namespace or '*'},"
            f"label={error.label_selector or '*'}). Reason={error}"
        )

        current = self._store.get()
        if (
            self.failure_threshold
            and self._consecutive_failures >= self.failure_threshold
            and current.valid
        ):
            self._store.set(current.mark_stale())
            logger.warning(
                f"Discovery failed {self._consecutive_failures} times in a row, "
                f"serving stale membership from generation {current.generation}"
            )
