# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for the discovery poller."""

import asyncio

import pytest

from conftest import FakePodLister, make_pods, unavailable
from kubediscovery.cluster.poller import DiscoveryPoller
from kubediscovery.exceptions import DiscoveryUnavailable


class TestDiscoveryPollerInit:
    """Tests for DiscoveryPoller construction."""

    def test_defaults(self, fake_lister, store):
        """Test default configuration."""
        poller = DiscoveryPoller(fake_lister, store)

        assert poller.interval == 10.0
        assert poller.failure_threshold == 3
        assert poller.namespace == ""
        assert poller.label_selector == ""
        assert poller.running is False

    def test_invalid_interval(self, fake_lister, store):
        """Test non-positive intervals are rejected."""
        with pytest.raises(ValueError):
            DiscoveryPoller(fake_lister, store, interval=0)

    def test_invalid_threshold(self, fake_lister, store):
        """Test negative thresholds are rejected."""
        with pytest.raises(ValueError):
            DiscoveryPoller(fake_lister, store, failure_threshold=-1)


class TestRefresh:
    """Tests for single discovery cycles."""

    @pytest.mark.asyncio
    async def test_success_publishes_snapshot(self, store):
        """Test a successful cycle publishes a valid snapshot."""
        lister = FakePodLister(make_pods("pod-a", "pod-b"))
        poller = DiscoveryPoller(lister, store, namespace="default", label_selector="app=x")

        assert await poller.refresh() is True

        snapshot = store.get()
        assert snapshot.names() == ["pod-a", "pod-b"]
        assert snapshot.valid is True
        assert snapshot.generation == 1
        assert snapshot.refreshed_at is not None
        assert lister.calls == [("default", "app=x")]

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_snapshot(self, store):
        """Test a failed cycle leaves the last good membership in place."""
        lister = FakePodLister(make_pods("pod-a"), unavailable())
        poller = DiscoveryPoller(lister, store)

        await poller.refresh()
        good = store.get()
        assert await poller.refresh() is False

        assert store.get() is good
        assert store.get().names() == ["pod-a"]
        assert poller.consecutive_failures == 1

    @pytest.mark.asyncio
    async def test_disjoint_refreshes(self, store):
        """Test the second refresh fully replaces the first."""
        lister = FakePodLister(make_pods("a1", "a2"), make_pods("b1", "b2", "b3"))
        poller = DiscoveryPoller(lister, store)

        await poller.refresh()
        await poller.refresh()

        assert store.get().names() == ["b1", "b2", "b3"]
        assert store.get().generation == 2

    @pytest.mark.asyncio
    async def test_marked_stale_after_threshold(self, store):
        """Test repeated failures flag the snapshot invalid."""
        lister = FakePodLister(make_pods("pod-a"), unavailable())
        poller = DiscoveryPoller(lister, store, failure_threshold=2)

        await poller.refresh()
        await poller.refresh()
        assert store.get().valid is True

        await poller.refresh()
        snapshot = store.get()
        assert snapshot.valid is False
        assert snapshot.names() == ["pod-a"]
        assert snapshot.generation == 1

    @pytest.mark.asyncio
    async def test_recovery_resets_validity(self, store):
        """Test a success after failures publishes a valid snapshot."""
        lister = FakePodLister(
            make_pods("pod-a"), unavailable(), unavailable(), make_pods("pod-b")
        )
        poller = DiscoveryPoller(lister, store, failure_threshold=1)

        for _ in range(3):
            await poller.refresh()
        assert store.get().valid is False

        await poller.refresh()
        assert store.get().valid is True
        assert store.get().names() == ["pod-b"]
        assert poller.consecutive_failures == 0

    @pytest.mark.asyncio
    async def test_threshold_zero_never_marks_stale(self, store):
        """Test a zero threshold keeps the snapshot valid."""
        lister = FakePodLister(make_pods("pod-a"), unavailable())
        poller = DiscoveryPoller(lister, store, failure_threshold=0)

        for _ in range(5):
            await poller.refresh()

        assert store.get().valid is True
        assert poller.consecutive_failures == 4


class TestLifecycle:
    """Tests for start/stop of the background loop."""

    @pytest.mark.asyncio
    async def test_start_runs_initial_refresh(self, fake_lister, store):
        """Test start() publishes before returning."""
        poller = DiscoveryPoller(fake_lister, store, interval=60)

        await poller.start()
        try:
            assert store.get().names() == ["pod-a", "pod-b"]
            assert poller.running is True
        finally:
            await poller.stop()

        assert poller.running is False

    @pytest.mark.asyncio
    async def test_start_fails_without_initial_sync(self, store):
        """Test start() raises when the first contact fails."""
        poller = DiscoveryPoller(FakePodLister(unavailable()), store)

        with pytest.raises(DiscoveryUnavailable):
            await poller.start()

        assert poller.running is False

    @pytest.mark.asyncio
    async def test_start_tolerates_failure_when_not_required(self, store):
        """Test start() can continue after a failed first contact."""
        poller = DiscoveryPoller(FakePodLister(unavailable()), store, interval=60)

        await poller.start(require_initial_sync=False)
        try:
            assert poller.running is True
            assert store.get().is_empty
            assert poller.consecutive_failures == 1
        finally:
            await poller.stop()

    @pytest.mark.asyncio
    async def test_loop_keeps_polling_after_failures(self, store):
        """Test failures never end the loop."""
        lister = FakePodLister(make_pods("pod-a"), unavailable(), unavailable(), make_pods("pod-b"))
        poller = DiscoveryPoller(lister, store, interval=0.01, failure_threshold=0)

        await poller.start()
        try:
            for _ in range(200):
                if store.get().names() == ["pod-b"]:
                    break
                await asyncio.sleep(0.01)
        finally:
            await poller.stop()

        assert store.get().names() == ["pod-b"]
        assert len(lister.calls) >= 4

    @pytest.mark.asyncio
    async def test_stop_cancels_slow_fetch(self, store):
        """Test stop() is bounded when a fetch hangs."""
        lister = FakePodLister(make_pods("pod-a"))
        poller = DiscoveryPoller(lister, store, interval=0.01)
        await poller.start()

        hang = asyncio.Event()

        async def slow_list(namespace, label_selector):
            await hang.wait()
            return []

        lister.list_pods = slow_list
        await asyncio.sleep(0.05)

        await asyncio.wait_for(poller.stop(timeout=0.1), timeout=2.0)

        assert poller.running is False
        assert store.get().names() == ["pod-a"]

    @pytest.mark.asyncio
    async def test_stop_without_start(self, fake_lister, store):
        """Test stop() on an idle poller is a no-op."""
        poller = DiscoveryPoller(fake_lister, store)

        await poller.stop()

        assert poller.running is False
