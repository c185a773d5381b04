# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for the query service."""

import pytest

from conftest import FakePodLister, make_pods, unavailable
from kubediscovery.cluster.models import Snapshot
from kubediscovery.cluster.query import QueryService
from kubediscovery.exceptions import DiscoveryUnavailable, InvalidQuery


class TestListPeers:
    """Tests for cached peer listing."""

    def test_empty_before_refresh(self, fake_lister, store):
        """Test no peers are known before the first refresh."""
        service = QueryService(fake_lister, store)

        assert service.list_peers() == []

    def test_reads_snapshot(self, fake_lister, store):
        """Test peers come from the current snapshot, not the API."""
        store.set(Snapshot(members=tuple(make_pods("s1", "s2")), refreshed_at=1.0, generation=1))
        service = QueryService(fake_lister, store)

        assert service.list_peers() == ["s1", "s2"]
        assert fake_lister.calls == []

    def test_reachable_matches_peers(self, fake_lister, store):
        """Test reachable peers currently equal known peers."""
        store.set(Snapshot(members=tuple(make_pods("s1", "s2")), refreshed_at=1.0, generation=1))
        service = QueryService(fake_lister, store)

        assert service.list_reachable_peers() == service.list_peers()

    def test_snapshot(self, fake_lister, store):
        """Test the current snapshot is exposed."""
        service = QueryService(fake_lister, store)

        assert service.snapshot() is store.get()


class TestQueryByLabel:
    """Tests for on-demand queries."""

    @pytest.mark.asyncio
    async def test_returns_names(self, fake_lister, store):
        """Test names are projected from a fresh API call."""
        service = QueryService(fake_lister, store)

        names = await service.query_by_label("default", "app=x")

        assert names == ["pod-a", "pod-b"]
        assert fake_lister.calls == [("default", "app=x")]

    @pytest.mark.asyncio
    async def test_bypasses_cache(self, fake_lister, store):
        """Test the snapshot is ignored for on-demand queries."""
        store.set(Snapshot(members=tuple(make_pods("cached")), refreshed_at=1.0, generation=1))
        service = QueryService(fake_lister, store)

        assert await service.query_by_label("default", "app=x") == ["pod-a", "pod-b"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "namespace,label_selector,field",
        [
            ("", "app=x", "namespace"),
            ("default", "", "label"),
            ("", "", None),
        ],
    )
    async def test_missing_fields(self, fake_lister, store, namespace, label_selector, field):
        """Test missing fields are rejected without an API call."""
        service = QueryService(fake_lister, store)

        with pytest.raises(InvalidQuery) as exc_info:
            await service.query_by_label(namespace, label_selector)

        assert exc_info.value.field == field
        assert fake_lister.calls == []

    @pytest.mark.asyncio
    async def test_unavailable_propagates(self, store):
        """Test API failures propagate unchanged."""
        error = unavailable()
        service = QueryService(FakePodLister(error), store)

        with pytest.raises(DiscoveryUnavailable) as exc_info:
            await service.query_by_label("default", "app=x")

        assert exc_info.value is error
