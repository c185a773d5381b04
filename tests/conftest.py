# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures for kubediscovery tests."""

from typing import List, Optional, Tuple

import pytest

from kubediscovery.cluster.adapter import PodLister
from kubediscovery.cluster.models import MemberPod
from kubediscovery.cluster.snapshot import SnapshotStore
from kubediscovery.exceptions import DiscoveryUnavailable


def make_pods(*names: str, namespace: str = "default", app: str = "x") -> List[MemberPod]:
    return [MemberPod(name=name, namespace=namespace, labels={"app": app}) for name in names]


class FakePodLister(PodLister):
    """In-memory PodLister returning scripted results in order.

    Each queued result is either a list of members or an exception to raise.
    Once the queue is down to one entry, that entry is repeated.
    """

    def __init__(self, *results) -> None:
        self._results = list(results) or [[]]
        self.calls: List[Tuple[str, str]] = []

    async def list_pods(self, namespace: str, label_selector: str) -> List[MemberPod]:
        self.calls.append((namespace, label_selector))
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, Exception):
            raise result
        return list(result)


def unavailable(reason: Optional[str] = "connection refused") -> DiscoveryUnavailable:
    return DiscoveryUnavailable("default", "app=x", reason)


@pytest.fixture
def store():
    return SnapshotStore()


@pytest.fixture
def fake_lister():
    return FakePodLister(make_pods("pod-a", "pod-b"))
