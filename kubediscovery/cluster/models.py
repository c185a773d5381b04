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
Membership data model.

A MemberPod is one discovered pod; a Snapshot is the membership produced by
exactly one completed list call. Both are immutable: a refresh builds a new
Snapshot and publishes it whole, it never edits the current one.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class MemberPod:
    """A discovered cluster member, identified by namespace and name."""
    name: str
    namespace: str
    labels: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        # Read-only copy so callers can't mutate a published member
        object.__setattr__(self, "labels", MappingProxyType(dict(self.labels)))

    @property
    def key(self) -> Tuple[str, str]:
        """Get the (namespace, name) identity of this member."""
        return (self.namespace, self.name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "namespace": self.namespace,
            "labels": dict(self.labels),
        }

    @classmethod
    def from_pod(cls, pod: Any) -> "MemberPod":
        """Create from a Kubernetes V1Pod."""
        metadata = pod.metadata
        return cls(
            name=metadata.name,
            namespace=metadata.namespace or "",
            labels=metadata.labels or {},
        )


@dataclass(frozen=True)
class Snapshot:
    """The current known membership.

    Attributes:
        members: Members in the order the list call produced them
        refreshed_at: Epoch seconds of the refresh that produced the members,
            None before the first successful refresh
        valid: False once refreshes have kept failing and the members are stale
        generation: Number of successful refreshes published so far
    """
    members: Tuple[MemberPod, ...] = ()
    refreshed_at: Optional[float] = None
    valid: bool = True
    generation: int = 0

    @classmethod
    def empty(cls) -> "Snapshot":
        """Snapshot served before the first refresh completes."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.refreshed_at is None

    def names(self) -> List[str]:
        """Project members to their names, keeping snapshot order."""
        return [member.name for member in self.members]

    def mark_stale(self) -> "Snapshot":
        """Return a copy flagged invalid, with members and timestamp kept."""
        return replace(self, valid=False)
