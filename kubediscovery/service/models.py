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
Pydantic models for kubediscovery REST API responses.

Membership endpoints answer with bare JSON arrays of pod names so that a
clustering library can consume them without unwrapping; only the health
endpoint uses a structured model.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from kubediscovery.cluster.models import Snapshot


class HealthStatus(str, Enum):
    """
    Overall service status.

    Attributes:
        OK: Membership reflects the latest refresh
        DEGRADED: Refreshes keep failing, membership is stale
        STARTING: No refresh has completed yet
    """

    OK = "ok"
    DEGRADED = "degraded"
    STARTING = "starting"


class HealthResponse(BaseModel):
    """Response model for the health endpoint."""

    status: HealthStatus = Field(..., description="Overall service status")
    version: str = Field(..., description="kubediscovery version")
    uptime_seconds: float = Field(..., description="Seconds since the app was created")
    members: int = Field(..., description="Number of members in the current snapshot")
    snapshot_valid: bool = Field(..., description="False when the snapshot is stale")
    last_refresh: Optional[float] = Field(
        None, description="Epoch seconds of the last successful refresh"
    )
    generation: int = Field(0, description="Number of successful refreshes")

    @classmethod
    def from_snapshot(
        cls, snapshot: Snapshot, version: str, uptime_seconds: float
    ) -> "HealthResponse":
        if not snapshot.valid:
            status = HealthStatus.DEGRADED
        elif snapshot.is_empty:
            status = HealthStatus.STARTING
        else:
            status = HealthStatus.OK

        return cls(
            status=status,
            version=version,
            uptime_seconds=uptime_seconds,
            members=len(snapshot.members),
            snapshot_valid=snapshot.valid,
            last_refresh=snapshot.refreshed_at,
            generation=snapshot.generation,
        )
