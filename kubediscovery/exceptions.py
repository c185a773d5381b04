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

"""Custom exceptions for kubediscovery.

Exception Hierarchy:
    DiscoveryError (base)
    ├── ConfigurationError - Kubernetes client or server cannot be set up
    ├── DiscoveryUnavailable - A list-pods call against the API failed
    ├── InvalidQuery - Caller omitted namespace or label selector
    └── EncodingError - A result could not be serialized for the wire

Example:
    try:
        names = await query_service.query_by_label("default", "app=raft")
    except InvalidQuery:
        # Client mistake, answer 400
        pass
    except DiscoveryUnavailable as e:
        logger.error(f"Discovery failed for {e.namespace}/{e.label_selector}")
"""

from __future__ import annotations

from typing import Optional


class DiscoveryError(Exception):
    """Base exception for all kubediscovery errors."""

    def __init__(self, message: str) -> None:
        """Initialize the discovery error.

        Args:
            message: Error message
        """
        super().__init__(message)
        self.message = message


class ConfigurationError(DiscoveryError):
    """Raised when the Kubernetes client or the HTTP server cannot be set up.

    Fatal at startup: the process aborts instead of running half-started.
    """

    def __init__(self, message: str = "Invalid configuration") -> None:
        super().__init__(message)


class DiscoveryUnavailable(DiscoveryError):
    """Raised when listing pods against the control plane fails.

    Covers network, authentication and API-side failures alike. No retry is
    attempted by the raiser; the retry policy belongs to the caller.
    """

    def __init__(
        self,
        namespace: str = "",
        label_selector: str = "",
        reason: Optional[str] = None,
    ) -> None:
        """Initialize the unavailable error.

        Args:
            namespace: Namespace that was queried ("" for all namespaces)
            label_selector: Label selector that was queried
            reason: Underlying failure description
        """
        super().__init__(reason or "Kubernetes API unavailable")
        self.namespace = namespace
        self.label_selector = label_selector
        self.reason = reason


class InvalidQuery(DiscoveryError):
    """Raised when an on-demand query lacks its namespace or label selector."""

    def __init__(
        self,
        message: str = "label and namespace must be present",
        field: Optional[str] = None,
    ) -> None:
        """Initialize the invalid query error.

        Args:
            message: Error message
            field: Name of the missing field, if a single one is at fault
        """
        super().__init__(message)
        self.field = field


class EncodingError(DiscoveryError):
    """Raised when a result cannot be serialized to JSON."""

    def __init__(self, message: str = "Failed to encode response") -> None:
        super().__init__(message)
