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
Process lifecycle for the discovery service.

DiscoveryServer wires the Kubernetes lister, the snapshot store, the poller
and the HTTP app together, runs the poller and the HTTP server side by side,
and shuts both down when a termination signal arrives.

Startup is all-or-nothing: if the Kubernetes client cannot be configured, the
first discovery fails, or the port cannot be bound, run() raises instead of
serving in a half-started state.

Example:
    >>> config = ServerConfig(port=8888, label_selector="app=raft")
    >>> asyncio.run(DiscoveryServer(config).run())
"""

from __future__ import annotations

import asyncio
import contextlib
import math
import signal
import socket
from dataclasses import dataclass
from typing import Optional

import uvicorn

from kubediscovery.cluster.adapter import KubernetesPodLister, PodLister
from kubediscovery.cluster.poller import DiscoveryPoller
from kubediscovery.cluster.query import QueryService
from kubediscovery.cluster.snapshot import SnapshotStore
from kubediscovery.exceptions import ConfigurationError
from kubediscovery.service.app import create_app
from kubediscovery.utils.logger import logger

SHUTDOWN_SIGNALS = (signal.SIGABRT, signal.SIGTERM, signal.SIGHUP, signal.SIGINT)


def graceful_timeout(seconds: float) -> int:
    """Whole seconds uvicorn may spend draining connections, never below one."""
    return max(1, math.ceil(seconds))


@dataclass
class ServerConfig:
    """Configuration for the discovery service."""
    host: str = "0.0.0.0"
    port: int = 8888
    # Poller target
    namespace: str = ""
    label_selector: str = ""
    poll_interval: float = 10.0
    request_timeout: float = 5.0
    failure_threshold: int = 3
    require_initial_sync: bool = True
    # Shutdown
    shutdown_timeout: float = 2.0
    log_level: str = "info"


class _Server(uvicorn.Server):
    """uvicorn server that leaves signal handling to DiscoveryServer."""

    @contextlib.contextmanager
    def capture_signals(self):
        yield

    def install_signal_handlers(self) -> None:
        pass


class DiscoveryServer:
    """Runs the discovery poller and the HTTP API until told to stop."""

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        lister: Optional[PodLister] = None,
    ) -> None:
        """Initialize the server.

        Args:
            config: Service configuration
            lister: PodLister to use, built from the environment if omitted
        """
        self.config = config or ServerConfig()
        self._lister = lister
        self._store = SnapshotStore()
        self._poller: Optional[DiscoveryPoller] = None
        self._http: Optional[_Server] = None
        self._http_task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def store(self) -> SnapshotStore:
        return self._store

    @property
    def is_serving(self) -> bool:
        return self._http is not None and self._http.started

    @property
    def bound_port(self) -> Optional[int]:
        """Port the HTTP server actually listens on (useful with port 0)."""
        if not self.is_serving or not self._http.servers:
            return None
        return self._http.servers[0].sockets[0].getsockname()[1]

    def request_shutdown(self) -> None:
        """Ask run() to shut everything down."""
        if self._stop_event is not None and not self._stop_event.is_set():
            self._stop_event.set()

    async def run(self, install_signal_handlers: bool = True) -> None:
        """Start all components and block until shutdown.

        Raises:
            ConfigurationError: If the Kubernetes client cannot be configured
                or the HTTP server cannot start
            DiscoveryUnavailable: If the first discovery fails and an initial
                sync is required
        """
        logger.info("Starting Kubernetes discovery service")
        self._stop_event = asyncio.Event()

        if self._lister is None:
            self._lister = KubernetesPodLister.from_environment(
                request_timeout=self.config.request_timeout
            )

        self._poller = DiscoveryPoller(
            self._lister,
            self._store,
            namespace=self.config.namespace,
            label_selector=self.config.label_selector,
            interval=self.config.poll_interval,
            failure_threshold=self.config.failure_threshold,
        )
        await self._poller.start(require_initial_sync=self.config.require_initial_sync)

        try:
            await self._start_http()
        except BaseException:
            await self._poller.stop(timeout=self.config.shutdown_timeout)
            raise

        if install_signal_handlers:
            self._install_signal_handlers()

        try:
            stop_waiter = asyncio.create_task(self._stop_event.wait())
            done, _ = await asyncio.wait(
                {stop_waiter, self._http_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if self._http_task in done:
                error = None if self._http_task.cancelled() else self._http_task.exception()
                logger.error(f"HTTP server exited unexpectedly. Reason={error!r}")
            stop_waiter.cancel()
        finally:
            if install_signal_handlers:
                self._remove_signal_handlers()
            await self._shutdown()

    # ==================== Internal Methods ====================

    async def _start_http(self) -> None:
        app = create_app(QueryService(self._lister, self._store))
        uvicorn_config = uvicorn.Config(
            app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level,
            timeout_graceful_shutdown=graceful_timeout(self.config.shutdown_timeout),
        )
        sock = self._bind_socket()
        self._http = _Server(uvicorn_config)
        self._http_task = asyncio.create_task(self._http.serve(sockets=[sock]))

        logger.info(
            f"starting discovery server at {self.config.host}:{self.config.port}"
        )
        while not self._http.started:
            if self._http_task.done():
                break
            await asyncio.sleep(0.05)

        if not self._http.started:
            sock.close()
            error = None if self._http_task.cancelled() else self._http_task.exception()
            raise ConfigurationError(
                f"Cannot start HTTP server on port {self.config.port}: {error!r}"
            ) from error

    def _bind_socket(self) -> socket.socket:
        """Bind the listening socket before uvicorn starts.

        Raises:
            ConfigurationError: If the address is in use or cannot be bound
        """
        family = socket.AF_INET6 if ":" in self.config.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.config.host, self.config.port))
        except OSError as e:
            sock.close()
            logger.error(
                f"error while binding {self.config.host}:{self.config.port}. Reason={e}"
            )
            raise ConfigurationError(
                f"Cannot bind HTTP server to {self.config.host}:{self.config.port}: {e}"
            ) from e
        sock.set_inheritable(True)
        return sock

    async def _shutdown(self) -> None:
        logger.info("initiate graceful shutdown")
        timeout = self.config.shutdown_timeout

        # Both loops are told to stop at once and share one deadline
        pending = []
        if self._http_task is not None and not self._http_task.done():
            self._http.should_exit = True
            pending.append(self._http_task)
        poller_stop = None
        if self._poller is not None:
            poller_stop = asyncio.create_task(self._poller.stop(timeout=timeout))
            pending.append(poller_stop)

        if pending:
            await asyncio.wait(pending, timeout=timeout)

        if self._http_task is not None and not self._http_task.done():
            logger.error(
                f"error while shutting down discovery server. "
                f"Reason=did not stop within {timeout}s"
            )
            self._http.force_exit = True
            self._http_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._http_task
        if poller_stop is not None:
            await poller_stop

        logger.info("Kubernetes discovery service stopped")

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self._handle_signal, sig)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.info(f"received signal {sig.name}")
        self.request_shutdown()
