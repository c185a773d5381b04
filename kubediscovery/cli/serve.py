#!/usr/bin/env python3
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

"""kubediscovery Server CLI.

Command-line interface for starting the discovery service.

Usage:
    kubediscovery-serve [--host HOST] [--port PORT]
    kubediscovery-serve --namespace raft --label-selector app=raft

    Or with Python:
    python -m kubediscovery.cli.serve

Environment Variables:
    KUBEDISCOVERY_HOST=0.0.0.0
    KUBEDISCOVERY_PORT=8888
    KUBEDISCOVERY_NAMESPACE=raft
    KUBEDISCOVERY_LABEL_SELECTOR=app=raft
    KUBEDISCOVERY_POLL_INTERVAL=10
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from kubediscovery import __version__
from kubediscovery.exceptions import ConfigurationError, DiscoveryUnavailable
from kubediscovery.service.server import DiscoveryServer, ServerConfig
from kubediscovery.utils.logger import logger, setup_logger


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser, with defaults taken from the environment."""
    parser = argparse.ArgumentParser(
        description="Start the kubediscovery service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  kubediscovery-serve                                  # All pods, port 8888
  kubediscovery-serve --port 8080                      # Custom port
  kubediscovery-serve --namespace raft --label-selector app=raft
        """,
    )

    parser.add_argument(
        "--host",
        default=os.environ.get("KUBEDISCOVERY_HOST", "0.0.0.0"),
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("KUBEDISCOVERY_PORT", "8888")),
        help="Port in which the service listens (default: 8888)",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("KUBEDISCOVERY_LOG_LEVEL", "info"),
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level (default: info)",
    )

    # Poller options
    parser.add_argument(
        "--namespace",
        default=os.environ.get("KUBEDISCOVERY_NAMESPACE", ""),
        help="Namespace to poll for peers (default: all namespaces)",
    )
    parser.add_argument(
        "--label-selector",
        default=os.environ.get("KUBEDISCOVERY_LABEL_SELECTOR", ""),
        help="Label selector to poll for peers (default: every pod)",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=float(os.environ.get("KUBEDISCOVERY_POLL_INTERVAL", "10")),
        help="Seconds between discovery cycles (default: 10)",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=float(os.environ.get("KUBEDISCOVERY_REQUEST_TIMEOUT", "5")),
        help="Timeout for each Kubernetes API call in seconds (default: 5)",
    )
    parser.add_argument(
        "--failure-threshold",
        type=int,
        default=int(os.environ.get("KUBEDISCOVERY_FAILURE_THRESHOLD", "3")),
        help="Failed cycles before peers are reported stale, 0 to disable (default: 3)",
    )
    parser.add_argument(
        "--no-initial-sync",
        action="store_true",
        default=os.environ.get("KUBEDISCOVERY_NO_INITIAL_SYNC", "").lower() == "true",
        help="Start even if the first discovery cycle fails",
    )
    parser.add_argument(
        "--shutdown-timeout",
        type=float,
        default=float(os.environ.get("KUBEDISCOVERY_SHUTDOWN_TIMEOUT", "2")),
        help="Seconds allowed for graceful shutdown (default: 2)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    return ServerConfig(
        host=args.host,
        port=args.port,
        namespace=args.namespace,
        label_selector=args.label_selector,
        poll_interval=args.poll_interval,
        request_timeout=args.request_timeout,
        failure_threshold=args.failure_threshold,
        require_initial_sync=not args.no_initial_sync,
        shutdown_timeout=args.shutdown_timeout,
        log_level=args.log_level,
    )


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the serve command."""
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    setup_logger(level=args.log_level)

    print()
    print(f"  kubediscovery {__version__}")
    print()
    print(f"  Host:      {config.host}")
    print(f"  Port:      {config.port}")
    print(f"  Namespace: {config.namespace or '(all)'}")
    print(f"  Selector:  {config.label_selector or '(all pods)'}")
    print(f"  Interval:  {config.poll_interval}s")
    print(f"  Log Level: {config.log_level}")
    print()
    print(f"  Peers:     http://{config.host}:{config.port}/peers")
    print(f"  Health:    http://{config.host}:{config.port}/health")
    print()

    try:
        asyncio.run(DiscoveryServer(config).run())
    except (ConfigurationError, DiscoveryUnavailable) as e:
        logger.error(f"Startup aborted: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
