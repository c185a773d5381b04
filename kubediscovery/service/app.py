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
FastAPI application exposing cluster membership over HTTP.

Endpoints:
- GET /v1/nodes/{namespace}/{label_selector}: fresh lookup against the API
- GET /peers: members from the cached snapshot
- GET /peers/reachable: reachable members from the cached snapshot
- GET /health: snapshot status

Membership endpoints answer with a JSON array of pod names. Errors are
answered as plain text: 400 for a missing namespace or label, 500 when the
Kubernetes API cannot be reached or the result cannot be encoded.

Example Usage:
    ```bash
    curl http://localhost:8888/v1/nodes/default/app=raft
    ["raft-0","raft-1","raft-2"]
    ```
"""

from __future__ import annotations

import json
import time
from typing import Iterable

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import PlainTextResponse, Response

from kubediscovery import __version__
from kubediscovery.cluster.query import QueryService
from kubediscovery.exceptions import DiscoveryUnavailable, EncodingError, InvalidQuery
from kubediscovery.service.models import HealthResponse
from kubediscovery.utils.logger import logger

router = APIRouter()


def get_query_service(request: Request) -> QueryService:
    """Dependency returning the QueryService the app was created with."""
    return request.app.state.query_service


def remote_address(request: Request) -> str:
    if request.client is None:
        return "unknown"
    return f"{request.client.host}:{request.client.port}"


def encode_names(names: Iterable[str]) -> Response:
    """Encode member names as a JSON array response.

    Raises:
        EncodingError: If the names cannot be serialized
    """
    try:
        body = json.dumps(list(names), separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise EncodingError(f"error while marshaling podnames. Reason={e}") from e
    return Response(content=body, media_type="application/json")


# ==================== Routes ====================


@router.get(
    "/v1/nodes/{namespace}/{label_selector:path}",
    tags=["Discovery"],
    summary="List pods matching a label selector",
    description="Query the Kubernetes API directly, bypassing the cached snapshot.",
)
async def get_nodes_with_label(
    namespace: str,
    label_selector: str,
    request: Request,
    service: QueryService = Depends(get_query_service),
) -> Response:
    remote = remote_address(request)
    logger.info(
        f"[{remote}] received getNodes request. ns={namespace}, label={label_selector}"
    )
    try:
        names = await service.query_by_label(namespace, label_selector)
    except DiscoveryUnavailable as e:
        logger.error(
            f"[{remote}] error while retrieving pods "
            f"(ns={namespace},label={label_selector}). Reason={e}"
        )
        raise
    return encode_names(names)


@router.get("/v1/nodes/{node_path:path}", include_in_schema=False)
async def get_nodes_malformed(
    node_path: str,
    request: Request,
    service: QueryService = Depends(get_query_service),
) -> Response:
    # Empty namespace segments never match the route above
    namespace, _, label_selector = node_path.partition("/")
    return await get_nodes_with_label(namespace, label_selector, request, service)


@router.get(
    "/peers",
    tags=["Discovery"],
    summary="List known peers",
    description="Names of the members in the latest cached snapshot.",
)
async def get_peers(service: QueryService = Depends(get_query_service)) -> Response:
    return encode_names(service.list_peers())


@router.get(
    "/peers/reachable",
    tags=["Discovery"],
    summary="List reachable peers",
    description="Names of the cached members considered reachable.",
)
async def get_reachable_peers(
    service: QueryService = Depends(get_query_service),
) -> Response:
    return encode_names(service.list_reachable_peers())


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Health check",
)
async def health_check(
    request: Request,
    service: QueryService = Depends(get_query_service),
) -> HealthResponse:
    uptime = time.time() - request.app.state.start_time
    return HealthResponse.from_snapshot(service.snapshot(), __version__, uptime)


# ==================== Error Handling ====================


async def invalid_query_handler(request: Request, exc: InvalidQuery) -> PlainTextResponse:
    logger.info(f"[{remote_address(request)}] {exc.message}")
    return PlainTextResponse(exc.message, status_code=status.HTTP_400_BAD_REQUEST)


async def discovery_unavailable_handler(
    request: Request, exc: DiscoveryUnavailable
) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def encoding_error_handler(request: Request, exc: EncodingError) -> PlainTextResponse:
    logger.error(f"[{remote_address(request)}] {exc.message}")
    return PlainTextResponse(exc.message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def global_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    logger.error(f"[{remote_address(request)}] Unhandled exception: {exc}", exc_info=True)
    return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def log_requests(request: Request, call_next):
    """Log every request with its remote address and outcome."""
    response = await call_next(request)
    logger.info(
        f"[{remote_address(request)}] {request.method} {request.url.path} "
        f"-> {response.status_code}"
    )
    return response


def create_app(query_service: QueryService) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        query_service: Service answering membership queries

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="kubediscovery",
        description="Kubernetes pod discovery for bootstrapping cluster peers.",
        version=__version__,
        openapi_tags=[
            {"name": "Discovery", "description": "Cluster membership endpoints"},
            {"name": "Health", "description": "Service status endpoints"},
        ],
    )
    app.state.query_service = query_service
    app.state.start_time = time.time()

    app.middleware("http")(log_requests)
    app.add_exception_handler(InvalidQuery, invalid_query_handler)
    app.add_exception_handler(DiscoveryUnavailable, discovery_unavailable_handler)
    app.add_exception_handler(EncodingError, encoding_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(router)
    return app
