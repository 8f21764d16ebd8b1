"""HTTP routes of the wallet bridge.

    GET  /                        service info
    GET  /metrics                 Prometheus exposition
    POST /request                 create a request, returns its id
    HEAD /request/{request_id}    does the request exist
    GET  /request/{request_id}    claim the request (single read)
    PUT  /request/{request_id}    create with a caller-supplied id (optional)
    PUT  /response/{request_id}   submit the response
    GET  /response/{request_id}   fetch the response (single read) or the status

Errors are raised as bridge exceptions and rendered by wallet_bridge.api.errors.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from wallet_bridge import __version__
from wallet_bridge.core.relay import RelayService
from wallet_bridge.models import (
    CreateOutcome,
    EncryptedPayload,
    RequestCreated,
    StatusPayload,
)


def get_relay(request: Request) -> RelayService:
    """Return the relay service attached to the application."""
    return request.app.state.relay


system_router = APIRouter(tags=["system"])
request_router = APIRouter(tags=["request"])
response_router = APIRouter(tags=["response"])


@system_router.get("/")
async def get_info(request: Request) -> dict[str, Any]:
    """Service name, build version and documentation location."""
    return {
        "name": "wallet-bridge",
        "version": {
            "semver": __version__,
            "rev": request.app.state.config.git_rev,
        },
        "docs_url": "/docs",
    }


@system_router.get("/metrics", include_in_schema=False)
async def get_metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@request_router.post("/request", status_code=201)
async def insert_request(
    payload: EncryptedPayload,
    relay: RelayService = Depends(get_relay),
) -> RequestCreated:
    """Create a new request and return its correlation id."""
    request_id = await relay.create_request(payload)
    return RequestCreated(request_id=request_id)


# Registered before the GET route so a HEAD never reaches the claiming handler
@request_router.head("/request/{request_id}")
async def has_request(
    request_id: UUID,
    relay: RelayService = Depends(get_relay),
) -> Response:
    """Check whether a request exists without claiming it."""
    exists = await relay.has_request(request_id)
    return Response(status_code=200 if exists else 404)


@request_router.get("/request/{request_id}")
async def get_request(
    request_id: UUID,
    relay: RelayService = Depends(get_relay),
) -> EncryptedPayload:
    """Claim a request. It can be read exactly once."""
    return await relay.claim_request(request_id)


async def put_request(
    request_id: UUID,
    payload: EncryptedPayload,
    relay: RelayService = Depends(get_relay),
) -> Response:
    """Create a request under a caller-supplied id. Safe to retry."""
    outcome = await relay.put_request(request_id, payload)
    return Response(status_code=201 if outcome is CreateOutcome.CREATED else 200)


@response_router.put("/response/{request_id}", status_code=201)
async def insert_response(
    request_id: UUID,
    payload: EncryptedPayload,
    relay: RelayService = Depends(get_relay),
) -> Response:
    """Submit the response to a request. Accepted once."""
    await relay.submit_response(request_id, payload)
    return Response(status_code=201)


@response_router.get("/response/{request_id}")
async def get_response(
    request_id: UUID,
    relay: RelayService = Depends(get_relay),
) -> EncryptedPayload | StatusPayload:
    """Fetch the response (exactly once), or the request status if not answered yet."""
    result = await relay.fetch_response(request_id)
    if isinstance(result, EncryptedPayload):
        return result
    return StatusPayload(status=result)


def build_request_router(enable_put: bool) -> APIRouter:
    """Return the request routes, with PUT only when enabled."""
    router = APIRouter()
    router.include_router(request_router)
    if enable_put:
        router.add_api_route(
            "/request/{request_id}",
            put_request,
            methods=["PUT"],
            tags=["request"],
            responses={201: {"description": "Created"}, 200: {"description": "Resend accepted"}},
        )
    return router
