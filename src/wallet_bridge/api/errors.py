"""Mapping of bridge exceptions to HTTP responses.

State machine violations are reported precisely; store failures and corrupt
payloads become a generic 500 with no backend detail.
"""

from typing import cast

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from wallet_bridge.exceptions import (
    BridgeError,
    ConflictError,
    FeatureDisabledError,
    InvalidPreconditionError,
    PayloadTooLargeError,
    RequestNotFoundError,
)
from wallet_bridge.observability.logging import get_logger

logger = get_logger(__name__)

# Checked in order; anything else is an internal failure
ERROR_STATUS_CODES: list[tuple[type[BridgeError], int]] = [
    (RequestNotFoundError, 404),
    (FeatureDisabledError, 404),
    (InvalidPreconditionError, 400),
    (ConflictError, 409),
    (PayloadTooLargeError, 413),
]


def status_code_for(exc: BridgeError) -> int:
    """Return the HTTP status code for a bridge exception."""
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def bridge_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a BridgeError as a JSON error response.

    Registered for BridgeError only, so every exception seen here is one.
    """
    error = cast(BridgeError, exc)
    status_code = status_code_for(error)

    if status_code == 500:
        logger.error(
            "request.failed",
            method=request.method,
            path=request.url.path,
            error_type=type(error).__name__,
            error=error.message,
        )
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    return JSONResponse(status_code=status_code, content={"detail": error.message})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BridgeError, bridge_error_handler)
