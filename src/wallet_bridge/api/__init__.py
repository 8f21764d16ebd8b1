"""HTTP layer for the wallet bridge.

This package exposes the relay service over HTTP with FastAPI:

- app.py: application factory (CORS, lifespan, error handlers)
- routes.py: request, response and system routes
- errors.py: bridge exception to status code mapping
- middleware.py: tracing context for structured logs
"""

from wallet_bridge.api.app import create_app

__all__ = ["create_app"]
