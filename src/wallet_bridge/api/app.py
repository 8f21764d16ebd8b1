"""FastAPI application factory for the wallet bridge.

Examples:
    Serving with uvicorn::

        import uvicorn

        from wallet_bridge.api import create_app
        from wallet_bridge.config import BridgeConfig

        app = create_app(BridgeConfig.from_env())
        uvicorn.run(app, host="0.0.0.0", port=8000)

    Testing against the in-memory store::

        from fastapi.testclient import TestClient

        app = create_app(BridgeConfig(), store=MemoryKeyValueStore())
        client = TestClient(app)
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from wallet_bridge import __version__
from wallet_bridge.api.errors import install_error_handlers
from wallet_bridge.api.middleware import TraceContextMiddleware
from wallet_bridge.api.routes import build_request_router, response_router, system_router
from wallet_bridge.config import BridgeConfig
from wallet_bridge.core.relay import RelayService
from wallet_bridge.observability.logging import get_logger
from wallet_bridge.storage import KeyValueStore, create_store

logger = get_logger(__name__)


def create_app(
    config: BridgeConfig | None = None,
    store: KeyValueStore | None = None,
) -> FastAPI:
    """Create the bridge application.

    Args:
        config: Configuration (uses defaults if not provided).
        store: Key-value store to use. If not provided, one is created from
            the configuration and closed when the application shuts down.

    Returns:
        The FastAPI application, with the relay service on ``app.state.relay``.
    """
    config = config or BridgeConfig()
    owns_store = store is None
    kv = store if store is not None else create_store(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Fail startup if the store is unreachable
        await kv.ping()
        logger.info("bridge.store_ready", store_backend=type(kv).__name__)
        try:
            yield
        finally:
            if owns_store:
                await kv.close()

    app = FastAPI(
        title="Wallet Bridge",
        description="Store-and-forward relay for encrypted wallet requests and responses",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.relay = RelayService.from_store(kv, config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_methods=["GET", "HEAD", "POST", "PUT"],
        allow_headers=["*"],
    )
    app.add_middleware(TraceContextMiddleware)
    install_error_handlers(app)

    app.include_router(system_router)
    app.include_router(build_request_router(config.enable_request_put))
    app.include_router(response_router)

    return app
