"""Run the wallet bridge HTTP server.

Configuration comes from the environment (see BridgeConfig.from_env).
Run with: python -m wallet_bridge
"""

import uvicorn

from wallet_bridge.api import create_app
from wallet_bridge.config import BridgeConfig
from wallet_bridge.observability.logging import configure_logging, get_logger

logger = get_logger("wallet_bridge")


def main() -> None:
    config = BridgeConfig.from_env()
    configure_logging(level=config.log_level, json_output=config.json_logs)

    logger.info(
        "bridge.starting",
        environment=config.environment,
        store_backend=config.store_backend,
        request_ttl_seconds=config.request_ttl_seconds,
        request_put_enabled=config.enable_request_put,
        duplicate_request_policy=config.duplicate_request_policy,
        response_requires_claim=config.response_requires_claim,
    )

    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    main()
