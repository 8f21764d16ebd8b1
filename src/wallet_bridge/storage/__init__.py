"""Key-value store backends for the wallet bridge.

All backends implement the KeyValueStore protocol defined in base.py.

Available Backends:
    - MemoryKeyValueStore: In-process storage with asyncio concurrency
    - RedisKeyValueStore: Redis storage shared by every worker
"""

from wallet_bridge.config import BridgeConfig
from wallet_bridge.storage.base import KeyValueStore
from wallet_bridge.storage.memory import MemoryKeyValueStore
from wallet_bridge.storage.redis_store import RedisKeyValueStore


def create_store(config: BridgeConfig) -> KeyValueStore:
    """Build the store selected by the configuration.

    Args:
        config: Bridge configuration.

    Returns:
        A MemoryKeyValueStore or a RedisKeyValueStore.
    """
    if config.store_backend == "memory":
        return MemoryKeyValueStore()
    return RedisKeyValueStore.from_url(
        config.redis_url,
        socket_timeout=config.store_timeout_seconds,
        socket_connect_timeout=config.connect_timeout_seconds,
    )


__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "create_store",
]
