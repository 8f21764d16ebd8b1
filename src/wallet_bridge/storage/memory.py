"""In-memory key-value store with asyncio concurrency control.

This module provides an in-process implementation of the KeyValueStore
protocol. It is suitable for:
    - Development and testing
    - Single-process deployments where losing pairings on restart is fine

For anything with more than one worker process, use RedisKeyValueStore.

Concurrency:
    - One asyncio.Lock guards the whole keyspace
    - Every public method runs inside the lock, so each operation is atomic
      with respect to every other task, including the multi-key primitives

Expiry:
    - Each key stores a deadline computed from an injectable monotonic clock
    - Reads treat keys past their deadline as absent and drop them
    - Writes evict every expired key, so abandoned pairings do not pile up

Examples:
    Basic usage::

        from wallet_bridge.storage.memory import MemoryKeyValueStore

        store = MemoryKeyValueStore()
        await store.set("req:abc", b"...", ttl_seconds=180)

    Controlling time in tests::

        now = [1000.0]
        store = MemoryKeyValueStore(clock=lambda: now[0])
        await store.set("req:abc", b"...", ttl_seconds=180)
        now[0] += 181
        assert await store.get("req:abc") is None
"""

import asyncio
import time
from collections.abc import Callable, Mapping, Sequence

from wallet_bridge.storage.base import KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store with store-owned TTLs.

    Attributes:
        _values: Dictionary mapping keys to (value, deadline) pairs.
        _lock: Lock serializing every operation.
        _clock: Monotonic clock returning seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize an empty store.

        Args:
            clock: Source of the current time in seconds. Only differences
                between readings are used.
        """
        self._values: dict[str, tuple[bytes, float]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    def __len__(self) -> int:
        """Number of stored keys, including expired keys not yet evicted."""
        return len(self._values)

    async def get(self, key: str) -> bytes | None:
        async with self._lock:
            return self._live_value(key)

    async def set(
        self,
        key: str,
        value: bytes,
        *,
        ttl_seconds: int,
        only_if_absent: bool = False,
        only_if_present: bool = False,
    ) -> bool:
        """Write a key with an expiry.

        Raises:
            ValueError: If both conditions are requested or the TTL is not
                positive.
        """
        if only_if_absent and only_if_present:
            raise ValueError("only_if_absent and only_if_present are mutually exclusive")
        self._check_ttl(ttl_seconds)

        async with self._lock:
            self._evict_expired()
            exists = key in self._values
            if only_if_absent and exists:
                return False
            if only_if_present and not exists:
                return False
            self._values[key] = (bytes(value), self._clock() + ttl_seconds)
            return True

    async def set_all_if_absent(
        self,
        items: Mapping[str, bytes],
        *,
        ttl_seconds: int,
        guard_keys: Sequence[str] = (),
    ) -> bool:
        self._check_ttl(ttl_seconds)

        async with self._lock:
            self._evict_expired()
            if any(key in self._values for key in (*items, *guard_keys)):
                return False
            deadline = self._clock() + ttl_seconds
            for key, value in items.items():
                self._values[key] = (bytes(value), deadline)
            return True

    async def get_del(self, key: str) -> bytes | None:
        async with self._lock:
            value = self._live_value(key)
            self._values.pop(key, None)
            return value

    async def get_and_consume(
        self,
        read_key: str,
        consume_key: str,
    ) -> tuple[bytes | None, bytes | None]:
        async with self._lock:
            read_value = self._live_value(read_key)
            consumed = self._live_value(consume_key)
            self._values.pop(consume_key, None)
            return read_value, consumed

    async def delete(self, *keys: str) -> int:
        async with self._lock:
            removed = 0
            for key in keys:
                if self._live_value(key) is not None:
                    removed += 1
                self._values.pop(key, None)
            return removed

    async def exists(self, key: str) -> bool:
        async with self._lock:
            return self._live_value(key) is not None

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        self._check_ttl(ttl_seconds)

        async with self._lock:
            value = self._live_value(key)
            if value is None:
                return False
            self._values[key] = (value, self._clock() + ttl_seconds)
            return True

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        async with self._lock:
            self._values.clear()

    def _live_value(self, key: str) -> bytes | None:
        """Return a key's value, dropping it if expired. Caller holds the lock."""
        entry = self._values.get(key)
        if entry is None:
            return None
        value, deadline = entry
        if deadline <= self._clock():
            del self._values[key]
            return None
        return value

    def _evict_expired(self) -> int:
        """Remove every expired key. Caller holds the lock."""
        now = self._clock()
        expired = [key for key, (_, deadline) in self._values.items() if deadline <= now]
        for key in expired:
            del self._values[key]
        return len(expired)

    @staticmethod
    def _check_ttl(ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
