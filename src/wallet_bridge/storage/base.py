"""Key-value store protocol for the wallet bridge.

This module defines the interface the pairing store requires from its
ephemeral key-value collaborator. It is a thin, Redis-shaped contract:
single-key reads and writes with a mandatory TTL, conditional writes, a
read-and-delete, and two multi-key primitives that must each execute as one
atomic unit.

Examples:
    Implementing a custom store::

        from wallet_bridge.storage.base import KeyValueStore

        class MyStore:
            async def get(self, key: str) -> bytes | None:
                return await self.backend.get(key)

            async def get_del(self, key: str) -> bytes | None:
                # Must be a single atomic read-and-delete
                ...

    Using a store::

        created = await store.set(
            "res:6f1c5c7e-8d0e-4c43-9a4e-2f5f3c1d2b7a",
            b'{"iv":"CCC","payload":"DDD"}',
            ttl_seconds=180,
            only_if_absent=True,
        )
        if not created:
            ...  # someone else won

Atomicity Requirements:
    All KeyValueStore implementations MUST guarantee:

    1. **Conditional writes**: set() with only_if_absent/only_if_present
       checks and writes in one step. Exactly one of N concurrent
       only_if_absent writers to the same key gets True.

    2. **Read-and-delete**: get_del() returns the value to at most one of N
       concurrent callers. The others get None.

    3. **Multi-key primitives**: set_all_if_absent() and get_and_consume()
       are observed by every other caller as a single step.

    4. **Expiration**: A key past its TTL behaves exactly like a key that was
       never written, for every operation.

    5. **Errors**: Every backend failure is raised as StorageError. The core
       never retries, so adapters must not hide partial failures.
"""

from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol defining the ephemeral key-value store used by the bridge.

    All methods are async and must be safe to call concurrently from
    multiple asyncio tasks and processes. TTLs are owned by the store: the
    caller only states a duration per write and never compares timestamps.
    """

    async def get(self, key: str) -> bytes | None:
        """Return the value of a key, or None if absent or expired."""
        ...

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

        Args:
            key: The key to write.
            value: The value to store.
            ttl_seconds: Time-to-live in seconds.
            only_if_absent: Only write if the key does not exist (NX).
            only_if_present: Only write if the key exists (XX).

        Returns:
            True if the value was written, False if the condition failed.

        Raises:
            ValueError: If both conditions are requested.
        """
        ...

    async def set_all_if_absent(
        self,
        items: Mapping[str, bytes],
        *,
        ttl_seconds: int,
        guard_keys: Sequence[str] = (),
    ) -> bool:
        """Write every key with the same TTL only if none of them exists.

        Args:
            items: Keys and values to write.
            ttl_seconds: Time-to-live in seconds applied to every key.
            guard_keys: Extra keys that are never written but whose
                existence also blocks the write.

        Returns:
            True if all keys were written, False if any written or guard
            key already existed (in which case nothing was written).
        """
        ...

    async def get_del(self, key: str) -> bytes | None:
        """Atomically read and delete a key."""
        ...

    async def get_and_consume(
        self,
        read_key: str,
        consume_key: str,
    ) -> tuple[bytes | None, bytes | None]:
        """Read one key and read-and-delete another in one atomic step.

        Args:
            read_key: Key read without modification.
            consume_key: Key read and deleted.

        Returns:
            A (read_value, consumed_value) tuple.
        """
        ...

    async def delete(self, *keys: str) -> int:
        """Delete keys and return how many existed."""
        ...

    async def exists(self, key: str) -> bool:
        """Return whether a key exists."""
        ...

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        """Reset the TTL of a key. Returns False if the key does not exist."""
        ...

    async def ping(self) -> bool:
        """Check that the store is reachable."""
        ...

    async def close(self) -> None:
        """Release connections held by the store."""
        ...
