"""Redis key-value store on redis.asyncio.

This module maps the KeyValueStore protocol onto Redis commands:

    get                 GET
    set                 SET key value EX ttl [NX|XX]
    set_all_if_absent   Lua script: EXISTS over every key and guard key, then SET ... EX
    get_del             GETDEL
    get_and_consume     MULTI / GET / GETDEL / EXEC
    delete              DEL
    exists              EXISTS
    expire              EXPIRE

Every Redis or socket error, including timeouts, is raised as StorageError
carrying the operation name. Nothing is retried here.

Examples:
    Connecting from a URL::

        from wallet_bridge.storage.redis_store import RedisKeyValueStore

        store = RedisKeyValueStore.from_url(
            "redis://localhost:6379",
            socket_timeout=5.0,
            socket_connect_timeout=30.0,
        )
        await store.ping()
"""

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager

from redis.asyncio import Redis
from redis.exceptions import RedisError

from wallet_bridge.exceptions import StorageError
from wallet_bridge.storage.base import KeyValueStore

# KEYS: keys to create, then guard keys. ARGV[1]: ttl in seconds,
# ARGV[2]: number of keys to create, ARGV[3..]: values.
SET_ALL_IF_ABSENT_SCRIPT = """
for _, key in ipairs(KEYS) do
    if redis.call('EXISTS', key) == 1 then
        return 0
    end
end
for i = 1, tonumber(ARGV[2]) do
    redis.call('SET', KEYS[i], ARGV[i + 2], 'EX', ARGV[1])
end
return 1
"""


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise backend errors as StorageError.

    Args:
        operation: Name of the store operation, recorded on the error.

    Raises:
        StorageError: For any Redis, socket or timeout error.
    """
    try:
        yield
    except (RedisError, OSError) as e:
        raise StorageError(
            message=f"Redis {operation} failed: {type(e).__name__}",
            operation=operation,
            cause=e,
        ) from e


class RedisKeyValueStore(KeyValueStore):
    """Key-value store backed by a Redis server.

    Attributes:
        _client: The redis.asyncio client (binary values, no decoding).
    """

    def __init__(self, client: Redis) -> None:
        """Wrap an existing client.

        Args:
            client: A redis.asyncio client created with decode_responses=False.
        """
        self._client = client
        self._set_all_if_absent = client.register_script(SET_ALL_IF_ABSENT_SCRIPT)

    @classmethod
    def from_url(
        cls,
        url: str,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 30.0,
    ) -> "RedisKeyValueStore":
        """Create a store from a redis:// or rediss:// URL.

        Args:
            url: Connection URL.
            socket_timeout: Deadline for one command round trip.
            socket_connect_timeout: Deadline for establishing a connection.

        Returns:
            A store with its own connection pool.
        """
        client = Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_connect_timeout,
            decode_responses=False,
        )
        return cls(client)

    async def get(self, key: str) -> bytes | None:
        with translate_errors("get"):
            return await self._client.get(key)

    async def set(
        self,
        key: str,
        value: bytes,
        *,
        ttl_seconds: int,
        only_if_absent: bool = False,
        only_if_present: bool = False,
    ) -> bool:
        if only_if_absent and only_if_present:
            raise ValueError("only_if_absent and only_if_present are mutually exclusive")

        with translate_errors("set"):
            result = await self._client.set(
                key,
                value,
                ex=ttl_seconds,
                nx=only_if_absent,
                xx=only_if_present,
            )
        # SET replies OK, or nil when an NX/XX condition fails
        return bool(result)

    async def set_all_if_absent(
        self,
        items: Mapping[str, bytes],
        *,
        ttl_seconds: int,
        guard_keys: Sequence[str] = (),
    ) -> bool:
        keys = list(items)
        args = [ttl_seconds, len(keys), *(items[key] for key in keys)]
        keys.extend(guard_keys)
        with translate_errors("set_all_if_absent"):
            result = await self._set_all_if_absent(keys=keys, args=args)
        return int(result) == 1

    async def get_del(self, key: str) -> bytes | None:
        with translate_errors("get_del"):
            return await self._client.getdel(key)

    async def get_and_consume(
        self,
        read_key: str,
        consume_key: str,
    ) -> tuple[bytes | None, bytes | None]:
        with translate_errors("get_and_consume"):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.get(read_key)
                pipe.getdel(consume_key)
                read_value, consumed = await pipe.execute()
        return read_value, consumed

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        with translate_errors("delete"):
            return int(await self._client.delete(*keys))

    async def exists(self, key: str) -> bool:
        with translate_errors("exists"):
            return bool(await self._client.exists(key))

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        with translate_errors("expire"):
            return bool(await self._client.expire(key, ttl_seconds))

    async def ping(self) -> bool:
        with translate_errors("ping"):
            return bool(await self._client.ping())

    async def close(self) -> None:
        with translate_errors("close"):
            await self._client.aclose()
