"""
Pytest configuration and shared fixtures for wallet_bridge tests.
"""

from uuid import UUID, uuid4

import pytest

from wallet_bridge.config import BridgeConfig
from wallet_bridge.models import EncryptedPayload
from wallet_bridge.storage.memory import MemoryKeyValueStore


class FakeClock:
    """Manually advanced clock for driving store-owned TTLs."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at an arbitrary time."""
    return FakeClock()


@pytest.fixture
def kv(clock: FakeClock) -> MemoryKeyValueStore:
    """Provide an empty in-memory store driven by the fake clock."""
    return MemoryKeyValueStore(clock=clock)


@pytest.fixture
def config() -> BridgeConfig:
    """Provide a configuration using the in-memory backend and default policies."""
    return BridgeConfig(store_backend="memory")


@pytest.fixture
def request_id() -> UUID:
    """Provide a fresh correlation id."""
    return uuid4()


@pytest.fixture
def request_payload() -> EncryptedPayload:
    """Provide the request payload of the reference exchange."""
    return EncryptedPayload(iv="AAA", payload="BBB")


@pytest.fixture
def response_payload() -> EncryptedPayload:
    """Provide the response payload of the reference exchange."""
    return EncryptedPayload(iv="CCC", payload="DDD")
