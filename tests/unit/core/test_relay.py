"""Unit tests for RelayService.

This test suite covers:
    - The four relay operations and the optional creation by id
    - Mapping of store outcomes to domain exceptions
    - Policy flags (duplicate handling, claim before response, PUT gate)
    - Payload size limits
    - Logged transitions and recorded metrics
    - Store failures surfacing as StorageError
"""

from uuid import uuid4

import pytest
from prometheus_client import REGISTRY
from structlog.testing import capture_logs

from wallet_bridge.config import BridgeConfig
from wallet_bridge.core.relay import RelayService
from wallet_bridge.exceptions import (
    ConflictError,
    FeatureDisabledError,
    InvalidPreconditionError,
    PayloadError,
    PayloadTooLargeError,
    RequestNotFoundError,
    StorageError,
)
from wallet_bridge.keys import RecordKey
from wallet_bridge.models import CreateOutcome, EncryptedPayload, RequestStatus
from wallet_bridge.storage.memory import MemoryKeyValueStore


class UnreachableStore(MemoryKeyValueStore):
    """Memory store whose every operation fails like a lost connection."""

    def _fail(self, operation: str):
        raise StorageError(f"Redis {operation} failed: ConnectionError", operation=operation)

    async def get(self, key):
        self._fail("get")

    async def set(self, key, value, *, ttl_seconds, only_if_absent=False, only_if_present=False):
        self._fail("set")

    async def set_all_if_absent(self, items, *, ttl_seconds, guard_keys=()):
        self._fail("set_all_if_absent")

    async def get_and_consume(self, read_key, consume_key):
        self._fail("get_and_consume")

    async def exists(self, key):
        self._fail("exists")


def sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.fixture
def relay(kv, config) -> RelayService:
    return RelayService.from_store(kv, config)


def make_relay(kv, **overrides) -> RelayService:
    return RelayService.from_store(kv, BridgeConfig(store_backend="memory", **overrides))


# ============================================================================
# Happy Path
# ============================================================================


@pytest.mark.asyncio
async def test_full_exchange(relay, request_payload, response_payload):
    request_id = await relay.create_request(request_payload)

    assert await relay.has_request(request_id) is True
    assert await relay.claim_request(request_id) == request_payload
    assert await relay.fetch_response(request_id) is RequestStatus.RETRIEVED

    await relay.submit_response(request_id, response_payload)

    assert await relay.fetch_response(request_id) == response_payload
    assert await relay.has_request(request_id) is False


@pytest.mark.asyncio
async def test_create_generates_distinct_ids(relay, request_payload):
    ids = {await relay.create_request(request_payload) for _ in range(10)}
    assert len(ids) == 10


@pytest.mark.asyncio
async def test_create_uses_configured_ttl(kv, clock, request_payload):
    relay = make_relay(kv, request_ttl_seconds=30)
    request_id = await relay.create_request(request_payload)

    clock.advance(30)

    assert await relay.has_request(request_id) is False


@pytest.mark.asyncio
async def test_fetch_before_claim_reports_initialized(relay, request_payload):
    request_id = await relay.create_request(request_payload)
    assert await relay.fetch_response(request_id) is RequestStatus.INITIALIZED


# ============================================================================
# Errors
# ============================================================================


@pytest.mark.asyncio
async def test_claim_unknown_raises_not_found(relay):
    request_id = uuid4()
    with pytest.raises(RequestNotFoundError) as exc_info:
        await relay.claim_request(request_id)
    assert exc_info.value.request_id == request_id


@pytest.mark.asyncio
async def test_claim_twice_raises_not_found(relay, request_payload):
    request_id = await relay.create_request(request_payload)
    await relay.claim_request(request_id)

    with pytest.raises(RequestNotFoundError):
        await relay.claim_request(request_id)


@pytest.mark.asyncio
async def test_submit_unknown_raises_invalid_precondition(relay, response_payload):
    with pytest.raises(InvalidPreconditionError):
        await relay.submit_response(uuid4(), response_payload)


@pytest.mark.asyncio
async def test_submit_twice_raises_conflict(relay, request_payload, response_payload):
    request_id = await relay.create_request(request_payload)
    await relay.claim_request(request_id)
    await relay.submit_response(request_id, response_payload)

    with pytest.raises(ConflictError) as exc_info:
        await relay.submit_response(request_id, response_payload)
    assert exc_info.value.reason == "already_submitted"


@pytest.mark.asyncio
async def test_fetch_unknown_raises_not_found(relay):
    with pytest.raises(RequestNotFoundError):
        await relay.fetch_response(uuid4())


@pytest.mark.asyncio
async def test_fetch_twice_raises_not_found(relay, request_payload, response_payload):
    request_id = await relay.create_request(request_payload)
    await relay.submit_response(request_id, response_payload)
    await relay.fetch_response(request_id)

    with pytest.raises(RequestNotFoundError):
        await relay.fetch_response(request_id)


@pytest.mark.asyncio
async def test_corrupt_stored_payload_raises_payload_error(relay, kv, request_id):
    await kv.set(str(RecordKey.request(request_id)), b"garbage", ttl_seconds=180)
    await kv.set(str(RecordKey.status(request_id)), b"initialized", ttl_seconds=180)

    with pytest.raises(PayloadError):
        await relay.claim_request(request_id)


# ============================================================================
# Policies
# ============================================================================


@pytest.mark.asyncio
async def test_submit_before_claim_accepted_by_default(relay, request_payload, response_payload):
    request_id = await relay.create_request(request_payload)

    await relay.submit_response(request_id, response_payload)

    assert await relay.fetch_response(request_id) == response_payload


@pytest.mark.asyncio
async def test_submit_before_claim_rejected_when_claim_required(kv, request_payload, response_payload):
    relay = make_relay(kv, response_requires_claim=True)
    request_id = await relay.create_request(request_payload)

    with pytest.raises(InvalidPreconditionError) as exc_info:
        await relay.submit_response(request_id, response_payload)

    assert "not been retrieved" in exc_info.value.message
    assert await relay.claim_request(request_id) == request_payload
    await relay.submit_response(request_id, response_payload)


@pytest.mark.asyncio
async def test_put_disabled_by_default(relay, request_id, request_payload):
    with pytest.raises(FeatureDisabledError):
        await relay.put_request(request_id, request_payload)


@pytest.mark.asyncio
async def test_put_idempotent_policy(kv, request_id, request_payload):
    relay = make_relay(kv, enable_request_put=True)

    assert await relay.put_request(request_id, request_payload) is CreateOutcome.CREATED
    assert await relay.put_request(request_id, request_payload) is CreateOutcome.UNCHANGED

    with pytest.raises(ConflictError) as exc_info:
        await relay.put_request(request_id, EncryptedPayload(iv="XXX", payload="YYY"))
    assert exc_info.value.reason == "payload_mismatch"

    assert await relay.claim_request(request_id) == request_payload


@pytest.mark.asyncio
async def test_put_reject_policy(kv, request_id, request_payload):
    relay = make_relay(kv, enable_request_put=True, duplicate_request_policy="reject")

    assert await relay.put_request(request_id, request_payload) is CreateOutcome.CREATED

    with pytest.raises(ConflictError) as exc_info:
        await relay.put_request(request_id, request_payload)
    assert exc_info.value.reason == "already_exists"


# ============================================================================
# Payload Limits
# ============================================================================


@pytest.mark.asyncio
async def test_oversized_request_rejected(kv):
    relay = make_relay(kv, max_payload_bytes=64)

    with pytest.raises(PayloadTooLargeError):
        await relay.create_request(EncryptedPayload(iv="AAA", payload="B" * 100))

    assert len(kv) == 0


@pytest.mark.asyncio
async def test_oversized_response_rejected(kv, request_payload):
    relay = make_relay(kv, max_payload_bytes=64)
    request_id = await relay.create_request(request_payload)

    with pytest.raises(PayloadTooLargeError):
        await relay.submit_response(request_id, EncryptedPayload(iv="CCC", payload="D" * 100))

    assert await relay.fetch_response(request_id) is RequestStatus.INITIALIZED


# ============================================================================
# Observability
# ============================================================================


@pytest.mark.asyncio
async def test_transitions_are_logged(relay, request_payload, response_payload):
    with capture_logs() as logs:
        request_id = await relay.create_request(request_payload)
        await relay.claim_request(request_id)
        await relay.submit_response(request_id, response_payload)

    transitions = [
        (entry["from_state"], entry["to_state"])
        for entry in logs
        if entry["event"] == "request.transition"
    ]
    assert transitions == [
        ("new", "initialized"),
        ("initialized", "retrieved"),
        ("retrieved", "completed"),
    ]
    assert all(entry["request_id"] == str(request_id) for entry in logs if "request_id" in entry)


@pytest.mark.asyncio
async def test_payloads_are_never_logged(relay, request_payload, response_payload):
    with capture_logs() as logs:
        request_id = await relay.create_request(request_payload)
        await relay.claim_request(request_id)
        await relay.submit_response(request_id, response_payload)
        await relay.fetch_response(request_id)

    rendered = repr(logs)
    for secret in ("BBB", "DDD"):
        assert secret not in rendered


@pytest.mark.asyncio
async def test_operation_outcomes_are_counted(relay, request_payload):
    before_created = sample("bridge_operations_total", operation="create_request", outcome="created")
    before_not_found = sample("bridge_operations_total", operation="claim_request", outcome="not_found")

    await relay.create_request(request_payload)
    with pytest.raises(RequestNotFoundError):
        await relay.claim_request(uuid4())

    assert sample("bridge_operations_total", operation="create_request", outcome="created") == before_created + 1
    assert sample("bridge_operations_total", operation="claim_request", outcome="not_found") == before_not_found + 1


@pytest.mark.asyncio
async def test_transition_metric(relay, request_payload):
    before = sample("bridge_state_transitions_total", from_state="initialized", to_state="retrieved")

    request_id = await relay.create_request(request_payload)
    await relay.claim_request(request_id)

    assert sample("bridge_state_transitions_total", from_state="initialized", to_state="retrieved") == before + 1


# ============================================================================
# Store Failures
# ============================================================================


@pytest.mark.asyncio
async def test_store_failure_on_create(config, request_payload):
    relay = RelayService.from_store(UnreachableStore(), config)
    before = sample("bridge_store_errors_total", operation="create_request")

    with capture_logs() as logs:
        with pytest.raises(StorageError) as exc_info:
            await relay.create_request(request_payload)

    assert exc_info.value.operation == "set_all_if_absent"
    assert sample("bridge_store_errors_total", operation="create_request") == before + 1
    errors = [entry for entry in logs if entry["event"] == "store.error"]
    assert len(errors) == 1
    assert errors[0]["operation"] == "create_request"
    assert errors[0]["store_operation"] == "set_all_if_absent"
    assert errors[0]["log_level"] == "error"


@pytest.mark.asyncio
@pytest.mark.parametrize("call", ["has_request", "claim_request", "fetch_response"])
async def test_store_failure_propagates(config, call):
    relay = RelayService.from_store(UnreachableStore(), config)

    with pytest.raises(StorageError):
        await getattr(relay, call)(uuid4())


@pytest.mark.asyncio
async def test_store_failure_on_submit(config, response_payload):
    relay = RelayService.from_store(UnreachableStore(), config)

    with pytest.raises(StorageError):
        await relay.submit_response(uuid4(), response_payload)
