"""Relay service: the pairing state machine.

This module implements the four operations the HTTP layer calls, on top of the
pairing store:

    (none)       --create-->   Initialized
    Initialized  --claim-->    Retrieved
    Initialized/Retrieved --respond--> Completed   (status removed)
    any          --TTL-->      Unknown

The service turns store outcomes into domain exceptions, encodes and decodes
payloads, logs every transition and counts outcomes. It keeps no state
between calls; all coordination happens in the store's atomic primitives.

Examples:
    Running an exchange::

        from wallet_bridge.config import BridgeConfig
        from wallet_bridge.core.relay import RelayService
        from wallet_bridge.storage.memory import MemoryKeyValueStore

        relay = RelayService.from_store(MemoryKeyValueStore(), BridgeConfig())

        request_id = await relay.create_request(EncryptedPayload(iv="AAA", payload="BBB"))
        request = await relay.claim_request(request_id)
        await relay.submit_response(request_id, EncryptedPayload(iv="CCC", payload="DDD"))
        response = await relay.fetch_response(request_id)
"""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import cast
from uuid import UUID, uuid4

from wallet_bridge.codec import decode_payload, encode_payload
from wallet_bridge.config import BridgeConfig
from wallet_bridge.core.pairing_store import PairingStore
from wallet_bridge.exceptions import (
    ConflictError,
    FeatureDisabledError,
    InvalidPreconditionError,
    RequestNotFoundError,
    StorageError,
)
from wallet_bridge.models import (
    CreateOutcome,
    EncryptedPayload,
    RequestStatus,
    SubmitOutcome,
)
from wallet_bridge.observability.logging import get_logger
from wallet_bridge.observability.metrics import (
    record_duration,
    record_operation,
    record_store_error,
    record_transition,
)
from wallet_bridge.storage.base import KeyValueStore

logger = get_logger(__name__)


class RelayService:
    """Façade over the pairing store used by the HTTP layer.

    Attributes:
        store: Pairing record store.
        config: Configuration; supplies the payload limit and the pairing
            policies, read once here and never from the environment.
    """

    def __init__(self, store: PairingStore, config: BridgeConfig) -> None:
        self.store = store
        self.config = config

    @classmethod
    def from_store(cls, kv: KeyValueStore, config: BridgeConfig) -> "RelayService":
        """Build a relay over a key-value store, using the configured TTL."""
        return cls(PairingStore(kv, ttl_seconds=config.request_ttl_seconds), config)

    async def create_request(self, payload: EncryptedPayload) -> UUID:
        """Store a request under a fresh correlation id.

        Args:
            payload: The encrypted request.

        Returns:
            The generated correlation id.

        Raises:
            PayloadTooLargeError: If the payload exceeds the size limit.
            ConflictError: If the generated id is already in use.
            StorageError: If the store fails.
        """
        request_id = uuid4()
        data = encode_payload(payload, self.config.max_payload_bytes)

        with self._tracked("create_request", request_id):
            outcome = await self.store.create_request(request_id, data)

        if outcome is CreateOutcome.ALREADY_EXISTS:
            record_operation("create_request", "conflict")
            raise ConflictError(
                message=f"Request {request_id} already exists",
                request_id=request_id,
                reason="already_exists",
            )

        self._transition(request_id, "new", RequestStatus.INITIALIZED)
        record_operation("create_request", "created")
        logger.info("request.created", request_id=str(request_id))
        return request_id

    async def put_request(self, request_id: UUID, payload: EncryptedPayload) -> CreateOutcome:
        """Store a request under a caller-supplied correlation id.

        With the "idempotent" duplicate policy, resending the same payload
        succeeds with UNCHANGED and a different payload is a conflict. With
        the "reject" policy every duplicate is a conflict.

        Args:
            request_id: The correlation id chosen by the caller.
            payload: The encrypted request.

        Returns:
            CREATED or UNCHANGED.

        Raises:
            FeatureDisabledError: If creation by id is not enabled.
            ConflictError: If the id is in use and the policy rejects it.
            PayloadTooLargeError: If the payload exceeds the size limit.
            StorageError: If the store fails.
        """
        if not self.config.enable_request_put:
            raise FeatureDisabledError("request_put")

        data = encode_payload(payload, self.config.max_payload_bytes)

        with self._tracked("put_request", request_id):
            if self.config.duplicate_request_policy == "idempotent":
                outcome = await self.store.create_request_idempotent(request_id, data)
            else:
                outcome = await self.store.create_request(request_id, data)

        if outcome is CreateOutcome.CONFLICT:
            record_operation("put_request", "conflict")
            raise ConflictError(
                message=f"Request {request_id} already exists with a different payload",
                request_id=request_id,
                reason="payload_mismatch",
            )
        if outcome is CreateOutcome.ALREADY_EXISTS:
            record_operation("put_request", "conflict")
            raise ConflictError(
                message=f"Request {request_id} already exists",
                request_id=request_id,
                reason="already_exists",
            )

        if outcome is CreateOutcome.CREATED:
            self._transition(request_id, "new", RequestStatus.INITIALIZED)
            logger.info("request.created", request_id=str(request_id))
        else:
            logger.info("request.resent", request_id=str(request_id))

        record_operation("put_request", outcome.value)
        return outcome

    async def has_request(self, request_id: UUID) -> bool:
        """Return whether a pairing with a live status exists.

        Raises:
            StorageError: If the store fails.
        """
        with self._tracked("has_request", request_id):
            exists = await self.store.has_request(request_id)

        record_operation("has_request", "found" if exists else "not_found")
        return exists

    async def claim_request(self, request_id: UUID) -> EncryptedPayload:
        """Consume the request of a pairing.

        Only one caller ever receives a given request.

        Raises:
            RequestNotFoundError: If the request was never created, was
                already claimed, or expired.
            PayloadError: If the stored payload is corrupt.
            StorageError: If the store fails.
        """
        with self._tracked("claim_request", request_id):
            claimed = await self.store.claim_request(request_id)

        if claimed is None:
            record_operation("claim_request", "not_found")
            raise RequestNotFoundError(request_id)

        self._transition(request_id, claimed.previous_status.value, RequestStatus.RETRIEVED)
        record_operation("claim_request", "claimed")
        return decode_payload(claimed.payload)

    async def submit_response(self, request_id: UUID, payload: EncryptedPayload) -> None:
        """Store the response of a pairing.

        Raises:
            InvalidPreconditionError: If the request lifecycle never started
                (or the request was not claimed and claiming is required).
            ConflictError: If a response was already submitted.
            PayloadTooLargeError: If the payload exceeds the size limit.
            StorageError: If the store fails.
        """
        data = encode_payload(payload, self.config.max_payload_bytes)

        with self._tracked("submit_response", request_id):
            result = await self.store.submit_response(
                request_id,
                data,
                require_claim=self.config.response_requires_claim,
            )

        if result.outcome is SubmitOutcome.STATUS_MISSING:
            record_operation("submit_response", "invalid_precondition")
            raise InvalidPreconditionError(
                message=f"Request {request_id} does not exist",
                request_id=request_id,
            )
        if result.outcome is SubmitOutcome.NOT_CLAIMED:
            record_operation("submit_response", "invalid_precondition")
            raise InvalidPreconditionError(
                message=f"Request {request_id} has not been retrieved",
                request_id=request_id,
            )
        if result.outcome is SubmitOutcome.ALREADY_SUBMITTED:
            record_operation("submit_response", "conflict")
            raise ConflictError(
                message=f"Response for {request_id} already submitted",
                request_id=request_id,
                reason="already_submitted",
            )

        previous = result.previous_status or RequestStatus.RETRIEVED
        self._transition(request_id, previous.value, RequestStatus.COMPLETED)
        record_operation("submit_response", "created")

    async def fetch_response(self, request_id: UUID) -> EncryptedPayload | RequestStatus:
        """Consume the response of a pairing, or report its status.

        Returns:
            The response payload (deleted by this call), or the current
            status (INITIALIZED or RETRIEVED) if no response exists yet.

        Raises:
            RequestNotFoundError: If the pairing is unknown or its response
                was already fetched.
            PayloadError: If the stored payload is corrupt.
            StorageError: If the store fails.
        """
        with self._tracked("fetch_response", request_id):
            result = await self.store.fetch_response_or_status(request_id)

        if result is None:
            record_operation("fetch_response", "not_found")
            raise RequestNotFoundError(request_id)

        if result.response is not None:
            record_operation("fetch_response", "delivered")
            logger.info("response.fetched", request_id=str(request_id))
            return decode_payload(result.response)

        record_operation("fetch_response", "pending")
        return cast(RequestStatus, result.status)

    @contextmanager
    def _tracked(self, operation: str, request_id: UUID) -> Iterator[None]:
        """Time a store interaction and log store failures with the operation and id."""
        start = time.perf_counter()
        try:
            yield
        except StorageError as e:
            record_store_error(operation)
            logger.error(
                "store.error",
                operation=operation,
                request_id=str(request_id),
                store_operation=e.operation,
                error=e.message,
            )
            raise
        finally:
            record_duration(operation, time.perf_counter() - start)

    @staticmethod
    def _transition(request_id: UUID, from_state: str, to_state: RequestStatus) -> None:
        record_transition(from_state, to_state.value)
        logger.info(
            "request.transition",
            request_id=str(request_id),
            from_state=from_state,
            to_state=to_state.value,
        )
