"""Custom exceptions for the wallet bridge.

This module defines the exception hierarchy used throughout the bridge to
signal store failures and state machine violations. The HTTP layer maps each
class to exactly one status code, so callers of the relay can tell "try again
later" apart from "this pairing is already used".

Examples:
    Handling a missing pairing::

        from wallet_bridge.exceptions import RequestNotFoundError

        try:
            payload = await relay.claim_request(request_id)
        except RequestNotFoundError:
            # Never created, already claimed, or expired
            return Response(status_code=404)

    Handling a store failure::

        from wallet_bridge.exceptions import StorageError

        try:
            await relay.submit_response(request_id, payload)
        except StorageError as e:
            logger.error("store.error", operation=e.operation, error=str(e))
            return Response(status_code=500)
"""

from typing import Literal
from uuid import UUID

ConflictReason = Literal["already_exists", "payload_mismatch", "already_submitted"]


class BridgeError(Exception):
    """Base exception for all wallet bridge errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        """Initialize the exception with a message.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)


class StorageError(BridgeError):
    """Key-value store operation failed or timed out.

    Raised by storage adapters for every backend failure (connection errors,
    timeouts, protocol errors). A StorageError is never evidence that a state
    transition did or did not happen: the store may have applied the write
    before the round trip failed.

    Attributes:
        message: Human-readable error description.
        operation: Name of the store operation that failed.
        cause: The underlying backend exception, if any.

    Examples:
        Raising a storage error::

            try:
                await redis.get(key)
            except RedisError as e:
                raise StorageError(
                    message=f"Redis GET failed: {e}",
                    operation="get",
                    cause=e,
                ) from e
    """

    def __init__(
        self,
        message: str,
        operation: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the storage error with details.

        Args:
            message: Human-readable error description.
            operation: Name of the store operation that failed.
            cause: The underlying backend exception.
        """
        super().__init__(message)
        self.operation = operation
        self.cause = cause


class RequestNotFoundError(BridgeError):
    """No live pairing exists for the correlation id.

    The three causes (never created, already consumed, expired) are
    deliberately not distinguished.

    Attributes:
        message: Human-readable error description.
        request_id: The correlation id that was looked up.
    """

    def __init__(self, request_id: UUID) -> None:
        super().__init__(f"Request {request_id} not found")
        self.request_id = request_id


class ConflictError(BridgeError):
    """The pairing has already completed the attempted step.

    Attributes:
        message: Human-readable error description.
        request_id: The correlation id of the pairing.
        reason: Which step was repeated: "already_exists" for a duplicate
            creation, "payload_mismatch" for an idempotent creation retried
            with a different payload, "already_submitted" for a second
            response.

    Examples:
        Raising a conflict error::

            if outcome is SubmitOutcome.ALREADY_SUBMITTED:
                raise ConflictError(
                    message=f"Response for {request_id} already submitted",
                    request_id=request_id,
                    reason="already_submitted",
                )
    """

    def __init__(self, message: str, request_id: UUID, reason: ConflictReason) -> None:
        """Initialize the conflict error with details.

        Args:
            message: Human-readable error description.
            request_id: The correlation id of the pairing.
            reason: Which step was repeated.
        """
        super().__init__(message)
        self.request_id = request_id
        self.reason = reason


class InvalidPreconditionError(BridgeError):
    """An operation was attempted out of order.

    Raised when a response is submitted for a pairing whose request lifecycle
    never started (or, under the require-claim policy, was never claimed).

    Attributes:
        message: Human-readable error description.
        request_id: The correlation id of the pairing.
    """

    def __init__(self, message: str, request_id: UUID) -> None:
        super().__init__(message)
        self.request_id = request_id


class PayloadError(BridgeError):
    """A stored payload could not be deserialized.

    A payload written by the bridge always decodes, so this signals a bug or
    storage corruption and is reported as an internal failure.
    """


class PayloadTooLargeError(BridgeError):
    """An incoming payload exceeds the configured size limit.

    Attributes:
        message: Human-readable error description.
        size: Encoded size of the payload in bytes.
        limit: Configured maximum size in bytes.
    """

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Payload of {size} bytes exceeds maximum size of {limit} bytes")
        self.size = size
        self.limit = limit


class FeatureDisabledError(BridgeError):
    """An optional operation was called while disabled by configuration.

    Attributes:
        message: Human-readable error description.
        feature: Name of the disabled feature.
    """

    def __init__(self, feature: str) -> None:
        super().__init__(f"Feature '{feature}' is disabled")
        self.feature = feature
