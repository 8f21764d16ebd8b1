"""Core type definitions and models for the wallet bridge.

This module provides the data structures shared by the pairing store, the
relay service and the HTTP layer: the pairing status, the opaque encrypted
payload exchanged by both legs, and the typed outcomes returned by the
pairing store.

Examples:
    Building a payload::

        from wallet_bridge.models import EncryptedPayload

        payload = EncryptedPayload(iv="AAA", payload="BBB")

    Inspecting a fetch result::

        result = await pairings.fetch_response_or_status(request_id)
        if result is None:
            ...  # unknown pairing
        elif result.response is not None:
            ...  # response bytes, consumed
        else:
            print(result.status)  # RequestStatus.INITIALIZED or RETRIEVED
"""

from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class RequestStatus(str, Enum):
    """Lifecycle status of a pairing.

    Attributes:
        INITIALIZED: Request stored, not yet claimed.
        RETRIEVED: Request claimed by the answering party, awaiting response.
        COMPLETED: Response stored. Never written to the store; completion
            is signalled by the presence of a response.
    """

    INITIALIZED = "initialized"
    RETRIEVED = "retrieved"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, raw: bytes | str | None) -> "RequestStatus | None":
        """Parse a stored status value.

        Args:
            raw: The raw value read from the store.

        Returns:
            The status, or None if the value is missing or unrecognized.

        Examples:
            >>> RequestStatus.parse(b"retrieved")
            <RequestStatus.RETRIEVED: 'retrieved'>
            >>> RequestStatus.parse(b"bogus") is None
            True
        """
        if raw is None:
            return None
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError:
                return None
        try:
            return cls(raw)
        except ValueError:
            return None


class EncryptedPayload(BaseModel):
    """An end-to-end encrypted message exchanged through the bridge.

    The bridge never decrypts or interprets either field.

    Attributes:
        iv: Initialization vector used to encrypt the payload.
        payload: The ciphertext.
    """

    iv: str = Field(
        ...,
        description="Initialization vector used to encrypt the payload",
        min_length=1,
        examples=["AAA"],
    )
    payload: str = Field(
        ...,
        description="Encrypted payload",
        min_length=1,
        examples=["BBB"],
    )

    model_config = {"frozen": True}


class RequestCreated(BaseModel):
    """Body returned when a request is created."""

    request_id: UUID = Field(..., description="The unique identifier for the request")


class StatusPayload(BaseModel):
    """Body returned when a response is not available yet."""

    status: RequestStatus = Field(
        ...,
        description="Current status of the request",
        examples=[RequestStatus.INITIALIZED, RequestStatus.RETRIEVED],
    )


class CreateOutcome(str, Enum):
    """Result of storing a request payload.

    Attributes:
        CREATED: The record was created.
        ALREADY_EXISTS: A record already exists; nothing was written.
        UNCHANGED: A record with the same payload already exists; treated as
            a successful resend and its TTL was refreshed.
        CONFLICT: A record exists with a different payload.
    """

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    UNCHANGED = "unchanged"
    CONFLICT = "conflict"


class SubmitOutcome(str, Enum):
    """Result of storing a response payload.

    Attributes:
        CREATED: The response was stored and the status record removed.
        STATUS_MISSING: No status record; the request lifecycle never
            started or has expired.
        NOT_CLAIMED: The request exists but was not claimed and claiming is
            required before answering.
        ALREADY_SUBMITTED: A response already exists; nothing was written.
    """

    CREATED = "created"
    STATUS_MISSING = "status_missing"
    NOT_CLAIMED = "not_claimed"
    ALREADY_SUBMITTED = "already_submitted"


class SubmitResult(BaseModel):
    """Outcome of a response submission.

    Attributes:
        outcome: What happened to the submission.
        previous_status: Status observed before the write, None when no
            status record was found.
    """

    outcome: SubmitOutcome
    previous_status: RequestStatus | None = None

    model_config = {"frozen": True}


class ClaimedRequest(BaseModel):
    """A request payload consumed by a successful claim.

    Attributes:
        previous_status: Status observed atomically with the consumption.
        payload: The request payload bytes exactly as stored.
    """

    previous_status: RequestStatus
    payload: bytes

    model_config = {"frozen": True}


class FetchResult(BaseModel):
    """Result of fetching the response leg of a pairing.

    Exactly one of ``response`` and ``status`` is set.

    Attributes:
        response: The response payload bytes, consumed by this fetch.
        status: The current status when no response is available yet.
    """

    response: bytes | None = None
    status: RequestStatus | None = None

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def validate_exactly_one(cls, data: Any) -> Any:
        """Validate that exactly one of response and status is provided.

        Raises:
            ValueError: If both or neither are provided.
        """
        if isinstance(data, dict):
            has_response = data.get("response") is not None
            has_status = data.get("status") is not None
            if has_response == has_status:
                raise ValueError("exactly one of response and status must be provided")
        return data
