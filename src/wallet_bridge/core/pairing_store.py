"""Pairing record store.

This module owns the mapping from correlation id to {status, request payload,
response payload} and enforces the create-once and single-read rules on top of
the key-value store's atomic primitives. It deals in opaque bytes only.

Record layout (see wallet_bridge.keys):

    req:<id>          request payload     written at creation, consumed by claim
    req:status:<id>   "initialized"       written at creation
                      "retrieved"         after a claim
                      (deleted)           once a response is stored
    res:<id>          response payload    written once, consumed by fetch

Every write applies the same TTL, so an abandoned pairing disappears without
any sweep.

Race handling:
    - Concurrent claims: the request payload is read and deleted in one
      atomic step together with the status read, so exactly one claimer sees
      the payload. The losers see the same thing as for an unknown id.
    - Concurrent responses: the set-if-absent write of the response is the
      only arbiter. The loser is told ALREADY_SUBMITTED.
    - Claim racing a response: the claim advances the status only if the
      status key still exists, so a completed pairing never regresses to
      "retrieved".

Examples:
    A full exchange::

        pairings = PairingStore(MemoryKeyValueStore(), ttl_seconds=180)

        await pairings.create_request(rid, b'{"iv":"AAA","payload":"BBB"}')
        claimed = await pairings.claim_request(rid)
        result = await pairings.submit_response(rid, b'{"iv":"CCC","payload":"DDD"}')
        fetched = await pairings.fetch_response_or_status(rid)
        assert fetched.response == b'{"iv":"CCC","payload":"DDD"}'
"""

from uuid import UUID

from wallet_bridge.keys import RecordKey
from wallet_bridge.models import (
    ClaimedRequest,
    CreateOutcome,
    FetchResult,
    RequestStatus,
    SubmitOutcome,
    SubmitResult,
)
from wallet_bridge.storage.base import KeyValueStore

INITIALIZED = RequestStatus.INITIALIZED.value.encode("utf-8")
RETRIEVED = RequestStatus.RETRIEVED.value.encode("utf-8")


class PairingStore:
    """Atomic, idempotent access to pairing records.

    Attributes:
        kv: The underlying key-value store.
        ttl_seconds: TTL applied to every write and refresh.
    """

    def __init__(self, kv: KeyValueStore, ttl_seconds: int) -> None:
        self.kv = kv
        self.ttl_seconds = ttl_seconds

    async def create_request(self, request_id: UUID, payload: bytes) -> CreateOutcome:
        """Store a new request and its Initialized status.

        Both keys are written together or not at all.

        Args:
            request_id: The correlation id.
            payload: The encoded request payload.

        Returns:
            CREATED, or ALREADY_EXISTS if either key exists or a response
            is already stored for the id.
        """
        created = await self.kv.set_all_if_absent(
            {
                str(RecordKey.request(request_id)): payload,
                str(RecordKey.status(request_id)): INITIALIZED,
            },
            ttl_seconds=self.ttl_seconds,
            guard_keys=[str(RecordKey.response(request_id))],
        )
        return CreateOutcome.CREATED if created else CreateOutcome.ALREADY_EXISTS

    async def create_request_idempotent(self, request_id: UUID, payload: bytes) -> CreateOutcome:
        """Store a request, accepting resends of the same payload.

        If the record already exists, its status is left untouched and the
        TTL of its keys is refreshed. A resend whose payload differs from the
        stored one is reported as CONFLICT. Once the request has been claimed
        the stored payload is gone and any resend is accepted. A completed
        pairing is never recreated: while its response is stored a resend
        changes nothing.

        Args:
            request_id: The correlation id chosen by the caller.
            payload: The encoded request payload.

        Returns:
            CREATED, UNCHANGED or CONFLICT.
        """
        request_key = str(RecordKey.request(request_id))
        status_key = str(RecordKey.status(request_id))

        created = await self.kv.set_all_if_absent(
            {request_key: payload, status_key: INITIALIZED},
            ttl_seconds=self.ttl_seconds,
            guard_keys=[str(RecordKey.response(request_id))],
        )
        if created:
            return CreateOutcome.CREATED

        stored = await self.kv.get(request_key)
        if stored is not None and stored != payload:
            return CreateOutcome.CONFLICT

        if stored is not None:
            await self.kv.expire(request_key, self.ttl_seconds)
        await self.kv.expire(status_key, self.ttl_seconds)
        return CreateOutcome.UNCHANGED

    async def has_request(self, request_id: UUID) -> bool:
        """Return whether the request lifecycle is active (status present)."""
        return await self.kv.exists(str(RecordKey.status(request_id)))

    async def claim_request(self, request_id: UUID) -> ClaimedRequest | None:
        """Consume the request payload and mark the pairing Retrieved.

        Args:
            request_id: The correlation id.

        Returns:
            The consumed payload with the status observed when it was
            consumed, or None if there is no payload (never created, already
            claimed, answered or expired).
        """
        status_key = str(RecordKey.status(request_id))

        raw_status, payload = await self.kv.get_and_consume(
            status_key,
            str(RecordKey.request(request_id)),
        )
        if payload is None:
            return None

        await self.kv.set(
            status_key,
            RETRIEVED,
            ttl_seconds=self.ttl_seconds,
            only_if_present=True,
        )

        previous = RequestStatus.parse(raw_status) or RequestStatus.INITIALIZED
        return ClaimedRequest(previous_status=previous, payload=payload)

    async def submit_response(
        self,
        request_id: UUID,
        payload: bytes,
        *,
        require_claim: bool = False,
    ) -> SubmitResult:
        """Store the response once and complete the pairing.

        Args:
            request_id: The correlation id.
            payload: The encoded response payload.
            require_claim: Reject responses to requests that were never
                claimed.

        Returns:
            A SubmitResult with outcome CREATED, STATUS_MISSING,
            NOT_CLAIMED or ALREADY_SUBMITTED, and the status observed
            before the write.
        """
        status_key = str(RecordKey.status(request_id))
        response_key = str(RecordKey.response(request_id))

        raw_status = await self.kv.get(status_key)
        if raw_status is None:
            # A winning submission removes the status before a slower one reads it
            if await self.kv.exists(response_key):
                return SubmitResult(outcome=SubmitOutcome.ALREADY_SUBMITTED)
            return SubmitResult(outcome=SubmitOutcome.STATUS_MISSING)

        status = RequestStatus.parse(raw_status) or RequestStatus.INITIALIZED
        if require_claim and status is RequestStatus.INITIALIZED:
            return SubmitResult(outcome=SubmitOutcome.NOT_CLAIMED, previous_status=status)

        created = await self.kv.set(
            response_key,
            payload,
            ttl_seconds=self.ttl_seconds,
            only_if_absent=True,
        )
        if not created:
            return SubmitResult(outcome=SubmitOutcome.ALREADY_SUBMITTED, previous_status=status)

        # Completion is implied by the response; an unclaimed request is void
        await self.kv.delete(status_key, str(RecordKey.request(request_id)))
        return SubmitResult(outcome=SubmitOutcome.CREATED, previous_status=status)

    async def fetch_response_or_status(self, request_id: UUID) -> FetchResult | None:
        """Consume the response, or report the status if there is none yet.

        Args:
            request_id: The correlation id.

        Returns:
            A FetchResult holding either the consumed response or the
            current status, or None if the pairing is unknown.
        """
        raw_status, response = await self.kv.get_and_consume(
            str(RecordKey.status(request_id)),
            str(RecordKey.response(request_id)),
        )
        if response is not None:
            return FetchResult(response=response)
        if raw_status is None:
            return None
        return FetchResult(status=RequestStatus.parse(raw_status) or RequestStatus.INITIALIZED)
