"""Store key addressing for pairing records.

Each pairing is spread over three independently expirable keys in one flat
keyspace:

- ``req:<id>``: the request payload, consumed by the claim
- ``req:status:<id>``: the lifecycle status
- ``res:<id>``: the response payload, consumed by the fetch

Examples:
    >>> from uuid import UUID
    >>> rid = UUID("6f1c5c7e-8d0e-4c43-9a4e-2f5f3c1d2b7a")
    >>> str(RecordKey.status(rid))
    'req:status:6f1c5c7e-8d0e-4c43-9a4e-2f5f3c1d2b7a'
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class Namespace(str, Enum):
    """Logical table of a record key, valued by its key prefix."""

    REQUEST = "req:"
    STATUS = "req:status:"
    RESPONSE = "res:"


@dataclass(frozen=True)
class RecordKey:
    """Address of one field of one pairing."""

    namespace: Namespace
    request_id: UUID

    def __str__(self) -> str:
        return f"{self.namespace.value}{self.request_id}"

    @classmethod
    def request(cls, request_id: UUID) -> "RecordKey":
        return cls(Namespace.REQUEST, request_id)

    @classmethod
    def status(cls, request_id: UUID) -> "RecordKey":
        return cls(Namespace.STATUS, request_id)

    @classmethod
    def response(cls, request_id: UUID) -> "RecordKey":
        return cls(Namespace.RESPONSE, request_id)
