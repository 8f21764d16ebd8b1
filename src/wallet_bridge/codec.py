"""Serialization of encrypted payloads to store values.

The store holds payloads as opaque bytes. Encoding is deterministic (pydantic's
compact JSON, fields in declaration order), so equal payloads always encode to
equal bytes and a resent request can be compared with the stored one byte for
byte.
"""

from pydantic import ValidationError

from wallet_bridge.exceptions import PayloadError, PayloadTooLargeError
from wallet_bridge.models import EncryptedPayload


def encode_payload(payload: EncryptedPayload, max_bytes: int | None = None) -> bytes:
    """Encode a payload into its stored representation.

    Args:
        payload: The payload to encode.
        max_bytes: Optional upper bound on the encoded size.

    Returns:
        The encoded bytes.

    Raises:
        PayloadTooLargeError: If the encoded payload exceeds max_bytes.

    Examples:
        >>> encode_payload(EncryptedPayload(iv="AAA", payload="BBB"))
        b'{"iv":"AAA","payload":"BBB"}'
    """
    data = payload.model_dump_json().encode("utf-8")
    if max_bytes is not None and len(data) > max_bytes:
        raise PayloadTooLargeError(size=len(data), limit=max_bytes)
    return data


def decode_payload(data: bytes) -> EncryptedPayload:
    """Decode a stored payload.

    Args:
        data: Bytes previously produced by encode_payload().

    Returns:
        The decoded payload.

    Raises:
        PayloadError: If the bytes are not a valid encoded payload.
    """
    try:
        return EncryptedPayload.model_validate_json(data)
    except ValidationError as e:
        raise PayloadError(f"Stored payload is malformed: {e.error_count()} error(s)") from e
