"""
ECDSA signature format conversion.

Java style signers (and the cryptography library) produce DER encoded
signatures:

    SEQUENCE { INTEGER r, INTEGER s }

JWS (RFC 7515/7518) expects the fixed-width concatenation r || s, each
value big-endian and left-padded with zeros to the coordinate size
(32 bytes for P-256, 64 bytes in total).
"""

import logging
from typing import Tuple

from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from .errors import MalformedSignatureDERError

logger = logging.getLogger(__name__)

COORDINATE_SIZE = 32  # P-256
CONCATENATED_SIGNATURE_SIZE = 2 * COORDINATE_SIZE


def der_to_concatenated(der_signature: bytes) -> bytes:
    """
    Convert a DER encoded ECDSA signature to the JWS concatenated form.

    ASN.1 sign bytes (a leading 0x00 in front of a value whose high bit is
    set) are dropped by the integer decoding; each value is then
    right-aligned in a 32-byte field.

    Args:
        der_signature: DER encoded SEQUENCE of two INTEGERs

    Returns:
        64-byte signature r || s

    Raises:
        MalformedSignatureDERError: If the input is not a two-integer
            sequence, or r or s is negative or wider than 256 bits
    """
    if not isinstance(der_signature, (bytes, bytearray, memoryview)):
        raise MalformedSignatureDERError(f"DER signature must be bytes, got {type(der_signature).__name__}")

    try:
        r, s = decode_dss_signature(bytes(der_signature))
    except ValueError as e:
        raise MalformedSignatureDERError(f"Invalid DER signature: {e}") from e

    return _int_to_coordinate(r, "r") + _int_to_coordinate(s, "s")


def _int_to_coordinate(value: int, label: str) -> bytes:
    if value < 0:
        raise MalformedSignatureDERError(f"Signature value {label} is negative")
    if value.bit_length() > COORDINATE_SIZE * 8:
        raise MalformedSignatureDERError(
            f"Signature value {label} exceeds {COORDINATE_SIZE * 8} bits ({value.bit_length()} bits)"
        )
    return value.to_bytes(COORDINATE_SIZE, byteorder='big')


def split_concatenated(signature: bytes) -> Tuple[int, int]:
    """
    Split a 64-byte r || s signature into its integer components.

    Raises:
        MalformedSignatureDERError: If the signature is not 64 bytes of binary data
    """
    if not isinstance(signature, (bytes, bytearray, memoryview)):
        raise MalformedSignatureDERError(f"Signature must be bytes, got {type(signature).__name__}")
    if len(signature) != CONCATENATED_SIGNATURE_SIZE:
        raise MalformedSignatureDERError(
            f"Concatenated signature must be {CONCATENATED_SIGNATURE_SIZE} bytes, got {len(signature)}"
        )

    r = int.from_bytes(signature[:COORDINATE_SIZE], byteorder='big')
    s = int.from_bytes(signature[COORDINATE_SIZE:], byteorder='big')
    return r, s


def concatenated_to_der(signature: bytes) -> bytes:
    """
    Convert a JWS concatenated signature back to DER.

    Args:
        signature: 64-byte signature r || s

    Returns:
        DER encoded SEQUENCE { INTEGER r, INTEGER s }
    """
    r, s = split_concatenated(signature)
    der = encode_dss_signature(r, s)
    logger.debug("Converted %d-byte concatenated signature to %d-byte DER", len(signature), len(der))
    return der
