"""
Byte helpers shared by the receiptcrypt modules.
"""

import secrets


def generate_random_bytes(length: int) -> bytes:
    """
    Generate cryptographically secure random bytes.

    Args:
        length: Number of random bytes to generate

    Returns:
        Cryptographically secure random bytes
    """
    return secrets.token_bytes(length)


def xor_bytes(a: bytes, b: bytes) -> bytes:
    """
    XOR two byte sequences of equal length.

    Args:
        a: First byte sequence
        b: Second byte sequence

    Returns:
        XOR result as bytes

    Raises:
        ValueError: If sequences have different lengths
    """
    if len(a) != len(b):
        raise ValueError("Byte sequences must have equal length")

    return bytes(x ^ y for x, y in zip(a, b))


def parse_hex(hex_string: str) -> bytes:
    """
    Parse hexadecimal string to bytes.

    Args:
        hex_string: Hex string (with or without separators)

    Returns:
        Parsed bytes
    """
    cleaned = hex_string.strip().replace(" ", "").replace(":", "").replace("-", "")
    return bytes.fromhex(cleaned)
