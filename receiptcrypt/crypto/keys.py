"""
AES key helpers for the turnover counter cipher.

In a real cash register the key is generated once during initialisation
and kept in a protected area. These helpers cover generation for
development and testing, the file formats used to hand keys around, and a
check that the installed backend can do AES-256 at all.
"""

import base64
import binascii
import logging
import os

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.decrepit.ciphers.modes import CFB
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.backends import default_backend

from .counter_cipher import BLOCK_SIZE, KEY_SIZE
from .errors import InvalidKeyLengthError, InvalidKeyMaterialError
from .utils import generate_random_bytes

logger = logging.getLogger(__name__)


def generate_key() -> bytes:
    """Generate a cryptographically secure 32-byte AES-256 key."""
    return generate_random_bytes(KEY_SIZE)


def is_aes256_available() -> bool:
    """
    Check whether the backend supports AES-256 in ECB, CFB and CTR mode.

    Returns:
        True if all three modes can be instantiated with a 256-bit key
    """
    probe_key = b'\x00' * KEY_SIZE
    probe_iv = b'\x00' * BLOCK_SIZE
    try:
        for mode in (modes.ECB(), CFB(probe_iv), modes.CTR(probe_iv)):
            Cipher(algorithms.AES(probe_key), mode, backend=default_backend()).encryptor()
    except UnsupportedAlgorithm:
        logger.warning("AES-256 is not fully supported by the cryptography backend")
        return False
    return True


def key_from_base64(base64_key: str) -> bytes:
    """
    Decode a base64 encoded AES-256 key.

    Raises:
        InvalidKeyMaterialError: If the text is not valid base64
        InvalidKeyLengthError: If the decoded key is not 32 bytes
    """
    try:
        key = base64.b64decode(base64_key.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidKeyMaterialError(f"Invalid base64 key: {e}") from e

    if len(key) != KEY_SIZE:
        raise InvalidKeyLengthError(f"AES-256 key must be {KEY_SIZE} bytes, got {len(key)}")
    return key


def key_to_base64(key: bytes) -> str:
    """Encode an AES-256 key as base64 text."""
    if len(key) != KEY_SIZE:
        raise InvalidKeyLengthError(f"AES-256 key must be {KEY_SIZE} bytes, got {len(key)}")
    return base64.b64encode(key).decode('ascii')


def load_key(key_file_path: str) -> bytes:
    """
    Load an AES-256 key from a file.

    Supported formats:
    - Raw binary (32 bytes)
    - Hex encoded (64 characters, optional trailing newline)
    - Base64 encoded (44 characters, optional trailing newline)

    Args:
        key_file_path: Path to the file containing the key

    Returns:
        bytes: The 32-byte key

    Raises:
        FileNotFoundError: If the key file doesn't exist
        ValueError: If the key file format is invalid
    """
    if not os.path.exists(key_file_path):
        raise FileNotFoundError(f"Key file not found: {key_file_path}")

    with open(key_file_path, 'rb') as f:
        key_data = f.read()

    if len(key_data) == KEY_SIZE:
        return key_data

    text = key_data.rstrip(b'\r\n')
    if len(text) == 2 * KEY_SIZE:
        try:
            return bytes.fromhex(text.decode('ascii'))
        except (ValueError, UnicodeDecodeError):
            pass
    else:
        try:
            return key_from_base64(text.decode('ascii'))
        except (InvalidKeyMaterialError, UnicodeDecodeError):
            pass

    raise ValueError(
        f"Invalid key format. Expected {KEY_SIZE} raw bytes, hex or base64 text, got {len(key_data)} bytes"
    )


def create_key_file(key_file_path: str, key: bytes = None) -> bytes:
    """
    Create a key file with either a provided key or a generated one.

    Args:
        key_file_path: Path where to save the key file
        key: Optional pre-existing key. If None, generates a new one.

    Returns:
        bytes: The key that was saved
    """
    if key is None:
        key = generate_key()
    elif len(key) != KEY_SIZE:
        raise InvalidKeyLengthError(f"AES-256 key must be {KEY_SIZE} bytes, got {len(key)}")

    # Hex for human readability
    with open(key_file_path, 'w') as f:
        f.write(key.hex())

    try:
        os.chmod(key_file_path, 0o600)  # rw-------
    except (OSError, AttributeError):
        logger.warning("Could not set restrictive permissions on %s", key_file_path)

    return key
