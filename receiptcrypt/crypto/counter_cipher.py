"""
AES-256 encryption of the receipt turnover counter.

The counter is placed in a single 16-byte plaintext block and combined with
one block of AES keystream. Only the first N bytes of the result are stored
in the receipt (8 by default, at least 5). Three mode variants are
supported, all producing the same wire format:

- ECB: the IV is enciphered with AES-ECB and XORed with the block
  (equivalent to one iteration of OFB built from the raw block cipher)
- CFB: AES in 128-bit cipher feedback mode with the IV as feedback register
- CTR: AES in counter mode with the IV as initial counter block

Plaintext block layout for an output length N:

    N >= 8:  bytes 0-7 = counter (8-byte signed big-endian), bytes 8-15 = 0
    N <  8:  bytes 0..N-1 = counter (N-byte signed big-endian), rest = 0

No padding is used anywhere. Padding could not be reconstructed from a
truncated ciphertext.
"""

import enum
import logging
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.decrepit.ciphers.modes import CFB
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.backends import default_backend

from .errors import (
    CounterRangeError,
    InvalidKeyLengthError,
    InvalidKeyMaterialError,
    MalformedCiphertextLengthError,
    MalformedInputError,
    ProviderFailureError,
    ProviderUnavailableError,
    UnsupportedCipherModeError,
)
from .utils import xor_bytes

logger = logging.getLogger(__name__)

# Protocol constants
BLOCK_SIZE = 16
KEY_SIZE = 32  # AES-256
COUNTER_BYTES = 8
DEFAULT_OUTPUT_LENGTH = 8
MIN_OUTPUT_LENGTH = 5
MAX_OUTPUT_LENGTH = BLOCK_SIZE

COUNTER_MIN = -(1 << 63)
COUNTER_MAX = (1 << 63) - 1


class CipherMode(enum.Enum):
    """AES mode variants used for the turnover counter."""

    ECB = "ECB"
    CFB = "CFB"
    CTR = "CTR"

    @classmethod
    def from_name(cls, name: Union['CipherMode', str]) -> 'CipherMode':
        """
        Look up a mode by name.

        Accepts "ctr", "CTR", "AES-CTR" and JCE style "AES/CTR/NoPadding".
        "ICM" (integer counter mode) is accepted as an alias for CTR.

        Raises:
            UnsupportedCipherModeError: If the mode is not supported
        """
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise UnsupportedCipherModeError(f"Cipher mode must be a string, got {type(name).__name__}")

        parts = [p for p in name.strip().upper().replace("-", "/").split("/") if p]
        if parts and parts[0] == "AES":
            parts = parts[1:]
        if len(parts) > 2 or (parts[1:] and parts[1] != "NOPADDING"):
            raise UnsupportedCipherModeError(f"Unsupported cipher mode: {name}")

        wanted = parts[0] if parts else ""
        if wanted == "ICM":
            wanted = "CTR"
        try:
            return cls(wanted)
        except ValueError:
            raise UnsupportedCipherModeError(f"Unsupported cipher mode: {name}")


def validate_key(key: bytes) -> bytes:
    """Check that key is 32 bytes of AES-256 key material and return it as bytes."""
    if not isinstance(key, (bytes, bytearray, memoryview)):
        raise InvalidKeyMaterialError(f"AES key must be bytes, got {type(key).__name__}")
    key = bytes(key)
    if len(key) != KEY_SIZE:
        raise InvalidKeyLengthError(f"AES-256 requires {KEY_SIZE}-byte key, got {len(key)} bytes")
    return key


def _check_iv(iv: bytes) -> bytes:
    if not isinstance(iv, (bytes, bytearray, memoryview)):
        raise InvalidKeyMaterialError(f"IV must be bytes, got {type(iv).__name__}")
    iv = bytes(iv)
    if len(iv) != BLOCK_SIZE:
        raise InvalidKeyMaterialError(f"IV must be {BLOCK_SIZE} bytes, got {len(iv)} bytes")
    return iv


def validate_output_length(length: int) -> None:
    """Check that an output length lies between 5 and 16 bytes."""
    if isinstance(length, bool) or not isinstance(length, int):
        raise MalformedInputError(f"Output length must be an integer, got {type(length).__name__}")
    if not MIN_OUTPUT_LENGTH <= length <= MAX_OUTPUT_LENGTH:
        raise MalformedInputError(
            f"Output length must be between {MIN_OUTPUT_LENGTH} and {MAX_OUTPUT_LENGTH} bytes, got {length}"
        )


def _check_ciphertext(ciphertext: bytes) -> bytes:
    if not isinstance(ciphertext, (bytes, bytearray, memoryview)):
        raise MalformedInputError(f"Ciphertext must be bytes, got {type(ciphertext).__name__}")
    ciphertext = bytes(ciphertext)
    if len(ciphertext) > BLOCK_SIZE:
        raise MalformedCiphertextLengthError(
            f"Encrypted counter longer than one block: {len(ciphertext)} > {BLOCK_SIZE} bytes"
        )
    if len(ciphertext) < MIN_OUTPUT_LENGTH:
        raise MalformedCiphertextLengthError(
            f"Encrypted counter shorter than {MIN_OUTPUT_LENGTH} bytes: {len(ciphertext)} bytes"
        )
    return ciphertext


def encode_counter_block(counter: int, length: int = DEFAULT_OUTPUT_LENGTH) -> bytes:
    """
    Build the 16-byte plaintext block for a counter value.

    Args:
        counter: Signed 64-bit turnover counter
        length: Number of ciphertext bytes that will be kept

    Returns:
        16-byte plaintext block

    Raises:
        CounterRangeError: If the counter does not fit in min(length, 8) bytes
    """
    validate_output_length(length)
    if isinstance(counter, bool) or not isinstance(counter, int):
        raise CounterRangeError(f"Counter must be an integer, got {type(counter).__name__}")
    if not COUNTER_MIN <= counter <= COUNTER_MAX:
        raise CounterRangeError("Counter exceeds the signed 64-bit range")

    width = min(length, COUNTER_BYTES)
    try:
        encoded = counter.to_bytes(width, byteorder='big', signed=True)
    except OverflowError as e:
        raise CounterRangeError(f"Counter does not fit in {width} bytes") from e

    return encoded.ljust(BLOCK_SIZE, b'\x00')


def decode_counter(plaintext: bytes) -> int:
    """
    Interpret recovered plaintext bytes as a signed big-endian counter.

    Only the first 8 bytes carry the counter; anything after that is the
    zero filler of the plaintext block.
    """
    width = min(len(plaintext), COUNTER_BYTES)
    return int.from_bytes(plaintext[:width], byteorder='big', signed=True)


def _transform(key: bytes, mode: modes.Mode, data: bytes, encrypt: bool) -> bytes:
    """Run one freshly built AES context over data and discard it."""
    try:
        cipher = Cipher(algorithms.AES(key), mode, backend=default_backend())
        context = cipher.encryptor() if encrypt else cipher.decryptor()
        return context.update(data) + context.finalize()
    except UnsupportedAlgorithm as e:
        raise ProviderUnavailableError(f"AES-256-{mode.name} not available in backend") from e
    except Exception as e:
        raise ProviderFailureError(f"AES-256-{mode.name} operation failed: {e}") from e


def _ecb_keystream(key: bytes, iv: bytes) -> bytes:
    # ECB takes no IV parameter. The IV itself is enciphered, not the data.
    return _transform(key, modes.ECB(), iv, encrypt=True)


def encrypt_ecb(key: bytes, iv: bytes, counter: int, length: int = DEFAULT_OUTPUT_LENGTH) -> bytes:
    """
    Encrypt a turnover counter with the ECB-stream variant.

    Args:
        key: 32-byte AES key
        iv: 16-byte IV from derive_iv()
        counter: Signed 64-bit turnover counter
        length: Number of ciphertext bytes to keep (5-16)

    Returns:
        Encrypted counter of the requested length
    """
    key = validate_key(key)
    iv = _check_iv(iv)
    block = encode_counter_block(counter, length)

    keystream = _ecb_keystream(key, iv)
    logger.debug("Encrypted turnover counter with AES-256-ECB, %d-byte output", length)
    return xor_bytes(block, keystream)[:length]


def decrypt_ecb(key: bytes, iv: bytes, ciphertext: bytes) -> int:
    """
    Decrypt a turnover counter produced by encrypt_ecb().

    The block cipher is deliberately used in its encrypting direction here.
    Decryption regenerates the keystream E_K(IV) and XORs it with the
    ciphertext; XOR is its own inverse. Replacing this with an AES-ECB
    decrypt call would return garbage.

    Args:
        key: 32-byte AES key
        iv: 16-byte IV from derive_iv()
        ciphertext: Encrypted counter (5-16 bytes)

    Returns:
        Decrypted turnover counter
    """
    key = validate_key(key)
    iv = _check_iv(iv)
    ciphertext = _check_ciphertext(ciphertext)

    keystream = _ecb_keystream(key, iv)
    plaintext = xor_bytes(ciphertext, keystream[:len(ciphertext)])
    return decode_counter(plaintext)


def encrypt_cfb(key: bytes, iv: bytes, counter: int, length: int = DEFAULT_OUTPUT_LENGTH) -> bytes:
    """
    Encrypt a turnover counter with AES-256-CFB (128-bit feedback).

    Args:
        key: 32-byte AES key
        iv: 16-byte IV from derive_iv(), used as the initial feedback register
        counter: Signed 64-bit turnover counter
        length: Number of ciphertext bytes to keep (5-16)

    Returns:
        Encrypted counter of the requested length
    """
    key = validate_key(key)
    iv = _check_iv(iv)
    block = encode_counter_block(counter, length)

    encrypted = _transform(key, CFB(iv), block, encrypt=True)
    logger.debug("Encrypted turnover counter with AES-256-CFB, %d-byte output", length)
    return encrypted[:length]


def decrypt_cfb(key: bytes, iv: bytes, ciphertext: bytes) -> int:
    """
    Decrypt a turnover counter produced by encrypt_cfb().

    Exactly the stored ciphertext bytes are fed to the cipher, never a
    zero-padded block. In CFB each plaintext byte depends only on the key,
    the IV and the ciphertext up to that position, so a prefix of the
    ciphertext decrypts to the matching prefix of the plaintext.

    Args:
        key: 32-byte AES key
        iv: 16-byte IV from derive_iv()
        ciphertext: Encrypted counter (5-16 bytes)

    Returns:
        Decrypted turnover counter
    """
    key = validate_key(key)
    iv = _check_iv(iv)
    ciphertext = _check_ciphertext(ciphertext)

    plaintext = _transform(key, CFB(iv), ciphertext, encrypt=False)
    return decode_counter(plaintext)


def encrypt_ctr(key: bytes, iv: bytes, counter: int, length: int = DEFAULT_OUTPUT_LENGTH) -> bytes:
    """
    Encrypt a turnover counter with AES-256-CTR.

    Keeping only the first bytes of the ciphertext is valid because CTR is a
    stream mode: every ciphertext byte is the plaintext byte XOR a keystream
    byte at the same position. It would not be valid for a block-chaining
    mode such as CBC, where the whole block is needed to decrypt any of it.

    Args:
        key: 32-byte AES key
        iv: 16-byte IV from derive_iv(), used as the initial counter block
        counter: Signed 64-bit turnover counter
        length: Number of ciphertext bytes to keep (5-16)

    Returns:
        Encrypted counter of the requested length
    """
    key = validate_key(key)
    iv = _check_iv(iv)
    block = encode_counter_block(counter, length)

    encrypted = _transform(key, modes.CTR(iv), block, encrypt=True)
    logger.debug("Encrypted turnover counter with AES-256-CTR, %d-byte output", length)
    return encrypted[:length]


def decrypt_ctr(key: bytes, iv: bytes, ciphertext: bytes) -> int:
    """
    Decrypt a turnover counter produced by encrypt_ctr().

    As with CFB, only the stored bytes are decrypted. Zero-padding a
    truncated ciphertext before decryption would turn the padding into
    keystream bytes and corrupt the counter.

    Args:
        key: 32-byte AES key
        iv: 16-byte IV from derive_iv()
        ciphertext: Encrypted counter (5-16 bytes)

    Returns:
        Decrypted turnover counter
    """
    key = validate_key(key)
    iv = _check_iv(iv)
    ciphertext = _check_ciphertext(ciphertext)

    plaintext = _transform(key, modes.CTR(iv), ciphertext, encrypt=False)
    return decode_counter(plaintext)


_ENCRYPTORS = {
    CipherMode.ECB: encrypt_ecb,
    CipherMode.CFB: encrypt_cfb,
    CipherMode.CTR: encrypt_ctr,
}

_DECRYPTORS = {
    CipherMode.ECB: decrypt_ecb,
    CipherMode.CFB: decrypt_cfb,
    CipherMode.CTR: decrypt_ctr,
}


def encrypt_counter(mode: Union[CipherMode, str], key: bytes, iv: bytes, counter: int,
                    length: int = DEFAULT_OUTPUT_LENGTH) -> bytes:
    """
    Encrypt a turnover counter with the given mode variant.

    Raises:
        UnsupportedCipherModeError: If mode is not ECB, CFB or CTR
    """
    return _ENCRYPTORS[CipherMode.from_name(mode)](key, iv, counter, length)


def decrypt_counter(mode: Union[CipherMode, str], key: bytes, iv: bytes, ciphertext: bytes) -> int:
    """
    Decrypt a turnover counter with the given mode variant.

    Raises:
        UnsupportedCipherModeError: If mode is not ECB, CFB or CTR
    """
    return _DECRYPTORS[CipherMode.from_name(mode)](key, iv, ciphertext)
