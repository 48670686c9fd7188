"""
High-level turnover counter codec.

Combines IV derivation and counter encryption so callers only deal with
the key, the two identifiers and the counter.
"""

import logging
from typing import Union

from .crypto.counter_cipher import (
    CipherMode,
    DEFAULT_OUTPUT_LENGTH,
    decrypt_counter,
    encrypt_counter,
    validate_key,
    validate_output_length,
)
from .crypto.iv import HashAlgorithm, derive_iv

logger = logging.getLogger(__name__)


class TurnoverCounterCodec:
    """
    Encrypts and decrypts turnover counters for one cash register.

    Holds the key for its own lifetime only. No cipher or hash context is
    kept between calls, so one codec may be shared between threads.
    """

    def __init__(self, key: bytes, hash_algorithm: Union[HashAlgorithm, str] = HashAlgorithm.SHA256,
                 mode: Union[CipherMode, str] = CipherMode.CTR,
                 output_length: int = DEFAULT_OUTPUT_LENGTH):
        """
        Initialize codec.

        Args:
            key: 32-byte AES-256 key
            hash_algorithm: Digest used for IV derivation (default SHA-256)
            mode: Cipher mode variant (default CTR)
            output_length: Number of ciphertext bytes kept (5-16, default 8)
        """
        self._key = validate_key(key)
        validate_output_length(output_length)

        self.hash_algorithm = HashAlgorithm.from_name(hash_algorithm)
        self.mode = CipherMode.from_name(mode)
        self.output_length = output_length
        logger.debug("Created %r", self)

    def derive_iv(self, device_id: str, receipt_id: str) -> bytes:
        """Derive the IV for a receipt with this codec's hash algorithm."""
        return derive_iv(self.hash_algorithm, device_id, receipt_id)

    def encrypt(self, device_id: str, receipt_id: str, counter: int) -> bytes:
        """
        Encrypt a turnover counter for a receipt.

        Args:
            device_id: Cash box identifier
            receipt_id: Receipt identifier
            counter: Signed 64-bit turnover counter

        Returns:
            Encrypted counter (output_length bytes)
        """
        iv = self.derive_iv(device_id, receipt_id)
        return encrypt_counter(self.mode, self._key, iv, counter, self.output_length)

    def decrypt(self, device_id: str, receipt_id: str, ciphertext: bytes) -> int:
        """
        Decrypt a turnover counter from a receipt.

        The ciphertext length is taken as given, it does not have to match
        this codec's output_length.
        """
        iv = self.derive_iv(device_id, receipt_id)
        return decrypt_counter(self.mode, self._key, iv, ciphertext)

    def describe(self) -> dict:
        """Get information about this codec. The key is never included."""
        return {
            'algorithm': f"AES-256-{self.mode.value}",
            'hash_algorithm': self.hash_algorithm.value,
            'output_length': self.output_length,
        }

    def __repr__(self) -> str:
        return (f"TurnoverCounterCodec(mode={self.mode.value}, "
                f"hash_algorithm={self.hash_algorithm.value}, output_length={self.output_length})")


def create_counter_codec(key: bytes, hash_algorithm: Union[HashAlgorithm, str] = HashAlgorithm.SHA256,
                         mode: Union[CipherMode, str] = CipherMode.CTR,
                         output_length: int = DEFAULT_OUTPUT_LENGTH) -> TurnoverCounterCodec:
    """
    Create a codec for encrypting turnover counters.

    Returns:
        TurnoverCounterCodec ready for use
    """
    return TurnoverCounterCodec(key, hash_algorithm, mode, output_length)


def decrypt_turnover_counter(ciphertext: bytes, hash_algorithm: Union[HashAlgorithm, str],
                             device_id: str, receipt_id: str, key: bytes) -> int:
    """
    Decrypt a receipt's turnover counter in CTR mode, deriving the IV inline.

    Args:
        ciphertext: Encrypted counter as stored in the receipt (decoded)
        hash_algorithm: Digest used for IV derivation
        device_id: Cash box identifier
        receipt_id: Receipt identifier
        key: 32-byte AES-256 key

    Returns:
        Decrypted turnover counter
    """
    iv = derive_iv(hash_algorithm, device_id, receipt_id)
    return decrypt_counter(CipherMode.CTR, key, iv, ciphertext)
