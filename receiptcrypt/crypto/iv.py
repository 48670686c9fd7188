"""
Initialization vector derivation for the turnover counter cipher.

The IV is never random and never transmitted. Both sides compute it from
public data: the hash of the UTF-8 encoded device (cash box) identifier
concatenated with the receipt identifier, truncated to one AES block.
"""

import enum
import logging
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.backends import default_backend

from .errors import (
    MalformedInputError,
    ProviderFailureError,
    UnsupportedAlgorithmError,
    UnsupportedHashAlgorithmError,
)

logger = logging.getLogger(__name__)

IV_LENGTH = 16


class HashAlgorithm(enum.Enum):
    """Digest algorithms accepted for IV derivation."""

    SHA224 = "SHA-224"
    SHA256 = "SHA-256"
    SHA384 = "SHA-384"
    SHA512 = "SHA-512"
    SHA512_256 = "SHA-512/256"
    SHA3_256 = "SHA3-256"
    SHA3_384 = "SHA3-384"
    SHA3_512 = "SHA3-512"

    @classmethod
    def from_name(cls, name: str) -> 'HashAlgorithm':
        """
        Look up an algorithm by name.

        Accepts the canonical names ("SHA-256") as well as the usual
        spellings without separators ("sha256", "SHA_256").

        Raises:
            UnsupportedHashAlgorithmError: If the name is not recognised
        """
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise UnsupportedHashAlgorithmError(f"Hash algorithm name must be a string, got {type(name).__name__}")

        wanted = _normalize(name)
        for member in cls:
            if _normalize(member.value) == wanted:
                return member
        raise UnsupportedHashAlgorithmError(f"Unsupported hash algorithm: {name}")

    def create(self) -> hashes.HashAlgorithm:
        """Create a fresh cryptography hash algorithm instance."""
        return _FACTORIES[self]()

    @property
    def digest_size(self) -> int:
        """Digest length in bytes."""
        return self.create().digest_size


_FACTORIES = {
    HashAlgorithm.SHA224: hashes.SHA224,
    HashAlgorithm.SHA256: hashes.SHA256,
    HashAlgorithm.SHA384: hashes.SHA384,
    HashAlgorithm.SHA512: hashes.SHA512,
    HashAlgorithm.SHA512_256: hashes.SHA512_256,
    HashAlgorithm.SHA3_256: hashes.SHA3_256,
    HashAlgorithm.SHA3_384: hashes.SHA3_384,
    HashAlgorithm.SHA3_512: hashes.SHA3_512,
}


def _normalize(name: str) -> str:
    return name.strip().upper().replace("-", "").replace("_", "").replace("/", "")


def derive_iv(hash_algorithm: Union[HashAlgorithm, str], device_id: str, receipt_id: str) -> bytes:
    """
    Derive the 16-byte IV for a receipt.

    The digest is computed over UTF-8(device_id) || UTF-8(receipt_id) and
    its first 16 bytes are returned. Identical inputs always give the
    identical IV.

    Args:
        hash_algorithm: HashAlgorithm member or its name (e.g. "SHA-256")
        device_id: Cash box / device identifier
        receipt_id: Receipt identifier, unique per receipt

    Returns:
        16-byte initialization vector

    Raises:
        UnsupportedHashAlgorithmError: If the algorithm is unknown
        UnsupportedAlgorithmError: If the digest is shorter than 16 bytes
        MalformedInputError: If an identifier is not a string
    """
    algorithm = HashAlgorithm.from_name(hash_algorithm)

    if not isinstance(device_id, str) or not isinstance(receipt_id, str):
        raise MalformedInputError("Device id and receipt id must be strings")

    hash_impl = algorithm.create()
    if hash_impl.digest_size < IV_LENGTH:
        raise UnsupportedAlgorithmError(
            f"{algorithm.value} digest is {hash_impl.digest_size} bytes, IV needs {IV_LENGTH}"
        )

    try:
        digest = hashes.Hash(hash_impl, backend=default_backend())
        digest.update(device_id.encode('utf-8') + receipt_id.encode('utf-8'))
        hash_value = digest.finalize()
    except UnsupportedAlgorithm as e:
        raise UnsupportedHashAlgorithmError(f"{algorithm.value} not available in backend") from e
    except Exception as e:
        raise ProviderFailureError(f"Hashing with {algorithm.value} failed: {e}") from e

    logger.debug("Derived IV using %s", algorithm.value)
    return hash_value[:IV_LENGTH]
