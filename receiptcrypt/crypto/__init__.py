"""
Cryptographic primitives for receiptcrypt.

This module provides:
- IV derivation from device and receipt identifiers
- Turnover counter encryption (AES-256 ECB-stream, CFB, CTR)
- DER to JWS signature conversion
"""

from .iv import HashAlgorithm, derive_iv
from .counter_cipher import (
    CipherMode,
    encrypt_counter,
    decrypt_counter,
    encrypt_ecb,
    decrypt_ecb,
    encrypt_cfb,
    decrypt_cfb,
    encrypt_ctr,
    decrypt_ctr,
)
from .signature import der_to_concatenated, concatenated_to_der
from .keys import generate_key, is_aes256_available
from .errors import (
    ReceiptCryptError,
    UnsupportedAlgorithmError,
    UnsupportedHashAlgorithmError,
    UnsupportedCipherModeError,
    ProviderUnavailableError,
    InvalidKeyMaterialError,
    InvalidKeyLengthError,
    MalformedInputError,
    MalformedCiphertextLengthError,
    MalformedSignatureDERError,
    CounterRangeError,
    ProviderFailureError,
)

__all__ = [
    'HashAlgorithm',
    'derive_iv',
    'CipherMode',
    'encrypt_counter',
    'decrypt_counter',
    'encrypt_ecb',
    'decrypt_ecb',
    'encrypt_cfb',
    'decrypt_cfb',
    'encrypt_ctr',
    'decrypt_ctr',
    'der_to_concatenated',
    'concatenated_to_der',
    'generate_key',
    'is_aes256_available',
    'ReceiptCryptError',
    'UnsupportedAlgorithmError',
    'UnsupportedHashAlgorithmError',
    'UnsupportedCipherModeError',
    'ProviderUnavailableError',
    'InvalidKeyMaterialError',
    'InvalidKeyLengthError',
    'MalformedInputError',
    'MalformedCiphertextLengthError',
    'MalformedSignatureDERError',
    'CounterRangeError',
    'ProviderFailureError',
]
