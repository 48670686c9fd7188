"""
receiptcrypt - turnover counter encryption for signed fiscal receipts.

Conceals a cash register's turnover counter inside each receipt with
AES-256, using an IV derived from the cash box id and the receipt id,
and converts DER ECDSA signatures to the JWS concatenated form.

Key Features:
- Deterministic IV derivation (no IV is stored or transmitted)
- AES-256 in ECB-stream, CFB and CTR variants, byte compatible
- Truncated ciphertexts (5-16 bytes) decrypted in place
- DER <-> JWS (r || s) signature conversion

Basic Usage:
    >>> from receiptcrypt import create_counter_codec
    >>> from receiptcrypt.crypto.keys import generate_key
    >>>
    >>> codec = create_counter_codec(generate_key(), "SHA-256", "CTR")
    >>> encrypted = codec.encrypt("CASH001", "0001", 42)
    >>> codec.decrypt("CASH001", "0001", encrypted)
    42
"""

__version__ = "1.0.0"
__author__ = "receiptcrypt developers"

# High-level interface
from .codec import TurnoverCounterCodec, create_counter_codec, decrypt_turnover_counter

# Cryptographic primitives
from .crypto.iv import HashAlgorithm, derive_iv
from .crypto.counter_cipher import CipherMode, encrypt_counter, decrypt_counter
from .crypto.signature import der_to_concatenated, concatenated_to_der
from .crypto.errors import ReceiptCryptError

__all__ = [
    # Version info
    '__version__',

    # High-level interface
    'TurnoverCounterCodec',
    'create_counter_codec',
    'decrypt_turnover_counter',

    # Cryptographic primitives
    'HashAlgorithm',
    'derive_iv',
    'CipherMode',
    'encrypt_counter',
    'decrypt_counter',
    'der_to_concatenated',
    'concatenated_to_der',
    'ReceiptCryptError',
]
