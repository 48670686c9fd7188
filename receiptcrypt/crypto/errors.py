"""
Exception hierarchy for receiptcrypt.

All failures are raised synchronously to the caller. Nothing is retried:
every operation is a pure computation, so a failure repeats identically.
"""


class ReceiptCryptError(Exception):
    """Base class for all receiptcrypt errors."""
    pass


class UnsupportedAlgorithmError(ReceiptCryptError):
    """Raised when a cipher, digest or mode is missing or not supported."""
    pass


class UnsupportedHashAlgorithmError(UnsupportedAlgorithmError):
    """Raised when the requested IV hash algorithm is unknown."""
    pass


class UnsupportedCipherModeError(UnsupportedAlgorithmError):
    """Raised when the requested cipher mode is not ECB, CFB or CTR."""
    pass


class ProviderUnavailableError(UnsupportedAlgorithmError):
    """Raised when the cryptography backend lacks the AES primitive."""
    pass


class InvalidKeyMaterialError(ReceiptCryptError):
    """Raised when key or IV material has the wrong shape."""
    pass


class InvalidKeyLengthError(InvalidKeyMaterialError):
    """Raised when the AES key is not 32 bytes."""
    pass


class MalformedInputError(ReceiptCryptError, ValueError):
    """Raised when input data cannot be parsed to the expected shape."""
    pass


class MalformedCiphertextLengthError(MalformedInputError):
    """Raised when an encrypted counter is shorter or longer than allowed."""
    pass


class MalformedSignatureDERError(MalformedInputError):
    """Raised when a DER signature is not SEQUENCE { INTEGER r, INTEGER s }."""
    pass


class CounterRangeError(MalformedInputError):
    """Raised when a counter does not fit the requested encoding."""
    pass


class ProviderFailureError(ReceiptCryptError):
    """Raised when the underlying primitive fails unexpectedly."""
    pass
