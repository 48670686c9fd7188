"""
Tests for turnover counter encryption.

Covers round trips for all mode variants and lengths, truncated ciphertexts,
known-answer values, and input validation.
"""

import warnings

import pytest
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.utils import CryptographyDeprecationWarning
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from receiptcrypt.crypto import counter_cipher
from receiptcrypt.crypto.counter_cipher import (
    BLOCK_SIZE,
    COUNTER_MAX,
    COUNTER_MIN,
    CipherMode,
    decode_counter,
    decrypt_cfb,
    decrypt_counter,
    decrypt_ctr,
    decrypt_ecb,
    encode_counter_block,
    encrypt_cfb,
    encrypt_counter,
    encrypt_ctr,
    encrypt_ecb,
)
from receiptcrypt.crypto.errors import (
    CounterRangeError,
    InvalidKeyLengthError,
    InvalidKeyMaterialError,
    MalformedCiphertextLengthError,
    MalformedInputError,
    ProviderFailureError,
    ProviderUnavailableError,
    UnsupportedCipherModeError,
)
from receiptcrypt.crypto.iv import derive_iv
from receiptcrypt.crypto.keys import generate_key

# FIPS-197 Appendix C.3 (AES-256)
FIPS_KEY = bytes(range(32))
FIPS_BLOCK = bytes.fromhex("00112233445566778899aabbccddeeff")
FIPS_CIPHERTEXT = bytes.fromhex("8ea2b7ca516745bfeafc49904b496089")

ALL_MODES = list(CipherMode)


@pytest.fixture
def key():
    return generate_key()


@pytest.fixture
def iv():
    return derive_iv("SHA-256", "DEMO-CASH-BOX817", "83469")


class TestCounterBlock:
    """Test the plaintext block layout."""

    def test_eight_byte_layout(self):
        """Bytes 0-7 hold the counter, bytes 8-15 are zero."""
        block = encode_counter_block(42, 8)
        assert len(block) == BLOCK_SIZE
        assert block == (42).to_bytes(8, 'big') + b'\x00' * 8

    def test_negative_counter_twos_complement(self):
        """Negative counters use two's complement."""
        block = encode_counter_block(-1, 8)
        assert block[:8] == b'\xff' * 8
        assert block[8:] == b'\x00' * 8

    def test_short_layout_drops_high_order_bytes(self):
        """With a 5-byte output the counter occupies the first 5 bytes."""
        block = encode_counter_block(1234567890, 5)
        assert block == bytes.fromhex("00499602d2") + b'\x00' * 11

    def test_long_layout_keeps_eight_byte_counter(self):
        """Outputs longer than 8 bytes still carry an 8-byte counter."""
        assert encode_counter_block(7, 16) == encode_counter_block(7, 8)

    def test_counter_too_wide_for_length(self):
        """A counter that needs more bytes than kept is rejected."""
        with pytest.raises(CounterRangeError):
            encode_counter_block(2 ** 40, 5)
        with pytest.raises(CounterRangeError):
            encode_counter_block(-(2 ** 39) - 1, 5)

    def test_counter_outside_int64(self):
        """Counters outside the signed 64-bit range are rejected."""
        with pytest.raises(CounterRangeError):
            encode_counter_block(COUNTER_MAX + 1, 8)
        with pytest.raises(CounterRangeError):
            encode_counter_block(COUNTER_MIN - 1, 16)

    def test_counter_must_be_int(self):
        """Floats and bools are not counters."""
        with pytest.raises(CounterRangeError):
            encode_counter_block(4.2, 8)
        with pytest.raises(CounterRangeError):
            encode_counter_block(True, 8)

    def test_decode_sign_extends(self):
        """Short plaintexts are sign-extended."""
        assert decode_counter(b'\xff' * 5) == -1
        assert decode_counter(bytes.fromhex("00499602d2")) == 1234567890

    def test_decode_ignores_filler(self):
        """Only the first 8 bytes of a long plaintext carry the counter."""
        assert decode_counter((99).to_bytes(8, 'big') + b'\x00' * 8) == 99


class TestKnownAnswers:
    """Known-answer tests against FIPS-197 AES-256."""

    @pytest.mark.parametrize("mode", ALL_MODES)
    def test_zero_counter_exposes_keystream(self, mode):
        """Encrypting counter 0 yields E_K(IV) for every variant."""
        encrypted = encrypt_counter(mode, FIPS_KEY, FIPS_BLOCK, 0, 16)
        assert encrypted == FIPS_CIPHERTEXT

    @pytest.mark.parametrize("mode", ALL_MODES)
    def test_counter_one(self, mode):
        """Counter 1 flips the lowest bit of byte 7."""
        encrypted = encrypt_counter(mode, FIPS_KEY, FIPS_BLOCK, 1)
        assert encrypted == bytes.fromhex("8ea2b7ca516745be")

    @pytest.mark.parametrize("mode", ALL_MODES)
    def test_known_answer_decrypts(self, mode):
        """The FIPS vector decrypts to the expected counters."""
        assert decrypt_counter(mode, FIPS_KEY, FIPS_BLOCK, FIPS_CIPHERTEXT[:8]) == 0
        assert decrypt_counter(mode, FIPS_KEY, FIPS_BLOCK, bytes.fromhex("8ea2b7ca516745be")) == 1


class TestRoundTrip:
    """Test encrypt/decrypt round trips."""

    @pytest.mark.parametrize("mode", ALL_MODES)
    @pytest.mark.parametrize("length", range(5, 17))
    def test_roundtrip_all_lengths(self, key, iv, mode, length):
        """Every mode recovers the counter for every supported length."""
        for counter in (0, 1, 42, 1234567890, -1, -1234567890):
            encrypted = encrypt_counter(mode, key, iv, counter, length)
            assert len(encrypted) == length
            assert decrypt_counter(mode, key, iv, encrypted) == counter

    @pytest.mark.parametrize("mode", ALL_MODES)
    def test_roundtrip_extremes(self, key, iv, mode):
        """The signed 64-bit limits survive an 8-byte round trip."""
        for counter in (COUNTER_MIN, COUNTER_MAX):
            encrypted = encrypt_counter(mode, key, iv, counter)
            assert decrypt_counter(mode, key, iv, encrypted) == counter

    @pytest.mark.parametrize("length", [5, 6, 7])
    def test_roundtrip_short_extremes(self, key, iv, length):
        """The largest counters that fit a short output survive."""
        limit = 2 ** (8 * length - 1)
        for counter in (limit - 1, -limit):
            encrypted = encrypt_ctr(key, iv, counter, length)
            assert decrypt_ctr(key, iv, encrypted) == counter

    def test_default_length_is_eight(self, key, iv):
        """Encrypted counters are 8 bytes unless asked otherwise."""
        assert len(encrypt_ecb(key, iv, 5)) == 8
        assert len(encrypt_cfb(key, iv, 5)) == 8
        assert len(encrypt_ctr(key, iv, 5)) == 8

    def test_deterministic(self, key, iv):
        """Same key, IV and counter give the same ciphertext."""
        assert encrypt_ctr(key, iv, 42) == encrypt_ctr(key, iv, 42)

    def test_different_iv_different_ciphertext(self, key):
        """A new receipt id changes the ciphertext of the same counter."""
        iv1 = derive_iv("SHA-256", "CASH001", "0001")
        iv2 = derive_iv("SHA-256", "CASH001", "0002")
        assert encrypt_ctr(key, iv1, 42) != encrypt_ctr(key, iv2, 42)

    def test_wrong_key_gives_wrong_counter(self, iv):
        """Decrypting with another key does not recover the counter."""
        encrypted = encrypt_ctr(generate_key(), iv, 1234567890)
        assert decrypt_ctr(generate_key(), iv, encrypted) != 1234567890

    def test_accepts_bytearray(self, key, iv):
        """Mutable buffers are accepted for key, IV and ciphertext."""
        encrypted = encrypt_cfb(bytearray(key), bytearray(iv), 77)
        assert decrypt_cfb(bytearray(key), bytearray(iv), bytearray(encrypted)) == 77


class TestTruncation:
    """Test truncated ciphertexts."""

    @pytest.mark.parametrize("encrypt, decrypt", [
        (encrypt_cfb, decrypt_cfb),
        (encrypt_ctr, decrypt_ctr),
    ])
    def test_five_byte_ciphertext(self, key, iv, encrypt, decrypt):
        """A 5-byte ciphertext still recovers 1234567890."""
        encrypted = encrypt(key, iv, 1234567890, 5)
        assert len(encrypted) == 5
        assert decrypt(key, iv, encrypted) == 1234567890

    @pytest.mark.parametrize("encrypt, decrypt", [
        (encrypt_cfb, decrypt_cfb),
        (encrypt_ctr, decrypt_ctr),
    ])
    def test_zero_padding_before_decrypt_is_wrong(self, key, iv, encrypt, decrypt):
        """Zero-padding a 5-byte ciphertext to 8 bytes corrupts the counter."""
        encrypted = encrypt(key, iv, 1234567890, 5)
        padded = encrypted + b'\x00' * 3
        assert decrypt(key, iv, padded) != 1234567890

    @pytest.mark.parametrize("mode", ALL_MODES)
    def test_prefix_of_full_block(self, key, iv, mode):
        """The first 8 bytes of a 16-byte ciphertext equal the 8-byte ciphertext."""
        full = encrypt_counter(mode, key, iv, 987654321, 16)
        assert full[:8] == encrypt_counter(mode, key, iv, 987654321, 8)
        assert decrypt_counter(mode, key, iv, full[:8]) == 987654321


class TestModeVariants:
    """Test how the three mode variants relate to each other."""

    def test_single_block_modes_agree(self, key, iv):
        """On one block ECB-stream, CFB and CTR all use the keystream E_K(IV)."""
        for length in (5, 8, 16):
            ecb = encrypt_ecb(key, iv, 1234567890, length)
            assert encrypt_cfb(key, iv, 1234567890, length) == ecb
            assert encrypt_ctr(key, iv, 1234567890, length) == ecb

    def test_ciphertexts_interchangeable(self, key, iv):
        """A ciphertext from one variant decrypts under the others."""
        encrypted = encrypt_ecb(key, iv, 42)
        assert decrypt_cfb(key, iv, encrypted) == 42
        assert decrypt_ctr(key, iv, encrypted) == 42

    def test_ecb_decrypt_uses_encrypt_direction(self, key, iv):
        """An AES-ECB decrypt of the IV is not the keystream."""
        decryptor = Cipher(algorithms.AES(key), modes.ECB()).decryptor()
        wrong_keystream = decryptor.update(iv) + decryptor.finalize()
        encrypted = encrypt_ecb(key, iv, 42)
        naive = bytes(c ^ k for c, k in zip(encrypted, wrong_keystream))
        assert int.from_bytes(naive, 'big', signed=True) != 42
        assert decrypt_ecb(key, iv, encrypted) == 42

    @pytest.mark.parametrize("name, expected", [
        ("ctr", CipherMode.CTR),
        ("AES-CFB", CipherMode.CFB),
        ("AES/ECB/NoPadding", CipherMode.ECB),
        ("AES/CTR/NoPadding", CipherMode.CTR),
        ("ICM", CipherMode.CTR),
    ])
    def test_mode_names(self, name, expected):
        """JCE style and short mode names are accepted."""
        assert CipherMode.from_name(name) is expected

    @pytest.mark.parametrize("name", ["CBC", "GCM", "AES/CTR/PKCS5Padding", "", "OFB",
                                      "AES/CTR/NoPadding/Extra", "CTR/NoPadding/NoPadding"])
    def test_unsupported_modes(self, name):
        """Modes outside the fixed set are rejected."""
        with pytest.raises(UnsupportedCipherModeError):
            CipherMode.from_name(name)

    def test_dispatch_rejects_unknown_mode(self, key, iv):
        """encrypt_counter refuses unknown modes."""
        with pytest.raises(UnsupportedCipherModeError):
            encrypt_counter("CBC", key, iv, 1)


class TestValidation:
    """Test input validation."""

    @pytest.mark.parametrize("bad_key", [b"", b"\x00" * 16, b"\x00" * 24, b"\x00" * 33])
    def test_key_length(self, iv, bad_key):
        """Only 32-byte keys are accepted."""
        with pytest.raises(InvalidKeyLengthError):
            encrypt_ctr(bad_key, iv, 1)
        with pytest.raises(InvalidKeyLengthError):
            decrypt_ecb(bad_key, iv, b"\x00" * 8)

    def test_key_type(self, iv):
        """Text keys are rejected."""
        with pytest.raises(InvalidKeyMaterialError):
            encrypt_ctr("k" * 32, iv, 1)

    def test_iv_length(self, key):
        """IVs must be exactly one block."""
        with pytest.raises(InvalidKeyMaterialError):
            encrypt_cfb(key, b"\x00" * 12, 1)

    def test_ciphertext_too_long(self, key, iv):
        """Ciphertexts longer than one block are rejected."""
        with pytest.raises(MalformedCiphertextLengthError):
            decrypt_ctr(key, iv, b"\x00" * 17)

    def test_ciphertext_too_short(self, key, iv):
        """Ciphertexts shorter than 5 bytes are rejected."""
        with pytest.raises(MalformedCiphertextLengthError):
            decrypt_cfb(key, iv, b"\x00" * 4)

    @pytest.mark.parametrize("length", [0, 4, 17, True])
    def test_output_length(self, key, iv, length):
        """Output lengths must be between 5 and 16."""
        with pytest.raises(MalformedInputError):
            encrypt_ecb(key, iv, 1, length)

    def test_ciphertext_type(self, key, iv):
        """Base64 text is not accepted in place of raw bytes."""
        with pytest.raises(MalformedInputError):
            decrypt_ctr(key, iv, "AAAAAAAAAAA=")


class TestProviderErrors:
    """Backend failures surface as typed errors."""

    @pytest.mark.parametrize("mode", ALL_MODES)
    def test_unsupported_backend(self, key, iv, monkeypatch, mode):
        """A backend without the mode raises ProviderUnavailableError."""
        def unavailable(*args, **kwargs):
            raise UnsupportedAlgorithm("AES not supported")

        monkeypatch.setattr(counter_cipher, "Cipher", unavailable)
        with pytest.raises(ProviderUnavailableError) as exc_info:
            encrypt_counter(mode, key, iv, 42)
        assert isinstance(exc_info.value.__cause__, UnsupportedAlgorithm)

    @pytest.mark.parametrize("mode", ALL_MODES)
    def test_backend_failure(self, key, iv, monkeypatch, mode):
        """Any other backend error raises ProviderFailureError."""
        def broken(*args, **kwargs):
            raise RuntimeError("backend exploded")

        monkeypatch.setattr(counter_cipher, "Cipher", broken)
        with pytest.raises(ProviderFailureError) as exc_info:
            decrypt_counter(mode, key, iv, b"\x00" * 8)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_validation_runs_before_backend(self, iv, monkeypatch):
        """Bad keys are reported as such, not as backend failures."""
        def broken(*args, **kwargs):
            raise RuntimeError("backend exploded")

        monkeypatch.setattr(counter_cipher, "Cipher", broken)
        with pytest.raises(InvalidKeyLengthError):
            encrypt_ctr(b"\x00" * 16, iv, 1)

    def test_cfb_without_deprecation_warning(self, key, iv):
        """CFB comes from its current home in cryptography, not the deprecated one."""
        with warnings.catch_warnings():
            warnings.simplefilter("error", CryptographyDeprecationWarning)
            assert decrypt_cfb(key, iv, encrypt_cfb(key, iv, 42)) == 42
