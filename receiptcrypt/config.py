"""
Configuration management for receiptcrypt.

Holds the cash register's AES key file and the algorithm settings (IV hash
algorithm, cipher mode, encrypted counter length). The hash algorithm is
configuration, never hardcoded in callers.

This module handles application-level configuration while delegating
key file operations to the keys module.
"""

import os
from typing import Optional

from .codec import TurnoverCounterCodec
from .crypto.counter_cipher import CipherMode, DEFAULT_OUTPUT_LENGTH, validate_output_length
from .crypto.errors import ReceiptCryptError
from .crypto.iv import HashAlgorithm
from .crypto.keys import create_key_file, load_key
from .crypto.utils import parse_hex

ENV_HASH_ALGORITHM = "RECEIPTCRYPT_HASH_ALGORITHM"
ENV_CIPHER_MODE = "RECEIPTCRYPT_CIPHER_MODE"
ENV_OUTPUT_LENGTH = "RECEIPTCRYPT_OUTPUT_LENGTH"


class ConfigError(Exception):
    """Raised when configuration operations fail."""
    pass


class ReceiptCryptConfig:
    """
    Configuration manager for a cash register's counter encryption.

    Settings default to SHA-256 / CTR / 8 bytes and can be overridden by
    constructor arguments or environment variables (constructor wins).
    """

    def __init__(self, config_dir: Optional[str] = None, hash_algorithm: Optional[str] = None,
                 cipher_mode: Optional[str] = None, output_length: Optional[int] = None):
        """
        Initialize configuration.

        Args:
            config_dir: Directory for configuration files. Defaults to ~/.receiptcrypt/
            hash_algorithm: IV hash algorithm name (e.g. "SHA-256")
            cipher_mode: "ECB", "CFB" or "CTR"
            output_length: Encrypted counter length in bytes (5-16)

        Raises:
            ConfigError: If a setting is invalid
        """
        if config_dir is None:
            config_dir = os.path.expanduser("~/.receiptcrypt")

        self.config_dir = config_dir
        self.key_file_path = os.path.join(config_dir, "aes_key.hex")

        os.makedirs(config_dir, exist_ok=True)

        if hash_algorithm is None:
            hash_algorithm = os.environ.get(ENV_HASH_ALGORITHM, HashAlgorithm.SHA256.value)
        if cipher_mode is None:
            cipher_mode = os.environ.get(ENV_CIPHER_MODE, CipherMode.CTR.value)
        if output_length is None:
            output_length = os.environ.get(ENV_OUTPUT_LENGTH, DEFAULT_OUTPUT_LENGTH)

        try:
            self.hash_algorithm = HashAlgorithm.from_name(hash_algorithm)
            self.cipher_mode = CipherMode.from_name(cipher_mode)
            self.output_length = int(output_length)
            validate_output_length(self.output_length)
        except (ReceiptCryptError, ValueError) as e:
            raise ConfigError(f"Invalid configuration: {e}")

    def get_key(self) -> bytes:
        """
        Load the AES key using the keys module.

        Supports multiple file formats:
        - Raw binary (32 bytes)
        - Hex encoded (64 characters, optional newline)
        - Base64 encoded (44 characters, optional newline)

        Returns:
            bytes: The 32-byte AES key

        Raises:
            ConfigError: If the key cannot be loaded
        """
        if not os.path.exists(self.key_file_path):
            raise ConfigError(f"Key file not found: {self.key_file_path}")

        try:
            return load_key(self.key_file_path)
        except FileNotFoundError:
            raise ConfigError(f"Key file not found: {self.key_file_path}")
        except ValueError as e:
            raise ConfigError(f"Invalid key format: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load key: {e}")

    def set_key(self, hex_key: str) -> None:
        """
        Set the AES key from a hex string.

        Args:
            hex_key: 64-character hex string

        Raises:
            ConfigError: If key format is invalid
        """
        try:
            key = parse_hex(hex_key)
        except ValueError:
            raise ConfigError("Invalid hex characters in key")

        if len(key) != 32:
            raise ConfigError("Key must be 64 hex characters (32 bytes)")

        try:
            create_key_file(self.key_file_path, key)
        except OSError as e:
            raise ConfigError(f"Failed to save key: {e}")

    def set_key_from_file(self, source_file: str) -> None:
        """
        Copy the AES key from another file.

        Args:
            source_file: Path to existing key file

        Raises:
            ConfigError: If source file cannot be read or key is invalid
        """
        try:
            key = load_key(source_file)
            create_key_file(self.key_file_path, key)
        except FileNotFoundError:
            raise ConfigError(f"Source key file not found: {source_file}")
        except ValueError as e:
            raise ConfigError(f"Invalid source key format: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to copy key: {e}")

    def create_new_key(self) -> bytes:
        """
        Generate and store a new AES key for testing/development.

        Returns:
            bytes: The generated 32-byte key

        Raises:
            ConfigError: If the key cannot be saved
        """
        try:
            return create_key_file(self.key_file_path)
        except OSError as e:
            raise ConfigError(f"Failed to create new key: {e}")

    def key_exists(self) -> bool:
        """Check if a key file exists."""
        return os.path.exists(self.key_file_path)

    def create_codec(self) -> TurnoverCounterCodec:
        """
        Build a codec from the stored key and the configured algorithms.

        Raises:
            ConfigError: If the key cannot be loaded
        """
        return TurnoverCounterCodec(
            self.get_key(),
            hash_algorithm=self.hash_algorithm,
            mode=self.cipher_mode,
            output_length=self.output_length,
        )
