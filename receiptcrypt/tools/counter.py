"""
Encrypt and decrypt receipt turnover counters from the command line.

Receipts carry the encrypted counter as base64 text, so this tool reads
and writes base64. The conversion happens here, not in the library.
"""

import argparse
import base64
import binascii
import logging
import sys

from ..codec import TurnoverCounterCodec
from ..config import ConfigError, ReceiptCryptConfig
from ..crypto.counter_cipher import CipherMode, DEFAULT_OUTPUT_LENGTH
from ..crypto.errors import ReceiptCryptError
from ..crypto.keys import key_from_base64, load_key
from ..crypto.signature import der_to_concatenated

logger = logging.getLogger(__name__)


def _b64decode(text: str) -> bytes:
    try:
        return base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 value: {e}")


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b'=').decode('ascii')


def _build_codec(args) -> TurnoverCounterCodec:
    # Options left unset fall back to the RECEIPTCRYPT_* environment, then defaults.
    config = ReceiptCryptConfig(args.config_dir, args.hash, args.mode, args.length)
    if args.key:
        key = key_from_base64(args.key)
    elif args.key_file:
        key = load_key(args.key_file)
    else:
        return config.create_codec()

    return TurnoverCounterCodec(
        key,
        hash_algorithm=config.hash_algorithm,
        mode=config.cipher_mode,
        output_length=config.output_length,
    )


def cmd_encrypt(args) -> int:
    codec = _build_codec(args)
    encrypted = codec.encrypt(args.device_id, args.receipt_id, args.counter)
    print(base64.b64encode(encrypted).decode('ascii'))
    return 0


def cmd_decrypt(args) -> int:
    codec = _build_codec(args)
    counter = codec.decrypt(args.device_id, args.receipt_id, _b64decode(args.ciphertext))
    print(counter)
    return 0


def cmd_der2jws(args) -> int:
    print(_b64url_encode(der_to_concatenated(_b64decode(args.signature))))
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='receiptcrypt-counter',
        description='Turnover counter encryption for signed receipts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  receiptcrypt-counter encrypt --device-id CASH001 --receipt-id 0001 --counter 42
  receiptcrypt-counter decrypt --device-id CASH001 --receipt-id 0001 --ciphertext <base64>
  receiptcrypt-counter der2jws --signature <base64 DER>
        """
    )
    parser.add_argument('--verbose', '-v', action='store_true',
                       help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    cipher_options = argparse.ArgumentParser(add_help=False)
    cipher_options.add_argument('--device-id', required=True,
                                help='Cash box identifier')
    cipher_options.add_argument('--receipt-id', required=True,
                                help='Receipt identifier')
    cipher_options.add_argument('--mode',
                                choices=[m.value for m in CipherMode],
                                help='Cipher mode variant (default: $RECEIPTCRYPT_CIPHER_MODE or CTR)')
    cipher_options.add_argument('--hash',
                                help='IV hash algorithm (default: $RECEIPTCRYPT_HASH_ALGORITHM or SHA-256)')
    cipher_options.add_argument('--length', type=int,
                                help=f'Encrypted counter length in bytes (default: $RECEIPTCRYPT_OUTPUT_LENGTH or {DEFAULT_OUTPUT_LENGTH})')
    key_group = cipher_options.add_mutually_exclusive_group()
    key_group.add_argument('--key', type=str,
                           help='Base64 encoded AES-256 key')
    key_group.add_argument('--key-file', type=str,
                           help='Key file (raw, hex or base64)')
    cipher_options.add_argument('--config-dir', type=str,
                                help='Configuration directory holding the key (default: ~/.receiptcrypt)')

    encrypt = subparsers.add_parser('encrypt', parents=[cipher_options],
                                    help='Encrypt a turnover counter')
    encrypt.add_argument('--counter', type=int, required=True,
                         help='Turnover counter in cents')
    encrypt.set_defaults(func=cmd_encrypt)

    decrypt = subparsers.add_parser('decrypt', parents=[cipher_options],
                                    help='Decrypt a turnover counter')
    decrypt.add_argument('--ciphertext', required=True,
                         help='Base64 encoded encrypted counter')
    decrypt.set_defaults(func=cmd_decrypt)

    der2jws = subparsers.add_parser('der2jws',
                                    help='Convert a DER ECDSA signature to JWS r||s (base64url)')
    der2jws.add_argument('--signature', required=True,
                         help='Base64 encoded DER signature')
    der2jws.set_defaults(func=cmd_der2jws)

    return parser


def main(argv=None):
    """Main entry point for receiptcrypt-counter."""
    parser = create_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        return args.func(args)
    except (ReceiptCryptError, ConfigError, ValueError, OSError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
