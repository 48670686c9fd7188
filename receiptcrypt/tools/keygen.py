"""
Generate an AES-256 key for turnover counter encryption.

ATTENTION: a real cash register generates this key once during
initialisation and stores it in a protected area.
"""

import argparse
import logging
import sys

from ..config import ConfigError, ReceiptCryptConfig
from ..crypto.keys import generate_key, is_aes256_available, key_to_base64


def main(argv=None):
    """Main entry point for receiptcrypt-keygen."""
    parser = argparse.ArgumentParser(
        description="Generate an AES-256 turnover counter key",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print a new key as base64:
  receiptcrypt-keygen --format base64

  # Generate and store a key in ~/.receiptcrypt/aes_key.hex:
  receiptcrypt-keygen --save
        """
    )
    parser.add_argument('--format', choices=['hex', 'base64'], default='hex',
                       help='Output format (default: hex)')
    parser.add_argument('--save', action='store_true',
                       help='Store the key in the configuration directory')
    parser.add_argument('--config-dir', type=str,
                       help='Configuration directory (default: ~/.receiptcrypt)')
    parser.add_argument('--force', action='store_true',
                       help='Overwrite an existing stored key')
    parser.add_argument('--verbose', '-v', action='store_true',
                       help='Enable debug logging')

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    if not is_aes256_available():
        print("Error: AES-256 is not available in the cryptography backend", file=sys.stderr)
        return 1

    if args.save:
        try:
            config = ReceiptCryptConfig(args.config_dir)
            if config.key_exists() and not args.force:
                print(f"Error: key already exists at {config.key_file_path} (use --force)", file=sys.stderr)
                return 1
            key = config.create_new_key()
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Saved to: {config.key_file_path}", file=sys.stderr)
    else:
        key = generate_key()

    print(key_to_base64(key) if args.format == 'base64' else key.hex())
    return 0


if __name__ == '__main__':
    sys.exit(main())
