#!/usr/bin/env python3
"""
keygen.py - Generate Fernet encryption keys for exam catalogs.

Usage:
    python tools/keygen.py --out TERM1.key

Note: You can also use passwords directly with build_catalog.py --password
      instead of generating key files.
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from examcore.crypto import generate_key


def write_key(output_file: str) -> None:
    """Generate a new Fernet key and save it to file."""
    try:
        key = generate_key()

        with open(output_file, 'wb') as f:
            f.write(key)

        print(f"[OK] Success: Encryption key generated")
        print(f"  Output: {output_file}")
        print(f"\n[!] SECURITY: Store this key securely. Never commit to version control.")
        print(f"\n[i] Alternative: You can use --password flag in build_catalog.py")
        print(f"    to encrypt with a password instead of a key file.")

    except OSError as e:
        print(f"[ERROR] Error writing key: {e}", file=sys.stderr)
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(
        description="Generate a new Fernet encryption key for exam catalogs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tools/keygen.py --out TERM1.key

Security Notes:
  - Store keys in a secure password manager
  - Never distribute keys with encrypted catalogs
        """
    )
    parser.add_argument(
        "--out",
        required=True,
        help="Output file path for the key (e.g., TERM1.key)"
    )

    args = parser.parse_args()
    write_key(args.out)


if __name__ == "__main__":
    main()
