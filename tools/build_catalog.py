#!/usr/bin/env python3
"""
build_catalog.py - Encrypt plaintext JSON exam catalogs.

Usage with key file:
    python tools/build_catalog.py --in exams.json --out exams.enc --key-file TERM1.key

Usage with password:
    python tools/build_catalog.py --in exams.json --out exams.enc --password
"""

import argparse
import getpass
import hashlib
import json
import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from examcore.catalog import ExamCatalog
from examcore.crypto import encrypt_payload
from examcore.errors import ExamCoreError


def build_catalog(in_file: str, out_file: str, key_file: str = None, use_password: bool = False) -> None:
    """Validate and encrypt a plaintext JSON exam catalog."""
    try:
        if use_password:
            password = getpass.getpass("Enter encryption password: ")
            password_confirm = getpass.getpass("Confirm password: ")

            if password != password_confirm:
                print("[ERROR] Passwords do not match", file=sys.stderr)
                sys.exit(1)

            if len(password) < 8:
                print("[ERROR] Password must be at least 8 characters", file=sys.stderr)
                sys.exit(1)

            secret = password
            print("[OK] Using password-based encryption")

        elif key_file:
            with open(key_file, 'rb') as f:
                secret = f.read()
            print("[OK] Using key file encryption")
        else:
            print("[ERROR] Must specify either --key-file or --password", file=sys.stderr)
            sys.exit(1)

        with open(in_file, 'rb') as f:
            plaintext = f.read()

        # Verify the catalog parses before encrypting
        try:
            catalog = ExamCatalog.from_list(json.loads(plaintext))
        except json.JSONDecodeError as e:
            print(f"[ERROR] Invalid JSON in input file: {e}", file=sys.stderr)
            sys.exit(1)

        exams = catalog.exams()
        print(f"[OK] Input catalog validated")
        print(f"  Exams: {len(exams)}")
        print(f"  Questions: {sum(len(exam.questions) for exam in exams)}")

        encrypted_data = encrypt_payload(plaintext, secret, use_password=use_password)
        sha256_hash = hashlib.sha256(encrypted_data).hexdigest()

        Path(out_file).parent.mkdir(parents=True, exist_ok=True)
        with open(out_file, 'wb') as f:
            f.write(encrypted_data)

        print(f"\n[OK] Success: Catalog encrypted")
        print(f"  Input: {in_file} ({len(plaintext)} bytes)")
        print(f"  Output: {out_file} ({len(encrypted_data)} bytes)")
        print(f"  Method: {'Password-based' if use_password else 'Key file'}")
        print(f"  SHA256: {sha256_hash}")

    except FileNotFoundError as e:
        print(f"[ERROR] File not found: {e}", file=sys.stderr)
        sys.exit(1)
    except ExamCoreError as e:
        print(f"[ERROR] Error encrypting catalog: {e}", file=sys.stderr)
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(
        description="Encrypt a plaintext JSON exam catalog.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tools/build_catalog.py --in exams.json --out exams.enc --key-file TERM1.key
  python tools/build_catalog.py --in exams.json --out exams.enc --password

Notes:
  - Input file must be a valid exam catalog (JSON list of exams)
  - Output directory will be created if it doesn't exist
  - Produces SHA256 checksum for verification
        """
    )
    parser.add_argument("--in", dest="in_file", required=True, help="Input plaintext JSON catalog")
    parser.add_argument("--out", required=True, help="Output encrypted catalog file (.enc)")
    parser.add_argument(
        "--key-file",
        help="File containing the encryption key (mutually exclusive with --password)"
    )
    parser.add_argument(
        "--password",
        action="store_true",
        help="Use password-based encryption instead of key file"
    )

    args = parser.parse_args()

    if args.password and args.key_file:
        print("[ERROR] Cannot use both --password and --key-file", file=sys.stderr)
        sys.exit(1)

    build_catalog(args.in_file, args.out, args.key_file, args.password)


if __name__ == "__main__":
    main()
