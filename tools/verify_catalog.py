#!/usr/bin/env python3
"""
verify_catalog.py - Validate exam catalog schema and decrypt for inspection.

Usage with key file:
    python tools/verify_catalog.py --catalog exams.enc --key-file TERM1.key

Usage with password:
    python tools/verify_catalog.py --catalog exams.enc --password

Usage with plaintext:
    python tools/verify_catalog.py --catalog exams.json
"""

import argparse
import getpass
import json
import os
import sys
from typing import List, Tuple

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from examcore.crypto import decrypt_payload, is_password_based
from examcore.errors import ExamCoreError
from examcore.models import QUESTION_TYPES


def validate_catalog(data) -> Tuple[List[str], List[str]]:
    """
    Check a decoded catalog against the expected schema.

    Returns:
        Tuple of (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(data, list):
        return ["Catalog must be a JSON list of exams"], warnings

    exam_ids = set()
    question_ids = set()
    for idx, exam in enumerate(data, start=1):
        if not isinstance(exam, dict):
            errors.append(f"exam[{idx}]: must be an object")
            continue

        missing = [f for f in ('examID', 'subject', 'duration', 'questions') if f not in exam]
        if missing:
            errors.append(f"exam[{idx}]: Missing fields: {', '.join(missing)}")
            continue

        label = f"exam[{idx}] ({exam['examID']})"
        if exam['examID'] in exam_ids:
            errors.append(f"{label}: Duplicate examID")
        exam_ids.add(exam['examID'])

        if not isinstance(exam['duration'], int) or exam['duration'] <= 0:
            errors.append(f"{label}: duration must be a positive integer")

        questions = exam['questions']
        if not isinstance(questions, list):
            errors.append(f"{label}: questions must be a list")
            continue
        if not questions:
            warnings.append(f"{label}: No questions defined")

        for q_idx, question in enumerate(questions, start=1):
            q_label = f"{label} question {q_idx}"
            if not isinstance(question, dict):
                errors.append(f"{q_label}: must be an object")
                continue
            q_missing = [f for f in ('type', 'questionID', 'questionText', 'answer') if f not in question]
            if q_missing:
                errors.append(f"{q_label}: Missing fields: {', '.join(q_missing)}")
                continue
            if question['type'] not in QUESTION_TYPES:
                errors.append(f"{q_label}: Invalid type: {question['type']}")
            if question['questionID'] in question_ids:
                errors.append(f"{q_label}: Duplicate questionID {question['questionID']}")
            question_ids.add(question['questionID'])
            if question['type'] == 'MCQ':
                options = question.get('options')
                if not isinstance(options, list) or not options:
                    errors.append(f"{q_label}: MCQ requires a non-empty options list")
                elif question['answer'] not in options and len(str(question['answer'])) != 1:
                    warnings.append(f"{q_label}: answer is neither an option nor an option letter")

    return errors, warnings


def verify_catalog(catalog_file: str, key_file: str = None, use_password: bool = False, verbose: bool = False) -> bool:
    """
    Verify an exam catalog (encrypted or plaintext).
    Returns True if valid, False otherwise.
    """
    try:
        with open(catalog_file, 'rb') as f:
            raw = f.read()

        if catalog_file.endswith('.enc'):
            if is_password_based(raw):
                if not use_password:
                    print("[ERROR] This catalog was encrypted with a password. Use --password flag.", file=sys.stderr)
                    return False
                secret = getpass.getpass("Enter decryption password: ")
            else:
                if not key_file:
                    print("[ERROR] This catalog was encrypted with a key file. Use --key-file.", file=sys.stderr)
                    return False
                with open(key_file, 'rb') as f:
                    secret = f.read()
            raw = decrypt_payload(raw, secret)
            print(f"[OK] Catalog decrypted successfully")

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            print(f"[ERROR] Invalid JSON: {e}", file=sys.stderr)
            return False

        print(f"\n[SCHEMA] Catalog Schema Validation")
        print(f"{'='*60}")

        errors, warnings = validate_catalog(data)

        if verbose and isinstance(data, list):
            for exam in data:
                if isinstance(exam, dict):
                    print(f"  [OK] {exam.get('examID', '?')}: {exam.get('subject', '?')} "
                          f"({len(exam.get('questions') or [])} questions)")

        print(f"\n{'='*60}")
        print(f"[SUMMARY]")
        print(f"  Total exams: {len(data) if isinstance(data, list) else 0}")

        if warnings:
            print(f"\n[WARNING] ({len(warnings)}):")
            for warn in warnings[:10]:
                print(f"  - {warn}")
            if len(warnings) > 10:
                print(f"  ... and {len(warnings) - 10} more")

        if errors:
            print(f"\n[ERROR] ({len(errors)}):")
            for err in errors[:20]:
                print(f"  - {err}")
            if len(errors) > 20:
                print(f"  ... and {len(errors) - 20} more")
            return False

        print(f"\n[OK] Catalog validation PASSED")
        return True

    except FileNotFoundError as e:
        print(f"[ERROR] File not found: {e}", file=sys.stderr)
        return False
    except ExamCoreError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return False


def main():
    parser = argparse.ArgumentParser(
        description="Validate exam catalog schema and content.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tools/verify_catalog.py --catalog exams.enc --key-file TERM1.key
  python tools/verify_catalog.py --catalog exams.json --verbose
        """
    )
    parser.add_argument("--catalog", required=True, help="Path to catalog file (.enc or .json)")
    parser.add_argument("--key-file", help="Encryption key file (for key-file encrypted catalogs)")
    parser.add_argument(
        "--password",
        action="store_true",
        help="Use password to decrypt (for password-encrypted catalogs)"
    )
    parser.add_argument("--verbose", action="store_true", help="Show each exam")

    args = parser.parse_args()

    success = verify_catalog(args.catalog, args.key_file, args.password, args.verbose)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
