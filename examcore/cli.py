#!/usr/bin/env python3
"""
Exam Core Grading CLI

Batch, non-interactive access to grading, report cards and statistics over
the persisted exam sessions.
"""

import argparse
import getpass
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .config_loader import create_sample_config, load_config
from .errors import ExamCoreError
from .models import ExamConfig
from .services import ExamServices

logger = logging.getLogger(__name__)

CATALOG_KEY_ENV = "EXAMCORE_CATALOG_KEY"


class GradingCLI:
    """Main CLI application controller."""

    def __init__(self):
        self.config: Optional[ExamConfig] = None
        self.services: Optional[ExamServices] = None

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="examcore",
            description="Grade exam sessions and build report cards",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  examcore grade-all
  examcore grade 42 1000
  examcore report 42
  examcore stats 1000
  examcore sample-config config.json
            """
        )
        parser.add_argument(
            "--config",
            help="Path to configuration file (default: config.json in project directory)"
        )
        parser.add_argument(
            "--catalog",
            help="Exam catalog file, overriding catalog_file from the configuration"
        )
        parser.add_argument(
            "--base-dir",
            default=".",
            help="Directory that relative data and catalog paths resolve against (default: current directory)"
        )

        sub = parser.add_subparsers(dest="command", required=True)
        sub.add_parser("sessions", help="List persisted and active sessions")

        grade = sub.add_parser("grade", help="Grade one session")
        grade.add_argument("student_id", type=int)
        grade.add_argument("exam_id", type=int)

        sub.add_parser("grade-all", help="Grade every finished session")

        report = sub.add_parser("report", help="Generate and show one student's report card")
        report.add_argument("student_id", type=int)

        sub.add_parser("reports", help="Generate report cards for every student")

        stats = sub.add_parser("stats", help="Show score statistics for an exam")
        stats.add_argument("exam_id", type=int)

        sample = sub.add_parser("sample-config", help="Write a sample configuration file")
        sample.add_argument("path")
        return parser

    def _catalog_secret(self, catalog_path: Path) -> Optional[str]:
        if catalog_path.suffix.lower() != '.enc' or not catalog_path.exists():
            return None
        secret = os.environ.get(CATALOG_KEY_ENV)
        if secret:
            return secret.strip()
        return getpass.getpass(f"Enter key or password for {catalog_path.name}: ").strip()

    def setup(self, args: argparse.Namespace):
        self.config = load_config(Path(args.config) if args.config else None)
        if args.catalog:
            self.config.catalog_file = args.catalog

        logging.basicConfig(
            level=getattr(logging, self.config.log_level, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        base_dir = Path(args.base_dir)
        secret = self._catalog_secret(base_dir / self.config.catalog_file)
        self.services = ExamServices.build(self.config, base_dir=base_dir, secret=secret)
        self.services.recover_sessions()

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Main application entry point."""
        args = self.build_parser().parse_args(argv)

        if args.command == "sample-config":
            create_sample_config(Path(args.path))
            print(f"Sample configuration created at: {args.path}")
            return 0

        try:
            self.setup(args)
            return self.dispatch(args)
        except ExamCoreError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except KeyboardInterrupt:
            print("\nAborted.", file=sys.stderr)
            return 1

    def dispatch(self, args: argparse.Namespace) -> int:
        grader = self.services.grader
        registry = self.services.registry

        if args.command == "sessions":
            sessions = registry.sessions()
            if not sessions:
                print("No sessions.")
            for session in sessions:
                print(session.summary())
            return 0

        if args.command == "grade":
            session = registry.get(args.student_id, args.exam_id)
            result = grader.grade(session)
            print(result.describe())
            return 0

        if args.command == "grade-all":
            graded = grader.grade_all()
            print(f"Graded {graded} completed exam sessions.")
            return 0

        if args.command == "report":
            card = grader.report_for(args.student_id)
            print(card.format())
            return 0

        if args.command == "reports":
            generated = grader.generate_all_reports()
            print(f"Generated {generated} report cards.")
            return 0

        if args.command == "stats":
            print(grader.exam_statistics(args.exam_id).format())
            return 0

        return 1


def main(argv: Optional[List[str]] = None) -> int:
    return GradingCLI().run(argv)


if __name__ == "__main__":
    sys.exit(main())
