"""
JSON persistence for sessions, results and report cards.

One document per entity, addressed by composite key, plus an append-only
event log in the same directory.
"""

import json
import logging
import re
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional, Tuple

from .errors import PersistenceError

logger = logging.getLogger(__name__)

SESSION_FILE_RE = re.compile(r"^session_(-?\d+)_(-?\d+)\.json$")
RESULT_FILE_RE = re.compile(r"^result_(-?\d+)_(-?\d+)\.json$")


class JsonStore:
    """File-backed record store rooted at a data directory."""

    def __init__(self, root: Path, event_log: str = "session.log"):
        self.root = Path(root)
        self.log_path = self.root / event_log
        self._lock = threading.Lock()

    # ===== PATHS =====

    def session_path(self, student_id: int, exam_id: int) -> Path:
        return self.root / f"session_{student_id}_{exam_id}.json"

    def result_path(self, student_id: int, exam_id: int) -> Path:
        return self.root / f"result_{student_id}_{exam_id}.json"

    def report_path(self, student_id: int) -> Path:
        return self.root / f"report_{student_id}.json"

    # ===== SESSIONS =====

    def save_session(self, record: dict):
        self._write_json(self.session_path(record["studentID"], record["examID"]), record)

    def load_session(self, student_id: int, exam_id: int) -> Optional[dict]:
        return self._read_json(self.session_path(student_id, exam_id))

    def session_keys(self) -> List[Tuple[int, int]]:
        """List the (student, exam) keys of every persisted session."""
        return self._scan(SESSION_FILE_RE)

    # ===== RESULTS =====

    def save_result(self, record: dict):
        self._write_json(self.result_path(record["studentID"], record["examID"]), record)

    def load_result(self, student_id: int, exam_id: int) -> Optional[dict]:
        return self._read_json(self.result_path(student_id, exam_id))

    def result_keys(self) -> List[Tuple[int, int]]:
        """List the (student, exam) keys of every persisted result."""
        return self._scan(RESULT_FILE_RE)

    # ===== REPORT CARDS =====

    def save_report(self, record: dict):
        self._write_json(self.report_path(record["studentID"]), record)

    def load_report(self, student_id: int) -> Optional[dict]:
        return self._read_json(self.report_path(student_id))

    # ===== EVENT LOG =====

    def log(self, event: str, details: str = ""):
        """Append an entry to the session event log."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        log_entry = f"[{timestamp}] - {event}"
        if details:
            log_entry += f" - {details}"
        log_entry += "\n"

        try:
            with self._lock:
                self.root.mkdir(parents=True, exist_ok=True)
                with open(self.log_path, 'a', encoding='utf-8') as f:
                    f.write(log_entry)
        except OSError as e:
            raise PersistenceError(f"Unable to write event log '{self.log_path}': {e}") from e

    # ===== HELPERS =====

    def _write_json(self, path: Path, payload: Any):
        try:
            with self._lock:
                path.parent.mkdir(parents=True, exist_ok=True)
                tmp = path.with_suffix(path.suffix + ".tmp")
                tmp.write_text(json.dumps(payload, indent=4), encoding="utf-8")
                tmp.replace(path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save '{path.name}': {e}") from e
        logger.debug("Saved %s", path)

    def _read_json(self, path: Path) -> Optional[Any]:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to load '{path.name}': {e}") from e

    def _scan(self, pattern) -> List[Tuple[int, int]]:
        if not self.root.exists():
            return []
        keys = []
        for path in sorted(self.root.iterdir()):
            match = pattern.match(path.name)
            if match:
                keys.append((int(match.group(1)), int(match.group(2))))
        return keys
