"""
Session registry: keyed store of active and recoverable exam sessions.

At most one session exists per (student, exam) key. Lookups that miss in
memory fall back to the persisted session documents, so attempts survive a
process restart.
"""

import logging
import threading
import time
from typing import Callable, Dict, List

from .catalog import ExamCatalog
from .errors import ExamCoreError, NotFoundError
from .session import ExamSession, SessionKey
from .store import JsonStore

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Owns every ExamSession created or recovered in this process."""

    def __init__(
        self,
        catalog: ExamCatalog,
        store: JsonStore,
        clock: Callable[[], float] = time.monotonic
    ):
        self.catalog = catalog
        self.store = store
        self._clock = clock
        self._sessions: Dict[SessionKey, ExamSession] = {}
        self._lock = threading.Lock()

    def start(self, student_id: int, exam_id: int) -> bool:
        """
        Create and start a session for the key.

        Returns:
            False (and logs) if a session already exists in memory for the key

        Raises:
            NotFoundError: If the exam is not in the catalog
        """
        key = (student_id, exam_id)
        with self._lock:
            if key in self._sessions:
                logger.warning("Session already exists for student %s and exam %s", student_id, exam_id)
                return False

            session = ExamSession(self.catalog, self._clock)
            session.start_exam(student_id, exam_id)
            self._sessions[key] = session

        self.store.log(
            "EXAM_START",
            f"Student: {student_id}, Exam: {exam_id}, duration: {session.timer.duration_minutes} minutes",
        )
        return True

    def get(self, student_id: int, exam_id: int) -> ExamSession:
        """
        Return the session for the key, recovering it from storage on a miss.

        Raises:
            NotFoundError: If the session is neither in memory nor persisted
        """
        key = (student_id, exam_id)
        with self._lock:
            session = self._sessions.get(key)
            if session is not None:
                return session

            record = self.store.load_session(student_id, exam_id)
            if record is None:
                raise NotFoundError(f"No session found for student {student_id} and exam {exam_id}")

            session = ExamSession.from_record(record, self.catalog, self._clock)
            if session.key != key:
                raise NotFoundError(f"Persisted session for student {student_id} and exam {exam_id} does not match its key")
            self._sessions[key] = session

        logger.info("Session for student %s and exam %s recovered from storage", student_id, exam_id)
        return session

    def end(self, student_id: int, exam_id: int) -> bool:
        """
        Finish the session for the key and persist it.

        Returns:
            True if the session transitioned to finished, False if it already was

        Raises:
            NotFoundError: If there is no such session
            PersistenceError: If saving fails; the session stays finished in memory
        """
        session = self.get(student_id, exam_id)
        with session.lock:
            if not session.finish_exam():
                return False
            self.persist(session)

        self.store.log("EXAM_FINISH", f"Student: {student_id}, Exam: {exam_id}")
        return True

    def persist(self, session: ExamSession):
        with session.lock:
            self.store.save_session(session.to_record())

    def exists(self, student_id: int, exam_id: int) -> bool:
        with self._lock:
            return (student_id, exam_id) in self._sessions

    def sessions(self) -> List[ExamSession]:
        with self._lock:
            return list(self._sessions.values())

    def save_all(self) -> int:
        """Persist every session in memory; returns how many were saved."""
        saved = 0
        for session in self.sessions():
            try:
                self.persist(session)
                saved += 1
            except ExamCoreError as e:
                logger.error("Failed to save session for student %s, exam %s: %s",
                             session.student_id, session.exam_id, e)
        logger.info("Saved %d of %d sessions", saved, len(self.sessions()))
        return saved

    def finish_expired(self) -> List[SessionKey]:
        """
        Finish every running session whose time is up.

        Nothing calls this automatically; a scheduler or poller owns the cadence.
        """
        finished = []
        for session in self.sessions():
            if session.finished or not session.is_time_expired():
                continue
            try:
                if self.end(*session.key):
                    finished.append(session.key)
            except ExamCoreError as e:
                logger.error("Failed to finish expired session for student %s, exam %s: %s",
                             session.student_id, session.exam_id, e)
        return finished
