"""
Wiring of one set of core components.

Everything is constructed once per process (or per test) and passed around
explicitly; there are no module-level singletons.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .catalog import ExamCatalog
from .errors import ExamCoreError
from .grader import Grader
from .models import ExamConfig
from .registry import SessionRegistry
from .results import ResultStore, result_from_dict
from .store import JsonStore

logger = logging.getLogger(__name__)


@dataclass
class ExamServices:
    config: ExamConfig
    catalog: ExamCatalog
    store: JsonStore
    registry: SessionRegistry
    results: ResultStore
    grader: Grader

    @staticmethod
    def build(
        config: ExamConfig,
        catalog: Optional[ExamCatalog] = None,
        base_dir: Optional[Path] = None,
        secret=None,
        clock: Callable[[], float] = time.monotonic
    ) -> 'ExamServices':
        """
        Construct the components for a configuration.

        Args:
            config: Validated configuration
            catalog: Catalog to use; loaded from config.catalog_file when None
            base_dir: Directory that relative paths in the config resolve against
            secret: Key or password for an encrypted catalog file
            clock: Time source for session timers
        """
        base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

        if catalog is None:
            catalog_path = base_dir / config.catalog_file
            if catalog_path.exists():
                catalog = ExamCatalog.load(catalog_path, secret)
            else:
                logger.warning("Exam catalog '%s' not found. Starting with an empty catalog.", catalog_path)
                catalog = ExamCatalog()

        store = JsonStore(base_dir / config.data_dir, config.event_log)
        registry = SessionRegistry(catalog, store, clock)
        results = ResultStore()
        grader = Grader(catalog, registry, results, store, config)

        services = ExamServices(config, catalog, store, registry, results, grader)
        services.restore_results()
        return services

    def restore_results(self) -> int:
        """Load persisted results into the result store; bad records are skipped."""
        restored = 0
        for student_id, exam_id in self.store.result_keys():
            try:
                record = self.store.load_result(student_id, exam_id)
                if record is None:
                    continue
                self.results.add(result_from_dict(record))
                restored += 1
            except ExamCoreError as e:
                logger.error("Skipping unreadable result for student %s, exam %s: %s", student_id, exam_id, e)
        if restored:
            logger.info("Restored %d results from %s", restored, self.store.root)
        return restored

    def recover_sessions(self) -> int:
        """Bring every persisted session into the registry."""
        recovered = 0
        for student_id, exam_id in self.store.session_keys():
            try:
                self.registry.get(student_id, exam_id)
                recovered += 1
            except ExamCoreError as e:
                logger.error("Could not recover session for student %s, exam %s: %s", student_id, exam_id, e)
        return recovered
