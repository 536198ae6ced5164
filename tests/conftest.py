"""
Shared fixtures for the exam core tests.

Provides a controllable clock, a small catalog with one multiple-choice and
one descriptive exam, and fully wired services rooted in a temp directory.
"""

import pytest
from pathlib import Path

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from examcore.catalog import ExamCatalog
from examcore.models import ExamConfig
from examcore.services import ExamServices


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def catalog():
    """Catalog with exam 1000 (two MCQ) and exam 1001 (two descriptive)."""
    cat = ExamCatalog()
    mcq_exam = cat.create_exam("Mathematics", 60)
    cat.add_mcq_question(mcq_exam, "2 + 2 = ?", "A", ["4", "5", "6", "7"])
    cat.add_mcq_question(mcq_exam, "3 * 3 = ?", "B", ["6", "9", "12", "3"])

    desc_exam = cat.create_exam("History", 30)
    cat.add_descriptive_question(desc_exam, "Capital of France?", "Paris")
    cat.add_descriptive_question(desc_exam, "Year the Berlin wall fell?", "1989")
    return cat


@pytest.fixture
def config():
    return ExamConfig.default()


@pytest.fixture
def services(tmp_path, catalog, config, clock):
    return ExamServices.build(config, catalog=catalog, base_dir=tmp_path, clock=clock)
