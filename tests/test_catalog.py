"""
Tests for the exam catalog.

Covers authoring operations, ID allocation, snapshots and loading/saving
plain and encrypted catalog files.
"""

import json
import pytest

from examcore.catalog import ExamCatalog, FIRST_EXAM_ID
from examcore.crypto import generate_key
from examcore.errors import NotFoundError, PersistenceError, ValidationError
from examcore.models import DescriptiveQuestion, MultipleChoiceQuestion


class TestCatalogAuthoring:
    """Test creating and editing exams."""

    def test_ids_are_allocated_sequentially(self):
        cat = ExamCatalog()
        first = cat.create_exam("Maths", 60)
        second = cat.create_exam("History", 30)
        q1 = cat.add_descriptive_question(first, "Q?", "A")
        q2 = cat.add_mcq_question(second, "Pick", "B", ["x", "y"])

        assert (first, second) == (FIRST_EXAM_ID, FIRST_EXAM_ID + 1)
        assert (q1, q2) == (1, 2)

    def test_question_variants(self, catalog):
        mcq, desc = catalog.get_exam(1000), catalog.get_exam(1001)

        assert all(isinstance(q, MultipleChoiceQuestion) for q in mcq.questions)
        assert all(isinstance(q, DescriptiveQuestion) for q in desc.questions)
        assert mcq.questions[0].options == ("4", "5", "6", "7")

    @pytest.mark.parametrize("subject, duration", [("", 60), ("Maths", 0), ("Maths", -5)])
    def test_create_exam_validation(self, subject, duration):
        with pytest.raises(ValidationError):
            ExamCatalog().create_exam(subject, duration)

    def test_mcq_requires_options(self, catalog):
        with pytest.raises(ValidationError):
            catalog.add_mcq_question(1000, "Pick", "A", [])

    def test_add_question_to_unknown_exam(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.add_descriptive_question(4242, "Q?", "A")

    def test_remove_and_modify_question(self, catalog):
        catalog.modify_question(1001, 3, "Capital city of France?")
        assert catalog.get_exam(1001).questions[0].text == "Capital city of France?"

        assert catalog.remove_question(1001, 3) is True
        assert catalog.remove_question(1001, 3) is False
        assert [q.question_id for q in catalog.get_exam(1001).questions] == [4]

    def test_delete_exam(self, catalog):
        assert catalog.delete_exam(1000) is True
        assert catalog.has_exam(1000) is False
        with pytest.raises(NotFoundError):
            catalog.get_exam(1000)


class TestCatalogLookups:
    """Test the read interface used by sessions and the grader."""

    def test_snapshot_unaffected_by_later_edits(self, catalog):
        snapshot = catalog.get_question_snapshot(1000)
        catalog.add_mcq_question(1000, "New", "C", ["a", "b", "c"])

        assert len(snapshot) == 2
        assert len(catalog.get_question_snapshot(1000)) == 3

    def test_unknown_exam_snapshot(self, catalog):
        with pytest.raises(NotFoundError):
            catalog.get_question_snapshot(9999)

    def test_duration_and_subject(self, catalog):
        assert catalog.exam_duration(1000) == 60
        assert catalog.exam_subject(1001) == "History"


class TestCatalogFiles:
    """Test loading and saving catalog files."""

    def test_plain_round_trip(self, catalog, tmp_path):
        path = tmp_path / "exams.json"
        catalog.save(path)
        loaded = ExamCatalog.load(path)

        assert loaded.to_list() == catalog.to_list()
        assert json.loads(path.read_text(encoding="utf-8"))[0]["examID"] == 1000

    def test_counters_continue_after_load(self, catalog, tmp_path):
        path = tmp_path / "exams.json"
        catalog.save(path)
        loaded = ExamCatalog.load(path)

        assert loaded.create_exam("Physics", 45) == 1002
        assert loaded.add_descriptive_question(1002, "F = ?", "ma") == 5

    def test_key_file_encryption(self, catalog, tmp_path):
        key = generate_key()
        path = tmp_path / "exams.enc"
        catalog.save(path, secret=key)

        assert b"Mathematics" not in path.read_bytes()
        assert ExamCatalog.load(path, secret=key).to_list() == catalog.to_list()

    def test_password_encryption(self, catalog, tmp_path):
        path = tmp_path / "exams.enc"
        catalog.save(path, secret="correct horse", use_password=True)

        assert path.read_bytes().startswith(b"SALT")
        assert ExamCatalog.load(path, secret="correct horse").to_list() == catalog.to_list()

    def test_wrong_key_fails(self, catalog, tmp_path):
        path = tmp_path / "exams.enc"
        catalog.save(path, secret=generate_key())

        with pytest.raises(PersistenceError):
            ExamCatalog.load(path, secret=generate_key())

    def test_missing_file(self, tmp_path):
        with pytest.raises(PersistenceError):
            ExamCatalog.load(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "exams.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(PersistenceError):
            ExamCatalog.load(path)

    def test_duplicate_exam_ids_rejected(self, tmp_path):
        entry = {"examID": 1000, "subject": "Maths", "duration": 60, "questions": []}
        path = tmp_path / "exams.json"
        path.write_text(json.dumps([entry, entry]), encoding="utf-8")

        with pytest.raises(ValidationError):
            ExamCatalog.load(path)

    def test_catalog_must_be_a_list(self):
        with pytest.raises(ValidationError):
            ExamCatalog.from_list({"examID": 1000})
