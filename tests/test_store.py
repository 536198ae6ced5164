"""Tests for JSON persistence and the session event log."""

import re
import pytest
from unittest.mock import patch

from examcore.errors import PersistenceError
from examcore.store import JsonStore


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path / "data")


class TestRecords:

    def test_session_round_trip(self, store):
        record = {"studentID": 7, "examID": 1000, "finished": True, "answers": {"1": "A"}}
        store.save_session(record)

        assert store.load_session(7, 1000) == record
        assert store.session_path(7, 1000).name == "session_7_1000.json"

    def test_missing_record_is_none(self, store):
        assert store.load_session(1, 2) is None
        assert store.load_result(1, 2) is None
        assert store.load_report(1) is None

    def test_result_and_report_files(self, store):
        store.save_result({"studentID": 7, "examID": 1000, "score": 50, "examType": "MCQ"})
        store.save_report({"studentID": 7, "averageScore": 50.0, "results": []})

        assert store.result_path(7, 1000).exists()
        assert store.load_report(7)["averageScore"] == 50.0

    def test_key_listing(self, store):
        store.save_session({"studentID": 2, "examID": 1001})
        store.save_session({"studentID": 1, "examID": 1000})
        store.save_result({"studentID": 1, "examID": 1000})
        store.save_report({"studentID": 1})

        assert store.session_keys() == [(1, 1000), (2, 1001)]
        assert store.result_keys() == [(1, 1000)]

    def test_key_listing_without_directory(self, tmp_path):
        assert JsonStore(tmp_path / "missing").session_keys() == []

    def test_no_temp_files_left(self, store):
        store.save_session({"studentID": 7, "examID": 1000})

        assert [p.name for p in store.root.iterdir()] == ["session_7_1000.json"]

    def test_corrupt_record(self, store):
        store.root.mkdir(parents=True)
        store.session_path(7, 1000).write_text("{broken", encoding="utf-8")

        with pytest.raises(PersistenceError):
            store.load_session(7, 1000)

    def test_write_failure_wrapped(self, store):
        with patch("pathlib.Path.write_text", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError):
                store.save_session({"studentID": 7, "examID": 1000})

    def test_unserializable_record(self, store):
        with pytest.raises(PersistenceError):
            store.save_session({"studentID": 7, "examID": 1000, "answers": object()})


class TestEventLog:

    def test_log_format(self, store):
        store.log("EXAM_START", "Student: 7, Exam: 1000")
        store.log("EXAM_FINISH")

        lines = store.log_path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert re.match(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] - EXAM_START - Student: 7, Exam: 1000$", lines[0])
        assert lines[1].endswith("] - EXAM_FINISH")

    def test_custom_log_name(self, tmp_path):
        store = JsonStore(tmp_path, event_log="events.log")
        store.log("PING")

        assert (tmp_path / "events.log").exists()
