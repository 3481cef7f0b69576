"""Tests for FileExporter."""

import json

import pytest

from predictionio import FileExporter, InvalidArgumentError

from conftest import FIXED_TIME


def read_lines(path):
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f]


class TestFileExporter:
    """Test exporting events for batch import."""

    def test_writes_one_event_per_line(self, tmp_path, clock):
        """Test each event becomes a JSON line."""
        path = tmp_path / "events.json"
        with FileExporter(path, clock=clock) as exporter:
            exporter.set_user("u1", {"age": 31})
            exporter.record_user_action_on_item("buy", "u1", "i1")
            assert exporter.count == 2

        assert exporter.closed
        lines = read_lines(path)
        assert lines[0] == {
            "event": "$set",
            "entityType": "user",
            "entityId": "u1",
            "eventTime": FIXED_TIME.isoformat(),
            "properties": {"age": 31},
        }
        assert lines[1]["targetEntityId"] == "i1"

    def test_explicit_event_time(self, tmp_path):
        """Test a supplied eventTime is written unchanged."""
        path = tmp_path / "events.json"
        with FileExporter(path) as exporter:
            record = exporter.create_event(
                "rate", "user", "u1", {"rating": 4}, event_time="2015-01-01T00:00:00Z"
            )

        assert record["eventTime"] == "2015-01-01T00:00:00Z"
        assert read_lines(path) == [record]

    def test_unset_validation(self, tmp_path):
        """Test unset rules apply to exported events too."""
        with FileExporter(tmp_path / "events.json") as exporter:
            with pytest.raises(InvalidArgumentError):
                exporter.unset_item("i1", {})
            assert exporter.count == 0

    def test_close_twice(self, tmp_path):
        """Test closing is idempotent."""
        exporter = FileExporter(tmp_path / "events.json")
        exporter.close()
        exporter.close()
        assert exporter.closed
