"""Tests for structured logging and the statistics observer."""

from __future__ import annotations

import json
import logging
import logging.handlers

import pytest

from habitpulse.config import TestingConfig
from habitpulse.logging_config import JSONFormatter, get_logger, setup_logging
from habitpulse.observability import LoggingObserver, RecordingObserver, StatsEvent


def _snapshot_record(level=logging.INFO, msg="Snapshot stored", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="habitpulse.snapshots",
        level=level,
        pathname="snapshots.py",
        lineno=118,
        msg=msg,
        args=(),
        exc_info=exc_info,
        func="snapshot_user",
    )


def _as_json(record: logging.LogRecord) -> dict:
    return json.loads(JSONFormatter().format(record))


class TestJSONFormatter:
    def test_core_fields(self):
        entry = _as_json(_snapshot_record())

        assert entry["level"] == "INFO"
        assert entry["logger"] == "habitpulse.snapshots"
        assert entry["message"] == "Snapshot stored"
        assert entry["module"] == "snapshots"
        assert entry["function"] == "snapshot_user"
        assert entry["line"] == 118
        assert entry["timestamp"].endswith("+00:00")
        assert "extra" not in entry
        assert "exception" not in entry

    def test_message_arguments_are_interpolated(self):
        record = _snapshot_record(msg="%d habits for %s")
        record.args = (3, "2024-01-05")
        assert _as_json(record)["message"] == "3 habits for 2024-01-05"

    def test_exception_details(self):
        try:
            raise KeyError("habit 9")
        except KeyError as exc:
            exc_info = (type(exc), exc, exc.__traceback__)

        entry = _as_json(_snapshot_record(level=logging.ERROR, msg="boom", exc_info=exc_info))

        assert entry["level"] == "ERROR"
        assert entry["exception"]["type"] == "KeyError"
        assert "habit 9" in entry["exception"]["message"]
        assert "Traceback" in entry["exception"]["traceback"]

    def test_extra_fields_are_grouped(self):
        record = _snapshot_record()
        record.user_id = 7
        record.snapshot_date = "2024-01-01"

        assert _as_json(record)["extra"] == {"user_id": 7, "snapshot_date": "2024-01-01"}


class TestSetupLogging:
    def test_writes_json_lines_under_data_dir(self, tmp_path):
        logger = setup_logging(TestingConfig(tmp_path))

        assert logger.name == "habitpulse"
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 2

        log_file = tmp_path / "logs" / "habitpulse.log"
        assert log_file.exists()

        get_logger("snapshots").warning("Snapshot skipped", extra={"habit_id": 3})
        for handler in logger.handlers:
            handler.flush()

        lines = [json.loads(line) for line in log_file.read_text().splitlines() if line.strip()]
        assert lines[0]["message"] == "Logging initialized"
        assert lines[0]["extra"]["dev_mode"] is True
        assert lines[-1]["logger"] == "habitpulse.snapshots"
        assert lines[-1]["extra"]["habit_id"] == 3

    def test_rotation_settings_come_from_config(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HABITPULSE_LOG_MAX_BYTES", "2048")
        monkeypatch.setenv("HABITPULSE_LOG_BACKUP_COUNT", "2")

        logger = setup_logging(TestingConfig(tmp_path))

        rotating = [h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
        assert len(rotating) == 1
        assert rotating[0].maxBytes == 2048
        assert rotating[0].backupCount == 2

    def test_repeated_setup_replaces_handlers(self, tmp_path):
        config = TestingConfig(tmp_path)
        first = list(setup_logging(config).handlers)
        second = setup_logging(config).handlers

        assert len(second) == 2
        assert not set(first) & set(second)

    @pytest.mark.parametrize("dev_mode,expected", [(True, logging.INFO), (False, logging.WARNING)])
    def test_console_threshold_follows_dev_mode(self, tmp_path, dev_mode, expected):
        config = TestingConfig(tmp_path)
        config.DEV_MODE = dev_mode

        handlers = setup_logging(config).handlers

        console = [h for h in handlers if not isinstance(h, logging.handlers.RotatingFileHandler)]
        assert [h.level for h in console] == [expected]


def test_get_logger_namespaces_children():
    assert get_logger("stats").name == "habitpulse.stats"
    assert get_logger("stats").parent is logging.getLogger("habitpulse")


def test_logging_observer_writes_debug_records(caplog):
    observer = LoggingObserver()
    event = StatsEvent(name="weekly.built", user_id=1, range_key="2024-01-07", fields={"habits": 3})

    with caplog.at_level(logging.DEBUG, logger="habitpulse.stats"):
        observer.emit(event)

    record = caplog.records[-1]
    assert record.levelno == logging.DEBUG
    assert record.name == "habitpulse.stats"
    assert record.event == "weekly.built"
    assert record.habits == 3


def test_recording_observer_keeps_events_in_order():
    observer = RecordingObserver()
    observer.emit(StatsEvent(name="a", user_id=1, range_key="x"))
    observer.emit(StatsEvent(name="b", user_id=1, range_key="x"))
    assert observer.names() == ["a", "b"]
