"""
Tests for supply_sensing.utils — run identifiers and logging setup.

Covers:
  - make_run_id(): RUN- prefix, millisecond precision, Z suffix, naive input
  - file_stamp(): compact filesystem-safe format
  - configure_logging(): level, file handler, JSON line format with extras
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from supply_sensing.config import LoggingConfig
from supply_sensing.utils.logging import configure_logging, resolve_level
from supply_sensing.utils.time_utils import file_stamp, make_run_id, utcnow


# ── time_utils ────────────────────────────────────────────────────────────────

class TestRunIds:
    def test_run_id_format(self):
        now = datetime(2026, 3, 2, 9, 15, 4, 123456, tzinfo=timezone.utc)
        assert make_run_id(now) == "RUN-2026-03-02T09:15:04.123Z"

    def test_naive_datetime_treated_as_utc(self):
        assert make_run_id(datetime(2026, 1, 1)) == "RUN-2026-01-01T00:00:00.000Z"

    def test_other_timezone_converted(self):
        cet = timezone(timedelta(hours=1))
        now = datetime(2026, 1, 1, 1, 0, tzinfo=cet)
        assert make_run_id(now) == "RUN-2026-01-01T00:00:00.000Z"

    def test_default_uses_now(self):
        run_id = make_run_id()
        assert run_id.startswith("RUN-")
        assert run_id.endswith("Z")

    def test_file_stamp(self):
        now = datetime(2026, 3, 2, 9, 15, 4, tzinfo=timezone.utc)
        assert file_stamp(now) == "20260302T091504Z"

    def test_utcnow_is_aware(self):
        assert utcnow().tzinfo is not None


# ── logging ───────────────────────────────────────────────────────────────────

@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    def test_level_and_file(self, tmp_path, restore_root_logging):
        log_file = tmp_path / "logs" / "run.log"
        configure_logging(LoggingConfig(level="WARNING", log_file=str(log_file)))

        logger = logging.getLogger("supply_sensing.test")
        logger.info("hidden")
        logger.warning("shown")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert logging.getLogger().level == logging.WARNING
        text = log_file.read_text(encoding="utf-8")
        assert "shown" in text
        assert "hidden" not in text

    def test_json_lines(self, tmp_path, restore_root_logging):
        log_file = tmp_path / "run.jsonl"
        configure_logging(LoggingConfig(log_file=str(log_file), json_format=True))

        logging.getLogger("supply_sensing.test").info(
            "rows=%d", 5, extra={"run_id": "RUN-x"}
        )
        for handler in logging.getLogger().handlers:
            handler.flush()

        record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert record["level"] == "INFO"
        assert record["logger"] == "supply_sensing.test"
        assert record["msg"] == "rows=5"
        assert record["run_id"] == "RUN-x"
        assert "args" not in record

    def test_json_timestamp_has_millis(self, tmp_path, restore_root_logging):
        log_file = tmp_path / "run.jsonl"
        configure_logging(LoggingConfig(log_file=str(log_file), json_format=True))

        logging.getLogger("supply_sensing.test").info("tick")
        for handler in logging.getLogger().handlers:
            handler.flush()

        record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert len(record["ts"]) == len("2026-03-02T09:00:00.000Z")
        assert record["ts"].endswith("Z")

    def test_debug_overrides_configured_level(self, tmp_path, restore_root_logging):
        log_file = tmp_path / "debug.log"
        configure_logging(
            LoggingConfig(level="WARNING", log_file=str(log_file)), debug=True
        )

        logging.getLogger("supply_sensing.test").debug("detail")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert logging.getLogger().level == logging.DEBUG
        assert "detail" in log_file.read_text(encoding="utf-8")


class TestResolveLevel:
    def test_configured_level(self):
        assert resolve_level(LoggingConfig(level="ERROR")) == logging.ERROR

    def test_debug_wins(self):
        assert resolve_level(LoggingConfig(level="ERROR"), debug=True) == logging.DEBUG
