"""
Root logger setup for supply sensing runs.

The CLI calls ``configure_logging(config.logging, debug=config.debug)`` once
per command. Every other module only asks for ``logging.getLogger(__name__)``.
The expander and rollup engines stay silent; the stage base class logs the
``run_id`` on start, completion and failure so a run can be traced through a
shared log file. Fields passed via ``extra=`` become JSON keys.

Two line formats are available:

* text (default)::

      2026-03-02T09:00:00Z [INFO] supply_sensing.pipeline.recommend: 5 rows

* JSON lines (``[logging] json_format = true``), one object per record with
  the ``extra=`` fields merged in::

      {"ts": "2026-03-02T09:00:00.000Z", "level": "INFO",
       "logger": "supply_sensing.pipeline.recommend", "msg": "5 rows",
       "rows": 5}

``debug = true`` in config (or ``SUPPLY_SENSING_DEBUG=1``) forces DEBUG on
every handler regardless of ``[logging] level``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from supply_sensing.config import LoggingConfig

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Third-party loggers that are noisy at INFO.
QUIET_LOGGERS = ("pyarrow",)

_RECORD_BUILTINS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


def _utc_millis(created: float) -> str:
    stamp = datetime.fromtimestamp(created, tz=timezone.utc)
    return stamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{stamp.microsecond // 1000:03d}Z"


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Fields attached through ``extra=``; private and built-in attributes skipped."""
    return {
        key: val
        for key, val in record.__dict__.items()
        if key not in _RECORD_BUILTINS and not key.startswith("_")
    }


class JsonLineFormatter(logging.Formatter):
    """Render a record as a single JSON object (``ts``, ``level``, ``logger``, ``msg``)."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": _utc_millis(record.created),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        line.update(_extra_fields(record))
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


def resolve_level(config: "LoggingConfig", debug: bool = False) -> int:
    """Numeric level for ``config.level``; DEBUG when ``debug`` is set.

    Unknown level names fall back to INFO.
    """
    if debug:
        return logging.DEBUG
    level = logging.getLevelName(config.level.upper())
    return level if isinstance(level, int) else logging.INFO


def _make_handler(
    handler: logging.Handler, level: int, formatter: logging.Formatter
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(config: "LoggingConfig", debug: bool = False) -> None:
    """Install stdout (and optional file) handlers on the root logger.

    Args:
        config: ``[logging]`` section of ``AppConfig``.
        debug:  ``AppConfig.debug``; forces DEBUG level when true.
    """
    level = resolve_level(config, debug)
    formatter = (
        JsonLineFormatter()
        if config.json_format
        else logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)
    )

    handlers = [_make_handler(logging.StreamHandler(sys.stdout), level, formatter)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _make_handler(logging.FileHandler(log_path, encoding="utf-8"), level, formatter)
        )

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if debug:
        logging.getLogger(__name__).debug("debug logging enabled")
