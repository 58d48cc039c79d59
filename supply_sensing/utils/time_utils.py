"""
Time helpers: timezone-aware "now" and run identifiers.

Every pipeline execution is tagged with one run identifier of the form
``RUN-<ISO-8601 UTC timestamp>`` so rows and reports from the same run can
be traced back together.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

RUN_ID_PREFIX = "RUN-"


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def make_run_id(now: Optional[datetime] = None) -> str:
    """Build a run identifier such as ``RUN-2026-03-02T09:15:04.123Z``.

    Args:
        now: Timestamp to encode; defaults to ``utcnow()``. Naive datetimes
            are assumed to be UTC.

    Returns:
        Run identifier string.
    """
    if now is None:
        now = utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return RUN_ID_PREFIX + stamp.replace("+00:00", "Z")


def file_stamp(now: Optional[datetime] = None) -> str:
    """Filesystem-safe timestamp for report file names, e.g. ``20260302T091504Z``."""
    if now is None:
        now = utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
