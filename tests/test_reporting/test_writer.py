"""Tests for supply_sensing.reporting.writer."""

from __future__ import annotations

import csv
import json
from pathlib import Path

from supply_sensing.recommendations.expander import build_recommendation_rows
from supply_sensing.recommendations.rollup import rollup_recommendations
from supply_sensing.reporting.writer import (
    RECOMMENDATION_COLUMNS,
    ROLLUP_COLUMNS,
    SCHEMA_VERSION,
    write_recommendation_outputs,
)

RUN = "RUN-2026-03-02T09:00:00.000Z"
STAMP = "20260302T090000Z"


def _outputs(snapshot, tmp_path: Path, **flags) -> list[Path]:
    rows = build_recommendation_rows(snapshot, run_id=RUN)
    rollups = rollup_recommendations(rows)
    return write_recommendation_outputs(
        rows, rollups, output_dir=tmp_path, run_id=RUN, stamp=STAMP, **flags
    )


def test_default_files(tmp_path: Path, fanout_snapshot) -> None:
    """CSV and JSON for both row kinds; no Parquet unless asked."""
    written = _outputs(fanout_snapshot, tmp_path)
    assert [p.name for p in written] == [
        f"recommendations_{STAMP}.csv",
        f"rollup_{STAMP}.csv",
        f"recommendations_{STAMP}.json",
        f"rollup_{STAMP}.json",
    ]


def test_csv_columns_and_order(tmp_path: Path, fanout_snapshot) -> None:
    _outputs(fanout_snapshot, tmp_path)
    with (tmp_path / f"recommendations_{STAMP}.csv").open(encoding="utf-8") as f:
        reader = csv.DictReader(f)
        rows = list(reader)
    assert reader.fieldnames == RECOMMENDATION_COLUMNS
    assert [r["rec_id"] for r in rows][:2] == ["REC-E1-S1-M1-P1-DE", "REC-E1-S1-M1-P1-FR"]
    assert rows[0]["risk_level"] == "HIGH"
    assert rows[0]["auto_override_ready"] == "False"


def test_rollup_csv_columns(tmp_path: Path, fanout_snapshot) -> None:
    _outputs(fanout_snapshot, tmp_path)
    with (tmp_path / f"rollup_{STAMP}.csv").open(encoding="utf-8") as f:
        reader = csv.DictReader(f)
        rows = list(reader)
    assert reader.fieldnames == ROLLUP_COLUMNS
    assert len(rows) == 3
    assert rows[0]["impacted_markets"] == "DE, FR"


def test_json_payloads(tmp_path: Path, fanout_snapshot) -> None:
    _outputs(fanout_snapshot, tmp_path)
    recs = json.loads((tmp_path / f"recommendations_{STAMP}.json").read_text(encoding="utf-8"))
    rolls = json.loads((tmp_path / f"rollup_{STAMP}.json").read_text(encoding="utf-8"))

    assert recs["schema_version"] == SCHEMA_VERSION
    assert recs["run_id"] == RUN
    assert recs["row_count"] == 5
    assert recs["recommendations"][1]["next_po_eta_days"] is None
    assert rolls["row_count"] == 3
    assert rolls["rollups"][0]["rollup_id"] == "ROLL-E1-S1-M1"


def test_parquet_only(tmp_path: Path, eu_snapshot) -> None:
    written = _outputs(
        eu_snapshot, tmp_path, write_csv=False, write_json=False, write_parquet=True
    )
    assert [p.name for p in written] == [f"recommendations_{STAMP}.parquet"]
    assert written[0].exists()


def test_nothing_requested(tmp_path: Path, eu_snapshot) -> None:
    assert _outputs(eu_snapshot, tmp_path, write_csv=False, write_json=False) == []


def test_empty_run_still_writes_headers(tmp_path: Path) -> None:
    write_recommendation_outputs([], [], output_dir=tmp_path, run_id=RUN, stamp=STAMP)
    header = (tmp_path / f"rollup_{STAMP}.csv").read_text(encoding="utf-8").splitlines()[0]
    assert header.split(",") == ROLLUP_COLUMNS
