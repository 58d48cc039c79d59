"""
Report writer: persists one run's recommendation and rollup rows.

Output files (written by ``RecommendStage``)
---------------------------------------------
  <output_dir>/
    recommendations_{stamp}.csv      -- every expanded row
    recommendations_{stamp}.json     -- same rows with run metadata
    recommendations_{stamp}.parquet  -- optional, typed columns
    rollup_{stamp}.csv               -- one row per event/site/material
    rollup_{stamp}.json

Rows are written in engine output order; no re-sorting happens here.
"""

from __future__ import annotations

import logging
from pathlib import Path

from supply_sensing.models.outputs import RecommendationRow, RollupRow
from supply_sensing.reporting.export import export_to_csv, export_to_json, export_to_parquet

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "v1"

RECOMMENDATION_COLUMNS: list[str] = list(RecommendationRow.model_fields)
ROLLUP_COLUMNS: list[str] = list(RollupRow.model_fields)


def write_recommendation_outputs(
    rows:          list[RecommendationRow],
    rollups:       list[RollupRow],
    output_dir:    Path,
    run_id:        str,
    stamp:         str,
    write_csv:     bool = True,
    write_json:    bool = True,
    write_parquet: bool = False,
) -> list[Path]:
    """Write recommendation and rollup reports for one run.

    Args:
        rows:          Output of ``build_recommendation_rows()``.
        rollups:       Output of ``rollup_recommendations()``.
        output_dir:    Target directory (created if missing).
        run_id:        Run identifier, recorded in the JSON payloads.
        stamp:         File name timestamp, e.g. ``20260302T091504Z``.
        write_csv:     Write the CSV files.
        write_json:    Write the JSON files.
        write_parquet: Write the recommendations Parquet file.

    Returns:
        Paths of every file written, in write order.
    """
    rec_records = [r.model_dump(mode="json") for r in rows]
    roll_records = [r.model_dump(mode="json") for r in rollups]
    written: list[Path] = []

    if write_csv:
        written.append(export_to_csv(
            rec_records, output_dir / f"recommendations_{stamp}.csv", RECOMMENDATION_COLUMNS
        ))
        written.append(export_to_csv(
            roll_records, output_dir / f"rollup_{stamp}.csv", ROLLUP_COLUMNS
        ))

    if write_json:
        written.append(export_to_json(
            _payload(run_id, "recommendations", rec_records),
            output_dir / f"recommendations_{stamp}.json",
        ))
        written.append(export_to_json(
            _payload(run_id, "rollups", roll_records),
            output_dir / f"rollup_{stamp}.json",
        ))

    if write_parquet:
        written.append(export_to_parquet(
            rec_records, output_dir / f"recommendations_{stamp}.parquet"
        ))

    logger.info(
        "Reports written to %s: %d file(s) | rows=%d rollups=%d",
        output_dir, len(written), len(rows), len(rollups),
    )
    return written


def _payload(run_id: str, key: str, records: list[dict]) -> dict:
    return {
        "schema_version": SCHEMA_VERSION,
        "run_id":         run_id,
        "row_count":      len(records),
        key:              records,
    }
