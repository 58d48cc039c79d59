"""
RecommendStage — one batch run from input tables to report files.

Recommendation flow
-------------------
  1. Load the ``SupplyChainSnapshot`` (merged JSON snapshot if configured,
     otherwise the CSV table directory).
  2. build_recommendation_rows() → one scored row per join path, every row
     stamped with the run's ``run_id``.
  3. rollup_recommendations() → one row per (event, site, material).
  4. Write CSV / JSON / Parquet reports to ``output_dir`` (skipped on dry run).

The engines in steps 2–3 are pure; all I/O and logging happens here.
``run.rows_processed`` is the recommendation row count; ``run.rollup_rows``
the rollup count. The computed rows are kept on the stage instance
(``last_rows`` / ``last_rollups``) for callers that want to display them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from supply_sensing.config import AppConfig
from supply_sensing.models.inputs import SupplyChainSnapshot
from supply_sensing.models.meta import RunMetadata
from supply_sensing.models.outputs import RecommendationRow, RollupRow
from supply_sensing.pipeline.base import PipelineStage
from supply_sensing.utils.time_utils import file_stamp

logger = logging.getLogger(__name__)


class RecommendStage(PipelineStage):
    """Expand, score and roll up one supply-chain snapshot."""

    stage_name = "recommend"

    def __init__(
        self,
        config: AppConfig,
        output_dir: str | None = None,
        write_manifest: bool = True,
    ) -> None:
        super().__init__(config, output_dir=output_dir, write_manifest=write_manifest)
        self.last_rows: list[RecommendationRow] = []
        self.last_rollups: list[RollupRow] = []

    def _execute(
        self,
        run: RunMetadata,
        snapshot: Optional[SupplyChainSnapshot] = None,
        input_dir: str | None = None,
        snapshot_file: str | None = None,
        dry_run: bool = False,
        **kwargs,
    ) -> int:
        """Run both engines and write reports.

        Args:
            run:           In-progress RunMetadata (mutable).
            snapshot:      Pre-loaded tables; skips file loading when given.
            input_dir:     Override for ``config.data.input_dir``.
            snapshot_file: Override for ``config.data.snapshot_file``.
            dry_run:       Compute everything but write no report files.

        Returns:
            Number of recommendation rows produced.
        """
        from supply_sensing.recommendations.expander import build_recommendation_rows
        from supply_sensing.recommendations.rollup import rollup_recommendations
        from supply_sensing.reporting.writer import write_recommendation_outputs

        if snapshot is None:
            snapshot = self._load_snapshot(input_dir, snapshot_file)
        run.input_counts = snapshot.table_sizes()

        rows = build_recommendation_rows(snapshot, run_id=run.run_id)
        rollups = rollup_recommendations(rows)
        run.rollup_rows = len(rollups)

        logger.info(
            "Expanded %d event(s) into %d recommendation row(s), %d rollup row(s).",
            len(snapshot.events), len(rows), len(rollups),
        )
        hit = {r.event_id for r in rows}
        unmatched = [e.event_id for e in snapshot.events if e.event_id not in hit]
        if unmatched:
            logger.debug(
                "%d event(s) produced no complete join path: %s",
                len(unmatched), ", ".join(unmatched[:20]),
            )
        if not rows and snapshot.events:
            logger.warning(
                "No join path matched: check event region/country against sites "
                "and that deps/bom/exposure keys line up."
            )

        self.last_rows = rows
        self.last_rollups = rollups

        if dry_run:
            logger.info("Dry run: no report files written.")
            return len(rows)

        out = self.config.output
        written = write_recommendation_outputs(
            rows,
            rollups,
            output_dir=self.output_dir,
            run_id=run.run_id,
            stamp=file_stamp(run.started_at),
            write_csv=out.write_csv,
            write_json=out.write_json,
            write_parquet=out.write_parquet,
        )
        run.output_files = [str(p) for p in written]
        return len(rows)

    def _load_snapshot(
        self,
        input_dir: str | None,
        snapshot_file: str | None,
    ) -> SupplyChainSnapshot:
        from supply_sensing.ingestion.tables import (
            load_snapshot_from_dir,
            load_snapshot_from_json,
        )

        data = self.config.data
        snapshot_path = snapshot_file or (None if input_dir else data.snapshot_file)
        if snapshot_path:
            return load_snapshot_from_json(Path(snapshot_path))
        return load_snapshot_from_dir(Path(input_dir or data.input_dir), data.tables)
