"""
Run metadata — the audit record for one pipeline execution.

Every run records its ``run_id`` (stamped on every output row), the
``config_snapshot`` (full ``AppConfig`` as a dict) and the input table
sizes, so a run's reports can be traced back to exactly what produced them.

``RunMetadata`` is the only model that is NOT frozen — ``status``,
``rows_processed``, ``rollup_rows``, ``output_files``, ``error_message`` and
``finished_at`` are updated as the stage executes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

VALID_PIPELINE_STAGES = frozenset({"recommend"})
VALID_RUN_STATUSES = frozenset({"started", "success", "failed"})


class RunMetadata(BaseModel):
    """Pipeline execution audit record.

    Attributes:
        run_id: ``RUN-<timestamp>`` identifier stamped on every output row.
        pipeline_stage: Which stage produced this run record.
        status: Current execution status.
        config_snapshot: Full ``AppConfig.model_dump()`` at run start time.
        input_counts: Row count per input table.
        rows_processed: Recommendation rows produced.
        rollup_rows: Rollup rows produced.
        output_files: Paths of report files written by the run.
        error_message: Error description if ``status == "failed"``.
        started_at: UTC datetime when the run began.
        finished_at: UTC datetime when the run completed or failed.
    """

    # Not frozen: status and counters are updated during execution
    model_config = ConfigDict(frozen=False)

    run_id: str
    pipeline_stage: str
    status: str = "started"
    config_snapshot: dict[str, Any]
    input_counts: dict[str, int] = {}
    rows_processed: int = 0
    rollup_rows: int = 0
    output_files: list[str] = []
    error_message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

    @field_validator("pipeline_stage")
    @classmethod
    def validate_pipeline_stage(cls, v: str) -> str:
        if v not in VALID_PIPELINE_STAGES:
            raise ValueError(
                f"Unknown pipeline_stage '{v}'. Must be one of {sorted(VALID_PIPELINE_STAGES)}."
            )
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in VALID_RUN_STATUSES:
            raise ValueError(
                f"Unknown status '{v}'. Must be one of {sorted(VALID_RUN_STATUSES)}."
            )
        return v
