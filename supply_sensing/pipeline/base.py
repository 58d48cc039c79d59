"""
Abstract base class for pipeline stages.

Every stage follows the same contract:
  1. Receive ``AppConfig`` at construction.
  2. ``run(**kwargs)`` is the sole public API.
  3. ``run()`` creates a ``RunMetadata`` record (with a fresh ``run_id``
     unless the caller supplies one), calls ``_execute()``, and writes the
     finalized record as a JSON run manifest.
  4. ``_execute()`` is the stage-specific implementation.

Stages never swallow exceptions: a failure is recorded on the run record,
the manifest is written, and the exception is re-raised.

Usage::

    class MyStage(PipelineStage):
        stage_name = "recommend"

        def _execute(self, run: RunMetadata, **kwargs) -> int:
            return 42

    run = MyStage(config=app_config).run()
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from supply_sensing.config import AppConfig
from supply_sensing.models.meta import RunMetadata
from supply_sensing.utils.time_utils import file_stamp, make_run_id, utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Abstract base for pipeline stages.

    Subclasses must:
      1. Set ``stage_name`` class variable.
      2. Implement ``_execute(run, **kwargs) -> int``.

    Attributes:
        stage_name: Identifier matching a valid ``RunMetadata.pipeline_stage``.
        config: The application configuration for this run.
        output_dir: Where reports and the run manifest are written.
        write_manifest: Set ``False`` to skip the manifest (dry runs, tests).
    """

    stage_name: str  # Override in subclass

    def __init__(
        self,
        config: AppConfig,
        output_dir: str | None = None,
        write_manifest: bool = True,
    ) -> None:
        self.config = config
        self.output_dir = Path(output_dir or config.data.output_dir)
        self.write_manifest = write_manifest

    def run(self, run_id: Optional[str] = None, **kwargs) -> RunMetadata:
        """Execute this pipeline stage.

        Args:
            run_id: Externally supplied run identifier; generated when ``None``.
            **kwargs: Stage-specific keyword arguments passed to ``_execute()``.

        Returns:
            ``RunMetadata`` with final ``status``, ``rows_processed`` and
            ``finished_at`` set.

        Raises:
            Exception: Re-raises any exception from ``_execute()`` after
                recording ``status='failed'``.
        """
        started = utcnow()
        run = RunMetadata(
            run_id=run_id or make_run_id(started),
            pipeline_stage=self.stage_name,
            config_snapshot=self.config.model_dump(),
            started_at=started,
        )
        logger.info("Stage [%s] starting | run_id=%s", self.stage_name, run.run_id)

        try:
            rows = self._execute(run=run, **kwargs)
            run.status = "success"
            run.rows_processed = rows
            run.finished_at = utcnow()
            logger.info(
                "Stage [%s] completed | rows=%d | run_id=%s",
                self.stage_name, rows, run.run_id,
            )

        except Exception as exc:
            run.status = "failed"
            run.error_message = str(exc)
            run.finished_at = utcnow()
            logger.error(
                "Stage [%s] FAILED: %s | run_id=%s",
                self.stage_name, exc, run.run_id,
            )
            self._persist_run(run)
            raise

        self._persist_run(run)
        return run

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Stage-specific implementation.

        Args:
            run: The in-progress ``RunMetadata`` record (mutable).
            **kwargs: Stage-specific parameters.

        Returns:
            Integer count of rows produced.
        """
        ...

    def _persist_run(self, run: RunMetadata) -> Optional[Path]:
        """Write the run record to ``<output_dir>/runs/run_<stamp>.json``.

        Logs errors rather than raising — a manifest write failure should not
        mask the original pipeline error.

        Returns:
            Path written, or ``None`` when skipped or failed.
        """
        if not self.write_manifest:
            return None
        try:
            runs_dir = self.output_dir / "runs"
            runs_dir.mkdir(parents=True, exist_ok=True)
            path = runs_dir / f"run_{file_stamp(run.started_at)}.json"
            path.write_text(
                json.dumps(run.model_dump(mode="json"), indent=2, default=str),
                encoding="utf-8",
            )
            return path
        except OSError as exc:
            logger.error(
                "Failed to write run manifest for run_id=%s: %s", run.run_id, exc
            )
            return None
