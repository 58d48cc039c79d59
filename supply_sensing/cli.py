"""
Supply Sensing — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action (run the pipeline, summarize a report, ...).
  5. Report result to stdout.

Install and run::

    pip install -e .
    supply-sensing --help
    supply-sensing validate-config
    supply-sensing run --input-dir data/input
    supply-sensing run --snapshot data/input/snapshot.json --dry-run
    supply-sensing summarize --rollup-file data/outputs/rollup_20260302T091504Z.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="supply-sensing",
    help="Supply sensing — event-driven supply risk scoring and triage (advisory only).",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from supply_sensing.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config; ``debug`` forces DEBUG level."""
    from supply_sensing.utils.logging import configure_logging
    configure_logging(config.logging, debug=config.debug)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Input dir:        {config.data.input_dir}")
    typer.echo(f"  Snapshot file:    {config.data.snapshot_file or '-'}")
    typer.echo(f"  Output dir:       {config.data.output_dir}")
    typer.echo(
        "  Outputs:          "
        f"csv={config.output.write_csv} json={config.output.write_json} "
        f"parquet={config.output.write_parquet}"
    )
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("run")
def run(
    input_dir: Optional[str] = typer.Option(
        None,
        "--input-dir",
        help="Directory of table CSVs. Overrides config.data.input_dir.",
    ),
    snapshot: Optional[str] = typer.Option(
        None,
        "--snapshot",
        help="Merged JSON snapshot with all six tables. Takes precedence over --input-dir.",
    ),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output-dir",
        help="Report directory. Overrides config.data.output_dir.",
    ),
    run_id: Optional[str] = typer.Option(
        None,
        "--run-id",
        help="Run identifier to stamp on every row (default: RUN-<utc timestamp>).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Compute and print the summary without writing any files.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Expand, score and roll up the input tables, then write reports.

    \b
    Steps:
      1. Load events, sites, deps, bom, exposure, inventory.
      2. Expand event × site × material × product × market and score each row.
      3. Roll up to one row per event × site × material (worst case).
      4. Write recommendations_* and rollup_* files (CSV / JSON / Parquet).

    Recommendations are triage guidance for planners; nothing is auto-executed.
    """
    from supply_sensing.pipeline.recommend import RecommendStage
    from supply_sensing.reporting.formatters import format_level_counts, format_rollup_summary

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    stage = RecommendStage(config=config, output_dir=output_dir, write_manifest=not dry_run)
    try:
        result = stage.run(
            run_id=run_id,
            input_dir=input_dir,
            snapshot_file=snapshot,
            dry_run=dry_run,
        )
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    rows = [r.model_dump(mode="json") for r in stage.last_rows]
    rollups = [r.model_dump(mode="json") for r in stage.last_rollups]

    typer.echo(f"run {result.run_id} | status={result.status}")
    typer.echo(f"  inputs: {result.input_counts}")
    typer.echo(format_level_counts(rows, "recommendations"))
    typer.echo(format_level_counts(rollups, "rollups"))
    typer.echo("")
    typer.echo(format_rollup_summary(rollups, top_n=config.output.top_n))
    typer.echo("")

    if dry_run:
        typer.echo("[DRY RUN] No files written.")
        return

    for path in result.output_files:
        typer.echo(f"  wrote {path}")
    typer.echo("[OK] Run complete.")


@app.command("summarize")
def summarize(
    rollup_file: str = typer.Option(
        ...,
        "--rollup-file",
        help="Path to a rollup_*.json file written by 'run'.",
    ),
    top_n: Optional[int] = typer.Option(
        None,
        "--top",
        help="Rows to show. Defaults to config.output.top_n.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Print the highest-risk rollups from a previously written report."""
    from supply_sensing.reporting.formatters import format_level_counts, format_rollup_summary

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    path = Path(rollup_file)
    if not path.exists():
        typer.echo(f"[ERROR] Rollup file not found: {path}", err=True)
        raise typer.Exit(code=1)

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        typer.echo(f"[ERROR] JSON parse error: {exc}", err=True)
        raise typer.Exit(code=1)

    rollups = payload.get("rollups") if isinstance(payload, dict) else None
    if not isinstance(rollups, list):
        typer.echo("[ERROR] Rollup file must contain a 'rollups' array.", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_level_counts(rollups, "rollups"))
    typer.echo("")
    typer.echo(
        format_rollup_summary(
            rollups,
            top_n=top_n or config.output.top_n,
            run_id=str(payload.get("run_id", "")),
        )
    )


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
