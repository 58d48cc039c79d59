"""
supply_sensing.reporting — report files and terminal summaries.

Modules:
  export     — CSV / JSON / Parquet flat-file export helpers.
  writer     — Writes one run's recommendation and rollup reports.
  formatters — ASCII terminal formatters for Typer CLI commands.
"""
