"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local overrides (gitignored)
  4. Environment variables        — ``SUPPLY_SENSING_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Pipeline stages and CLI commands receive an ``AppConfig`` instance — never
raw dicts or individual env var lookups scattered through the codebase.

Scoring weights and risk thresholds are NOT configuration; they are fixed
policy constants in ``supply_sensing.recommendations.scorer``.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class TableFilesConfig(BaseModel):
    """CSV file name for each input table, relative to ``DataConfig.input_dir``."""

    model_config = ConfigDict(frozen=True)

    events: str = "events.csv"
    sites: str = "sites.csv"
    dependencies: str = "deps.csv"
    bom: str = "bom.csv"
    exposure: str = "exposure.csv"
    inventory: str = "inventory.csv"


class DataConfig(BaseModel):
    """Filesystem paths for input tables and generated reports.

    When ``snapshot_file`` is set it takes precedence over the CSV directory.
    """

    model_config = ConfigDict(frozen=True)

    input_dir: str = "data/input"
    snapshot_file: Optional[str] = None
    output_dir: str = "data/outputs"
    tables: TableFilesConfig = TableFilesConfig()


class OutputConfig(BaseModel):
    """Which report files to write, and how much to print."""

    model_config = ConfigDict(frozen=True)

    write_csv: bool = True
    write_json: bool = True
    write_parquet: bool = False
    top_n: int = 10

    @field_validator("top_n")
    @classmethod
    def validate_top_n(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"top_n must be >= 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/supply_sensing.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + env vars.
    ``AppConfig()`` with no arguments is a valid all-defaults config.
    """

    model_config = ConfigDict(frozen=True)

    data: DataConfig = DataConfig()
    output: OutputConfig = OutputConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply SUPPLY_SENSING_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply SUPPLY_SENSING_* env vars to the raw config dict.

    Supported overrides:
      SUPPLY_SENSING_INPUT_DIR   → raw["data"]["input_dir"]
      SUPPLY_SENSING_OUTPUT_DIR  → raw["data"]["output_dir"]
      SUPPLY_SENSING_LOG_LEVEL   → raw["logging"]["level"]
      SUPPLY_SENSING_DEBUG       → raw["debug"]
    """
    if input_dir := os.environ.get("SUPPLY_SENSING_INPUT_DIR"):
        raw.setdefault("data", {})["input_dir"] = input_dir

    if output_dir := os.environ.get("SUPPLY_SENSING_OUTPUT_DIR"):
        raw.setdefault("data", {})["output_dir"] = output_dir

    if log_level := os.environ.get("SUPPLY_SENSING_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("SUPPLY_SENSING_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})
    data = dict(raw.get("data", {}))
    tables = TableFilesConfig(**data.pop("tables", {}))

    return AppConfig(
        data=DataConfig(tables=tables, **data),
        output=OutputConfig(**raw.get("output", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
