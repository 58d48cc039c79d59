"""
Table ingestion: CSV directory or merged JSON snapshot → ``SupplyChainSnapshot``.

Two input layouts are supported:

CSV directory
  One file per table with a header row (file names from ``TableFilesConfig``)::

    events.csv     event_id, event_ts, event_type, headline, source_url,
                   country, region, city, severity
    sites.csv      site_id, region, country, supplier_name, site_name
    deps.csv       site_id, material_id, material_name, criticality,
                   single_source_flag
    bom.csv        material_id, product_id, product_name, product_family
    exposure.csv   product_id, market, avg_weekly_demand_units, priority_tier
    inventory.csv  product_id | material_id, market, on_hand_days,
                   in_transit_days, safety_stock_days, lead_time_days,
                   next_po_eta_days

  The events file is required; any other missing file is read as an empty
  table (with a warning), which simply prunes every join path through it.

Merged JSON snapshot
  One object holding the six arrays. Alternate key names are accepted:
  ``deps`` / ``dependencies`` and ``bom`` / ``products``.

Row content is never rejected here — blank or non-numeric values are coerced
by the input models. Only structural problems (a table that is not a list of
objects, a non-object snapshot, a missing events file) raise.
"""

from __future__ import annotations

import csv
import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ValidationError

from supply_sensing.config import TableFilesConfig
from supply_sensing.models.inputs import (
    BomEntry,
    Dependency,
    Event,
    Exposure,
    InventoryRecord,
    Site,
    SupplyChainSnapshot,
)

logger = logging.getLogger(__name__)

# Snapshot field → accepted JSON keys, first present key wins.
TABLE_KEYS: dict[str, tuple[str, ...]] = {
    "events":       ("events",),
    "sites":        ("sites",),
    "dependencies": ("deps", "dependencies"),
    "bom":          ("bom", "products"),
    "exposure":     ("exposure",),
    "inventory":    ("inventory",),
}

_TABLE_MODELS: dict[str, type[BaseModel]] = {
    "events":       Event,
    "sites":        Site,
    "dependencies": Dependency,
    "bom":          BomEntry,
    "exposure":     Exposure,
    "inventory":    InventoryRecord,
}


def snapshot_from_mapping(data: Mapping[str, Any]) -> SupplyChainSnapshot:
    """Validate a mapping of raw tables into a ``SupplyChainSnapshot``.

    Args:
        data: Mapping with one list of row dicts per table (see ``TABLE_KEYS``).
            Absent tables are treated as empty.

    Returns:
        Validated snapshot.

    Raises:
        ValueError: If ``data`` is not a mapping, or any table is not a list
            of objects.
    """
    if not isinstance(data, Mapping):
        raise ValueError(
            f"Snapshot must be an object of tables, got {type(data).__name__}."
        )

    tables: dict[str, list[BaseModel]] = {}
    for name, keys in TABLE_KEYS.items():
        raw_rows = next((data[k] for k in keys if data.get(k) is not None), [])
        tables[name] = _validate_table(name, raw_rows)

    snapshot = SupplyChainSnapshot(**tables)
    _warn_duplicate_inventory(snapshot.inventory)
    return snapshot


def load_snapshot_from_json(path: Path) -> SupplyChainSnapshot:
    """Read a merged JSON snapshot file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is not valid JSON or has the wrong shape.
    """
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Snapshot file is not valid JSON: {path}: {exc}") from exc

    snapshot = snapshot_from_mapping(data)
    logger.info("Loaded snapshot %s | %s", path.name, snapshot.table_sizes())
    return snapshot


def load_snapshot_from_dir(
    input_dir: Path,
    files: Optional[TableFilesConfig] = None,
) -> SupplyChainSnapshot:
    """Read the six CSV tables from ``input_dir``.

    Args:
        input_dir: Directory containing the table files.
        files:     File name per table; defaults to ``TableFilesConfig()``.

    Returns:
        Validated snapshot.

    Raises:
        FileNotFoundError: If ``input_dir`` or the events file is missing.
        ValueError: If a CSV file has no header row.
    """
    files = files or TableFilesConfig()
    if not input_dir.is_dir():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")

    raw: dict[str, list[dict[str, str]]] = {}
    for name in TABLE_KEYS:
        path = input_dir / getattr(files, name)
        if not path.exists():
            if name == "events":
                raise FileNotFoundError(f"Events table not found: {path}")
            logger.warning("Table '%s' not found at %s; treating as empty.", name, path)
            raw[name] = []
            continue
        raw[name] = read_table_csv(path)

    snapshot = snapshot_from_mapping(raw)
    logger.info("Loaded tables from %s | %s", input_dir, snapshot.table_sizes())
    return snapshot


def read_table_csv(path: Path) -> list[dict[str, str]]:
    """Read one CSV table into row dicts with stripped header names.

    Columns beyond the header (ragged rows) are dropped.

    Raises:
        ValueError: If the file is empty or has no header row.
    """
    with open(path, encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise ValueError(f"CSV file is empty or has no header row: {path}")
        rows = [
            {k.strip(): v for k, v in row.items() if k is not None}
            for row in reader
        ]

    if not rows:
        logger.warning("CSV table is empty (header only): %s", path)
    return rows


# ── Private helpers ────────────────────────────────────────────────────────────

def _validate_table(name: str, raw_rows: Any) -> list[BaseModel]:
    """Validate one raw table; raise a single ValueError listing bad rows."""
    if not isinstance(raw_rows, list):
        raise ValueError(
            f"Table '{name}' must be a list of objects, got {type(raw_rows).__name__}."
        )

    model = _TABLE_MODELS[name]
    records: list[BaseModel] = []
    errors: list[tuple[int, str]] = []

    for i, row in enumerate(raw_rows):
        if not isinstance(row, Mapping):
            errors.append((i, f"expected an object, got {type(row).__name__}"))
            continue
        try:
            records.append(model.model_validate(dict(row)))
        except ValidationError as exc:
            errors.append((i, str(exc)))

    if errors:
        max_shown = 10
        detail = "\n".join(f"  Row {idx}: {msg}" for idx, msg in errors[:max_shown])
        suffix = f"\n  … and {len(errors) - max_shown} more" if len(errors) > max_shown else ""
        raise ValueError(
            f"{len(errors)} row(s) in table '{name}' are malformed:\n{detail}{suffix}"
        )

    return records


def _warn_duplicate_inventory(records: list[InventoryRecord]) -> None:
    """Log product + market keys that appear more than once.

    The expander keeps the first such record; duplicates are an input
    contract violation worth surfacing rather than silently resolving.
    """
    counts = Counter(
        (rec.product_id, rec.market) for rec in records if rec.product_id
    )
    for (product_id, market), n in counts.items():
        if n > 1:
            logger.warning(
                "Inventory has %d records for product_id=%s market=%s; using the first.",
                n, product_id, market,
            )
