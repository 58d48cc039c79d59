"""
Tests for supply_sensing.ingestion.tables — CSV directory and JSON snapshot loading.

Covers:
  - load_snapshot_from_dir(): all tables, missing optional table, missing
    events file, missing directory, custom file names
  - read_table_csv(): BOM + padded headers, header-only file, empty file
  - load_snapshot_from_json(): alternate table keys, bad JSON, wrong shape
  - snapshot_from_mapping(): non-list tables and non-object rows rejected
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from supply_sensing.config import TableFilesConfig
from supply_sensing.ingestion.tables import (
    load_snapshot_from_dir,
    load_snapshot_from_json,
    read_table_csv,
    snapshot_from_mapping,
)
from supply_sensing.models.inputs import ETA_UNKNOWN_DAYS


# ── Helpers ────────────────────────────────────────────────────────────────────

TABLES = {
    "events.csv": (
        "event_id,event_ts,event_type,headline,source_url,country,region,city,severity\n"
        "E1,2026-03-01T08:00:00Z,strike,Rail strike,https://example.org/e1,FR,EU,Lyon,4\n"
    ),
    "sites.csv": (
        "site_id,region,country,supplier_name,site_name\n"
        "S1,EU,DE,Acme Metals,Acme Hamburg\n"
    ),
    "deps.csv": (
        "site_id,material_id,material_name,criticality,single_source_flag\n"
        "S1,M1,Aluminium sheet,A,Y\n"
    ),
    "bom.csv": (
        "material_id,product_id,product_name,product_family\n"
        "M1,P1,Widget,Widgets\n"
    ),
    "exposure.csv": (
        "product_id,market,avg_weekly_demand_units,priority_tier\n"
        "P1,DE,1200,1\n"
    ),
    "inventory.csv": (
        "product_id,material_id,market,on_hand_days,in_transit_days,"
        "safety_stock_days,lead_time_days,next_po_eta_days\n"
        "P1,,DE,3,2,10,45,\n"
    ),
}


def _write_tables(directory: Path, skip: tuple[str, ...] = ()) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    for name, content in TABLES.items():
        if name not in skip:
            (directory / name).write_text(content, encoding="utf-8")
    return directory


# ── load_snapshot_from_dir ─────────────────────────────────────────────────────

class TestLoadSnapshotFromDir:
    def test_loads_all_tables(self, tmp_path):
        snap = load_snapshot_from_dir(_write_tables(tmp_path / "in"))
        assert snap.table_sizes() == {
            "events": 1, "sites": 1, "dependencies": 1,
            "bom": 1, "exposure": 1, "inventory": 1,
        }

    def test_values_are_coerced(self, tmp_path):
        snap = load_snapshot_from_dir(_write_tables(tmp_path / "in"))
        assert snap.events[0].severity == 4
        assert snap.exposure[0].avg_weekly_demand_units == 1200
        inv = snap.inventory[0]
        assert inv.material_id == ""
        assert inv.on_hand_days == 3
        assert inv.next_po_eta_days == ETA_UNKNOWN_DAYS

    def test_missing_optional_table_is_empty(self, tmp_path, caplog):
        directory = _write_tables(tmp_path / "in", skip=("inventory.csv",))
        with caplog.at_level(logging.WARNING, logger="supply_sensing.ingestion.tables"):
            snap = load_snapshot_from_dir(directory)
        assert snap.inventory == []
        assert "inventory" in caplog.text

    def test_missing_events_file_raises(self, tmp_path):
        directory = _write_tables(tmp_path / "in", skip=("events.csv",))
        with pytest.raises(FileNotFoundError, match="Events table"):
            load_snapshot_from_dir(directory)

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Input directory"):
            load_snapshot_from_dir(tmp_path / "nope")

    def test_custom_file_names(self, tmp_path):
        directory = _write_tables(tmp_path / "in")
        (directory / "deps.csv").rename(directory / "dependencies.csv")
        files = TableFilesConfig(dependencies="dependencies.csv")
        snap = load_snapshot_from_dir(directory, files)
        assert len(snap.dependencies) == 1


# ── read_table_csv ─────────────────────────────────────────────────────────────

class TestReadTableCsv:
    def test_strips_bom_and_header_padding(self, tmp_path):
        p = tmp_path / "sites.csv"
        p.write_text("\ufeffsite_id , region\nS1,EU\n", encoding="utf-8")
        rows = read_table_csv(p)
        assert rows == [{"site_id": "S1", "region": "EU"}]

    def test_ragged_columns_dropped(self, tmp_path):
        p = tmp_path / "sites.csv"
        p.write_text("site_id,region\nS1,EU,extra\n", encoding="utf-8")
        assert read_table_csv(p) == [{"site_id": "S1", "region": "EU"}]

    def test_header_only_returns_empty(self, tmp_path):
        p = tmp_path / "sites.csv"
        p.write_text("site_id,region\n", encoding="utf-8")
        assert read_table_csv(p) == []

    def test_empty_file_raises(self, tmp_path):
        p = tmp_path / "sites.csv"
        p.write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="no header"):
            read_table_csv(p)


# ── load_snapshot_from_json ────────────────────────────────────────────────────

class TestLoadSnapshotFromJson:
    def _write(self, tmp_path: Path, payload) -> Path:
        p = tmp_path / "snapshot.json"
        p.write_text(json.dumps(payload), encoding="utf-8")
        return p

    def test_alternate_keys(self, tmp_path):
        p = self._write(tmp_path, {
            "events": [{"event_id": "E1", "region": "EU"}],
            "deps": [{"site_id": "S1", "material_id": "M1"}],
            "products": [{"material_id": "M1", "product_id": "P1"}],
        })
        snap = load_snapshot_from_json(p)
        assert len(snap.dependencies) == 1
        assert len(snap.bom) == 1
        assert snap.sites == []

    def test_long_dependency_key(self, tmp_path):
        p = self._write(tmp_path, {"dependencies": [{"site_id": "S1"}]})
        assert len(load_snapshot_from_json(p).dependencies) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_snapshot_from_json(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        p = tmp_path / "snapshot.json"
        p.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_snapshot_from_json(p)

    def test_top_level_list_rejected(self, tmp_path):
        p = self._write(tmp_path, [{"event_id": "E1"}])
        with pytest.raises(ValueError, match="object of tables"):
            load_snapshot_from_json(p)


# ── snapshot_from_mapping ──────────────────────────────────────────────────────

class TestSnapshotFromMapping:
    def test_empty_mapping_is_empty_snapshot(self):
        snap = snapshot_from_mapping({})
        assert sum(snap.table_sizes().values()) == 0

    def test_table_not_a_list(self):
        with pytest.raises(ValueError, match="Table 'sites' must be a list"):
            snapshot_from_mapping({"sites": {"site_id": "S1"}})

    def test_row_not_an_object(self):
        with pytest.raises(ValueError, match="1 row\\(s\\) in table 'events'"):
            snapshot_from_mapping({"events": [{"event_id": "E1"}, "E2"]})

    def test_duplicate_inventory_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="supply_sensing.ingestion.tables"):
            snap = snapshot_from_mapping({"inventory": [
                {"product_id": "P1", "market": "DE", "on_hand_days": 1},
                {"product_id": "P1", "market": "DE", "on_hand_days": 2},
            ]})
        assert len(snap.inventory) == 2
        assert "using the first" in caplog.text
