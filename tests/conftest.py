"""
Shared pytest fixtures for the supply sensing test suite.

Provides:
  - ``make_snapshot()``: builds a ``SupplyChainSnapshot`` from plain dicts,
    the same shape the ingestion layer hands to the engines.
  - ``eu_snapshot``: the single-path example from the scoring docs —
    severity 4 event in EU, criticality A single-source material, tier-1
    market with 1200 units/week demand, no inventory record.
  - ``fanout_snapshot``: two events, four sites, several materials,
    products and markets, with product- and material-keyed inventory.
  - ``make_row()``: a ``RecommendationRow`` factory for rollup tests.
  - ``row_factory`` / ``snapshot_factory``: the two factories as fixtures.
"""

from __future__ import annotations

from typing import Any

import pytest

from supply_sensing.models.inputs import SupplyChainSnapshot
from supply_sensing.models.outputs import RecommendationRow
from supply_sensing.taxonomy.risk_taxonomy import RiskLevel

RUN_ID = "RUN-2026-03-02T09:00:00.000Z"


def make_snapshot(**tables: list[dict[str, Any]]) -> SupplyChainSnapshot:
    """Validate raw table dicts into a snapshot; missing tables are empty."""
    return SupplyChainSnapshot.model_validate(tables)


def make_row(**overrides: Any) -> RecommendationRow:
    """A valid ``RecommendationRow`` with overridable fields."""
    base: dict[str, Any] = dict(
        run_id=RUN_ID,
        rec_id="REC-E1-S1-M1-P1-DE",
        event_id="E1",
        event_ts="2026-03-01T08:00:00Z",
        event_type="port_closure",
        headline="Port of Hamburg closed",
        source_url="https://example.org/e1",
        country="DE",
        region="EU",
        city="Hamburg",
        site_id="S1",
        supplier_name="Acme Metals",
        site_name="Acme Hamburg",
        material_id="M1",
        material_name="Aluminium sheet",
        criticality="A",
        single_source_flag="Y",
        product_id="P1",
        product_name="Widget",
        product_family="Widgets",
        market="DE",
        avg_weekly_demand_units=100,
        priority_tier=3,
        on_hand_days=10,
        in_transit_days=5,
        coverage_days=15,
        safety_stock_days=7,
        lead_time_days=14,
        next_po_eta_days=None,
        time_to_impact_flag=False,
        inventory_gap_days=0,
        risk_score=10,
        risk_level=RiskLevel.MEDIUM,
        drivers="Severity 3 | Criticality A | Single-source",
        recommended_action="Monitor: prepare mitigation options",
    )
    base.update(overrides)
    return RecommendationRow(**base)


@pytest.fixture
def eu_snapshot() -> SupplyChainSnapshot:
    return make_snapshot(
        events=[{
            "event_id": "E1", "event_ts": "2026-03-01T08:00:00Z",
            "event_type": "strike", "headline": "Rail strike",
            "source_url": "https://example.org/e1",
            "country": "FR", "region": "EU", "city": "Lyon", "severity": "4",
        }],
        sites=[{
            "site_id": "S1", "region": "EU", "country": "DE",
            "supplier_name": "Acme Metals", "site_name": "Acme Hamburg",
        }],
        dependencies=[{
            "site_id": "S1", "material_id": "M1", "material_name": "Aluminium sheet",
            "criticality": "A", "single_source_flag": "Y",
        }],
        bom=[{
            "material_id": "M1", "product_id": "P1",
            "product_name": "Widget", "product_family": "Widgets",
        }],
        exposure=[{
            "product_id": "P1", "market": "DE",
            "avg_weekly_demand_units": "1200", "priority_tier": "1",
        }],
    )


@pytest.fixture
def fanout_snapshot() -> SupplyChainSnapshot:
    """Two events, four sites; 5 complete join paths in total.

    E1 (region EU) matches S1 (EU) and S2 (country DE via E1.country).
    E2 (country US) matches S3 only.
      S1 → M1 → P1 → {DE, FR}     (2 paths)
      S1 → M2 → (no BOM)          (pruned)
      S2 → M1 → P1 → {DE, FR}     (2 paths)
      S3 → M3 → P2 → {US}         (1 path) ; P3 has no exposure (pruned)
    S4 has neither region nor country, so it never matches.
    E1 → 4 paths, E2 → 1 path.
    """
    return make_snapshot(
        events=[
            {"event_id": "E1", "region": "EU", "country": "DE", "severity": 3},
            {"event_id": "E2", "region": "NA", "country": "US", "severity": 5},
        ],
        sites=[
            {"site_id": "S1", "region": "EU", "country": "FR"},
            {"site_id": "S2", "region": "", "country": "DE"},
            {"site_id": "S3", "region": "AMER", "country": "US"},
            {"site_id": "S4", "region": "", "country": ""},
        ],
        dependencies=[
            {"site_id": "S1", "material_id": "M1", "criticality": "B", "single_source_flag": "n"},
            {"site_id": "S1", "material_id": "M2", "criticality": "C", "single_source_flag": "N"},
            {"site_id": "S2", "material_id": "M1", "criticality": "A", "single_source_flag": "y"},
            {"site_id": "S3", "material_id": "M3", "criticality": "A", "single_source_flag": "Y"},
            {"site_id": "S4", "material_id": "M1", "criticality": "A", "single_source_flag": "Y"},
        ],
        bom=[
            {"material_id": "M1", "product_id": "P1", "product_name": "Widget"},
            {"material_id": "M3", "product_id": "P2", "product_name": "Gadget"},
            {"material_id": "M3", "product_id": "P3", "product_name": "Gizmo"},
        ],
        exposure=[
            {"product_id": "P1", "market": "DE", "avg_weekly_demand_units": 800, "priority_tier": 2},
            {"product_id": "P1", "market": "FR", "avg_weekly_demand_units": 200, "priority_tier": 1},
            {"product_id": "P2", "market": "US", "avg_weekly_demand_units": 1500, "priority_tier": 3},
        ],
        inventory=[
            {"product_id": "P1", "market": "DE", "on_hand_days": 3, "in_transit_days": 2,
             "safety_stock_days": 10, "lead_time_days": 45, "next_po_eta_days": 20},
            {"material_id": "M1", "market": "FR", "on_hand_days": 20, "in_transit_days": 10,
             "safety_stock_days": 14, "lead_time_days": 7, "next_po_eta_days": ""},
        ],
    )


@pytest.fixture
def row_factory():
    """Return ``make_row`` so tests can build rows with overrides."""
    return make_row


@pytest.fixture
def snapshot_factory():
    """Return ``make_snapshot`` so tests can build ad-hoc snapshots."""
    return make_snapshot
