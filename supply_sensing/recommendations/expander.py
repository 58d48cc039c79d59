"""
Expansion engine: joins the six supply-chain tables into scored
``RecommendationRow`` objects.

Join chain (left to right, a missing match prunes the branch)
-------------------------------------------------------------
1. Event      → Sites         region OR country equality (both sides non-empty)
2. Site       → Dependencies  site_id
3. Dependency → BOM entries   material_id
4. BOM entry  → Exposure rows product_id
5. Exposure   → one inventory position:
                  (product_id, market) → (material_id, market) → defaults

Stages 2–5 use hash indexes built once per call. Each index keeps input
order within a key, so output order is identical to the naive nested-loop
cross join and ``rec_id`` ordering is reproducible run to run.

Usage flow
----------
    rows = build_recommendation_rows(snapshot, run_id="RUN-2026-01-01T00:00:00Z")

Pure function: no I/O, no module state.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, TypeVar

from supply_sensing.models.inputs import (
    BomEntry,
    Dependency,
    Event,
    Exposure,
    InventoryRecord,
    Site,
    SupplyChainSnapshot,
)
from supply_sensing.models.outputs import RecommendationRow, compose_id
from supply_sensing.recommendations.scorer import (
    InventoryPosition,
    build_drivers,
    compute_score,
    determine_risk_level,
    recommend_action,
)

T = TypeVar("T")

DRIVER_SEPARATOR = " | "


@dataclass
class InventoryIndex:
    """First-match inventory lookup by product or material key.

    Records with a blank ``product_id`` (or ``material_id``) are not
    indexed under that key. When two records share a key the first one
    wins, matching a linear ``find`` over the table.
    """

    by_product:  dict[tuple[str, str], InventoryRecord] = field(default_factory=dict)
    by_material: dict[tuple[str, str], InventoryRecord] = field(default_factory=dict)

    @classmethod
    def build(cls, records: Iterable[InventoryRecord]) -> "InventoryIndex":
        index = cls()
        for rec in records:
            if rec.product_id:
                index.by_product.setdefault((rec.product_id, rec.market), rec)
            if rec.material_id:
                index.by_material.setdefault((rec.material_id, rec.market), rec)
        return index

    def resolve(
        self,
        product_id:  str,
        material_id: str,
        market:      str,
    ) -> Optional[InventoryRecord]:
        """Prefer the product + market record; fall back to material + market."""
        rec = self.by_product.get((product_id, market))
        if rec is None:
            rec = self.by_material.get((material_id, market))
        return rec


def build_recommendation_rows(
    snapshot: SupplyChainSnapshot,
    run_id:   str,
) -> list[RecommendationRow]:
    """Expand every complete join path into a scored recommendation row.

    Args:
        snapshot: The six validated input tables.
        run_id:   Identifier stamped on every row of this run.

    Returns:
        One ``RecommendationRow`` per distinct event × site × material ×
        product × market path that matched at every stage, in join order.
    """
    deps_by_site         = _group_by(snapshot.dependencies, lambda d: d.site_id)
    bom_by_material      = _group_by(snapshot.bom, lambda b: b.material_id)
    exposure_by_product  = _group_by(snapshot.exposure, lambda x: x.product_id)
    inventory            = InventoryIndex.build(snapshot.inventory)

    rows: list[RecommendationRow] = []
    seen: set[tuple[str, str, str, str, str]] = set()

    for event in snapshot.events:
        matched_sites = [s for s in snapshot.sites if event.matches_site(s)]

        for site in matched_sites:
            for dep in deps_by_site.get(site.site_id, []):
                for bom in bom_by_material.get(dep.material_id, []):
                    for exp in exposure_by_product.get(bom.product_id, []):
                        path = (
                            event.event_id, site.site_id, dep.material_id,
                            bom.product_id, exp.market,
                        )
                        # Repeated input rows reproduce a path; keep the first.
                        if path in seen:
                            continue
                        seen.add(path)

                        record = inventory.resolve(
                            product_id=bom.product_id,
                            material_id=dep.material_id,
                            market=exp.market,
                        )
                        rows.append(
                            score_join_path(
                                run_id=run_id,
                                event=event,
                                site=site,
                                dep=dep,
                                bom=bom,
                                exposure=exp,
                                position=InventoryPosition.from_record(record),
                            )
                        )

    return rows


def score_join_path(
    run_id:   str,
    event:    Event,
    site:     Site,
    dep:      Dependency,
    bom:      BomEntry,
    exposure: Exposure,
    position: InventoryPosition,
) -> RecommendationRow:
    """Score one fully matched join path and build its output row."""
    single_source = dep.is_single_source
    demand        = exposure.avg_weekly_demand_units
    priority      = exposure.priority_tier

    components = compute_score(
        severity=event.severity,
        criticality=dep.criticality,
        single_source=single_source,
        position=position,
        priority_tier=priority,
        avg_weekly_demand_units=demand,
    )
    score = components.total
    level = determine_risk_level(score)

    drivers = build_drivers(
        severity=event.severity,
        criticality=dep.criticality,
        single_source=single_source,
        position=position,
        priority_tier=priority,
        avg_weekly_demand_units=demand,
    )

    return RecommendationRow(
        run_id=run_id,
        rec_id=make_rec_id(
            event.event_id, site.site_id, dep.material_id, bom.product_id, exposure.market
        ),
        event_id=event.event_id,
        event_ts=event.event_ts,
        event_type=event.event_type,
        headline=event.headline,
        source_url=event.source_url,
        country=event.country,
        region=event.region,
        city=event.city,
        site_id=site.site_id,
        supplier_name=site.supplier_name,
        site_name=site.site_name,
        material_id=dep.material_id,
        material_name=dep.material_name,
        criticality=dep.criticality,
        single_source_flag=dep.single_source_flag,
        product_id=bom.product_id,
        product_name=bom.product_name,
        product_family=bom.product_family,
        market=exposure.market,
        avg_weekly_demand_units=demand,
        priority_tier=priority,
        on_hand_days=position.on_hand_days,
        in_transit_days=position.in_transit_days,
        coverage_days=position.coverage_days,
        safety_stock_days=position.safety_stock_days,
        lead_time_days=position.lead_time_days,
        next_po_eta_days=position.reported_eta_days,
        time_to_impact_flag=position.time_to_impact,
        inventory_gap_days=position.inventory_gap,
        inventory_matched=position.matched,
        risk_score=score,
        risk_level=level,
        drivers=DRIVER_SEPARATOR.join(drivers),
        recommended_action=recommend_action(level, position.inventory_gap, single_source),
    )


def make_rec_id(
    event_id:    str,
    site_id:     str,
    material_id: str,
    product_id:  str,
    market:      str,
) -> str:
    return compose_id("REC", event_id, site_id, material_id, product_id, market)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _group_by(items: Iterable[T], key: Callable[[T], str]) -> dict[str, list[T]]:
    """Group ``items`` by ``key`` keeping input order inside each group."""
    groups: dict[str, list[T]] = defaultdict(list)
    for item in items:
        groups[key(item)].append(item)
    return dict(groups)
