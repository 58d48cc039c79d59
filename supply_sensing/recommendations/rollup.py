"""
Rollup engine: collapses noisy event × site × material × product × market
rows into one executive-friendly ``RollupRow`` per (event, site, material).

Merge rules (applied by ``merge_row`` for every row after the first)
--------------------------------------------------------------------
- impacted products / markets : de-duplicated, first-seen order, blanks skipped
- worst inventory snapshot    : replaced as a whole when ``coverage_days`` is
                                strictly lower than the current worst
- best_priority_tier          : minimum ``priority_tier`` seen
- max_weekly_demand           : maximum ``avg_weekly_demand_units`` seen
- representative risk         : ``risk_score``, ``risk_level``, ``drivers`` and
                                ``recommended_action`` replaced together when
                                ``risk_score`` is strictly higher (first max wins ties)

Groups are emitted in order of first appearance. ``merge_row`` is pure and
returns a new accumulator, so each rule can be tested in isolation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, NamedTuple, Optional

from supply_sensing.models.inputs import Number
from supply_sensing.models.outputs import RecommendationRow, RollupRow, compose_id
from supply_sensing.taxonomy.risk_taxonomy import RiskLevel

IMPACTED_SEPARATOR = ", "


class GroupKey(NamedTuple):
    """Composite rollup key; compared by exact equality on all three ids."""

    event_id:    str
    site_id:     str
    material_id: str

    @classmethod
    def of(cls, row: RecommendationRow) -> "GroupKey":
        return cls(row.event_id, row.site_id, row.material_id)


@dataclass(frozen=True)
class WorstInventory:
    """Inventory figures of the lowest-coverage row seen in a group."""

    on_hand_days:      Number
    in_transit_days:   Number
    coverage_days:     Number
    safety_stock_days: Number
    lead_time_days:    Number
    next_po_eta_days:  Optional[Number]
    time_to_impact:    bool
    market:            str
    product:           str

    @classmethod
    def from_row(cls, row: RecommendationRow) -> "WorstInventory":
        return cls(
            on_hand_days=row.on_hand_days,
            in_transit_days=row.in_transit_days,
            coverage_days=row.coverage_days,
            safety_stock_days=row.safety_stock_days,
            lead_time_days=row.lead_time_days,
            next_po_eta_days=row.next_po_eta_days,
            time_to_impact=row.time_to_impact_flag,
            market=row.market,
            product=row.product_name,
        )


@dataclass(frozen=True)
class RepresentativeRisk:
    """Risk fields of the highest-scoring row seen in a group."""

    risk_score:         Number
    risk_level:         RiskLevel
    drivers:            str
    recommended_action: str

    @classmethod
    def from_row(cls, row: RecommendationRow) -> "RepresentativeRisk":
        return cls(
            risk_score=row.risk_score,
            risk_level=row.risk_level,
            drivers=row.drivers,
            recommended_action=row.recommended_action,
        )


@dataclass(frozen=True)
class RollupAccumulator:
    """Running state for one (event, site, material) group.

    Attributes:
        context:            First row of the group; supplies run, event,
                            site and material fields.
        risk:               Current representative (max-score) risk fields.
        worst:              Current worst (min-coverage) inventory snapshot.
        products:           Distinct product names in first-seen order.
        markets:            Distinct markets in first-seen order.
        best_priority_tier: Lowest priority tier seen.
        max_weekly_demand:  Highest weekly demand seen.
    """

    context:            RecommendationRow
    risk:               RepresentativeRisk
    worst:              WorstInventory
    products:           tuple[str, ...]
    markets:            tuple[str, ...]
    best_priority_tier: Number
    max_weekly_demand:  Number

    @classmethod
    def from_row(cls, row: RecommendationRow) -> "RollupAccumulator":
        return cls(
            context=row,
            risk=RepresentativeRisk.from_row(row),
            worst=WorstInventory.from_row(row),
            products=_add_unique((), row.product_name),
            markets=_add_unique((), row.market),
            best_priority_tier=row.priority_tier,
            max_weekly_demand=row.avg_weekly_demand_units,
        )

    def to_rollup_row(self) -> RollupRow:
        """Finalize: render the collections and flatten into a ``RollupRow``."""
        ctx = self.context
        return RollupRow(
            run_id=ctx.run_id,
            rollup_id=make_rollup_id(ctx.event_id, ctx.site_id, ctx.material_id),
            event_id=ctx.event_id,
            event_ts=ctx.event_ts,
            event_type=ctx.event_type,
            headline=ctx.headline,
            source_url=ctx.source_url,
            country=ctx.country,
            region=ctx.region,
            city=ctx.city,
            site_id=ctx.site_id,
            supplier_name=ctx.supplier_name,
            site_name=ctx.site_name,
            material_id=ctx.material_id,
            material_name=ctx.material_name,
            criticality=ctx.criticality,
            single_source_flag=ctx.single_source_flag,
            risk_score=self.risk.risk_score,
            risk_level=self.risk.risk_level,
            drivers=self.risk.drivers,
            recommended_action=self.risk.recommended_action,
            impacted_products=IMPACTED_SEPARATOR.join(self.products),
            impacted_markets=IMPACTED_SEPARATOR.join(self.markets),
            worst_on_hand_days=self.worst.on_hand_days,
            worst_in_transit_days=self.worst.in_transit_days,
            worst_coverage_days=self.worst.coverage_days,
            worst_safety_stock_days=self.worst.safety_stock_days,
            worst_lead_time_days=self.worst.lead_time_days,
            worst_next_po_eta_days=self.worst.next_po_eta_days,
            worst_time_to_impact=self.worst.time_to_impact,
            worst_market=self.worst.market,
            worst_product=self.worst.product,
            best_priority_tier=self.best_priority_tier,
            max_weekly_demand=self.max_weekly_demand,
        )


def merge_row(acc: RollupAccumulator, row: RecommendationRow) -> RollupAccumulator:
    """Fold one more member row into a group accumulator.

    Args:
        acc: Current accumulator (not mutated).
        row: Row belonging to the same ``GroupKey``.

    Returns:
        New ``RollupAccumulator`` with all merge rules applied.
    """
    worst = acc.worst
    if row.coverage_days < worst.coverage_days:
        worst = WorstInventory.from_row(row)

    risk = acc.risk
    if row.risk_score > risk.risk_score:
        risk = RepresentativeRisk.from_row(row)

    return replace(
        acc,
        risk=risk,
        worst=worst,
        products=_add_unique(acc.products, row.product_name),
        markets=_add_unique(acc.markets, row.market),
        best_priority_tier=min(acc.best_priority_tier, row.priority_tier),
        max_weekly_demand=max(acc.max_weekly_demand, row.avg_weekly_demand_units),
    )


def rollup_recommendations(rows: Iterable[RecommendationRow]) -> list[RollupRow]:
    """Collapse recommendation rows into one ``RollupRow`` per group.

    Args:
        rows: Output of ``build_recommendation_rows()`` (any iterable).

    Returns:
        One ``RollupRow`` per distinct (event_id, site_id, material_id),
        ordered by first appearance in ``rows``.
    """
    groups: dict[GroupKey, RollupAccumulator] = {}

    for row in rows:
        key = GroupKey.of(row)
        acc = groups.get(key)
        groups[key] = RollupAccumulator.from_row(row) if acc is None else merge_row(acc, row)

    return [acc.to_rollup_row() for acc in groups.values()]


def make_rollup_id(event_id: str, site_id: str, material_id: str) -> str:
    return compose_id("ROLL", event_id, site_id, material_id)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _add_unique(seen: tuple[str, ...], name: str) -> tuple[str, ...]:
    if not name or name in seen:
        return seen
    return seen + (name,)
