"""
Recommendation and rollup output models.

``RecommendationRow`` is one fully expanded join path
(event × site × material × product × market) with its risk score,
drivers audit trail, and triage action.

``RollupRow`` collapses all rows sharing (event, site, material) into one
worst-case summary for executive review.

Both models are frozen — rows are produced once per run and handed to the
report writers unchanged. ``auto_override_ready`` is always ``False``:
outputs are advisory triage guidance for human planners.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from supply_sensing.models.inputs import Number
from supply_sensing.taxonomy.risk_taxonomy import RiskLevel

ID_SEPARATOR = "-"


def compose_id(prefix: str, *parts: str) -> str:
    """Join ``prefix`` and key parts with ``-``, escaping ``%`` and ``-`` in parts.

    Escaping keeps the id injective: ``("E-S", "M")`` and ``("E", "S-M")``
    render as ``E%2DS-M`` and ``E-S%2DM``. Ids without ``-`` or ``%`` are
    unchanged, e.g. ``compose_id("REC", "E1", "S1")`` is ``"REC-E1-S1"``.
    """
    escaped = (p.replace("%", "%25").replace(ID_SEPARATOR, "%2D") for p in parts)
    return ID_SEPARATOR.join((prefix, *escaped))


class RecommendationRow(BaseModel):
    """One scored event × site × material × product × market combination.

    Attributes:
        run_id: Identifier stamped on every row of one execution.
        rec_id: ``REC-{event}-{site}-{material}-{product}-{market}``.
        coverage_days: ``on_hand_days + in_transit_days``.
        next_po_eta_days: Days until the next PO lands; ``None`` when unknown.
        time_to_impact_flag: Coverage runs out before the next PO arrives.
        inventory_gap_days: Days below safety stock (never negative).
        inventory_matched: ``False`` when no inventory record matched and the
            conservative defaults (0 on hand, 7 safety, 14 lead) were used.
        risk_score: Additive score; see ``recommendations.scorer``.
        drivers: ``" | "``-joined audit trail of the score terms.
        auto_override_ready: Always ``False``.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str
    rec_id: str

    # Event evidence
    event_id: str
    event_ts: str = ""
    event_type: str = ""
    headline: str = ""
    source_url: str = ""
    country: str = ""
    region: str = ""
    city: str = ""

    # Supply chain context
    site_id: str
    supplier_name: str = ""
    site_name: str = ""

    material_id: str
    material_name: str = ""
    criticality: str = ""
    single_source_flag: str = ""

    product_id: str
    product_name: str = ""
    product_family: str = ""

    market: str
    avg_weekly_demand_units: Number = 0
    priority_tier: Number = 0

    # Inventory position
    on_hand_days: Number
    in_transit_days: Number
    coverage_days: Number
    safety_stock_days: Number
    lead_time_days: Number
    next_po_eta_days: Optional[Number] = None
    time_to_impact_flag: bool
    inventory_gap_days: Number
    inventory_matched: bool = False

    # Outputs
    risk_score: Number
    risk_level: RiskLevel
    drivers: str
    recommended_action: str

    auto_override_ready: Literal[False] = False


class RollupRow(BaseModel):
    """Worst-case summary of every row sharing (event_id, site_id, material_id).

    Attributes:
        rollup_id: ``ROLL-{event}-{site}-{material}``.
        risk_score: Maximum member score; ``risk_level``, ``drivers`` and
            ``recommended_action`` come from the same member row.
        impacted_products: Distinct product names, first-seen order, ``", "``-joined.
        impacted_markets: Distinct markets, first-seen order, ``", "``-joined.
        worst_coverage_days: Minimum member ``coverage_days``; the other
            ``worst_*`` fields come from that same member row.
        best_priority_tier: Lowest (most important) member priority tier.
        max_weekly_demand: Highest member ``avg_weekly_demand_units``.
    """

    model_config = ConfigDict(frozen=True)

    run_id: str
    rollup_id: str

    # Event
    event_id: str
    event_ts: str = ""
    event_type: str = ""
    headline: str = ""
    source_url: str = ""
    country: str = ""
    region: str = ""
    city: str = ""

    # Site
    site_id: str
    supplier_name: str = ""
    site_name: str = ""

    # Material
    material_id: str
    material_name: str = ""
    criticality: str = ""
    single_source_flag: str = ""

    # Representative scoring fields
    risk_score: Number
    risk_level: RiskLevel
    drivers: str
    recommended_action: str

    impacted_products: str
    impacted_markets: str

    # Worst inventory case (lowest coverage)
    worst_on_hand_days: Number
    worst_in_transit_days: Number
    worst_coverage_days: Number
    worst_safety_stock_days: Number
    worst_lead_time_days: Number
    worst_next_po_eta_days: Optional[Number] = None
    worst_time_to_impact: bool
    worst_market: str
    worst_product: str

    best_priority_tier: Number
    max_weekly_demand: Number
