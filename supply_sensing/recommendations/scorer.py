"""
Risk scoring: converts one join path's supply-chain context into a
deterministic risk score, level, drivers audit trail, and triage action.

Score formula (strictly additive, integer for integer inputs)
-------------------------------------------------------------
    total = (
        severity                                  # event feed, typically 1–5
        + criticality_weight                      # A=4, B=2, else 1
        + 3  if single_source
        + 3  if inventory_gap > 0
        + 2  if long_lead           (lead_time_days >= 30)
        + 2  if time_to_impact
        + 2  if 0 < priority_tier <= 1,  else 1 if priority_tier == 2
        + 2  if weekly demand >= 1000,   else 1 if weekly demand >= 500
    )

Risk level
----------
    HIGH   : total >= 12
    MEDIUM : total >= 8
    LOW    : everything else

Recommended action (priority order)
-----------------------------------
    1. HIGH and inventory gap > 0 → expedite + evaluate alternates
    2. HIGH and single-source     → evaluate alternates + monitor
    3. HIGH                       → monitor and prep mitigation
    4. MEDIUM                     → prepare mitigation options
    5. LOW                        → info only

These weights and thresholds are fixed policy constants; changing them is a
versioned policy update, not a config change.
All functions are pure — no I/O, no state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from supply_sensing.models.inputs import ETA_UNKNOWN_DAYS, InventoryRecord, Number
from supply_sensing.taxonomy.risk_taxonomy import Criticality, RiskLevel

# Conservative defaults when no inventory record matches; avoids false-low scores.
DEFAULT_SAFETY_STOCK_DAYS = 7
DEFAULT_LEAD_TIME_DAYS = 14

LONG_LEAD_DAYS = 30
HIGH_RISK_THRESHOLD = 12
MEDIUM_RISK_THRESHOLD = 8

_CRITICALITY_WEIGHT: dict[str, int] = {
    Criticality.A: 4,
    Criticality.B: 2,
}

ACTION_EXPEDITE = "Planner review NOW: pull-in/expedite + evaluate alternates"
ACTION_EVALUATE_ALTERNATES = "Planner review: evaluate alternates + monitor closely"
ACTION_MONITOR_HIGH = "Planner review: monitor and prep mitigation"
ACTION_PREPARE = "Monitor: prepare mitigation options"
ACTION_INFO = "Info only"


@dataclass(frozen=True)
class InventoryPosition:
    """Resolved inventory context for one product × market.

    Attributes:
        on_hand_days:      Days of stock on hand.
        in_transit_days:   Days of stock already shipped.
        safety_stock_days: Target minimum coverage.
        lead_time_days:    Replenishment lead time.
        next_po_eta_days:  Days until the next PO lands; 999 = unknown.
        matched:           ``False`` when conservative defaults were used.
    """

    on_hand_days:      Number = 0
    in_transit_days:   Number = 0
    safety_stock_days: Number = DEFAULT_SAFETY_STOCK_DAYS
    lead_time_days:    Number = DEFAULT_LEAD_TIME_DAYS
    next_po_eta_days:  Number = ETA_UNKNOWN_DAYS
    matched:           bool = False

    @classmethod
    def from_record(cls, record: Optional[InventoryRecord]) -> "InventoryPosition":
        """Build a position from a matched record, or the defaults when ``None``."""
        if record is None:
            return cls()
        return cls(
            on_hand_days=record.on_hand_days,
            in_transit_days=record.in_transit_days,
            safety_stock_days=record.safety_stock_days,
            lead_time_days=record.lead_time_days,
            next_po_eta_days=record.next_po_eta_days,
            matched=True,
        )

    @property
    def coverage_days(self) -> Number:
        """On-hand plus pipeline days of supply."""
        return _tidy(self.on_hand_days + self.in_transit_days)

    @property
    def time_to_impact(self) -> bool:
        """Coverage runs out before a known (finite) next PO arrives."""
        eta = self.next_po_eta_days
        return self.coverage_days < eta and eta < ETA_UNKNOWN_DAYS

    @property
    def inventory_gap(self) -> Number:
        """Days below safety stock; never negative."""
        return _tidy(max(0, self.safety_stock_days - self.coverage_days))

    @property
    def long_lead(self) -> bool:
        return self.lead_time_days >= LONG_LEAD_DAYS

    @property
    def reported_eta_days(self) -> Optional[Number]:
        """ETA for output rows: ``None`` stands in for the 999 sentinel."""
        if self.next_po_eta_days < ETA_UNKNOWN_DAYS:
            return self.next_po_eta_days
        return None


@dataclass(frozen=True)
class ScoreComponents:
    """Every additive term of one risk score, kept separately for auditing.

    Attributes:
        severity:       Event severity, as supplied.
        criticality:    4 / 2 / 1 for A / B / other.
        single_source:  3 or 0.
        inventory_gap:  3 or 0.
        long_lead:      2 or 0.
        time_to_impact: 2 or 0.
        priority:       2 (tier 1), 1 (tier 2) or 0.
        demand:         2 (>= 1000/wk), 1 (>= 500/wk) or 0.
    """

    severity:       Number
    criticality:    int
    single_source:  int
    inventory_gap:  int
    long_lead:      int
    time_to_impact: int
    priority:       int
    demand:         int

    @property
    def total(self) -> Number:
        return _tidy(
            self.severity
            + self.criticality
            + self.single_source
            + self.inventory_gap
            + self.long_lead
            + self.time_to_impact
            + self.priority
            + self.demand
        )


def criticality_weight(criticality: str) -> int:
    """Weight for a criticality code; unknown codes weigh like ``C``."""
    return _CRITICALITY_WEIGHT.get(criticality, 1)


def compute_score(
    severity:                Number,
    criticality:             str,
    single_source:           bool,
    position:                InventoryPosition,
    priority_tier:           Number,
    avg_weekly_demand_units: Number,
) -> ScoreComponents:
    """Compute all risk score terms for one join path.

    Args:
        severity:                Event severity (already coerced).
        criticality:             Dependency criticality code.
        single_source:           ``True`` if the material has no alternate.
        position:                Resolved inventory context.
        priority_tier:           Market priority tier (1 = most important).
        avg_weekly_demand_units: Weekly demand in the market.

    Returns:
        ScoreComponents with every term populated.
    """
    if 0 < priority_tier <= 1:
        priority = 2
    elif priority_tier == 2:
        priority = 1
    else:
        priority = 0

    if avg_weekly_demand_units >= 1000:
        demand = 2
    elif avg_weekly_demand_units >= 500:
        demand = 1
    else:
        demand = 0

    return ScoreComponents(
        severity=severity,
        criticality=criticality_weight(criticality),
        single_source=3 if single_source else 0,
        inventory_gap=3 if position.inventory_gap > 0 else 0,
        long_lead=2 if position.long_lead else 0,
        time_to_impact=2 if position.time_to_impact else 0,
        priority=priority,
        demand=demand,
    )


def determine_risk_level(score: Number) -> RiskLevel:
    """Map a raw score to the planner-facing label."""
    if score >= HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    if score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def recommend_action(
    level:         RiskLevel,
    inventory_gap: Number,
    single_source: bool,
) -> str:
    """Rules-based triage suggestion for a human planner (first match wins).

    This is never an automatic override; see ``RecommendationRow.auto_override_ready``.
    """
    if level is RiskLevel.HIGH:
        if inventory_gap > 0:
            return ACTION_EXPEDITE
        if single_source:
            return ACTION_EVALUATE_ALTERNATES
        return ACTION_MONITOR_HIGH
    if level is RiskLevel.MEDIUM:
        return ACTION_PREPARE
    return ACTION_INFO


def build_drivers(
    severity:                Number,
    criticality:             str,
    single_source:           bool,
    position:                InventoryPosition,
    priority_tier:           Number,
    avg_weekly_demand_units: Number,
) -> list[str]:
    """Assemble the ordered audit trail for a score.

    Order is fixed: severity, criticality, single-source, inventory gap,
    long lead, time-to-impact, priority tier, weekly demand. Severity and
    criticality always appear; the rest only when true / non-zero.

    Returns:
        List of human-readable reason strings, e.g.
        ``["Severity 4", "Criticality A", "Single-source", ...]``.
    """
    drivers: list[str] = [
        f"Severity {_fmt(severity)}",
        f"Criticality {criticality}",
    ]
    if single_source:
        drivers.append("Single-source")
    if position.inventory_gap > 0:
        drivers.append(f"Below safety by {_fmt(position.inventory_gap)} days")
    if position.long_lead:
        drivers.append(f"Lead time {_fmt(position.lead_time_days)} days")
    if position.time_to_impact:
        drivers.append(
            "Time-to-impact: will run out before next PO "
            f"(ETA {_fmt(position.next_po_eta_days)}d)"
        )
    if priority_tier:
        drivers.append(f"Priority tier {_fmt(priority_tier)}")
    if avg_weekly_demand_units:
        drivers.append(f"Weekly demand {_fmt(avg_weekly_demand_units)}")
    return drivers


# ── Helpers ───────────────────────────────────────────────────────────────────

def _tidy(value: Number) -> Number:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _fmt(value: Number) -> str:
    return str(_tidy(value))
