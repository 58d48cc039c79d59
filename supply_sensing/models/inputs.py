"""
Input record models — one explicit schema per supply-chain table.

The six tables arrive from CSV exports or a merged JSON snapshot where every
value may be text, blank, or missing entirely. All coercion happens here, at
the boundary, so the engines never read a field that does not exist:

  - Text fields: ``None`` → ``""``; everything else is ``str()``-ed and stripped.
  - Numeric fields: coerced with ``to_num()``; unparseable or non-finite → ``0``.
  - ``InventoryRecord.next_po_eta_days``: blank / unparseable → ``999``
    (the "unknown / far future" sentinel).

Unknown extra columns are ignored. All models are frozen.

``SupplyChainSnapshot`` bundles the six tables and is the sole input to
``build_recommendation_rows()``.
"""

from __future__ import annotations

import math
from typing import Annotated, Any, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

Number = Union[int, float]

ETA_UNKNOWN_DAYS = 999


def to_num(value: Any) -> Number:
    """Coerce a loosely-typed value to a finite number, defaulting to ``0``.

    Integral values come back as ``int`` so they render as ``4`` rather than
    ``4.0`` in drivers and report files.

    Args:
        value: Raw table value (``None``, text, int, float).

    Returns:
        ``int`` or ``float``; ``0`` for blank, boolean, unparseable, or
        non-finite input.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        num = value
    else:
        text = str(value).strip()
        if not text:
            return 0
        try:
            num = float(text)
        except ValueError:
            return 0
    if not math.isfinite(num):
        return 0
    return int(num) if num.is_integer() else num


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _to_eta(value: Any) -> Number:
    text = _to_text(value)
    if not text:
        return ETA_UNKNOWN_DAYS
    try:
        num = float(text)
    except ValueError:
        return ETA_UNKNOWN_DAYS
    if not math.isfinite(num):
        return ETA_UNKNOWN_DAYS
    return to_num(num)


Text = Annotated[str, BeforeValidator(_to_text)]
Num = Annotated[Number, BeforeValidator(to_num)]
EtaDays = Annotated[Number, BeforeValidator(_to_eta)]


class _TableRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Event(_TableRecord):
    """An external signal (strike, storm, port closure, ...) from the event feed.

    Attributes:
        event_id: Opaque feed identifier.
        event_ts: Event timestamp as supplied (not parsed).
        event_type: Free-form category from the feed.
        headline: Human-readable summary.
        source_url: Link to the evidence.
        country: Country the event affects; matched against ``Site.country``.
        region: Region the event affects; matched against ``Site.region``.
        city: City, informational only.
        severity: Numeric severity, typically 1–5.
    """

    event_id: Text = ""
    event_ts: Text = ""
    event_type: Text = ""
    headline: Text = ""
    source_url: Text = ""
    country: Text = ""
    region: Text = ""
    city: Text = ""
    severity: Num = 0

    def matches_site(self, site: "Site") -> bool:
        """Return ``True`` if ``site`` shares a non-empty region or country.

        A blank value on either side never matches, so a site with neither
        field populated is never selected.
        """
        if self.region and site.region and self.region == site.region:
            return True
        return bool(self.country and site.country and self.country == site.country)


class Site(_TableRecord):
    """A supplier or manufacturing site."""

    site_id: Text = ""
    region: Text = ""
    country: Text = ""
    supplier_name: Text = ""
    site_name: Text = ""


class Dependency(_TableRecord):
    """Site → material dependency.

    Attributes:
        site_id: FK to ``Site.site_id``.
        material_id: Material supplied by the site.
        criticality: ``"A"``, ``"B"`` or ``"C"`` (anything else weighs as C).
        single_source_flag: ``"Y"`` when no qualified alternate exists.
        material_name: Display name.
    """

    site_id: Text = ""
    material_id: Text = ""
    criticality: Text = ""
    single_source_flag: Text = ""
    material_name: Text = ""

    @property
    def is_single_source(self) -> bool:
        """Only a case-insensitive ``"Y"`` counts; blanks and typos are ``False``."""
        return self.single_source_flag.upper() == "Y"


class BomEntry(_TableRecord):
    """Material → product bill-of-materials link."""

    material_id: Text = ""
    product_id: Text = ""
    product_name: Text = ""
    product_family: Text = ""


class Exposure(_TableRecord):
    """Product → market demand exposure.

    ``priority_tier`` is 1 for the most important markets; 0 means unset.
    """

    product_id: Text = ""
    market: Text = ""
    avg_weekly_demand_units: Num = 0
    priority_tier: Num = 0


class InventoryRecord(_TableRecord):
    """Inventory position in days of supply.

    Keyed either by (``product_id``, ``market``) or by (``material_id``,
    ``market``); the expander prefers the product key.
    """

    product_id: Text = ""
    material_id: Text = ""
    market: Text = ""
    on_hand_days: Num = 0
    in_transit_days: Num = 0
    safety_stock_days: Num = 0
    lead_time_days: Num = 0
    next_po_eta_days: EtaDays = ETA_UNKNOWN_DAYS


class SupplyChainSnapshot(BaseModel):
    """The six input tables for one run, as validated records."""

    model_config = ConfigDict(frozen=True)

    events: list[Event] = Field(default_factory=list)
    sites: list[Site] = Field(default_factory=list)
    dependencies: list[Dependency] = Field(default_factory=list)
    bom: list[BomEntry] = Field(default_factory=list)
    exposure: list[Exposure] = Field(default_factory=list)
    inventory: list[InventoryRecord] = Field(default_factory=list)

    def table_sizes(self) -> dict[str, int]:
        """Row count per table, for logging and run manifests."""
        return {
            "events":       len(self.events),
            "sites":        len(self.sites),
            "dependencies": len(self.dependencies),
            "bom":          len(self.bom),
            "exposure":     len(self.exposure),
            "inventory":    len(self.inventory),
        }
