"""
Risk taxonomy for supply-chain recommendation rows.

Two small vocabularies describe every scored row:
  - ``RiskLevel``   — the planner-facing label derived from the numeric score.
  - ``Criticality`` — the A/B/C material classification from the dependency table.

Usage example::

    from supply_sensing.taxonomy.risk_taxonomy import RiskLevel

    if row.risk_level is RiskLevel.HIGH:
        ...

This module has NO imports from any other ``supply_sensing`` package.
"""

from enum import StrEnum


class RiskLevel(StrEnum):
    """Planner-facing risk label derived from the additive risk score."""

    LOW = "LOW"
    """Score below 8; informational only."""

    MEDIUM = "MEDIUM"
    """Score 8–11; prepare mitigation options."""

    HIGH = "HIGH"
    """Score 12 or more; planner review required."""


class Criticality(StrEnum):
    """How essential a material is to the products built from it."""

    A = "A"
    """Line-stopping material; no product ships without it."""

    B = "B"
    """Important material with some buffer or substitution room."""

    C = "C"
    """Low-impact material."""
