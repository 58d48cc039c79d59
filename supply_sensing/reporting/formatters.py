"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept plain record dicts (``model_dump(mode="json")`` output
or rows loaded back from a rollup JSON file) and return multi-line strings
suitable for ``typer.echo()``.

No third-party dependencies.
"""

from __future__ import annotations

from collections import Counter

_LEVEL_ORDER = ("HIGH", "MEDIUM", "LOW")


def count_by_level(records: list[dict]) -> dict[str, int]:
    """Count records per ``risk_level``, always listing HIGH, MEDIUM, LOW."""
    counts = Counter(str(r.get("risk_level", "")) for r in records)
    result = {level: counts.get(level, 0) for level in _LEVEL_ORDER}
    for level, n in counts.items():
        if level not in result:
            result[level] = n
    return result


def format_level_counts(records: list[dict], label: str) -> str:
    """One line such as ``"  rollups: 12  (HIGH 3 | MEDIUM 5 | LOW 4)"``."""
    counts = count_by_level(records)
    parts = " | ".join(f"{level} {n}" for level, n in counts.items())
    return f"  {label}: {len(records)}  ({parts})"


def format_rollup_summary(
    rollups: list[dict],
    top_n:   int = 10,
    run_id:  str = "",
) -> str:
    """Format the highest-risk rollup rows as an ASCII table.

    Rows are ordered by ``risk_score`` descending; ties keep input order.
    Long text columns are truncated to keep lines readable.

    Args:
        rollups: Rollup row dicts.
        top_n:   Maximum rows shown.
        run_id:  Optional run identifier for the header line.

    Returns:
        Multi-line string; a short notice when ``rollups`` is empty.
    """
    header = f"  Top {top_n} rollups" + (f" | {run_id}" if run_id else "")
    if not rollups:
        return header + "\n  (no rollup rows — no event matched any site)"

    ranked = sorted(rollups, key=lambda r: -_as_float(r.get("risk_score")))[:top_n]

    lines = [
        header,
        f"  {'SCORE':>5}  {'LEVEL':<6}  {'EVENT':<12}  {'SITE':<10}  {'MATERIAL':<12}  "
        f"{'COV':>5}  ACTION",
        "  " + "-" * 96,
    ]
    for r in ranked:
        lines.append(
            f"  {_fmt_num(r.get('risk_score')):>5}  "
            f"{str(r.get('risk_level', '')):<6}  "
            f"{_clip(r.get('event_id'), 12):<12}  "
            f"{_clip(r.get('site_id'), 10):<10}  "
            f"{_clip(r.get('material_id'), 12):<12}  "
            f"{_fmt_num(r.get('worst_coverage_days')):>5}  "
            f"{_clip(r.get('recommended_action'), 40)}"
        )
        markets = r.get("impacted_markets") or "-"
        lines.append(f"         markets: {_clip(markets, 80)}")
    return "\n".join(lines)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _clip(value: object, width: int) -> str:
    text = "" if value is None else str(value)
    return text if len(text) <= width else text[: width - 1] + "~"


def _as_float(value: object) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0


def _fmt_num(value: object) -> str:
    if value is None:
        return "-"
    num = _as_float(value)
    return str(int(num)) if num.is_integer() else f"{num:.1f}"
