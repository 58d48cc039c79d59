"""
Recommendation engine: expands the six supply-chain tables into scored
recommendation rows and rolls them up to one row per event/site/material.

Modules
-------
scorer   : InventoryPosition + ScoreComponents dataclasses, compute_score(),
           determine_risk_level(), recommend_action(), build_drivers()
           — pure functions, no I/O.
expander : InventoryIndex + build_recommendation_rows() — the join fan-out.
rollup   : RollupAccumulator + merge_row() + rollup_recommendations().
"""
