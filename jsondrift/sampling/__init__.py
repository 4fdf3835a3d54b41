# ==============================================
# TOPIC 3: SAMPLING
# ==============================================
#
# This package decides how a representative subset of rows should
# be pulled from a table of unknown size. Nothing here talks to a
# database: the row-fetch layer executes the returned descriptor.
#
# Modules:
# --------
# - strategy.py   → SamplingStrategy descriptor + SQL rendering
# - planner.py    → SamplingPlanner decision table, advisory warnings
# - reservoir.py  → Algorithm R for fetch layers that stream a key range
#
# ==============================================

from .strategy import SamplingStrategy, StrategyKind, parse_table_name, quote_identifier
from .planner import PlannerThresholds, PlanWarning, SamplingPlan, SamplingPlanner
from .reservoir import reservoir_sample

__all__ = [
    "SamplingStrategy",
    "StrategyKind",
    "parse_table_name",
    "quote_identifier",
    "PlannerThresholds",
    "PlanWarning",
    "SamplingPlan",
    "SamplingPlanner",
    "reservoir_sample",
]
