# ==============================================
# TOPIC 1: WALKING
# ==============================================
#
# This package turns one parsed JSON document into a flat stream
# of (path, type, depth) observations that the analysis topic folds
# into per-path statistics.
#
# Modules:
# --------
# - json_type.py    → Closed set of JSON value types (null, boolean, ...)
# - tree_walker.py  → Depth-bounded, stack-based document walker
#
# ==============================================

from .json_type import ValueTypeTag
from .tree_walker import JsonTreeWalker, PathObservation

__all__ = ["ValueTypeTag", "JsonTreeWalker", "PathObservation"]
