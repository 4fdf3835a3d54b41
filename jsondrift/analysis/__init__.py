# ==============================================
# TOPIC 2: ANALYSIS & CLASSIFICATION
# ==============================================
#
# This package observes field patterns across sampled documents
# and classifies each path into a drift category with a severity.
#
# Two-step process:
#   Step 1 (Analysis):       Walk documents → build statistics per path
#   Step 2 (Classification): Apply thresholds on stats → drift findings
#
# Modules:
# --------
# - field_stats.py   → Data class to hold statistics for one path
# - accumulator.py   → Fold documents into stats, merge worker batches
# - findings.py      → Severity, DriftCategory, DriftFinding, thresholds
# - classifier.py    → Presence / type rules, ordered findings
# - evolution.py     → Version markers, deprecated names, exclusive pairs
#
# ==============================================

from .field_stats import FieldStats
from .accumulator import PathStatsAccumulator
from .findings import (
    ClassificationResult,
    DriftCategory,
    DriftFinding,
    DriftThresholds,
    EvolutionKind,
    SampleContext,
    Severity,
)
from .evolution import EvolutionDetector
from .classifier import DriftClassifier

__all__ = [
    "FieldStats",
    "PathStatsAccumulator",
    "ClassificationResult",
    "DriftCategory",
    "DriftFinding",
    "DriftThresholds",
    "EvolutionKind",
    "SampleContext",
    "Severity",
    "EvolutionDetector",
    "DriftClassifier",
]
