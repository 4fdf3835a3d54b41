# ==============================================
# jsondrift: Schema Drift Detection for JSON Columns
# ==============================================
#
# Package Structure (3 Topics + Orchestrator):
#
# jsondrift/
# ├── walking/          # Topic 1: Walk JSON documents into (path, type, depth)
# ├── analysis/         # Topic 2: Accumulate field stats & classify drift
# ├── sampling/         # Topic 3: Plan how rows are sampled from a table
# ├── config.py         # Configuration management
# ├── errors.py         # Exception hierarchy
# └── drift_analysis.py # Orchestrator: plan → walk → accumulate → classify
#
# ==============================================

from .drift_analysis import DriftAnalysis, AnalysisReport, ColumnScanResult

__version__ = "0.1.0"

__all__ = ["DriftAnalysis", "AnalysisReport", "ColumnScanResult", "__version__"]
