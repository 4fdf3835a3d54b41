# ==============================================
# Findings (Data Classes)
# ==============================================
#
# PURPOSE:
#   Data classes that represent the OUTPUT of drift classification,
#   plus the thresholds that control how findings are produced.
#
# ENUMS:
# ------
# - Severity(IntEnum): INFO < WARNING < CRITICAL
# - DriftCategory(Enum): TYPE_INCONSISTENCY, GHOST_KEY, SPARSE_FIELD,
#                        MISSING_KEY, SCHEMA_EVOLUTION
# - EvolutionKind(Enum): VERSION_MARKER, DEPRECATED_NAMING, MUTUALLY_EXCLUSIVE
#
# CLASSES:
# --------
# - SampleContext (frozen dataclass)
#     total_samples, estimated_table_rows. Fixed once sampling is done.
#
# - DriftFinding (frozen dataclass)
#     One drift issue for one path.
#
#     Attributes:
#     -----------
#     - path: str               → The field path the finding is about
#     - category: DriftCategory → What kind of drift
#     - severity: Severity      → How bad
#     - detail: Mapping         → Category-specific metrics (read-only)
#
#     Methods:
#     --------
#     - description() -> str    → Human-readable one-liner
#     - to_dict() -> dict       → Serialize for the reporting layer
#
# - ClassificationResult (frozen dataclass)
#     findings + status ("ok" or "no_data").
#
# - DriftThresholds (dataclass)
#     Configurable presence / type bands used by the classifier.
#
# ==============================================

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple


class Severity(IntEnum):
    """
    Ordered severity of a finding. Higher value = more urgent.
    """
    INFO = 0
    WARNING = 1
    CRITICAL = 2

    def __str__(self) -> str:
        return self.name.capitalize()


class DriftCategory(Enum):
    """
    Kinds of drift the classifier reports.

    - TYPE_INCONSISTENCY: One path observed with several JSON types
    - GHOST_KEY: Path present in under 10% of documents
    - SPARSE_FIELD: Path present in 10–80% of documents (legitimately optional)
    - MISSING_KEY: Path that looks required (80–95%) but has gaps
    - SCHEMA_EVOLUTION: Naming patterns that point at schema changes
    """
    TYPE_INCONSISTENCY = "type_inconsistency"
    GHOST_KEY = "ghost_key"
    SPARSE_FIELD = "sparse_field"
    MISSING_KEY = "missing_key"
    SCHEMA_EVOLUTION = "schema_evolution"


class EvolutionKind(Enum):
    VERSION_MARKER = "version_marker"
    DEPRECATED_NAMING = "deprecated_naming"
    MUTUALLY_EXCLUSIVE = "mutually_exclusive"


# Stable tiebreak when two findings share severity and path
CATEGORY_ORDER = {category: index for index, category in enumerate(DriftCategory)}


@dataclass(frozen=True)
class SampleContext:
    """Sampling facts the classifier needs; all densities are relative to total_samples."""
    total_samples: int
    estimated_table_rows: int = 0

    def __post_init__(self):
        if self.total_samples < 0:
            raise ValueError(f"total_samples must be >= 0, got {self.total_samples}")
        if self.estimated_table_rows < 0:
            raise ValueError(f"estimated_table_rows must be >= 0, got {self.estimated_table_rows}")


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass(frozen=True)
class DriftFinding:
    """
    One drift issue detected for one path.

    Findings are produced by the DriftClassifier only and never change
    after creation; detail is stored as a read-only mapping.
    """

    path: str
    category: DriftCategory
    severity: Severity
    detail: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "detail", _freeze(dict(self.detail)))

    @property
    def sort_key(self) -> Tuple[int, str, int, str]:
        """Critical first, then by path, then category, then detail text."""
        return (
            -int(self.severity),
            self.path,
            CATEGORY_ORDER[self.category],
            repr(sorted((key, repr(value)) for key, value in self.detail.items())),
        )

    def description(self) -> str:
        """
        Human-readable explanation of the finding.

        Returns:
            A one-line description, e.g. "Ghost key: 0.80% present (40/5000 samples)"
        """
        d = self.detail

        if self.category is DriftCategory.TYPE_INCONSISTENCY:
            types = ", ".join(
                f"{type_name}:{pct:.1f}%" for type_name, pct in d["type_percentages"]
            )
            return (
                f"Type inconsistency: minority {d['minority_type']} at "
                f"{d['minority_pct']:.1f}% ({types})"
            )

        if self.category is DriftCategory.GHOST_KEY:
            return (
                f"Ghost key: {d['present_pct']:.2f}% present "
                f"({d['occurrences']}/{d['total_samples']} samples)"
            )

        if self.category is DriftCategory.SPARSE_FIELD:
            return (
                f"Sparse field: {d['present_pct']:.2f}% present "
                f"({d['occurrences']}/{d['total_samples']} samples)"
            )

        if self.category is DriftCategory.MISSING_KEY:
            missing = d["total_samples"] - d["occurrences"]
            return (
                f"Missing key: {d['missing_pct']:.2f}% missing "
                f"({missing}/{d['total_samples']} samples missing field)"
            )

        kind = d["evolution_kind"]
        if kind is EvolutionKind.VERSION_MARKER:
            return f"Schema evolution: version marker '{self.path}'"
        if kind is EvolutionKind.DEPRECATED_NAMING:
            replacement = d.get("replacement_path")
            if replacement:
                return f"Schema evolution: deprecated field '{self.path}' → '{replacement}'"
            return f"Schema evolution: deprecated naming on '{self.path}'"
        return f"Schema evolution: mutually exclusive fields: {', '.join(d['paths'])}"

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the finding to a dictionary for the reporting layer.

        Returns:
            A JSON-serializable dictionary representation
        """
        return {
            "path": self.path,
            "category": self.category.value,
            "severity": str(self.severity),
            "detail": _thaw(self.detail),
            "description": self.description(),
        }


@dataclass(frozen=True)
class ClassificationResult:
    """Ordered findings plus whether there was anything to classify."""
    findings: Tuple[DriftFinding, ...] = ()
    status: str = "ok"

    STATUS_OK = "ok"
    STATUS_NO_DATA = "no_data"


@dataclass
class DriftThresholds:
    """
    Configurable thresholds that control drift classification.
    All values are percentages (0–100).
    """

    # --- Presence bands ---
    ghost_key_below_pct: float = 10.0
    """
    Paths present in fewer than this share of documents are ghost keys.
    Exactly 10.0% is already sparse.
    """

    sparse_field_max_pct: float = 80.0
    """
    Upper bound (inclusive) of the sparse band. Exactly 80.0% is sparse.
    """

    missing_key_critical_below_pct: float = 90.0
    """
    Above the sparse band and below this, a missing key is Critical.
    """

    required_from_pct: float = 95.0
    """
    From this share upward a path counts as required and gets no finding.
    Between missing_key_critical_below_pct and this, a missing key is a Warning.
    """

    # --- Type inconsistency bands ---
    type_critical_pct: float = 10.0
    type_warning_pct: float = 5.0

    # --- Evolution ---
    detect_schema_evolution: bool = True

    def __post_init__(self):
        bands = (
            self.ghost_key_below_pct,
            self.sparse_field_max_pct,
            self.missing_key_critical_below_pct,
            self.required_from_pct,
        )
        if list(bands) != sorted(bands):
            raise ValueError(f"Presence thresholds must be ascending, got {bands}")
        if self.type_warning_pct > self.type_critical_pct:
            raise ValueError("type_warning_pct must not exceed type_critical_pct")
