# ==============================================
# DriftClassifier
# ==============================================
#
# PURPOSE:
#   Takes the final FieldStats mapping from the PathStatsAccumulator
#   and applies threshold rules to produce an ordered list of
#   DriftFinding objects. This is the "brain" of the engine.
#
# CLASS: DriftClassifier
# ----------------------
#   Stateless. Takes stats in, produces findings out. Pure and
#   deterministic: the same input always yields the same sequence.
#
#   Constructor:
#   ------------
#   - __init__(thresholds: DriftThresholds | None = None,
#              evolution_detector: EvolutionDetector | None = None)
#
#   Methods:
#   --------
#   - classify(stats, ctx: SampleContext) -> ClassificationResult
#       total_samples == 0 → no findings, status "no_data".
#       Otherwise, for every path:
#
#       PRESENCE (first match wins), present_pct = occurrences / samples * 100
#         <  10%          → GhostKey,   Info
#         10% .. 80%      → SparseField, Info     (both bounds included)
#         80% .. 90%      → MissingKey, Critical  (80 excluded, 90 excluded)
#         90% .. 95%      → MissingKey, Warning   (90 included, 95 excluded)
#         >= 95%          → nothing
#
#       TYPE INCONSISTENCY (independent, may co-occur with presence)
#         minority >= 10% → Critical
#         5% .. 10%       → Warning
#         < 5%            → Info
#
#       EVOLUTION: EvolutionDetector findings are appended.
#
#       Findings sort Critical → Warning → Info, then by path.
#
#   - classify_field(path, stats, total_samples) -> list[DriftFinding]
#       Presence + type findings for a single path.
#
# ==============================================

from typing import List, Mapping, Optional, Tuple

from jsondrift.walking.json_type import ValueTypeTag
from .evolution import EvolutionDetector
from .field_stats import FieldStats
from .findings import (
    ClassificationResult,
    DriftCategory,
    DriftFinding,
    DriftThresholds,
    SampleContext,
    Severity,
)


class DriftClassifier:
    """
    Applies presence and type-stability rules to FieldStats to produce
    drift findings with a severity.
    """

    def __init__(
        self,
        thresholds: Optional[DriftThresholds] = None,
        evolution_detector: Optional[EvolutionDetector] = None
    ):
        """
        Initialize the DriftClassifier with configurable thresholds.

        Args:
            thresholds: Optional DriftThresholds. If not provided,
                        defaults will be used (10 / 80 / 90 / 95% presence,
                        5 / 10% minority type).
            evolution_detector: Optional EvolutionDetector for naming checks.
        """
        self.thresholds = thresholds or DriftThresholds()
        self.evolution_detector = evolution_detector or EvolutionDetector()

    def classify(
        self,
        stats: Mapping[str, FieldStats],
        ctx: SampleContext
    ) -> ClassificationResult:
        """
        Classify every observed path.

        Args:
            stats: Dictionary of path → FieldStats from the accumulator
            ctx: Sample context; all percentages are relative to ctx.total_samples

        Returns:
            ClassificationResult with findings ordered by severity then path
        """
        if ctx.total_samples == 0:
            return ClassificationResult(findings=(), status=ClassificationResult.STATUS_NO_DATA)

        findings: List[DriftFinding] = []
        for path in sorted(stats):
            findings.extend(self.classify_field(path, stats[path], ctx.total_samples))

        if self.thresholds.detect_schema_evolution:
            findings.extend(self.evolution_detector.detect(stats))

        findings.sort(key=lambda finding: finding.sort_key)
        return ClassificationResult(findings=tuple(findings), status=ClassificationResult.STATUS_OK)

    def classify_field(
        self,
        path: str,
        stats: FieldStats,
        total_samples: int
    ) -> List[DriftFinding]:
        """
        Presence and type findings for a single path.

        Args:
            path: The field path
            stats: Its accumulated statistics
            total_samples: Documents in the sample

        Returns:
            Zero, one or two findings
        """
        findings = []

        presence = self._classify_presence(path, stats, total_samples)
        if presence is not None:
            findings.append(presence)

        type_finding = self._classify_types(path, stats)
        if type_finding is not None:
            findings.append(type_finding)

        return findings

    def _classify_presence(
        self,
        path: str,
        stats: FieldStats,
        total_samples: int
    ) -> Optional[DriftFinding]:
        t = self.thresholds
        occurrences = min(stats.occurrence_count, total_samples)
        present_pct = occurrences * 100.0 / total_samples

        detail = {
            "present_pct": present_pct,
            "occurrences": occurrences,
            "total_samples": total_samples,
        }

        if present_pct < t.ghost_key_below_pct:
            return DriftFinding(path, DriftCategory.GHOST_KEY, Severity.INFO, detail)

        if present_pct <= t.sparse_field_max_pct:
            return DriftFinding(path, DriftCategory.SPARSE_FIELD, Severity.INFO, detail)

        if present_pct >= t.required_from_pct:
            return None

        detail["missing_pct"] = 100.0 - present_pct
        if present_pct < t.missing_key_critical_below_pct:
            return DriftFinding(path, DriftCategory.MISSING_KEY, Severity.CRITICAL, detail)
        return DriftFinding(path, DriftCategory.MISSING_KEY, Severity.WARNING, detail)

    def _classify_types(self, path: str, stats: FieldStats) -> Optional[DriftFinding]:
        total = stats.observation_count
        if total == 0:
            return None

        minority = self._find_minority(stats)
        if minority is None:
            return None
        minority_type, minority_count = minority

        minority_pct = minority_count * 100.0 / total
        type_percentages = [
            (type_tag.value, count * 100.0 / total)
            for type_tag, count in sorted(
                stats.type_distribution.items(),
                key=lambda kv: (-kv[1], kv[0].value)
            )
        ]

        return DriftFinding(
            path=path,
            category=DriftCategory.TYPE_INCONSISTENCY,
            severity=self._type_severity(minority_pct),
            detail={
                "minority_type": minority_type.value,
                "minority_pct": minority_pct,
                "type_percentages": type_percentages,
            },
        )

    def _find_minority(self, stats: FieldStats) -> Optional[Tuple[ValueTypeTag, int]]:
        """
        Pick the minority type and the observation count it stands for.

        Null is ignored while two or more non-null types compete; in that
        case every non-dominant non-null observation counts toward the
        minority and the least common of those types names it. With a
        single non-null type, Null is the minority only when it is rarer
        than that type.

        Returns:
            (minority_type, minority_count) or None when the path is single-typed
        """
        non_null = stats.non_null_types

        def by_count(type_tag: ValueTypeTag) -> Tuple[int, str]:
            return (non_null[type_tag], type_tag.value)

        if len(non_null) >= 2:
            dominant = min(non_null, key=lambda t: (-non_null[t], t.value))
            others = [t for t in non_null if t is not dominant]
            least_common = min(others, key=by_count)
            return least_common, sum(non_null[t] for t in others)

        null_count = stats.type_distribution.get(ValueTypeTag.NULL, 0)
        if len(non_null) == 1 and null_count > 0:
            (_, only_count), = non_null.items()
            if null_count < only_count:
                return ValueTypeTag.NULL, null_count

        return None

    def _type_severity(self, minority_pct: float) -> Severity:
        if minority_pct >= self.thresholds.type_critical_pct:
            return Severity.CRITICAL
        if minority_pct >= self.thresholds.type_warning_pct:
            return Severity.WARNING
        return Severity.INFO
