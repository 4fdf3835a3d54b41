# ==============================================
# Tests for the Drift Classifier
# ==============================================

import json

import pytest

from jsondrift.analysis import (
    DriftCategory,
    DriftClassifier,
    DriftThresholds,
    EvolutionKind,
    SampleContext,
    Severity,
)
from jsondrift.walking import ValueTypeTag

N = ValueTypeTag.NUMBER
S = ValueTypeTag.STRING
B = ValueTypeTag.BOOLEAN
NULL = ValueTypeTag.NULL


def _classify(stats_list, total_samples):
    classifier = DriftClassifier()
    stats = {s.path: s for s in stats_list}
    return classifier.classify(stats, SampleContext(total_samples=total_samples))


def _only(result, category):
    matches = [f for f in result.findings if f.category is category]
    assert len(matches) == 1, result.findings
    return matches[0]


class TestPresenceRules:

    def test_ghost_key(self, make_stats):
        result = _classify([make_stats("promo", 40)], 5000)
        finding = _only(result, DriftCategory.GHOST_KEY)
        assert finding.severity is Severity.INFO
        assert finding.detail["present_pct"] == pytest.approx(0.8)
        assert finding.detail["occurrences"] == 40

    def test_missing_key_critical(self, make_stats):
        result = _classify([make_stats("email", 4250)], 5000)
        finding = _only(result, DriftCategory.MISSING_KEY)
        assert finding.severity is Severity.CRITICAL
        assert finding.detail["present_pct"] == pytest.approx(85.0)
        assert finding.detail["missing_pct"] == pytest.approx(15.0)

    def test_missing_key_warning(self, make_stats):
        finding = _only(_classify([make_stats("email", 460)], 500), DriftCategory.MISSING_KEY)
        assert finding.severity is Severity.WARNING
        assert finding.detail["missing_pct"] == pytest.approx(8.0)

    def test_sparse_field(self, make_stats):
        finding = _only(_classify([make_stats("bio", 50)], 100), DriftCategory.SPARSE_FIELD)
        assert finding.severity is Severity.INFO

    @pytest.mark.parametrize("occurrences, category, severity", [
        (999, DriftCategory.GHOST_KEY, Severity.INFO),         # 9.99%
        (1000, DriftCategory.SPARSE_FIELD, Severity.INFO),     # 10.0%
        (8000, DriftCategory.SPARSE_FIELD, Severity.INFO),     # 80.0%
        (8001, DriftCategory.MISSING_KEY, Severity.CRITICAL),  # 80.01%
        (8999, DriftCategory.MISSING_KEY, Severity.CRITICAL),  # 89.99%
        (9000, DriftCategory.MISSING_KEY, Severity.WARNING),   # 90.0%
        (9499, DriftCategory.MISSING_KEY, Severity.WARNING),   # 94.99%
    ])
    def test_band_boundaries(self, make_stats, occurrences, category, severity):
        finding = _only(_classify([make_stats("f", occurrences)], 10000), category)
        assert finding.severity is severity

    @pytest.mark.parametrize("occurrences", [9500, 10000])
    def test_required_paths_have_no_presence_finding(self, make_stats, occurrences):
        assert _classify([make_stats("f", occurrences)], 10000).findings == ()


class TestTypeRules:

    def test_number_with_string_minority(self, make_stats):
        stats = make_stats("age", 5000, {N: 4600, S: 400})
        finding = _only(_classify([stats], 5000), DriftCategory.TYPE_INCONSISTENCY)
        assert finding.severity is Severity.WARNING
        assert finding.detail["minority_type"] == "string"
        assert finding.detail["minority_pct"] == pytest.approx(8.0)
        assert finding.detail["type_percentages"][0] == ("number", pytest.approx(92.0))

    @pytest.mark.parametrize("minority, severity", [
        (150, Severity.CRITICAL),
        (100, Severity.CRITICAL),
        (50, Severity.WARNING),
        (30, Severity.INFO),
    ])
    def test_minority_severity_bands(self, make_stats, minority, severity):
        stats = make_stats("v", 1000, {N: 1000 - minority, S: minority})
        finding = _only(_classify([stats], 1000), DriftCategory.TYPE_INCONSISTENCY)
        assert finding.severity is severity

    def test_single_type_is_consistent(self, make_stats):
        assert _classify([make_stats("v", 100, {N: 100})], 100).findings == ()

    def test_minority_sums_all_non_dominant_types(self, make_stats):
        stats = make_stats("v", 100, {N: 90, S: 6, B: 4})
        finding = _only(_classify([stats], 100), DriftCategory.TYPE_INCONSISTENCY)
        assert finding.detail["minority_type"] == "boolean"
        assert finding.detail["minority_pct"] == pytest.approx(10.0)
        assert finding.severity is Severity.CRITICAL

    def test_null_ignored_among_competing_types(self, make_stats):
        stats = make_stats("v", 100, {N: 50, S: 10, NULL: 40})
        finding = _only(_classify([stats], 100), DriftCategory.TYPE_INCONSISTENCY)
        assert finding.detail["minority_type"] == "string"
        assert finding.detail["minority_pct"] == pytest.approx(10.0)

    def test_rare_null_is_the_minority(self, make_stats):
        stats = make_stats("v", 100, {N: 97, NULL: 3})
        finding = _only(_classify([stats], 100), DriftCategory.TYPE_INCONSISTENCY)
        assert finding.detail["minority_type"] == "null"
        assert finding.severity is Severity.INFO

    def test_mostly_null_is_not_type_drift(self, make_stats):
        stats = make_stats("v", 100, {NULL: 80, S: 20})
        assert _classify([stats], 100).findings == ()

    def test_presence_and_type_findings_coexist(self, make_stats):
        stats = make_stats("score", 85, {N: 70, S: 15})
        result = _classify([stats], 100)
        assert {f.category for f in result.findings} == {
            DriftCategory.MISSING_KEY,
            DriftCategory.TYPE_INCONSISTENCY,
        }


class TestDriftClassifier:

    def test_no_data(self, make_stats):
        result = _classify([make_stats("a", 0)], 0)
        assert result.status == "no_data"
        assert result.findings == ()

    def test_findings_ordered_by_severity_then_path(self, make_stats):
        result = _classify([
            make_stats("zeta", 1),                 # ghost, info
            make_stats("beta", 85),                # missing, critical
            make_stats("alpha", 92),               # missing, warning
            make_stats("gamma", 86),               # missing, critical
        ], 100)
        assert [(f.path, f.severity) for f in result.findings] == [
            ("beta", Severity.CRITICAL),
            ("gamma", Severity.CRITICAL),
            ("alpha", Severity.WARNING),
            ("zeta", Severity.INFO),
        ]

    def test_classification_is_deterministic(self, make_stats):
        stats_list = [
            make_stats("b", 40, {N: 30, S: 10}),
            make_stats("a", 100, {S: 95, N: 5}),
            make_stats("old_theme", 30),
            make_stats("theme", 70),
        ]
        first = _classify(stats_list, 100)
        second = _classify(list(reversed(stats_list)), 100)
        assert [f.sort_key for f in first.findings] == [f.sort_key for f in second.findings]
        assert json.dumps([f.to_dict() for f in first.findings]) == \
            json.dumps([f.to_dict() for f in second.findings])

    def test_deprecated_field_reported(self, make_stats):
        old, current = make_stats("old_theme", 100), make_stats("theme", 100)
        old.co_occurrence["theme"] = 100
        current.co_occurrence["old_theme"] = 100
        result = _classify([old, current], 100)
        finding = _only(result, DriftCategory.SCHEMA_EVOLUTION)
        assert finding.path == "old_theme"
        assert finding.severity is Severity.WARNING
        assert finding.detail["evolution_kind"] is EvolutionKind.DEPRECATED_NAMING
        assert finding.detail["replacement_path"] == "theme"

    def test_evolution_can_be_disabled(self, make_stats):
        classifier = DriftClassifier(DriftThresholds(detect_schema_evolution=False))
        stats = {"old_theme": make_stats("old_theme", 100)}
        assert classifier.classify(stats, SampleContext(total_samples=100)).findings == ()

    def test_custom_thresholds(self, make_stats):
        classifier = DriftClassifier(DriftThresholds(ghost_key_below_pct=50.0))
        stats = {"f": make_stats("f", 40)}
        result = classifier.classify(stats, SampleContext(total_samples=100))
        assert result.findings[0].category is DriftCategory.GHOST_KEY

    def test_thresholds_must_ascend(self):
        with pytest.raises(ValueError):
            DriftThresholds(ghost_key_below_pct=90.0, sparse_field_max_pct=80.0)

    def test_finding_detail_is_read_only(self, make_stats):
        finding = _classify([make_stats("promo", 1)], 100).findings[0]
        with pytest.raises(TypeError):
            finding.detail["present_pct"] = 50.0

    def test_finding_serializes_to_json(self, make_stats):
        result = _classify([make_stats("age", 100, {N: 90, S: 10}), make_stats("old_x", 100)], 100)
        payload = json.dumps([f.to_dict() for f in result.findings])
        assert '"severity": "Critical"' in payload
        assert '"evolution_kind": "deprecated_naming"' in payload
