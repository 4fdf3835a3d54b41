# ==============================================
# Tests for FieldStats and PathStatsAccumulator
# ==============================================

import sys

import pytest

from jsondrift.analysis import FieldStats, PathStatsAccumulator
from jsondrift.analysis.field_stats import serialize_example
from jsondrift.errors import AccumulatorConsumedError, MalformedDocumentError
from jsondrift.walking import ValueTypeTag


def _fold(documents, **kwargs) -> PathStatsAccumulator:
    acc = PathStatsAccumulator(**kwargs)
    for doc in documents:
        acc.observe(doc)
    return acc


def _counters(acc: PathStatsAccumulator) -> dict:
    return {
        path: (s.occurrence_count, dict(s.type_distribution), s.null_count, s.max_depth, dict(s.co_occurrence))
        for path, s in acc.snapshot().items()
    }


class TestFieldStats:

    def test_record_counts_types_and_nulls(self):
        stats = FieldStats(path="x")
        stats.record(ValueTypeTag.NUMBER, 0, "1")
        stats.record(ValueTypeTag.NULL, 2, "null")
        assert stats.type_distribution == {ValueTypeTag.NUMBER: 1, ValueTypeTag.NULL: 1}
        assert stats.null_count == 1
        assert stats.max_depth == 2
        assert stats.example_values == ["1", "null"]

    def test_dominant_type_tie_breaks_by_name(self):
        stats = FieldStats(path="x", type_distribution={ValueTypeTag.STRING: 3, ValueTypeTag.NUMBER: 3})
        assert stats.dominant_type is ValueTypeTag.NUMBER

    def test_merge_rejects_other_path(self):
        with pytest.raises(ValueError):
            FieldStats(path="a").merge(FieldStats(path="b"))

    def test_present_pct(self):
        stats = FieldStats(path="x", occurrence_count=40)
        assert stats.present_pct(5000) == pytest.approx(0.8)
        assert stats.present_pct(0) == 0.0

    def test_serialize_example_is_compact_and_key_sorted(self):
        assert serialize_example({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_serialize_example_clips_long_and_deep_values(self):
        assert len(serialize_example("x" * 1000)) == 200
        deep = {"a": {"b": {"c": {"d": 1}}}}
        assert serialize_example(deep) == '{"a":{"b":"{...}"}}'


class TestPathStatsAccumulator:

    def test_occurrence_counts_once_per_document(self):
        acc = _fold([{"items": [{"k": "a"}, {"k": "b"}, {"k": 1}]}])
        stats = acc.snapshot()["items[].k"]
        assert stats.occurrence_count == 1
        assert stats.type_distribution == {ValueTypeTag.STRING: 2, ValueTypeTag.NUMBER: 1}
        assert stats.observation_count == 3

    def test_null_values_are_present(self):
        acc = _fold([{"opt": None}, {"opt": 1}, {"opt": None}])
        stats = acc.snapshot()["opt"]
        assert stats.occurrence_count == 3
        assert stats.null_count == 2

    def test_examples_are_capped_and_distinct(self):
        acc = _fold([{"v": i % 15} for i in range(30)])
        examples = acc.snapshot()["v"].example_values
        assert examples == [str(i) for i in range(10)]

    def test_invariants_hold(self, sample_documents):
        acc = _fold(sample_documents)
        assert acc.documents_observed == 10
        for path, stats in acc.snapshot().items():
            assert stats.occurrence_count <= acc.documents_observed
            assert stats.observation_count == stats.occurrence_count

    def test_merge_with_empty_is_identity(self, sample_documents):
        baseline = _fold(sample_documents)
        acc = _fold(sample_documents)
        acc.merge(PathStatsAccumulator())
        assert acc.snapshot() == baseline.snapshot()
        assert acc.documents_observed == baseline.documents_observed

        empty = PathStatsAccumulator()
        empty.merge(_fold(sample_documents))
        assert empty.snapshot() == baseline.snapshot()

    def test_merge_is_commutative(self, sample_documents):
        first, second = sample_documents[:4], sample_documents[4:]
        a_then_b = _fold(first)
        a_then_b.merge(_fold(second))
        b_then_a = _fold(second)
        b_then_a.merge(_fold(first))
        assert a_then_b.snapshot() == b_then_a.snapshot()

    def test_merge_is_associative(self, sample_documents):
        parts = sample_documents[:3], sample_documents[3:6], sample_documents[6:]

        left = _fold(parts[0])
        left.merge(_fold(parts[1]))
        left.merge(_fold(parts[2]))

        right_tail = _fold(parts[1])
        right_tail.merge(_fold(parts[2]))
        right = _fold(parts[0])
        right.merge(right_tail)

        assert left.snapshot() == right.snapshot()

    def test_merged_counters_match_single_fold(self, sample_documents):
        whole = _fold(sample_documents)
        split = _fold(sample_documents[:5])
        split.merge(_fold(sample_documents[5:]))
        assert _counters(split) == _counters(whole)

    def test_self_merge_rejected(self):
        acc = PathStatsAccumulator()
        with pytest.raises(ValueError):
            acc.merge(acc)

    def test_observe_raw_decodes_text_and_bytes(self):
        acc = PathStatsAccumulator()
        acc.observe_raw('{"a": 1}')
        acc.observe_raw(b'{"a": "x"}')
        stats = acc.snapshot()["a"]
        assert stats.occurrence_count == 2
        assert stats.type_distribution == {ValueTypeTag.NUMBER: 1, ValueTypeTag.STRING: 1}

    @pytest.mark.parametrize("raw", ['{"a": ', b"\xff\xfe", "not json"])
    def test_observe_raw_rejects_malformed(self, raw):
        acc = PathStatsAccumulator()
        with pytest.raises(MalformedDocumentError):
            acc.observe_raw(raw)
        assert acc.documents_observed == 0

    def test_non_json_value_leaves_no_partial_fold(self):
        acc = PathStatsAccumulator()
        with pytest.raises(MalformedDocumentError):
            acc.observe({"a": 1, "b": {1, 2}})
        assert acc.get_field_count() == 0
        assert acc.documents_observed == 0

    @pytest.mark.skipif(
        not hasattr(sys, "get_int_max_str_digits"),
        reason="interpreter has no integer string conversion limit",
    )
    def test_unserializable_value_leaves_no_partial_fold(self):
        acc = _fold([{"a": 1}])
        with pytest.raises(MalformedDocumentError):
            acc.observe({"a": 2, "b": 10 ** 5000})
        stats = acc.snapshot()
        assert set(stats) == {"a"}
        assert stats["a"].occurrence_count == 1
        assert stats["a"].type_distribution == {ValueTypeTag.NUMBER: 1}
        assert acc.documents_observed == 1

    def test_parsed_string_root_is_a_sample_without_paths(self):
        acc = _fold(["hello", '{"b": 2}', 42])
        assert acc.documents_observed == 3
        assert acc.get_field_count() == 0

    def test_observe_raw_requires_text(self):
        acc = PathStatsAccumulator()
        with pytest.raises(MalformedDocumentError):
            acc.observe_raw({"a": 1})
        assert acc.documents_observed == 0

    def test_repeated_values_do_not_use_up_examples(self):
        acc = _fold([{"items": [{"k": 1}] * 12 + [{"k": 2}]}])
        assert acc.snapshot()["items[].k"].example_values == ["1", "2"]

    def test_examples_first_seen_until_merged(self):
        acc = _fold([{"v": "b"}, {"v": "a"}])
        assert acc.snapshot()["v"].example_values == ['"b"', '"a"']
        acc.merge(_fold([{"v": "c"}]))
        assert acc.snapshot()["v"].example_values == ['"a"', '"b"', '"c"']

    def test_truncated_documents_counted(self):
        doc = {"a": {"b": {"c": {"d": 1}}}}
        acc = _fold([doc, {"x": 1}], max_depth=1)
        assert acc.truncated_documents == 1
        assert set(acc.snapshot()) == {"a", "a.b", "x"}

    def test_into_map_consumes(self):
        acc = _fold([{"a": 1}])
        stats = acc.into_map()
        assert set(stats) == {"a"}
        with pytest.raises(AccumulatorConsumedError):
            acc.observe({"a": 2})
        with pytest.raises(AccumulatorConsumedError):
            acc.into_map()

    def test_co_occurrence_within_family(self):
        acc = _fold([
            {"address_v1": "a", "address_v2": "b"},
            {"address_v1": "a"},
            {"address_v2": "b", "other": 1},
        ])
        stats = acc.snapshot()
        assert stats["address_v1"].co_occurrence == {"address_v2": 1}
        assert stats["address_v2"].co_occurrence == {"address_v1": 1}
        assert stats["other"].co_occurrence == {}
