# ==============================================
# PathStatsAccumulator
# ==============================================
#
# PURPOSE:
#   Observe sampled JSON documents one at a time and accumulate
#   per-path statistics (FieldStats). This is the "observation
#   engine": it watches data and builds evidence.
#
# CLASS: PathStatsAccumulator
# ---------------------------
#   Stateful. Accumulates FieldStats across documents. One accumulator
#   belongs to one analysis run (or one worker batch of it).
#
#   Constructor:
#   ------------
#   - __init__(max_depth: int = 64, max_examples: int = 10)
#
#   Attributes:
#   -----------
#   - documents_observed: int     → Documents folded so far
#   - truncated_documents: int    → Documents cut off at max_depth
#
#   Methods:
#   --------
#   - observe(document) -> None
#       Walk one parsed document and fold every path occurrence.
#       occurrence_count moves at most once per document per path;
#       type counts, nulls and examples record every occurrence.
#
#   - observe_raw(raw) -> None
#       For text columns: decodes str/bytes JSON text, then observes it.
#       Parsed values go to observe(); a parsed string is a document.
#
#   Both raise MalformedDocumentError for a document that cannot be
#   decoded, walked or serialized, and fold nothing from it.
#
#   - merge(other) -> None
#       Fold another accumulator in. Commutative and associative,
#       so worker batches can be reduced in any order.
#
#   - into_map() -> dict[str, FieldStats]
#       Hand the statistics over and retire the accumulator.
#
# ==============================================

import json
import logging
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from jsondrift.errors import AccumulatorConsumedError, MalformedDocumentError
from jsondrift.walking import JsonTreeWalker, ValueTypeTag
from .evolution import family_key
from .field_stats import FieldStats, DEFAULT_MAX_EXAMPLES, serialize_example

logger = logging.getLogger(__name__)


class PathStatsAccumulator:
    """
    Folds JSON documents into a mapping of path → FieldStats.
    """

    def __init__(self, max_depth: int = 64, max_examples: int = DEFAULT_MAX_EXAMPLES):
        """
        Initialize the accumulator.

        Args:
            max_depth: Deepest nesting level whose paths are recorded
            max_examples: Cap on distinct example values kept per path
        """
        if max_examples < 0:
            raise ValueError(f"max_examples must be >= 0, got {max_examples}")
        self._walker = JsonTreeWalker(max_depth=max_depth)
        self._max_examples = max_examples
        self._stats: Dict[str, FieldStats] = {}  # path → FieldStats
        self._consumed = False
        self.documents_observed: int = 0
        self.truncated_documents: int = 0

    @property
    def max_depth(self) -> int:
        return self._walker.max_depth

    def observe(self, document: Any) -> None:
        """
        Fold one parsed JSON document into the statistics.

        Any JSON value is a document: a string or number root is one
        sample that contributes no paths.

        Args:
            document: A parsed JSON value, normally a dict

        Raises:
            MalformedDocumentError: If the document holds a value that cannot
                                    be walked or serialized (nothing is folded)
        """
        self._check_open()

        try:
            prepared = self._prepare(document)
        except (TypeError, ValueError, RecursionError) as e:
            raise MalformedDocumentError(f"Unexpected value in document: {e}") from e

        seen_in_document: Set[str] = set()

        for path, type_tag, depth, example in prepared:
            stats = self._stats.get(path)
            if stats is None:
                stats = FieldStats(path=path, max_examples=self._max_examples)
                self._stats[path] = stats

            # Array fan-out can repeat a path; presence counts once
            if path not in seen_in_document:
                seen_in_document.add(path)
                stats.mark_present()

            stats.record(type_tag, depth, example)

        self._record_co_occurrence(seen_in_document)

        if self._walker.truncated_frames:
            self.truncated_documents += 1
            logger.debug(
                "Document truncated at depth %d (%d frames dropped)",
                self.max_depth, self._walker.truncated_frames
            )

        self.documents_observed += 1

    def observe_raw(self, raw: Union[str, bytes, bytearray]) -> None:
        """
        Decode one column value holding JSON text, then observe it.

        Args:
            raw: str / bytes JSON text as stored in a text column

        Raises:
            MalformedDocumentError: If the value is not text or not valid JSON
        """
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedDocumentError(f"Column value is not UTF-8: {e}") from e

        if not isinstance(raw, str):
            raise MalformedDocumentError(f"Expected JSON text, got {type(raw).__name__}")

        try:
            document = json.loads(raw)
        except (ValueError, RecursionError) as e:
            raise MalformedDocumentError(f"Column value is not valid JSON: {e}", raw[:80]) from e

        self.observe(document)

    def _prepare(self, document: Any) -> List[Tuple[str, ValueTypeTag, int, Optional[str]]]:
        """
        Walk the whole document and serialize the examples it still owes,
        without touching the stats. Everything that can fail happens here.
        """
        prepared = []
        pending: Dict[str, Set[str]] = {}  # new distinct examples per path

        for path, type_tag, depth, value in self._walker.walk_values(document):
            stats = self._stats.get(path)
            held = len(stats.example_values) if stats is not None else 0
            new_examples = pending.setdefault(path, set())
            example = None
            if held + len(new_examples) < self._max_examples:
                example = serialize_example(value)
                if stats is None or example not in stats.example_values:
                    new_examples.add(example)
            prepared.append((path, type_tag, depth, example))

        return prepared

    def _record_co_occurrence(self, paths: Set[str]) -> None:
        """
        For every evolution family with two or more members present in
        this document, count the pair as co-occurring.
        """
        families: Dict[str, List[str]] = {}
        for path in paths:
            families.setdefault(family_key(path), []).append(path)

        for members in families.values():
            if len(members) < 2:
                continue
            for path in members:
                co_occurrence = self._stats[path].co_occurrence
                for sibling in members:
                    if sibling != path:
                        co_occurrence[sibling] = co_occurrence.get(sibling, 0) + 1

    def merge(self, other: "PathStatsAccumulator") -> None:
        """
        Fold another accumulator's statistics into this one.

        Args:
            other: An accumulator built from a disjoint set of documents
        """
        self._check_open()
        if other is self:
            raise ValueError("Cannot merge an accumulator into itself")

        for path, other_stats in other._stats.items():
            stats = self._stats.get(path)
            if stats is None:
                stats = FieldStats(path=path, max_examples=self._max_examples)
                self._stats[path] = stats
            stats.merge(other_stats)

        self.documents_observed += other.documents_observed
        self.truncated_documents += other.truncated_documents

    def snapshot(self) -> Dict[str, FieldStats]:
        """Return the live statistics without consuming the accumulator."""
        return dict(self._stats)

    def into_map(self) -> Dict[str, FieldStats]:
        """
        Finalize: return all accumulated statistics and retire the accumulator.

        Returns:
            Dictionary mapping field paths to their FieldStats
        """
        self._check_open()
        self._consumed = True
        stats, self._stats = self._stats, {}
        return stats

    def get_field_count(self) -> int:
        """Number of distinct paths observed so far."""
        return len(self._stats)

    def _check_open(self) -> None:
        if self._consumed:
            raise AccumulatorConsumedError("Accumulator was already consumed by into_map()")
