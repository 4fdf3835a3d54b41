# ==============================================
# FieldStats
# ==============================================
#
# PURPOSE:
#   Data class that holds all observed statistics for a single
#   field path. This is the "evidence" that the DriftClassifier
#   uses to decide whether a path is a ghost key, a sparse field,
#   a key with unexplained gaps, or a field whose type drifts.
#
# CLASS: FieldStats (dataclass)
# -----------------------------
#   Attributes:
#   -----------
#   - path: str                           → Normalized path ("addresses[].city")
#   - occurrence_count: int               → Documents containing the path (once per document)
#   - type_distribution: dict[tag, int]   → {NUMBER: 4600, STRING: 400}, every occurrence
#   - null_count: int                     → Occurrences whose value was null
#   - max_depth: int                      → Deepest level the path was seen at
#   - example_values: list[str]           → Up to max_examples distinct serialized values.
#                                           First-seen order within one fold; once two
#                                           non-empty sides are merged the list is the
#                                           sorted union, so parallel runs report
#                                           examples sorted.
#   - co_occurrence: dict[str, int]       → Sibling path → documents holding both
#                                           (only tracked for evolution families)
#
#   Computed Properties:
#   --------------------
#   - observation_count -> int
#       Sum of type_distribution. Equals occurrence_count unless the path
#       sits under an array, where one document can hold several occurrences.
#
#   - dominant_type -> ValueTypeTag | None
#   - non_null_types -> dict[tag, int]
#
#   Methods:
#   --------
#   - mark_present() -> None               → Count one more document
#   - record(type_tag, depth, example) -> None → Fold one occurrence
#       (example is pre-serialized so folding itself cannot fail)
#   - merge(other) -> None                 → Commutative fold of another FieldStats
#   - present_pct(total_samples) -> float
#   - to_dict() -> dict                    → For the reporting layer
#
# ==============================================

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from jsondrift.walking.json_type import ValueTypeTag


DEFAULT_MAX_EXAMPLES = 10
MAX_EXAMPLE_CHARS = 200
EXAMPLE_LEVELS = 2  # container levels kept in an example before eliding
EXAMPLE_ITEMS = 10  # items kept per container level


def _clip(value: Any, levels: int) -> Any:
    if isinstance(value, dict):
        if levels == 0:
            return "{...}"
        items = list(value.items())[:EXAMPLE_ITEMS]
        return {str(key): _clip(item, levels - 1) for key, item in items}
    if isinstance(value, (list, tuple)):
        if levels == 0:
            return "[...]"
        return [_clip(item, levels - 1) for item in value[:EXAMPLE_ITEMS]]
    return value


def serialize_example(value: Any) -> str:
    """
    Compact, key-sorted JSON text of a value, clipped for reporting.

    Containers are cut to a couple of levels first, so a huge or very
    deep subtree costs the same as a small one.
    """
    clipped = _clip(value, EXAMPLE_LEVELS)
    text = json.dumps(clipped, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    if len(text) > MAX_EXAMPLE_CHARS:
        text = text[:MAX_EXAMPLE_CHARS - 3] + "..."
    return text


@dataclass
class FieldStats:
    """
    Holds observed statistics for a single field path across many documents.
    """

    # --- Core identity ---
    path: str

    # --- Counters ---
    occurrence_count: int = 0  # Documents in which the path appeared at least once
    type_distribution: Dict[ValueTypeTag, int] = field(default_factory=dict)
    null_count: int = 0
    max_depth: int = 0

    # --- Reporting only ---
    example_values: List[str] = field(default_factory=list)
    max_examples: int = DEFAULT_MAX_EXAMPLES

    # --- Evolution families ---
    co_occurrence: Dict[str, int] = field(default_factory=dict)

    # ======================================
    # Update logic
    # ======================================
    def mark_present(self) -> None:
        """Count one more document that contains this path."""
        self.occurrence_count += 1

    def record(self, type_tag: ValueTypeTag, depth: int, example: Optional[str] = None) -> None:
        """
        Fold one individual occurrence of the path.

        Args:
            type_tag: Its JSON type
            depth: Nesting depth it was observed at
            example: The value already run through serialize_example(),
                     or None when no example is wanted
        """
        self.type_distribution[type_tag] = self.type_distribution.get(type_tag, 0) + 1

        if type_tag is ValueTypeTag.NULL:
            self.null_count += 1

        if depth > self.max_depth:
            self.max_depth = depth

        if example is not None and self.wants_examples:
            if example not in self.example_values:
                self.example_values.append(example)

    def merge(self, other: "FieldStats") -> None:
        """
        Fold another FieldStats for the same path into this one.

        Counters add up and depths take the maximum. Examples keep their
        first-seen order when only one side has any; when both do, the
        union is sorted and clipped so merge order never matters.
        """
        if other.path != self.path:
            raise ValueError(f"Cannot merge stats of '{other.path}' into '{self.path}'")

        self.occurrence_count += other.occurrence_count
        self.null_count += other.null_count
        self.max_depth = max(self.max_depth, other.max_depth)

        for type_tag, count in other.type_distribution.items():
            self.type_distribution[type_tag] = self.type_distribution.get(type_tag, 0) + count

        for sibling, count in other.co_occurrence.items():
            self.co_occurrence[sibling] = self.co_occurrence.get(sibling, 0) + count

        if other.example_values:
            if self.example_values:
                union = set(self.example_values) | set(other.example_values)
                self.example_values = sorted(union)[:self.max_examples]
            else:
                self.example_values = list(other.example_values[:self.max_examples])

    # ======================================
    # Computed properties
    # ======================================
    @property
    def wants_examples(self) -> bool:
        return len(self.example_values) < self.max_examples

    @property
    def observation_count(self) -> int:
        return sum(self.type_distribution.values())

    @property
    def non_null_types(self) -> Dict[ValueTypeTag, int]:
        return {
            type_tag: count
            for type_tag, count in self.type_distribution.items()
            if type_tag is not ValueTypeTag.NULL and count > 0
        }

    @property
    def dominant_type(self) -> Optional[ValueTypeTag]:
        """
        Most frequently observed type; ties resolve by type name so the
        answer never depends on insertion order.
        """
        if not self.type_distribution:
            return None
        return min(self.type_distribution, key=lambda t: (-self.type_distribution[t], t.value))

    def present_pct(self, total_samples: int) -> float:
        if total_samples <= 0:
            return 0.0
        return self.occurrence_count / total_samples * 100.0

    # ======================================
    # Serialization
    # ======================================
    def to_dict(self) -> Dict[str, Any]:
        """
        Convert stats to a JSON-serializable dictionary for the reporting layer.
        """
        return {
            "path": self.path,
            "occurrence_count": self.occurrence_count,
            "type_distribution": {
                type_tag.value: count
                for type_tag, count in sorted(self.type_distribution.items(), key=lambda kv: kv[0].value)
            },
            "null_count": self.null_count,
            "max_depth": self.max_depth,
            "example_values": list(self.example_values),
        }
