# ==============================================
# JsonTreeWalker
# ==============================================
#
# PURPOSE:
#   Enumerate every field path inside one parsed JSON document,
#   producing (path, type, depth) observations. Both leaves and
#   intermediate containers are reported.
#
# PATH RULES:
# -----------
#   {"user": {"age": 3}}                  → "user", "user.age"
#   {"addresses": [{"city": "X"}, ...]}   → "addresses", "addresses[].city"
#   {"tags": ["a", "b"]}                  → "tags" (scalar elements add nothing)
#
#   Array elements never get an index in the path: every element is
#   folded into the same "[]" path, so statistics describe "how often
#   does this field appear across all elements".
#
# DEPTH:
# ------
#   Root-level keys are depth 0. Every container descent (object or
#   array) adds one level:
#     "user" = 0, "user.age" = 1, "addresses[].city" = 2
#
# STACK:
# ------
#   The walk uses an explicit work stack of frames instead of native
#   recursion, so a 500-level document costs heap, not call stack.
#   Frames past max_depth are dropped and counted in truncated_frames.
#
# ==============================================

from typing import Any, Iterator, List, NamedTuple, Tuple

from .json_type import ValueTypeTag


class PathObservation(NamedTuple):
    """One occurrence of a path inside a single document."""
    path: str
    type_tag: ValueTypeTag
    depth: int
    value: Any


# (path, value, depth, emit); emit is False for array elements, which
# are descended into but are not fields of their own.
_Frame = Tuple[str, Any, int, bool]


class JsonTreeWalker:
    """
    Depth-bounded, stack-based walker over one JSON document.

    A walker holds no state between documents except the truncation
    counter of the most recent walk, so one instance should not be
    shared across threads.
    """

    ARRAY_MARKER = "[]"

    def __init__(self, max_depth: int = 64):
        """
        Args:
            max_depth: Deepest level whose paths are still recorded.
                       Must be >= 0 (0 keeps only root-level keys).
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.max_depth = max_depth
        self.truncated_frames = 0

    def walk(self, document: Any) -> Iterator[Tuple[str, ValueTypeTag, int]]:
        """Yield (path, type_tag, depth) triples for every field in the document."""
        for observation in self.walk_values(document):
            yield observation.path, observation.type_tag, observation.depth

    def walk_values(self, document: Any) -> Iterator[PathObservation]:
        """
        Yield a PathObservation for every field in the document, in
        document order (pre-order, keys in insertion order).

        Args:
            document: A parsed JSON value (dict, list, str, number, bool, None)
        """
        self.truncated_frames = 0
        stack: List[_Frame] = []
        self._push_children(stack, document, "", 0)

        while stack:
            path, value, depth, emit = stack.pop()
            type_tag = ValueTypeTag.detect(value)

            if emit:
                yield PathObservation(path, type_tag, depth, value)

            if not type_tag.is_container or not value:
                continue

            if depth + 1 > self.max_depth:
                self.truncated_frames += 1
                continue

            self._push_children(stack, value, path, depth + 1)

    def _push_children(
        self,
        stack: List[_Frame],
        container: Any,
        prefix: str,
        depth: int
    ) -> None:
        # Children are pushed in reverse so they pop in document order
        if isinstance(container, dict):
            frames = [
                (self._join(prefix, key), child, depth, True)
                for key, child in container.items()
            ]
        elif isinstance(container, (list, tuple)):
            element_path = prefix + self.ARRAY_MARKER
            frames = [(element_path, child, depth, False) for child in container]
        else:
            return
        stack.extend(reversed(frames))

    @staticmethod
    def _join(prefix: str, key: Any) -> str:
        if not prefix:
            return str(key)
        return f"{prefix}.{key}"
