# ==============================================
# EvolutionDetector
# ==============================================
#
# PURPOSE:
#   Look at path NAMES (not values) for signs that the document
#   schema has changed over the table's history.
#
# PATTERNS:
# ---------
#   1. VERSION MARKERS → Info
#      Final segment is "version", "schema_version" or "api_version"
#      (case-insensitive). Informational only.
#
#   2. DEPRECATED NAMING → Warning
#      Final segment starts with "old_", "legacy_" or "deprecated_".
#      If the un-prefixed sibling exists it is named as the replacement.
#
#   3. MUTUALLY EXCLUSIVE PAIRS → Warning
#      Siblings that only differ by a version suffix ("address_v1" /
#      "address_v2") or a deprecated prefix ("old_theme" / "theme") form
#      a family. Two family members that never appear in the same
#      document were most likely renamed from one to the other.
#      Per-document co-occurrence is counted by the accumulator in
#      FieldStats.co_occurrence; zero means the document sets are disjoint.
#
# ==============================================

import re
from itertools import combinations
from typing import Dict, List, Mapping, Optional, Tuple

from .field_stats import FieldStats
from .findings import DriftCategory, DriftFinding, EvolutionKind, Severity


VERSION_MARKERS = ("version", "schema_version", "api_version")
DEPRECATED_PREFIXES = ("old_", "legacy_", "deprecated_")
VERSION_SUFFIX = re.compile(r"_v\d+$", re.IGNORECASE)


def split_path(path: str) -> Tuple[str, str]:
    """
    Split a path into (parent, final segment).

    Examples:
        split_path("user.address_v1") → ("user", "address_v1")
        split_path("theme")           → ("", "theme")
    """
    parent, _, leaf = path.rpartition(".")
    return parent, leaf


def deprecated_prefix(leaf: str) -> Optional[str]:
    lowered = leaf.lower()
    for prefix in DEPRECATED_PREFIXES:
        if lowered.startswith(prefix) and len(leaf) > len(prefix):
            return leaf[:len(prefix)]
    return None


def family_key(path: str) -> str:
    """
    Key shared by sibling paths that differ only by a version suffix or
    a deprecated prefix.

    Examples:
        family_key("user.address_v2")  → "user.address"
        family_key("user.old_address") → "user.address"
        family_key("user.address")     → "user.address"
    """
    parent, leaf = split_path(path)
    prefix = deprecated_prefix(leaf)
    if prefix:
        leaf = leaf[len(prefix):]
    leaf = VERSION_SUFFIX.sub("", leaf) or leaf
    return f"{parent}.{leaf}" if parent else leaf


class EvolutionDetector:
    """
    Produces SchemaEvolution findings from the path set of one analysis run.
    Stateless: stats in, findings out.
    """

    def detect(self, stats: Mapping[str, FieldStats]) -> List[DriftFinding]:
        """
        Run all naming checks over the observed paths.

        Args:
            stats: Final path → FieldStats mapping of the run

        Returns:
            Unordered list of SchemaEvolution findings
        """
        findings: List[DriftFinding] = []
        for path in sorted(stats):
            findings.extend(self._check_version_marker(path))
            findings.extend(self._check_deprecated_naming(path, stats))
        findings.extend(self._check_mutually_exclusive(stats))
        return findings

    def _check_version_marker(self, path: str) -> List[DriftFinding]:
        _, leaf = split_path(path)
        if leaf.lower() not in VERSION_MARKERS:
            return []
        return [DriftFinding(
            path=path,
            category=DriftCategory.SCHEMA_EVOLUTION,
            severity=Severity.INFO,
            detail={"evolution_kind": EvolutionKind.VERSION_MARKER},
        )]

    def _check_deprecated_naming(
        self,
        path: str,
        stats: Mapping[str, FieldStats]
    ) -> List[DriftFinding]:
        parent, leaf = split_path(path)
        prefix = deprecated_prefix(leaf)
        if prefix is None:
            return []

        # The current name is the leaf without its prefix, under the same parent
        current_leaf = leaf[len(prefix):]
        current_path = f"{parent}.{current_leaf}" if parent else current_leaf

        return [DriftFinding(
            path=path,
            category=DriftCategory.SCHEMA_EVOLUTION,
            severity=Severity.WARNING,
            detail={
                "evolution_kind": EvolutionKind.DEPRECATED_NAMING,
                "prefix": prefix.lower(),
                "replacement_path": current_path if current_path in stats else None,
            },
        )]

    def _check_mutually_exclusive(self, stats: Mapping[str, FieldStats]) -> List[DriftFinding]:
        families: Dict[str, List[str]] = {}
        for path in sorted(stats):
            families.setdefault(family_key(path), []).append(path)

        findings: List[DriftFinding] = []
        for members in families.values():
            if len(members) < 2:
                continue
            for first, second in combinations(members, 2):
                first_stats, second_stats = stats[first], stats[second]
                if first_stats.occurrence_count == 0 or second_stats.occurrence_count == 0:
                    continue
                if first_stats.co_occurrence.get(second, 0) > 0:
                    continue
                findings.append(DriftFinding(
                    path=first,
                    category=DriftCategory.SCHEMA_EVOLUTION,
                    severity=Severity.WARNING,
                    detail={
                        "evolution_kind": EvolutionKind.MUTUALLY_EXCLUSIVE,
                        "paths": [first, second],
                        "occurrences": [first_stats.occurrence_count, second_stats.occurrence_count],
                    },
                ))
        return findings
