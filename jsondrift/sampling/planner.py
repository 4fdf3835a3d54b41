# ==============================================
# SamplingPlanner
# ==============================================
#
# PURPOSE:
#   Given an approximate row count, pick and parametrize a sampling
#   strategy. Performs no I/O: returns a SamplingPlan the row-fetch
#   layer executes.
#
# DECISION TABLE (rows evaluated in order, first match wins):
# -----------------------------------------------------------
#   rows <  100,000               → RANDOM
#   100,000 <= rows < 10,000,000  → RESERVOIR_PK
#   rows >= 10,000,000            → BLOCK_SAMPLE
#
#   Kept as data in PlannerThresholds + SamplingPlanner.decision_table,
#   so thresholds can be tuned and tested one row at a time.
#
# ADJUSTMENTS (all advisory, reported as PlanWarning):
# ----------------------------------------------------
#   - requested > rows           → size capped to rows ("sample_size_capped")
#   - capped size covers table   → FULL_SCAN (outside production mode)
#   - RESERVOIR_PK without a PK  → RANDOM ("no_primary_key")
#   - production mode            → RANDOM / FULL_SCAN become BLOCK_SAMPLE
#                                  ("production_downgrade"), block share
#                                  capped at 1% ("production_block_cap")
#   - estimate 0 but table known
#     to hold rows               → estimate ignored ("stale_estimate")
#   - estimate 0, no evidence
#     either way                 → plan kept at size 0, flagged
#                                  ("unverified_zero_estimate")
#
# ==============================================

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from jsondrift.errors import PlanningError
from .strategy import SamplingStrategy, StrategyKind

logger = logging.getLogger(__name__)


@dataclass
class PlannerThresholds:
    """
    Row-count thresholds and block-sampling limits used by the planner.
    """

    random_below_rows: int = 100_000
    """Tables smaller than this are sampled with ORDER BY random()."""

    block_sample_from_rows: int = 10_000_000
    """Tables at least this large are block sampled."""

    min_block_pct: float = 0.1
    max_block_pct: float = 100.0

    production_block_pct_cap: float = 1.0
    """Production mode never reads more than this share of blocks."""

    def __post_init__(self):
        if not 0 < self.random_below_rows <= self.block_sample_from_rows:
            raise ValueError(
                "Expected 0 < random_below_rows <= block_sample_from_rows, got "
                f"{self.random_below_rows} / {self.block_sample_from_rows}"
            )
        if not 0 < self.min_block_pct <= self.max_block_pct <= 100.0:
            raise ValueError("Block percentages must satisfy 0 < min <= max <= 100")


@dataclass(frozen=True)
class PlanWarning:
    """An advisory condition attached to a plan. Never fatal."""
    code: str
    message: str

    SAMPLE_SIZE_CAPPED = "sample_size_capped"
    NO_PRIMARY_KEY = "no_primary_key"
    PRODUCTION_DOWNGRADE = "production_downgrade"
    PRODUCTION_BLOCK_CAP = "production_block_cap"
    STALE_ESTIMATE = "stale_estimate"
    UNVERIFIED_ZERO_ESTIMATE = "unverified_zero_estimate"


@dataclass(frozen=True)
class SamplingPlan:
    """Strategy to execute plus any advisory warnings."""
    strategy: SamplingStrategy
    estimated_row_count: int
    production_mode: bool = False
    warnings: Tuple[PlanWarning, ...] = field(default_factory=tuple)

    @property
    def warning_codes(self) -> List[str]:
        return [warning.code for warning in self.warnings]


# A decision-table row: (predicate over the row estimate, strategy kind)
DecisionRule = Tuple[Callable[[int], bool], StrategyKind]


class SamplingPlanner:
    """
    Chooses a sampling strategy from a table-size estimate.
    """

    def __init__(self, thresholds: Optional[PlannerThresholds] = None):
        """
        Args:
            thresholds: Optional PlannerThresholds (defaults: 100k / 10M rows)
        """
        self.thresholds = thresholds or PlannerThresholds()
        t = self.thresholds
        self.decision_table: Tuple[DecisionRule, ...] = (
            (lambda rows: rows < t.random_below_rows, StrategyKind.RANDOM),
            (lambda rows: rows < t.block_sample_from_rows, StrategyKind.RESERVOIR_PK),
            (lambda rows: True, StrategyKind.BLOCK_SAMPLE),
        )

    def select_kind(self, estimated_row_count: int) -> StrategyKind:
        """Look the row estimate up in the decision table."""
        for predicate, kind in self.decision_table:
            if predicate(estimated_row_count):
                return kind
        raise PlanningError(f"No sampling rule matches {estimated_row_count} rows")

    def plan(
        self,
        estimated_row_count: int,
        requested_sample_size: int,
        production_mode: bool = False,
        primary_key: Optional[str] = None,
        table_non_empty: Optional[bool] = None
    ) -> SamplingPlan:
        """
        Build a sampling plan.

        Args:
            estimated_row_count: Live-tuple estimate from database statistics
            requested_sample_size: How many documents the caller wants
            production_mode: Refuse strategies that sort or scan the whole table
            primary_key: Integer primary key column, if the table has one
            table_non_empty: Independent evidence that the table holds rows
                             (None when the caller has no such signal)

        Returns:
            SamplingPlan with the strategy and advisory warnings

        Raises:
            PlanningError: On negative counts or a non-positive sample size
        """
        if estimated_row_count < 0:
            raise PlanningError(f"estimated_row_count must be >= 0, got {estimated_row_count}")
        if requested_sample_size <= 0:
            raise PlanningError(f"requested_sample_size must be > 0, got {requested_sample_size}")

        warnings: List[PlanWarning] = []
        sample_size = requested_sample_size
        rows: Optional[int] = estimated_row_count

        if estimated_row_count == 0 and table_non_empty:
            rows = None
            if production_mode:
                message = (
                    "Row estimate is 0 but the table holds rows; statistics look stale "
                    "(consider ANALYZE). The estimate is ignored and block sampling is used."
                )
            else:
                message = "Row estimate is 0 but the table holds rows; the estimate is ignored."
            warnings.append(PlanWarning(PlanWarning.STALE_ESTIMATE, message))
        elif requested_sample_size > estimated_row_count:
            sample_size = estimated_row_count
            warnings.append(PlanWarning(
                PlanWarning.SAMPLE_SIZE_CAPPED,
                f"Requested {requested_sample_size} samples but the table has about "
                f"{estimated_row_count} rows; sample size capped to {estimated_row_count}."
            ))
            if estimated_row_count == 0 and table_non_empty is None:
                warnings.append(PlanWarning(
                    PlanWarning.UNVERIFIED_ZERO_ESTIMATE,
                    "Row estimate is 0 and nothing says whether the table holds rows; "
                    "statistics may never have been collected (consider ANALYZE or an exact count). "
                    "The plan will fetch no documents."
                ))

        kind = self._initial_kind(rows, sample_size)

        if kind is StrategyKind.RESERVOIR_PK and not primary_key:
            kind = StrategyKind.RANDOM
            warnings.append(PlanWarning(
                PlanWarning.NO_PRIMARY_KEY,
                "No primary key available for reservoir sampling; falling back to random sampling."
            ))

        if production_mode and kind in (StrategyKind.RANDOM, StrategyKind.FULL_SCAN):
            warnings.append(PlanWarning(
                PlanWarning.PRODUCTION_DOWNGRADE,
                f"Production mode refuses {kind.value} (full sort or scan); using block sampling."
            ))
            kind = StrategyKind.BLOCK_SAMPLE

        block_pct = None
        if kind is StrategyKind.BLOCK_SAMPLE:
            block_pct = self._block_percentage(rows, sample_size)
            cap = self.thresholds.production_block_pct_cap
            if production_mode and block_pct > cap:
                warnings.append(PlanWarning(
                    PlanWarning.PRODUCTION_BLOCK_CAP,
                    f"Production mode limits block sampling to {cap:g}%; reduced from {block_pct:.2f}%."
                ))
                block_pct = cap

        strategy = SamplingStrategy(
            kind=kind,
            sample_size=sample_size,
            primary_key=primary_key if kind is StrategyKind.RESERVOIR_PK else None,
            block_percentage=block_pct,
        )

        logger.info("Sampling plan: %s (estimate=%d rows)", strategy.describe(), estimated_row_count)
        for warning in warnings:
            logger.warning("Sampling plan: %s", warning.message)

        return SamplingPlan(
            strategy=strategy,
            estimated_row_count=estimated_row_count,
            production_mode=production_mode,
            warnings=tuple(warnings),
        )

    def _initial_kind(self, rows: Optional[int], sample_size: int) -> StrategyKind:
        if rows is None:
            # Size unknown: random ordering works at any size
            return StrategyKind.RANDOM
        if sample_size >= rows:
            return StrategyKind.FULL_SCAN
        return self.select_kind(rows)

    def _block_percentage(self, rows: Optional[int], sample_size: int) -> float:
        t = self.thresholds
        if not rows:
            return t.max_block_pct
        pct = sample_size / rows * 100.0
        return min(max(pct, t.min_block_pct), t.max_block_pct)
