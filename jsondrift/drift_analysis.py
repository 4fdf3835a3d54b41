# ==============================================
# DriftAnalysis (Orchestrator)
# ==============================================
#
# PURPOSE:
#   This is the MAIN CLASS that ties the 3 topics together into
#   one analysis run. Callers (a CLI, a scheduled scan) interact
#   with this class only.
#
# HOW IT CONNECTS THE 3 TOPICS:
#
#   ┌──────────────────────────────────────────────────────────┐
#   │                     DriftAnalysis.run                    │
#   │                                                          │
#   │  ┌──────────────────────────────────────────────┐        │
#   │  │ TOPIC 3: SAMPLING                            │        │
#   │  │  SamplingPlanner.plan(rows, size, prod)      │        │
#   │  └──────────────┬───────────────────────────────┘        │
#   │                 │ plan (executed by the fetch layer)     │
#   │                 ▼                                        │
#   │        [ documents ]      (finite, possibly lazy)        │
#   │                 │                                        │
#   │                 ▼                                        │
#   │  ┌──────────────────────────────────────────────┐        │
#   │  │ TOPIC 1 + 2: WALK & ACCUMULATE               │        │
#   │  │  JsonTreeWalker → PathStatsAccumulator       │        │
#   │  │  (one accumulator per worker, then merge)    │        │
#   │  └──────────────┬───────────────────────────────┘        │
#   │                 │ path → FieldStats                      │
#   │                 ▼                                        │
#   │  ┌──────────────────────────────────────────────┐        │
#   │  │ TOPIC 2: CLASSIFY                            │        │
#   │  │  DriftClassifier.classify(stats, ctx)        │        │
#   │  └──────────────────────────────────────────────┘        │
#   └──────────────────────────────────────────────────────────┘
#
# FAILURE MODEL:
# --------------
#   - A document that cannot be decoded (raw mode), walked or
#     serialized is skipped and counted in skipped_count; nothing of
#     it is folded and the run continues.
#   - Documents are parsed values unless raw=True; a parsed string or
#     number root is a sample with no paths.
#   - No documents at all → status "no_data", no findings.
#   - cancel_event set mid-run → the documents folded so far are still
#     classified, status "cancelled".
#   - scan_columns(): an exception in one column is captured in that
#     column's ColumnScanResult and the next column proceeds.
#
# ==============================================

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from itertools import islice
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from jsondrift.analysis import (
    ClassificationResult,
    DriftClassifier,
    DriftFinding,
    FieldStats,
    PathStatsAccumulator,
    SampleContext,
    Severity,
)
from jsondrift.config import AppConfig, get_config
from jsondrift.errors import MalformedDocumentError
from jsondrift.sampling import SamplingPlan, SamplingPlanner

logger = logging.getLogger(__name__)


@dataclass
class AnalysisReport:
    """
    Everything one analysis run hands to the reporting layer.
    """

    findings: Tuple[DriftFinding, ...]
    stats: Dict[str, FieldStats]
    context: SampleContext
    plan: Optional[SamplingPlan]
    status: str
    skipped_count: int = 0
    truncated_documents: int = 0
    elapsed_seconds: float = 0.0

    STATUS_OK = ClassificationResult.STATUS_OK
    STATUS_NO_DATA = ClassificationResult.STATUS_NO_DATA
    STATUS_CANCELLED = "cancelled"

    @property
    def advisories(self) -> List[str]:
        """Planner warnings plus run-level notes, as human-readable lines."""
        messages = [warning.message for warning in self.plan.warnings] if self.plan else []
        if self.skipped_count:
            messages.append(f"Skipped {self.skipped_count} malformed document(s)")
        if self.truncated_documents:
            messages.append(
                f"{self.truncated_documents} document(s) exceeded the maximum depth and were truncated"
            )
        if self.status == self.STATUS_NO_DATA:
            messages.append("No data: no documents were analyzed")
        return messages

    @property
    def total_unique_paths(self) -> int:
        return len(self.stats)

    @property
    def max_nesting_depth(self) -> int:
        return max((stats.max_depth for stats in self.stats.values()), default=0)

    def severity_counts(self) -> Dict[str, int]:
        counts = {str(severity): 0 for severity in Severity}
        for finding in self.findings:
            counts[str(finding.severity)] += 1
        return counts

    def summary(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "samples_analyzed": self.context.total_samples,
            "estimated_table_rows": self.context.estimated_table_rows,
            "skipped_count": self.skipped_count,
            "total_unique_paths": self.total_unique_paths,
            "max_nesting_depth": self.max_nesting_depth,
            "findings": self.severity_counts(),
        }

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the report for the reporting layer.

        Returns:
            A JSON-serializable dictionary
        """
        return {
            "summary": self.summary(),
            "strategy": self.plan.strategy.describe() if self.plan else None,
            "advisories": self.advisories,
            "findings": [finding.to_dict() for finding in self.findings],
            "field_stats": [self.stats[path].to_dict() for path in sorted(self.stats)],
            "elapsed_seconds": self.elapsed_seconds,
        }


@dataclass
class ColumnSample:
    """One JSON column's fetched documents, as handed over by the fetch layer."""
    table: str
    column: str
    documents: Iterable[Any]
    estimated_row_count: int
    primary_key: Optional[str] = None
    table_non_empty: Optional[bool] = None
    raw: bool = False  # documents are JSON text (text / bytea columns), not parsed values


@dataclass
class ColumnScanResult:
    """Outcome for one column of a multi-column scan."""
    table: str
    column: str
    report: Optional[AnalysisReport] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class _BatchOutcome:
    accumulator: PathStatsAccumulator
    skipped: int = 0


class DriftAnalysis:
    """
    Runs sampling plan → walk → accumulate → classify for JSON columns.

    A fresh accumulator and sample context are created for every run;
    nothing is shared between runs.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        planner: Optional[SamplingPlanner] = None,
        classifier: Optional[DriftClassifier] = None
    ):
        """
        Initialize the analysis engine.

        Args:
            config: Application configuration. If None, loads from environment.
            planner: Optional SamplingPlanner (defaults built from config)
            classifier: Optional DriftClassifier (defaults built from config)
        """
        self._config = config or get_config()
        self._planner = planner or SamplingPlanner(self._config.planner)
        self._classifier = classifier or DriftClassifier(self._config.drift)

    @property
    def planner(self) -> SamplingPlanner:
        return self._planner

    def plan(
        self,
        estimated_row_count: int,
        requested_sample_size: Optional[int] = None,
        production_mode: Optional[bool] = None,
        primary_key: Optional[str] = None,
        table_non_empty: Optional[bool] = None
    ) -> SamplingPlan:
        """
        Build the sampling plan the fetch layer should execute, filling
        sample size and production mode from config when not given.
        """
        sampling = self._config.sampling
        return self._planner.plan(
            estimated_row_count,
            requested_sample_size if requested_sample_size is not None else sampling.sample_size,
            production_mode=sampling.production_mode if production_mode is None else production_mode,
            primary_key=primary_key,
            table_non_empty=table_non_empty,
        )

    def run(
        self,
        documents: Iterable[Any],
        estimated_row_count: int,
        plan: Optional[SamplingPlan] = None,
        cancel_event: Optional[threading.Event] = None,
        raw: bool = False
    ) -> AnalysisReport:
        """
        Analyze a sequence of sampled documents.

        Args:
            documents: Parsed JSON values (any JSON value is one sample),
                       or JSON text / bytes when raw is True
            estimated_row_count: Table size estimate used for the sample context
            plan: The plan the documents were fetched with (for the report)
            cancel_event: Set it from another thread to stop after the current document
            raw: Decode each document from JSON text before walking it

        Returns:
            AnalysisReport with ordered findings, stats and advisories
        """
        start_time = time.time()
        execution = self._config.execution

        if execution.workers > 1:
            accumulator, skipped, cancelled = self._fold_parallel(documents, cancel_event, raw)
        else:
            outcome, cancelled = self._fold_batch(documents, cancel_event, raw)
            accumulator, skipped = outcome.accumulator, outcome.skipped

        total_samples = accumulator.documents_observed
        truncated = accumulator.truncated_documents
        stats = accumulator.into_map()

        context = SampleContext(
            total_samples=total_samples,
            estimated_table_rows=estimated_row_count,
        )
        result = self._classifier.classify(stats, context)
        status = AnalysisReport.STATUS_CANCELLED if cancelled else result.status

        elapsed = time.time() - start_time
        logger.info(
            "Analyzed %d documents in %.2fs: %d paths, %d findings, %d skipped (status=%s)",
            total_samples, elapsed, len(stats), len(result.findings), skipped, status
        )

        return AnalysisReport(
            findings=result.findings,
            stats=stats,
            context=context,
            plan=plan,
            status=status,
            skipped_count=skipped,
            truncated_documents=truncated,
            elapsed_seconds=round(elapsed, 3),
        )

    def analyze_column(
        self,
        sample: ColumnSample,
        cancel_event: Optional[threading.Event] = None
    ) -> AnalysisReport:
        """Plan and analyze one column's fetched documents."""
        plan = self.plan(
            sample.estimated_row_count,
            primary_key=sample.primary_key,
            table_non_empty=sample.table_non_empty,
        )
        return self.run(
            sample.documents,
            sample.estimated_row_count,
            plan=plan,
            cancel_event=cancel_event,
            raw=sample.raw,
        )

    def scan_columns(
        self,
        samples: Iterable[ColumnSample],
        cancel_event: Optional[threading.Event] = None
    ) -> List[ColumnScanResult]:
        """
        Analyze several columns; a failure in one never stops the others.

        Args:
            samples: One ColumnSample per JSON column
            cancel_event: Shared cancellation flag

        Returns:
            One ColumnScanResult per column, in input order
        """
        results = []
        for sample in samples:
            try:
                report = self.analyze_column(sample, cancel_event)
                results.append(ColumnScanResult(sample.table, sample.column, report=report))
            except Exception as e:
                logger.error("Analysis of %s.%s failed: %s", sample.table, sample.column, e)
                results.append(ColumnScanResult(sample.table, sample.column, error=str(e)))
        return results

    # ======================================
    # Folding
    # ======================================
    def _new_accumulator(self) -> PathStatsAccumulator:
        walker = self._config.walker
        return PathStatsAccumulator(max_depth=walker.max_depth, max_examples=walker.max_examples)

    def _fold_batch(
        self,
        documents: Iterable[Any],
        cancel_event: Optional[threading.Event],
        raw: bool = False
    ) -> Tuple[_BatchOutcome, bool]:
        """
        Fold documents into a private accumulator.

        Returns:
            (outcome, cancelled)
        """
        outcome = _BatchOutcome(accumulator=self._new_accumulator())
        observe = outcome.accumulator.observe_raw if raw else outcome.accumulator.observe

        for index, document in enumerate(documents):
            if cancel_event is not None and cancel_event.is_set():
                return outcome, True
            try:
                observe(document)
            except MalformedDocumentError as e:
                outcome.skipped += 1
                logger.warning("Skipping document #%d: %s", index, e)

        return outcome, False

    def _fold_parallel(
        self,
        documents: Iterable[Any],
        cancel_event: Optional[threading.Event],
        raw: bool = False
    ) -> Tuple[PathStatsAccumulator, int, bool]:
        """
        Fan document batches out to worker threads and merge the
        per-batch accumulators as they finish.

        At most two batches per worker are in flight, so memory stays
        bounded by batch size, not sample size.
        """
        execution = self._config.execution
        total = self._new_accumulator()
        skipped = 0
        cancelled = False
        stopped_early = []
        batches = _batched(iter(documents), execution.batch_size)
        max_in_flight = execution.workers * 2

        with ThreadPoolExecutor(max_workers=execution.workers, thread_name_prefix="jsondrift") as pool:
            pending: Set[Future] = set()

            def submit_next() -> bool:
                batch = next(batches, None)
                if batch is None:
                    return False
                if cancel_event is not None and cancel_event.is_set():
                    stopped_early.append(True)
                    return False
                pending.add(pool.submit(self._fold_batch, batch, cancel_event, raw))
                return True

            while len(pending) < max_in_flight and submit_next():
                pass

            while pending:
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    pending.discard(future)
                    outcome, batch_cancelled = future.result()
                    total.merge(outcome.accumulator)
                    skipped += outcome.skipped
                    cancelled = cancelled or batch_cancelled
                    submit_next()

        return total, skipped, cancelled or bool(stopped_early)


def _batched(iterator: Iterator[Any], size: int) -> Iterator[List[Any]]:
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch
