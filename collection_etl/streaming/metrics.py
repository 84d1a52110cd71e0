# ==============================================
# Run Metrics
# ==============================================
#
# PURPOSE:
#   Counters the pipeline updates while it runs, and the immutable
#   summary it produces when the run ends.
#
# CLASSES:
# --------
# - MetricsCollector
#     Mutable counters. Only the orchestrating thread updates them
#     (results are consumed there), so no locking is needed.
#
# - RunMetrics (frozen dataclass)
#     elapsed_seconds, approximate_count, records_transformed,
#     transform_failures, batches_written, records_inserted,
#     failed_batches, records_per_second
#
# ==============================================

import time
from dataclasses import dataclass
from typing import Callable, Optional

from collection_etl.normalization.record_transformer import TransformResult
from collection_etl.storage.bulk_writer import BatchWriteResult


@dataclass(frozen=True)
class RunMetrics:
    """Final figures for one run."""
    elapsed_seconds: float
    approximate_count: int
    records_transformed: int
    transform_failures: int
    batches_written: int
    records_inserted: int
    failed_batches: int

    @property
    def records_per_second(self) -> float:
        # Throughput is reported against the source estimate
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.approximate_count / self.elapsed_seconds


class MetricsCollector:
    """Counters for a run in progress."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self.started_at: Optional[float] = None
        self.approximate_count = 0
        self.records_transformed = 0
        self.transform_failures = 0
        self.batches_written = 0
        self.records_inserted = 0
        self.failed_batches = 0

    def start(self, approximate_count: int = 0) -> None:
        self.started_at = self._clock()
        self.approximate_count = approximate_count

    def record_transform(self, result: TransformResult) -> None:
        if result.ok:
            self.records_transformed += 1
        else:
            self.transform_failures += 1

    def record_batch(self, result: BatchWriteResult) -> None:
        self.batches_written += 1
        self.records_inserted += result.inserted
        if not result.ok:
            self.failed_batches += 1

    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        return max(self._clock() - self.started_at, 0.0)

    def finalize(self) -> RunMetrics:
        """Freeze the counters into a RunMetrics."""
        return RunMetrics(
            elapsed_seconds=self.elapsed(),
            approximate_count=self.approximate_count,
            records_transformed=self.records_transformed,
            transform_failures=self.transform_failures,
            batches_written=self.batches_written,
            records_inserted=self.records_inserted,
            failed_batches=self.failed_batches,
        )
