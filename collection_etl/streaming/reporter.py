# ==============================================
# Progress Reporting
# ==============================================
#
# PURPOSE:
#   Render what the pipeline is doing. The pipeline calls the hooks;
#   it never writes to the console itself.
#
# CLASSES:
# --------
# - ProgressReporter
#     Base class. Logs through the package logger; used when the
#     pipeline is embedded in other code.
#
# - ConsoleReporter(ProgressReporter)
#     Human-facing lines on stdout, used by the CLI:
#       🗑  dropping tgt collection
#       → batch 3: 20000 inserted (60000 total, 15302 rec/s)
#       ✓ transformed 45000 documents in 3s (15000 doc/s)
#
# ==============================================

import sys

from collection_etl.log import get_logger
from collection_etl.storage.bulk_writer import BatchWriteResult
from collection_etl.streaming.metrics import MetricsCollector, RunMetrics

logger = get_logger(__name__)


class ProgressReporter:
    """Default reporter: everything goes to the log."""

    def on_start(self, source: str, target: str, dropped: bool) -> None:
        if dropped:
            logger.info("Dropped target collection %s", target)
        logger.info("Copying %s -> %s", source, target)

    def on_batch(self, result: BatchWriteResult, collector: MetricsCollector) -> None:
        logger.debug(
            "Batch %d written: %d/%d inserted",
            collector.batches_written, result.inserted, result.batch_size,
        )

    def on_complete(self, metrics: RunMetrics) -> None:
        logger.info(
            "Transformed %d documents in %.2fs (%.0f doc/s)",
            metrics.approximate_count, metrics.elapsed_seconds, metrics.records_per_second,
        )

    def on_failure(self, error: BaseException) -> None:
        logger.error("Run failed: %s", error)


class ConsoleReporter(ProgressReporter):
    """Print-based progress for interactive runs."""

    def __init__(self, stream=None, progress_every: int = 1):
        self._stream = stream
        self._progress_every = max(progress_every, 1)

    def _print(self, message: str) -> None:
        print(message, file=self._stream or sys.stdout, flush=True)

    def on_start(self, source: str, target: str, dropped: bool) -> None:
        if dropped:
            self._print(f"🗑  dropping tgt collection {target}")
        self._print(f"🚀 Starting transfer {source} → {target}")

    def on_batch(self, result: BatchWriteResult, collector: MetricsCollector) -> None:
        if collector.batches_written % self._progress_every:
            return
        elapsed = collector.elapsed()
        rate = collector.records_inserted / elapsed if elapsed > 0 else 0
        status = "✓" if result.ok else f"⚠ {result.error_count} write errors,"
        self._print(
            f"   → batch {collector.batches_written}: {status} {result.inserted} inserted "
            f"({collector.records_inserted} total, {rate:.0f} rec/s)"
        )

    def on_complete(self, metrics: RunMetrics) -> None:
        self._print("complete!")
        self._print(
            f"✓ transformed {metrics.approximate_count} documents in "
            f"{round(metrics.elapsed_seconds)}s ({round(metrics.records_per_second)} doc/s)"
        )
        self._print("\n📊 Summary:")
        self._print(f"   → Records transformed: {metrics.records_transformed}")
        self._print(f"   → Transform failures: {metrics.transform_failures}")
        self._print(f"   → Batches written: {metrics.batches_written}")
        self._print(f"   → Records inserted: {metrics.records_inserted}")
        if metrics.failed_batches:
            self._print(f"   → Failed batches: {metrics.failed_batches}")

    def on_failure(self, error: BaseException) -> None:
        self._print(f"\n❌ Run failed: {error}")
