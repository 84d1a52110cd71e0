# ==============================================
# EtlPipeline: Orchestrator
# ==============================================
#
# PURPOSE:
#   Copy one collection into another, normalizing every document
#   on the way. This is the class the CLI drives.
#
# HOW THE STAGES CONNECT:
#
#   source collection
#         │  RecordSource (cursor, read-ahead = config.read_ahead)
#         ▼
#   BoundedMapper(RecordTransformer)      ≤ transform_concurrency in flight
#         │  TransformResult → failures counted and dropped
#         ▼
#   Batcher                               config.batch_size per batch
#         │
#         ▼
#   BoundedMapper(BulkWriter)             ≤ write_concurrency in flight
#         │  BatchWriteResult
#         ▼
#   target collection
#
#   Every stage is a generator pulled by the one after it, so the
#   cursor is only advanced when the writers have room. Peak memory
#   is about transform_concurrency records + one batch being filled
#   + write_concurrency batches in flight.
#
# STATES:
# -------
#   IDLE → RUNNING → COMPLETED | FAILED
#   A pipeline runs once.
#
# FAILURES:
# ---------
#   - Transform failures: logged, counted, record skipped.
#   - Batch write errors: fatal (BatchWriteError) when
#     config.abort_on_write_error, otherwise counted.
#   - Cursor / driver errors: always fatal, propagate unchanged.
#
# ==============================================

import time
from contextlib import closing
from enum import Enum
from typing import Callable, Iterable, Iterator, Optional

from collection_etl.config import Namespace, PipelineConfig
from collection_etl.errors import BatchWriteError, PipelineStateError
from collection_etl.log import get_logger
from collection_etl.normalization.record_transformer import RecordTransformer, TransformResult
from collection_etl.storage.bulk_writer import BatchWriteResult, BulkWriter
from collection_etl.storage.mongo_client import MongoClient
from collection_etl.storage.record_source import RecordSource
from collection_etl.streaming.batcher import Batcher
from collection_etl.streaming.concurrency import BoundedMapper
from collection_etl.streaming.metrics import MetricsCollector, RunMetrics
from collection_etl.streaming.reporter import ProgressReporter

logger = get_logger(__name__)


class PipelineState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class EtlPipeline:
    """
    One source → target transfer.

    Args:
        source: Source collection handle
        target: Target collection handle
        transformer: RecordTransformer for the source's schema
        config: Sizes, widths and failure policy
        reporter: Receives progress hooks (logging-only by default)
        source_label: Name used in progress output
        target_label: Name used in progress output
        clock: Time source, seconds as float
    """

    def __init__(
        self,
        source,
        target,
        transformer: RecordTransformer,
        config: Optional[PipelineConfig] = None,
        reporter: Optional[ProgressReporter] = None,
        source_label: str = "source",
        target_label: str = "target",
        clock: Callable[[], float] = time.time,
    ):
        self._source = source
        self._target = target
        self._transformer = transformer
        self._config = (config or PipelineConfig()).validate()
        self._reporter = reporter or ProgressReporter()
        self._source_label = source_label
        self._target_label = target_label
        self._collector = MetricsCollector(clock)

        self.state = PipelineState.IDLE
        self.metrics: Optional[RunMetrics] = None

    @property
    def config(self) -> PipelineConfig:
        return self._config

    def run(self) -> RunMetrics:
        """
        Run the transfer to completion.

        Returns:
            RunMetrics for the run

        Raises:
            PipelineStateError: If the pipeline has already run
            BatchWriteError: If a batch fails and the run aborts on write errors
            Exception: Any cursor or driver error, unchanged
        """
        if self.state is not PipelineState.IDLE:
            raise PipelineStateError(f"pipeline already {self.state.value}")
        self.state = PipelineState.RUNNING

        try:
            self._execute()
        except BaseException as exc:
            self.state = PipelineState.FAILED
            self.metrics = self._collector.finalize()
            logger.error("Pipeline failed after %d batches: %s", self.metrics.batches_written, exc)
            self._reporter.on_failure(exc)
            raise

        self.metrics = self._collector.finalize()
        self.state = PipelineState.COMPLETED
        self._reporter.on_complete(self.metrics)
        return self.metrics

    def _execute(self) -> None:
        config = self._config

        if config.drop_target:
            # Target is a staging collection; it is rebuilt from scratch
            self._target.drop()
        self._reporter.on_start(self._source_label, self._target_label, config.drop_target)

        source = RecordSource(self._source, config.read_ahead)
        self._collector.start(source.approximate_count())

        with closing(self._stream(source)) as results:
            for result in results:
                self._collector.record_batch(result)
                self._reporter.on_batch(result, self._collector)
                if not result.ok and config.abort_on_write_error:
                    raise BatchWriteError(
                        f"batch {self._collector.batches_written} had "
                        f"{result.error_count} write errors",
                        result=result,
                    )

    def _stream(self, source: Iterable) -> Iterator[BatchWriteResult]:
        config = self._config
        transform_stage = BoundedMapper(
            self._transformer.transform, config.transform_concurrency, name="etl-transform"
        )
        write_stage = BoundedMapper(
            BulkWriter(self._target).write, config.write_concurrency, name="etl-write"
        )

        transformed = transform_stage.map_unordered(source)
        batches = Batcher(config.batch_size).batches(self._accepted(transformed))
        return write_stage.map_unordered(batches)

    def _accepted(self, results: Iterable[TransformResult]) -> Iterator[dict]:
        for result in results:
            self._collector.record_transform(result)
            if result.ok:
                yield result.record


def transfer(
    mongo: MongoClient,
    source: Namespace,
    target: Namespace,
    transformer: RecordTransformer,
    config: Optional[PipelineConfig] = None,
    reporter: Optional[ProgressReporter] = None,
) -> RunMetrics:
    """
    Build and run an EtlPipeline between two namespaces of a connected client.

    Returns:
        RunMetrics for the run
    """
    pipeline = EtlPipeline(
        mongo.collection(source),
        mongo.collection(target),
        transformer,
        config=config,
        reporter=reporter,
        source_label=str(source),
        target_label=str(target),
    )
    return pipeline.run()
