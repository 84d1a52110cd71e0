# ==============================================
# STREAMING
# ==============================================
#
# Stage plumbing shared by the pipeline.
#
# Modules:
# --------
# - concurrency.py → BoundedMapper, bounded in-flight thread pool map
# - batcher.py     → Fixed-size regrouping of a stream
# - metrics.py     → MetricsCollector / RunMetrics
# - reporter.py    → ProgressReporter / ConsoleReporter
#
# ==============================================

from .batcher import Batcher
from .concurrency import BoundedMapper
from .metrics import MetricsCollector, RunMetrics
from .reporter import ConsoleReporter, ProgressReporter

__all__ = [
    "Batcher",
    "BoundedMapper",
    "MetricsCollector",
    "RunMetrics",
    "ConsoleReporter",
    "ProgressReporter",
]
