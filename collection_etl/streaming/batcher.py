# ==============================================
# Batcher
# ==============================================
#
# PURPOSE:
#   Regroup a stream of normalized records into lists of
#   `batch_size`, in arrival order. The last batch holds whatever
#   is left and is never empty.
#
# ==============================================

from typing import Iterable, Iterator, List, TypeVar

T = TypeVar("T")


class Batcher:
    """Fixed-size regrouping of a stream; adds no concurrency."""

    def __init__(self, batch_size: int):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.batch_size = batch_size

    def batches(self, records: Iterable[T]) -> Iterator[List[T]]:
        batch: List[T] = []
        for record in records:
            batch.append(record)
            if len(batch) >= self.batch_size:
                yield batch
                batch = []
        if batch:
            yield batch
