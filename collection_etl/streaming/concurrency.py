# ==============================================
# BoundedMapper
# ==============================================
#
# PURPOSE:
#   Apply a function to a stream of items on a thread pool with at
#   most `concurrency` calls in flight, yielding results in
#   completion order.
#
# WHY THIS CLASS EXISTS:
#   Both the transform stage and the write stage need the same
#   thing: parallelism with a hard cap. The cap is also how
#   backpressure works. map_unordered() is a generator and only
#   pulls the next input item when a slot is free, so a slow
#   consumer stalls the producer instead of growing a buffer.
#
# BEHAVIOUR:
# ----------
#   - Output order is not input order.
#   - The first exception raised by `fn` propagates out of the
#     generator; queued calls are cancelled and running ones are
#     waited for before the exception leaves.
#   - Closing the generator early (break / garbage collection)
#     shuts the pool down the same way.
#   - On exit the input iterator is closed if it is a generator,
#     so chained stages unwind together.
#
# ==============================================

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Generic, Iterable, Iterator, Set, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class BoundedMapper(Generic[T, R]):
    """
    Bounded-concurrency map over an iterable.

    Args:
        fn: Function applied to each item
        concurrency: Maximum number of calls in flight
        name: Thread name prefix, shows up in thread dumps and logs
    """

    def __init__(self, fn: Callable[[T], R], concurrency: int, name: str = "etl-worker"):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.fn = fn
        self.concurrency = concurrency
        self.name = name

    def map_unordered(self, items: Iterable[T]) -> Iterator[R]:
        """
        Lazily map `fn` over `items`.

        Args:
            items: Input stream; pulled only when a slot is free

        Yields:
            Results in completion order
        """
        iterator = iter(items)
        pool = ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix=self.name)
        pending: Set[Future] = set()
        exhausted = False
        try:
            while True:
                while not exhausted and len(pending) < self.concurrency:
                    try:
                        item = next(iterator)
                    except StopIteration:
                        exhausted = True
                        break
                    pending.add(pool.submit(self.fn, item))

                if not pending:
                    return

                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    yield future.result()
        finally:
            for future in pending:
                future.cancel()
            pool.shutdown(wait=True)
            # Release upstream stages (and their cursors) right away
            close = getattr(iterator, "close", None)
            if close is not None:
                close()
