# ==============================================
# RecordSource
# ==============================================
#
# PURPOSE:
#   Lazy, ordered, single-use stream of raw documents from the
#   source collection.
#
# BEHAVIOUR:
# ----------
#   - The cursor asks the server for `read_ahead` documents per
#     round trip; nothing is fetched until the stream is pulled.
#   - Cursor errors (network loss, server errors) propagate to the
#     caller unchanged. Retries are the driver's business.
#   - approximate_count() uses the collection metadata estimate.
#     It may be stale and is only used for throughput reporting.
#
# ==============================================

from typing import Any, Iterator, Mapping

from collection_etl.errors import PipelineStateError


class RecordSource:
    """
    Cursor-backed stream of raw records.

    Args:
        collection: Collection handle exposing find() and
            estimated_document_count()
        read_ahead: Cursor batch size requested from the server
    """

    def __init__(self, collection, read_ahead: int):
        if read_ahead < 1:
            raise ValueError("read_ahead must be >= 1")
        self._collection = collection
        self._read_ahead = read_ahead
        self._started = False

    def approximate_count(self) -> int:
        """Best-effort document count of the source collection."""
        return int(self._collection.estimated_document_count())

    def __iter__(self) -> Iterator[Mapping[str, Any]]:
        if self._started:
            raise PipelineStateError("RecordSource can only be iterated once")
        self._started = True
        return self._scan()

    def _scan(self) -> Iterator[Mapping[str, Any]]:
        cursor = self._collection.find({}, batch_size=self._read_ahead)
        try:
            for document in cursor:
                yield document
        finally:
            close = getattr(cursor, "close", None)
            if close is not None:
                close()
