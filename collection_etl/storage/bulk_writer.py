# ==============================================
# BulkWriter
# ==============================================
#
# PURPOSE:
#   Insert one batch of normalized documents into the target
#   collection with a single unordered insert_many call.
#
# BEHAVIOUR:
# ----------
#   - ordered=False: the server keeps inserting the rest of a batch
#     after one document fails.
#   - A BulkWriteError (duplicate key, validation failure, ...) is
#     turned into a failed BatchWriteResult; the caller decides
#     whether that ends the run.
#   - Any other driver error (network, server selection) propagates.
#
# ==============================================

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from pymongo.errors import BulkWriteError

from collection_etl.log import get_logger

logger = get_logger(__name__)

# How many write errors are kept per failed batch for diagnostics
MAX_REPORTED_ERRORS = 10


@dataclass(frozen=True)
class BatchWriteResult:
    """Outcome of one bulk insert."""
    batch_size: int
    inserted: int
    errors: List[Dict[str, Any]] = field(default_factory=list)
    error_count: int = 0

    @property
    def ok(self) -> bool:
        return self.error_count == 0


class BulkWriter:
    """
    Unordered bulk inserts into one collection.

    Args:
        collection: Collection handle exposing insert_many()
    """

    def __init__(self, collection):
        self._collection = collection

    def write(self, batch: Sequence[dict]) -> BatchWriteResult:
        """
        Insert a batch.

        Args:
            batch: Normalized documents

        Returns:
            BatchWriteResult; failed (not raised) on BulkWriteError
        """
        documents = list(batch)
        if not documents:
            return BatchWriteResult(batch_size=0, inserted=0)
        try:
            result = self._collection.insert_many(documents, ordered=False)
        except BulkWriteError as exc:
            details = exc.details or {}
            write_errors = details.get("writeErrors", [])
            error_count = max(len(write_errors), 1)
            inserted = details.get("nInserted", 0)
            logger.error(
                "Bulk insert of %d documents had %d write errors (%d inserted)",
                len(documents), error_count, inserted,
            )
            return BatchWriteResult(
                batch_size=len(documents),
                inserted=inserted,
                errors=[_summarize(error) for error in write_errors[:MAX_REPORTED_ERRORS]],
                error_count=error_count,
            )
        return BatchWriteResult(batch_size=len(documents), inserted=len(result.inserted_ids))


def _summarize(error: Dict[str, Any]) -> Dict[str, Any]:
    # Drop the offending document itself, it can be large
    return {
        "index": error.get("index"),
        "code": error.get("code"),
        "errmsg": error.get("errmsg"),
    }
