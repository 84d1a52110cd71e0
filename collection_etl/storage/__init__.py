# ==============================================
# STORAGE (MongoDB)
# ==============================================
#
# This package handles all database operations:
# connecting, scanning the source, inserting into the target.
#
# Modules:
# --------
# - mongo_client.py    → MongoDB connection and collection handles
# - record_source.py   → Cursor-backed stream of raw documents
# - bulk_writer.py     → Unordered bulk inserts of one batch
#
# ==============================================

from .mongo_client import MongoClient
from .record_source import RecordSource
from .bulk_writer import BulkWriter, BatchWriteResult

__all__ = [
    "MongoClient",
    "RecordSource",
    "BulkWriter",
    "BatchWriteResult",
]
