# ==============================================
# NORMALIZATION
# ==============================================
#
# Turns raw source documents into normalized target documents.
#
# Modules:
# --------
# - field_decoders.py     → Decode loosely typed values (text, UUID, dates, lists, JSON)
# - record_transformer.py → Apply a schema of field rules to one record
# - schemas.py            → The concrete schemas for each source collection
#
# ==============================================

from .record_transformer import (
    FailurePolicy,
    RecordSchema,
    RecordTransformer,
    TransformFailure,
    TransformResult,
)
from .schemas import SCHEMAS, get_schema

__all__ = [
    "FailurePolicy",
    "RecordSchema",
    "RecordTransformer",
    "TransformFailure",
    "TransformResult",
    "SCHEMAS",
    "get_schema",
]
