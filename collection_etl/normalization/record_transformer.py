# ==============================================
# RecordTransformer
# ==============================================
#
# PURPOSE:
#   Turn one raw source document into one normalized target
#   document, driven by a RecordSchema (an ordered list of field
#   rules).
#
# WHY THIS CLASS EXISTS:
#   Each source collection needs its own field mapping, but the
#   mechanics are always the same: decode a field, rename it, omit
#   it if it is empty, and decide what to do when it will not
#   decode. Those mechanics live here once; schemas.py only lists
#   the rules.
#
# ENUMS:
# ------
# - FailurePolicy: what happens when a present value fails to decode
#     FALLBACK_ON_FAILURE → keep the raw value under the target name
#     DROP_ON_FAILURE     → omit the field
#     FAIL_RECORD         → the whole record becomes a TransformFailure
#
# RULES:
# ------
# - IdentifierRule          → UUID parsed from a source field (required)
# - GeneratedIdentifierRule → fresh UUID for every record
# - UuidRule                → UUID reference field
# - TextRule                → string-or-integer field coerced to text
# - TimestampRule           → "yyyy-MM-dd HH:mm:ss" UTC timestamp
# - StringListRule          → "['a', 'b']" style pseudo-list
# - EmbeddedDocumentRule    → JSON text parsed into a sub-document
#
# CLASS: RecordTransformer
# ------------------------
#   Stateless apart from its schema and id factory; safe to call
#   from several worker threads at once.
#
#   - transform(raw: Mapping) -> TransformResult
#       Never raises. Exceptions become a TransformFailure carrying
#       the record serialized as extended JSON, and are logged.
#
# ==============================================

import uuid
import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Tuple

from bson import json_util

from collection_etl.errors import FieldError
from collection_etl.log import get_logger
from collection_etl.normalization.field_decoders import (
    decode_text,
    decode_uuid,
    is_absent,
    parse_embedded_document,
    parse_timestamp,
    split_pseudo_list,
)

logger = get_logger(__name__)

ID_FIELD = "_id"


class FailurePolicy(Enum):
    """How a field reacts when its value is present but will not decode."""
    FALLBACK_ON_FAILURE = "fallback"
    DROP_ON_FAILURE = "drop"
    FAIL_RECORD = "fail"


@dataclass(frozen=True)
class FieldRule:
    """
    Base rule: read `source`, write `target` (defaults to `source`).

    Subclasses implement decode(); returning None means "omit".
    """
    source: Optional[str]
    target: Optional[str] = None
    on_failure: FailurePolicy = FailurePolicy.FALLBACK_ON_FAILURE
    required: bool = False

    generates_value = False

    @property
    def output_name(self) -> str:
        return self.target or self.source

    def decode(self, value: Any) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class TextRule(FieldRule):
    def decode(self, value: Any) -> Optional[str]:
        return decode_text(value)


@dataclass(frozen=True)
class TimestampRule(FieldRule):
    def decode(self, value: Any):
        return parse_timestamp(value, self.source)


@dataclass(frozen=True)
class StringListRule(FieldRule):
    def decode(self, value: Any):
        return split_pseudo_list(value)


@dataclass(frozen=True)
class EmbeddedDocumentRule(FieldRule):
    def decode(self, value: Any):
        return parse_embedded_document(value, self.source)


@dataclass(frozen=True)
class UuidRule(FieldRule):
    def decode(self, value: Any) -> Optional[uuid.UUID]:
        return decode_uuid(value, self.source)


@dataclass(frozen=True)
class IdentifierRule(UuidRule):
    """Primary key parsed from the source; a record without one fails."""
    target: Optional[str] = ID_FIELD
    on_failure: FailurePolicy = FailurePolicy.FAIL_RECORD
    required: bool = True


@dataclass(frozen=True)
class GeneratedIdentifierRule(FieldRule):
    """Primary key synthesized for every record (association tables)."""
    source: Optional[str] = None
    target: Optional[str] = ID_FIELD

    generates_value = True

    @property
    def output_name(self) -> str:
        return self.target


@dataclass(frozen=True)
class RecordSchema:
    """Named, ordered set of field rules for one source collection."""
    name: str
    rules: Tuple[FieldRule, ...]
    description: str = ""

    def __post_init__(self):
        seen = set()
        for rule in self.rules:
            if not rule.output_name:
                raise ValueError(f"schema {self.name!r}: rule without source or target")
            if rule.output_name in seen:
                raise ValueError(f"schema {self.name!r}: duplicate output field {rule.output_name!r}")
            seen.add(rule.output_name)


@dataclass(frozen=True)
class TransformFailure:
    """One raw record that could not be normalized."""
    record: str
    reason: str
    field: Optional[str] = None
    error: Optional[BaseException] = dataclasses.field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class TransformResult:
    """Either a normalized record or a TransformFailure, never both."""
    record: Optional[dict] = None
    failure: Optional[TransformFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def serialize_record(raw: Any) -> str:
    """Render a raw record for diagnostics; never raises."""
    try:
        return json_util.dumps(raw)
    except Exception:  # noqa: BLE001 - diagnostics must not fail the worker
        return repr(raw)


class RecordTransformer:
    """
    Applies a RecordSchema to raw documents.

    Args:
        schema: Field rules to apply, in output order
        id_factory: Callable producing new identifiers for
            GeneratedIdentifierRule (uuid.uuid4 by default)
    """

    def __init__(self, schema: RecordSchema, id_factory: Callable[[], uuid.UUID] = uuid.uuid4):
        self.schema = schema
        self._id_factory = id_factory

    def transform(self, raw: Mapping) -> TransformResult:
        """
        Normalize a single raw record.

        Args:
            raw: Source document

        Returns:
            TransformResult with either the normalized record or a failure
        """
        try:
            if not isinstance(raw, Mapping):
                raise TypeError(f"record must be a mapping, got {type(raw).__name__}")
            document: dict = {}
            for rule in self.schema.rules:
                self._apply(rule, raw, document)
            return TransformResult(record=document)
        except Exception as exc:  # noqa: BLE001 - one bad record must not stop the run
            serialized = serialize_record(raw)
            logger.exception("Failed to transform %s record: %s", self.schema.name, serialized)
            return TransformResult(failure=TransformFailure(
                record=serialized,
                reason=str(exc),
                field=getattr(exc, "field", None),
                error=exc,
            ))

    def _apply(self, rule: FieldRule, raw: Mapping, document: dict) -> None:
        name = rule.output_name

        if rule.generates_value:
            document[name] = self._id_factory()
            return

        value = raw.get(rule.source)
        try:
            if rule.required and is_absent(value):
                raise FieldError(rule.source, "required value is missing", value)
            decoded = rule.decode(value)
        except FieldError as exc:
            if rule.on_failure is FailurePolicy.FAIL_RECORD:
                raise
            if rule.on_failure is FailurePolicy.DROP_ON_FAILURE or is_absent(value):
                logger.warning("Dropping field %r: %s", name, exc)
                return
            logger.warning("Keeping raw value for field %r: %s", name, exc)
            document[name] = value
            return

        if decoded is not None:
            document[name] = decoded
