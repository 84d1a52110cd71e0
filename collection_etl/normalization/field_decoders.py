# ==============================================
# Field Decoders
# ==============================================
#
# PURPOSE:
#   Turn the loosely typed values found in source documents into
#   the types the target collection expects.
#
# WHY THIS MODULE EXISTS:
#   Source collections were loaded from text exports, so the same
#   logical field arrives as a string in one document and as an int
#   in the next, dates are plain text, lists are Python-repr strings
#   and nested documents are JSON text.
#
# CONVENTION:
# -----------
#   Every decoder returns None for "absent" (missing, null, empty
#   string) and the decoded value otherwise. Decoders that can fail
#   raise FieldError; they never return a half-decoded value.
#
# FUNCTIONS:
# ----------
# - is_absent(value) -> bool
# - decode_text(value) -> str | None
#     str / int → str. Any other store type is treated as absent.
# - decode_uuid(value, field) -> UUID | None
#     UUID literal, uuid.UUID or BSON binary subtype 3/4.
# - parse_timestamp(value, field) -> datetime | None
#     "yyyy-MM-dd HH:mm:ss", interpreted as UTC.
# - split_pseudo_list(value) -> list[str] | None
#     "['a', 'b']" → ["a", "b"]
# - parse_embedded_document(value, field) -> dict | None
#     JSON / extended JSON object text → dict. Shell-style relaxed
#     JSON (unquoted keys, single quotes) is accepted as well.
#
# ==============================================

import re
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import json5
from bson import json_util
from bson.binary import Binary, UuidRepresentation
from bson.int64 import Int64

from collection_etl.errors import FieldError

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

UUID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$',
    re.IGNORECASE
)

# Characters wrapped around pseudo-list items by the exporter
_PSEUDO_LIST_DECORATION = re.compile(r"[\[\]'\"]")


def is_absent(value: Any) -> bool:
    """None and the empty string both mean "no value". Whitespace is a value."""
    return value is None or value == ""


# Store-native scalar types that carry text. Exact type lookup so bool
# (an int subclass) and float never sneak through.
_TEXT_DECODERS: Dict[type, Callable[[Any], str]] = {
    str: lambda value: value,
    int: str,
    Int64: lambda value: str(int(value)),
}


def decode_text(value: Any) -> Optional[str]:
    """
    Coerce a string-or-integer field to text.

    Args:
        value: Raw field value

    Returns:
        The text, or None when absent or of an unsupported type
    """
    if is_absent(value):
        return None
    decoder = _TEXT_DECODERS.get(type(value))
    if decoder is None:
        return None
    return decoder(value)


def decode_uuid(value: Any, field: str = "") -> Optional[uuid.UUID]:
    """
    Decode a 128-bit identifier.

    Args:
        value: UUID literal, uuid.UUID or BSON Binary (subtype 3 or 4)
        field: Field name, used in error messages

    Returns:
        uuid.UUID, or None when absent

    Raises:
        FieldError: If the value is present but is not a UUID
    """
    if is_absent(value):
        return None
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, Binary):
        if value.subtype == 4:
            return value.as_uuid(UuidRepresentation.STANDARD)
        if value.subtype == 3:
            return value.as_uuid(UuidRepresentation.PYTHON_LEGACY)
        raise FieldError(field, f"binary subtype {value.subtype} is not a UUID", value)
    if isinstance(value, str):
        text = value.strip()
        if not UUID_PATTERN.match(text):
            raise FieldError(field, "not a UUID literal", value)
        return uuid.UUID(text)
    raise FieldError(field, f"cannot read a UUID from {type(value).__name__}", value)


def parse_timestamp(value: Any, field: str = "") -> Optional[datetime]:
    """
    Parse a "yyyy-MM-dd HH:mm:ss" timestamp as UTC.

    Values that are already datetimes (the store's own date type) are
    passed through, made timezone-aware if they are naive.

    Args:
        value: Raw field value
        field: Field name, used in error messages

    Returns:
        Timezone-aware datetime, or None when absent

    Raises:
        FieldError: If the value is present but does not parse
    """
    if is_absent(value):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if not isinstance(value, str):
        raise FieldError(field, f"expected timestamp text, got {type(value).__name__}", value)
    try:
        parsed = datetime.strptime(value.strip(), TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise FieldError(field, f"not a valid date ({exc})", value) from exc
    return parsed.replace(tzinfo=timezone.utc)


def split_pseudo_list(value: Any) -> Optional[List[str]]:
    """
    Unwrap a list that was exported as its textual representation.

    "['read', 'write']" → ["read", "write"]. Native arrays are accepted
    too and have their items coerced to text.

    Args:
        value: Raw field value

    Returns:
        List of trimmed, non-empty strings, or None if nothing is left
    """
    if is_absent(value):
        return None
    if isinstance(value, (list, tuple)):
        items = [decode_text(item) for item in value]
    elif isinstance(value, str):
        items = _PSEUDO_LIST_DECORATION.sub("", value).split(",")
    else:
        return None
    cleaned = [item.strip() for item in items if item is not None and item.strip()]
    return cleaned or None


def parse_embedded_document(value: Any, field: str = "") -> Optional[dict]:
    """
    Parse JSON text holding a single object.

    Strict (extended) JSON is tried first so $oid / $date wrappers
    become BSON values; text that is not strict JSON is retried as
    relaxed JSON, e.g. { f1: "some string", f2: 7 }.

    Args:
        value: Raw field value
        field: Field name, used in error messages

    Returns:
        dict, or None when absent

    Raises:
        FieldError: If the text is not a JSON object
    """
    if is_absent(value):
        return None
    if isinstance(value, dict):
        return value
    if not isinstance(value, str):
        raise FieldError(field, f"expected JSON text, got {type(value).__name__}", value)
    try:
        document = json_util.loads(value)
    except (ValueError, TypeError):
        try:
            document = json5.loads(value)
        except (ValueError, TypeError) as exc:
            raise FieldError(field, f"invalid JSON ({exc})", value) from exc
    if not isinstance(document, dict):
        raise FieldError(field, "JSON value is not an object", value)
    return document
