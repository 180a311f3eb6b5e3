"""Value categories and the emptiness predicate used by merge policies."""
from __future__ import annotations

import numbers
from collections.abc import Mapping, Sequence, Set
from enum import Enum

from recordmerge.records.fields import is_record

_BLOB_TYPES = (bytes, bytearray, memoryview)


class ValueCategory(str, Enum):
    """Buckets the emptiness predicate dispatches on."""

    REFERENCE = "reference"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"
    COLLECTION = "collection"
    RECORD = "record"
    OPAQUE = "opaque"


def category_of(value: object) -> ValueCategory:
    """Classify a runtime value. ``None`` is an unset reference."""
    if value is None:
        return ValueCategory.REFERENCE
    if isinstance(value, bool):
        return ValueCategory.BOOLEAN
    if isinstance(value, numbers.Integral):
        return ValueCategory.INTEGER
    if isinstance(value, numbers.Number):
        return ValueCategory.REAL
    if isinstance(value, str):
        return ValueCategory.TEXT
    if isinstance(value, _BLOB_TYPES):
        return ValueCategory.OPAQUE
    if is_record(value):
        return ValueCategory.RECORD
    if isinstance(value, (Sequence, Mapping, Set)):
        return ValueCategory.COLLECTION
    return ValueCategory.OPAQUE


def is_zero(value: object, nullable: bool = False) -> bool:
    """Return True when ``value`` counts as unset.

    For a reference field (``nullable``) only ``None`` is empty, so an
    ``Optional[int]`` holding ``0`` is present. Byte blobs, records and any
    value outside the known categories are never empty.
    """
    if nullable:
        return value is None
    category = category_of(value)
    if category is ValueCategory.REFERENCE:
        return True
    if category in (ValueCategory.TEXT, ValueCategory.COLLECTION):
        return len(value) == 0  # type: ignore[arg-type]
    if category is ValueCategory.BOOLEAN:
        return not value
    if category in (ValueCategory.INTEGER, ValueCategory.REAL):
        return value == 0
    return False
