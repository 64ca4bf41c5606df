"""
Validation of record keys and values.

Record values live in a JSON column keyed by field name, so every key that
reaches SQL (field names, value keys, filter keys, the sort field) becomes a
JSON path component. Keys are restricted to names that cannot break out of
that path.

Values are a closed tagged union: string, number, boolean, timestamp, null
or list of strings (multi-select). Timestamps are stored as ISO-8601 strings.
"""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Mapping, Union

from flexstore.errors import InvalidInput

MAX_KEY_LENGTH = 100
FORBIDDEN_KEY_CHARS = ('.', '"', "\\")

FieldValue = Union[str, int, float, bool, None, list[str]]


def validate_key(key: Any, what: str = "field name") -> str:
    """Return `key` unchanged if it is a safe JSON path component."""
    if not isinstance(key, str) or not key.strip():
        raise InvalidInput(f"{what.capitalize()} must be a non-empty string", field=what)
    if len(key) > MAX_KEY_LENGTH:
        raise InvalidInput(
            f"{what.capitalize()} must be at most {MAX_KEY_LENGTH} characters", field=what
        )
    if key.startswith("$") or any(ch in key for ch in FORBIDDEN_KEY_CHARS):
        raise InvalidInput(
            f"{what.capitalize()} {key!r} contains reserved characters", field=what
        )
    return key


def normalize_value(value: Any, key: str = "value") -> FieldValue:
    """
    Coerce a caller-supplied value into the stored representation.

    No check against the field's declared type is made.
    """
    if value is None or isinstance(value, (bool, str, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidInput(f"Value for {key!r} must be a finite number", field=key)
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        if all(isinstance(item, str) for item in value):
            return list(value)
        raise InvalidInput(f"List value for {key!r} may only contain strings", field=key)
    raise InvalidInput(
        f"Unsupported value type {type(value).__name__} for {key!r}", field=key
    )


def normalize_values(values: Mapping[str, Any] | None) -> dict[str, FieldValue]:
    """Validate every key and value of an update payload, keeping input order."""
    if values is None:
        return {}
    if not isinstance(values, Mapping):
        raise InvalidInput("Values must be an object", field="values")
    return {
        validate_key(key, "value key"): normalize_value(value, key)
        for key, value in values.items()
    }
