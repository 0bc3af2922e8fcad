"""
Lenient readers for loosely-typed records.

Records reach the engine either as objects (SQLModel rows, pydantic models)
or as plain mappings straight from a document store, where keys are often
camelCase and numbers may arrive as strings, blanks or not at all. Every
reader here is total: a missing or malformed value becomes 0 / "".
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

_SNAKE_PART_RE = re.compile(r"_([a-z0-9])")


def _camel(name: str) -> str:
    """jpy_price -> jpyPrice"""
    return _SNAKE_PART_RE.sub(lambda m: m.group(1).upper(), name)


def field(record: Any, name: str, default: Any = None) -> Any:
    """Read `name` from an object or mapping, trying the camelCase key as well."""
    if record is None:
        return default
    if isinstance(record, Mapping):
        if name in record:
            return record[name]
        return record.get(_camel(name), default)
    return getattr(record, name, default)


def to_number(value: Any) -> float:
    """Coerce to float; None, blanks, junk, NaN and inf all become 0.0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def to_quantity(value: Any) -> int:
    """Order quantities are whole units; fractional junk is truncated toward zero."""
    return int(to_number(value))


def to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def number_field(record: Any, name: str) -> float:
    return to_number(field(record, name))


def text_field(record: Any, name: str) -> str:
    return to_text(field(record, name))
