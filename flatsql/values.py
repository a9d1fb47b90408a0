"""
Cell values and the rules for comparing, matching and printing them.

A cell holds a number (float), a text (str), or is absent. Absent is
represented by the column key missing from the row; lookups return None.
"""

import math
import re
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from flatsql.errors import QueryTypeError


Value = Union[float, str]

# Stored values matching this are read back as numbers
STORED_NUMBER_PATTERN = re.compile(r'-?\d+\.?\d*')


class ValueKind(Enum):
    NUMBER = 'number'
    TEXT = 'text'
    ABSENT = 'absent'


def kind_of(value: Optional[Any]) -> ValueKind:
    """Classify a cell value."""
    if value is None:
        return ValueKind.ABSENT
    if isinstance(value, bool):
        raise QueryTypeError(f"Unsupported value {value!r}")
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.TEXT
    raise QueryTypeError(f"Unsupported value {value!r}")


def number(text: str) -> float:
    """Convert a numeric literal to its cell value."""
    return float(text)


def values_equal(left: Optional[Value], right: Optional[Value]) -> bool:
    """
    Equality used by WHERE and JOIN.

    Absent never equals anything, including another absent value, and a
    number never equals a text.
    """
    left_kind = kind_of(left)
    right_kind = kind_of(right)
    if ValueKind.ABSENT in (left_kind, right_kind) or left_kind != right_kind:
        return False
    return left == right


def compare_values(left: Optional[Value], right: Optional[Value]) -> int:
    """
    Ordering used by ORDER BY.

    Two numbers compare numerically; any other pair compares the printed
    text of both values. Absent values cannot be ordered.
    """
    left_kind = kind_of(left)
    right_kind = kind_of(right)
    if ValueKind.ABSENT in (left_kind, right_kind):
        raise QueryTypeError("Cannot order an absent value")
    if left_kind == right_kind == ValueKind.NUMBER:
        a, b = left, right
    else:
        a, b = format_value(left), format_value(right)
    return (a > b) - (a < b)


def like_matches(value: Optional[Value], pattern: str) -> bool:
    """
    Match a text against a LIKE pattern where '%' stands for any run of
    characters. The rest of the pattern is a regular expression matched
    against the whole text.
    """
    kind = kind_of(value)
    if kind == ValueKind.ABSENT:
        return False
    if kind != ValueKind.TEXT:
        raise QueryTypeError(f"LIKE requires a text value, got {format_value(value)}")
    try:
        return re.fullmatch(pattern.replace('%', '.*'), value) is not None
    except re.error as e:
        raise QueryTypeError(f"Invalid LIKE pattern '{pattern}': {e}")


def format_number(value: float) -> str:
    """Print a number in positional notation with at least one decimal."""
    if not math.isfinite(value):
        return repr(value)
    if value == int(value):
        return f"{int(value)}.0"
    text = format(Decimal(repr(value)), 'f')
    return text if '.' in text else text + '.0'


def format_value(value: Optional[Value]) -> str:
    """Printed form of a cell, shared by rendering and the file codec."""
    kind = kind_of(value)
    if kind == ValueKind.ABSENT:
        return 'null'
    if kind == ValueKind.NUMBER:
        return format_number(float(value))
    return value


def parse_stored(text: str) -> Value:
    """Read a value back from the database file."""
    if STORED_NUMBER_PATTERN.fullmatch(text):
        return float(text)
    return text
