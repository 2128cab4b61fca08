"""
Row -> Programme conversion.

Numeric cells use integer-prefix parsing: leading whitespace and an optional
sign are accepted, then the longest run of base-10 digits is read and the rest
of the cell ignored ("5 passes" -> 5, "1.9" -> 1). A cell with no leading
digits has no value; clean_programme_values() turns every such field into 0,
because the Realtime Database cannot hold a "not a number" marker.
"""
from __future__ import annotations

import dataclasses
import math
import re
from typing import Any, Optional, Sequence

from .schema import FIELDS, Programme

_INT_PREFIX = re.compile(r"^\s*([+-]?[0-9]+)")


def parse_int(raw: Any) -> Optional[int]:
    """Integer-prefix parse. Returns None when the cell has no leading digits."""
    if raw is None:
        return None
    m = _INT_PREFIX.match(str(raw))
    if not m:
        return None
    return int(m.group(1))


def _is_valid_number(value: Any) -> bool:
    if isinstance(value, bool):
        return True
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    return False


def clean_programme_values(programme: Programme) -> Programme:
    """Replace every field that is neither a string nor a finite number with 0."""
    fixes = {}
    for field in FIELDS:
        value = getattr(programme, field.attr)
        if not isinstance(value, str) and not _is_valid_number(value):
            fixes[field.attr] = 0
    if not fixes:
        return programme
    return dataclasses.replace(programme, **fixes)


def _coerce(kind: str, cell: str) -> Any:
    if kind == "trimmed":
        return cell.strip()
    if kind == "text":
        return cell
    parsed = parse_int(cell)
    if kind == "flag":
        # An unparsable flag reads as "off"
        return bool(parsed)
    return parsed


def programme_from_row(row: Sequence[str]) -> Programme:
    """Build a cleaned Programme from one validated 24-cell row."""
    values = {f.attr: _coerce(f.kind, row[f.column]) for f in FIELDS}
    return clean_programme_values(Programme(**values))
