from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from .mapper import parse_int
from .schema import NUMERIC_FIELDS, ROW_LENGTH


@dataclass(frozen=True)
class RowError:
    """A rejected CSV row. `row` is the 1-based line number in the file (header is 1)."""
    row: int
    message: str
    field: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"row": self.row, "message": self.message}
        if self.field:
            out["field"] = self.field
        return out


def validate_row(row_number: int, row: Sequence[str]) -> Optional[RowError]:
    """Return a RowError for a structurally invalid row, or None if it can be mapped.

    Every numeric cell must start with an integer; a blank one is rejected too.
    """
    if row is None or len(row) != ROW_LENGTH:
        got = 0 if row is None else len(row)
        return RowError(row=row_number, message=f"Expected {ROW_LENGTH} cells, got {got}")

    for field in NUMERIC_FIELDS:
        cell = row[field.column]
        if parse_int(cell) is None:
            return RowError(
                row=row_number,
                message=f"{field.key} must be a whole number, got '{(cell or '').strip()}'",
                field=field.key,
            )
    return None
