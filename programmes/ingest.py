"""
CSV ingestion pipeline.

  ingest(csv_text)            -> IngestResult (pure)
  publish(result, store)      -> one root update replacing Programmes/RowErrors
  process_csv(csv_text, store)   ingest + publish; used by every upload path

Row numbering follows the file: the header is row 1, so the first programme
row reports as row 2. The first parsed row (header) and the last parsed row
(the blank row after the final line break) are never processed.
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .mapper import programme_from_row
from .schema import Programme
from .validators import RowError, validate_row

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    programmes: List[Programme] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {
            "programmes": len(self.programmes),
            "errors": [e.to_dict() for e in self.errors],
        }


def parse_rows(csv_text: str) -> List[List[str]]:
    """Split CSV text into rows of cells.

    Blank lines come back as a single empty cell, and text ending in a line
    break gets a trailing [""] row, so the last row is always the sentinel
    after the final programme line.
    """
    text = csv_text or ""
    if text.startswith("\ufeff"):
        text = text[1:]
    rows = [row if row else [""] for row in csv.reader(io.StringIO(text, newline=""))]
    if not text or text.endswith(("\n", "\r")):
        rows.append([""])
    return rows


def ingest(csv_text: str) -> IngestResult:
    rows = parse_rows(csv_text)
    result = IngestResult()
    for i in range(1, len(rows) - 1):
        row = rows[i]
        row_error = validate_row(i + 1, row)
        if row_error is None:
            result.programmes.append(programme_from_row(row))
        else:
            logger.warning("row %d rejected: %s", row_error.row, row_error.message)
            result.errors.append(row_error)
    logger.info("ingest: %d programmes, %d row errors", len(result.programmes), len(result.errors))
    return result


def _now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def publish(result: IngestResult, store, clock: Optional[Callable[[], int]] = None) -> Dict[str, Any]:
    """Replace the stored programmes and row errors in a single root update."""
    payload = {
        "Programmes": [p.to_dict() for p in result.programmes],
        "RowErrors": [e.to_dict() for e in result.errors],
        "updateTime": (clock or _now_ms)(),
    }
    store.update("/", payload)
    return payload


def process_csv(csv_text: str, store, clock: Optional[Callable[[], int]] = None) -> IngestResult:
    result = ingest(csv_text)
    publish(result, store, clock=clock)
    return result
