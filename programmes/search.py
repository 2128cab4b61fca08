"""
Subject search index.

  {"CSEC_Mathematics": {"Science" + "BSc" + "Computer Science": {...programme...}}}

Each programme is indexed under every subject named in its mandatory and
any-N-of lists, once for CSEC and once for CAPE. A slot written as
"A or B" indexes under both A and B. Only the first "." of a subject is
removed ("Tech. Drawing" -> "Tech Drawing").
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .schema import (
    QUALIFICATION_TYPES,
    SUBJECT_LIST_SUFFIXES,
    Programme,
    ProgrammeLike,
    as_record,
    programme_key,
)

logger = logging.getLogger(__name__)

SearchIndex = Dict[str, Dict[str, Dict[str, Any]]]

ALTERNATIVE_SEPARATOR = " or "


def subject_tokens(record: Mapping[str, Any], qualification: str) -> List[str]:
    """Cleaned, non-empty subject tokens from the six subject lists of one type."""
    tokens: List[str] = []
    for suffix in SUBJECT_LIST_SUFFIXES:
        raw = record.get(f"{qualification}{suffix}")
        if not isinstance(raw, str):
            raw = "" if raw is None else str(raw)
        for subject in raw.split(","):
            subject = subject.strip().replace(".", "", 1)
            if subject:
                tokens.append(subject)
    return tokens


def subject_key(qualification: str, subject: str) -> str:
    return f"{qualification}_{subject}"


def add_to_index(qualification: str, programme: ProgrammeLike, index: SearchIndex) -> SearchIndex:
    """Index one programme's subjects of one qualification type into `index`."""
    record = as_record(programme)
    key = programme_key(record)
    for subject in subject_tokens(record, qualification):
        for alternative in subject.split(ALTERNATIVE_SEPARATOR):
            index.setdefault(subject_key(qualification, alternative), {})[key] = record
    return index


def _index_order(key: Any):
    s = str(key)
    return (0, int(s), s) if s.isdigit() else (1, 0, s)


def iter_programmes(value: Union[None, Iterable[Any], Mapping[str, Any]]) -> List[ProgrammeLike]:
    """Programmes as stored: a list, or a dict keyed by position when the list is sparse."""
    if value is None:
        return []
    if isinstance(value, Mapping):
        items = [value[k] for k in sorted(value, key=_index_order)]
    else:
        items = list(value)
    return [p for p in items if isinstance(p, (Programme, Mapping))]


def build_search_index(programmes: Iterable[ProgrammeLike]) -> SearchIndex:
    index: SearchIndex = {}
    count = 0
    for programme in programmes:
        for qualification in QUALIFICATION_TYPES:
            add_to_index(qualification, programme, index)
        count += 1
    logger.info("search index: %d programmes under %d subject keys", count, len(index))
    return index


def rebuild_search_index(programmes_value: Optional[Any], store) -> Optional[SearchIndex]:
    """Rebuild /search from the full Programmes value; no-op when it was deleted."""
    if programmes_value is None:
        logger.info("search index: Programmes removed, index left unchanged")
        return None
    index = build_search_index(iter_programmes(programmes_value))
    store.set("/search", index)
    return index
