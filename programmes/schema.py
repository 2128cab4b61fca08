"""
Programme record layout.

One CSV row describes one programme with 24 positional cells. FIELDS is the
single table that ties a cell position to the stored key, the Python
attribute and the kind of coercion the mapper applies:

- trimmed: string, surrounding whitespace removed
- text:    string, passed through untouched (free-text columns)
- flag:    bool, integer-prefix parse then "!= 0"
- count:   int, integer-prefix parse (invalid => 0 after cleaning)
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Tuple, Union

ROW_LENGTH = 24

QUALIFICATION_TYPES = ("CSEC", "CAPE")

# Subject-list suffixes per qualification type, in index build order
SUBJECT_LIST_SUFFIXES = ("Mandatory", "Any1of", "Any2of", "Any3of", "Any4of", "Any5of")


@dataclass(frozen=True)
class Field:
    column: int
    key: str
    attr: str
    kind: str

    @property
    def numeric(self) -> bool:
        return self.kind in ("flag", "count")


FIELDS: Tuple[Field, ...] = (
    Field(0, "Degree1", "degree1", "trimmed"),
    Field(1, "Degree2", "degree2", "trimmed"),
    Field(2, "Programme", "programme", "trimmed"),
    Field(3, "Faculty", "faculty", "trimmed"),
    Field(4, "FullTime", "full_time", "flag"),
    Field(5, "PartTime", "part_time", "flag"),
    Field(6, "Evening", "evening", "flag"),
    Field(7, "CSECPasses", "csec_passes", "count"),
    Field(8, "CSECMandatory", "csec_mandatory", "trimmed"),
    Field(9, "CSECAny1of", "csec_any1of", "trimmed"),
    Field(10, "CSECAny2of", "csec_any2of", "trimmed"),
    Field(11, "CSECAny3of", "csec_any3of", "trimmed"),
    Field(12, "CSECAny4of", "csec_any4of", "trimmed"),
    Field(13, "CSECAny5of", "csec_any5of", "trimmed"),
    Field(14, "CAPEPasses", "cape_passes", "count"),
    Field(15, "CAPEMandatory", "cape_mandatory", "trimmed"),
    Field(16, "CAPEAny1of", "cape_any1of", "trimmed"),
    Field(17, "CAPEAny2of", "cape_any2of", "trimmed"),
    Field(18, "CAPEAny3of", "cape_any3of", "trimmed"),
    Field(19, "CAPEAny4of", "cape_any4of", "trimmed"),
    Field(20, "CAPEAny5of", "cape_any5of", "trimmed"),
    Field(21, "AlternativeQualifications", "alternative_qualifications", "text"),
    Field(22, "OtherRequirements", "other_requirements", "text"),
    Field(23, "Description", "description", "text"),
)

FIELDS_BY_KEY: Dict[str, Field] = {f.key: f for f in FIELDS}

NUMERIC_FIELDS: Tuple[Field, ...] = tuple(f for f in FIELDS if f.numeric)


@dataclass(frozen=True)
class Programme:
    degree1: str
    degree2: str
    programme: str
    faculty: str
    full_time: Any
    part_time: Any
    evening: Any
    csec_passes: Any
    csec_mandatory: str
    csec_any1of: str
    csec_any2of: str
    csec_any3of: str
    csec_any4of: str
    csec_any5of: str
    cape_passes: Any
    cape_mandatory: str
    cape_any1of: str
    cape_any2of: str
    cape_any3of: str
    cape_any4of: str
    cape_any5of: str
    alternative_qualifications: str
    other_requirements: str
    description: str

    def __getitem__(self, key: str) -> Any:
        """Look a value up by its stored key, e.g. programme["CSECMandatory"]."""
        return getattr(self, FIELDS_BY_KEY[key].attr)

    def to_dict(self) -> Dict[str, Any]:
        values = asdict(self)
        return {f.key: values[f.attr] for f in FIELDS}


ProgrammeLike = Union[Programme, Mapping[str, Any]]


def programme_key(programme: ProgrammeLike) -> str:
    """Inner search-index key: Faculty + Degree2 + Programme, concatenated as-is."""
    parts = (programme["Faculty"], programme["Degree2"], programme["Programme"]) if isinstance(
        programme, Programme
    ) else (programme.get("Faculty", ""), programme.get("Degree2", ""), programme.get("Programme", ""))
    return "".join(str(p) for p in parts)


def as_record(programme: ProgrammeLike) -> Dict[str, Any]:
    """Stored (JSON-ready) form of a programme."""
    if isinstance(programme, Programme):
        return programme.to_dict()
    return dict(programme)
