"""
Data model layer for the academic plan generator.

Every domain object is a plain Python dataclass. Catalog entries (Course,
Prerequisite) are frozen: the engine copies references into plan slots but
never mutates them.

Reference: Python Software Foundation. "dataclasses — Data Classes."
https://docs.python.org/3/library/dataclasses.html

Design note: prerequisites reference codes, not ids:
  Prerequisite.course_id holds the *code* of another course ("CS 200"),
  not its primary key. The graph builder resolves codes to ids.

Grade distributions arrive either as a mapping or as a JSON-encoded string
(the catalogue export stores them as text). parse_grade_distribution()
turns both into a mapping, or None when the value cannot be read.
"""

from __future__ import annotations

import datetime
import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union


TERMS:      Tuple[str, ...] = ("Fall", "Spring", "Summer")
YEAR_NAMES: Tuple[str, ...] = ("Freshman", "Sophomore", "Junior", "Senior")

PREREQ_KINDS:   Tuple[str, ...] = ("required", "concurrent", "recommended")
BLOCKING_KINDS: Tuple[str, ...] = ("required", "concurrent")


def slot_id(year_name: str, term: str) -> str:
    """Composite slot id, e.g. ('Freshman', 'Fall') -> 'freshman-fall'."""
    return f"{year_name.lower()}-{term.lower()}"


# Canonical chronological order: Year1-Fall, Year1-Spring, Year1-Summer, ...
TERM_SLOTS: Tuple[str, ...] = tuple(
    slot_id(y, t) for y in YEAR_NAMES for t in TERMS
)
_SLOT_INDEX: Dict[str, int] = {s: i for i, s in enumerate(TERM_SLOTS)}


def slot_index(sid: str) -> int:
    return _SLOT_INDEX[sid]


def slot_term(sid: str) -> str:
    """Term name of a slot id: 'junior-summer' -> 'Summer'."""
    return TERMS[_SLOT_INDEX[sid] % len(TERMS)]


GradeDistribution = Dict[str, float]


def parse_grade_distribution(raw: Any) -> Optional[GradeDistribution]:
    """
    Return {bucket: percent} or None when the distribution is unknown.

    Accepts a mapping or a JSON string. Values may be numbers or decimal
    strings ("42.5"); unreadable values are dropped. Never raises.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if not isinstance(raw, dict):
        return None

    out: GradeDistribution = {}
    for bucket, value in raw.items():
        if isinstance(value, bool):
            continue
        try:
            out[str(bucket)] = float(value)
        except (TypeError, ValueError):
            continue
    return out


@dataclass(frozen=True)
class Prerequisite:
    course_id: str                   # code of the prerequisite course
    kind:      str           = "required"
    min_grade: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind not in PREREQ_KINDS:
            raise ValueError(
                f"Unknown prerequisite kind {self.kind!r} for '{self.course_id}'"
            )

    @property
    def blocking(self) -> bool:
        return self.kind in BLOCKING_KINDS

    @classmethod
    def coerce(cls, raw: Union[str, Dict[str, Any], "Prerequisite"]) -> "Prerequisite":
        """Normalise a bare code string or a mapping into a Prerequisite."""
        if isinstance(raw, Prerequisite):
            return raw
        if isinstance(raw, str):
            return cls(course_id=raw.strip())
        if isinstance(raw, dict):
            code = raw.get("course_id", raw.get("courseId", raw.get("code")))
            if not code:
                raise ValueError(f"Prerequisite has no course reference: {raw!r}")
            kind = str(raw.get("kind", raw.get("type", "required")) or "required")
            min_grade = raw.get("min_grade", raw.get("minGrade"))
            return cls(
                course_id = str(code).strip(),
                kind      = kind.strip().lower(),
                min_grade = str(min_grade) if min_grade else None,
            )
        raise ValueError(f"Cannot read prerequisite from {type(raw).__name__}")


@dataclass(frozen=True)
class Course:
    id:      str
    code:    str
    credits: float
    name:               str                             = ""
    department:         str                             = ""
    level:              int                             = 0
    prerequisites:      Tuple[Prerequisite, ...]        = ()
    terms:              Tuple[str, ...]                 = TERMS
    grade_distribution: Union[GradeDistribution, str, None] = None

    def required_prereqs(self) -> List[Prerequisite]:
        return [p for p in self.prerequisites if p.kind == "required"]

    def blocking_prereqs(self) -> List[Prerequisite]:
        return [p for p in self.prerequisites if p.blocking]

    def is_offered(self, term: str) -> bool:
        return term in self.terms


@dataclass(frozen=True)
class PlannedCourse:
    """A catalog course copied into a plan slot, tagged with its semester."""
    course:      Course
    semester_id: str

    @property
    def id(self) -> str:
        return self.course.id

    @property
    def code(self) -> str:
        return self.course.code

    @property
    def credits(self) -> float:
        return self.course.credits

    @property
    def prerequisites(self) -> Tuple[Prerequisite, ...]:
        return self.course.prerequisites


@dataclass
class Semester:
    id:               str
    term:             str
    year:             int
    academic_year_id: str
    courses:          List[PlannedCourse] = field(default_factory=list)

    def total_credits(self) -> float:
        return sum(c.credits for c in self.courses)


@dataclass
class AcademicYear:
    id:         str
    name:       str
    start_year: int
    semesters:  List[Semester] = field(default_factory=list)


@dataclass
class AcademicPlan:
    id:            str
    user_id:       str                = ""
    years:         List[AcademicYear] = field(default_factory=list)
    saved_courses: List[Course]       = field(default_factory=list)

    def semesters(self) -> Iterator[Semester]:
        for year in self.years:
            yield from year.semesters

    def find_semester(self, code: str) -> Optional[Semester]:
        """First semester (chronologically) holding a course with this code."""
        return next(
            (s for s in self.semesters() if any(c.code == code for c in s.courses)),
            None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PlanningPreferences:
    prioritize_grades:    bool = False
    balance_workload:     bool = False
    include_requirements: bool = False


@dataclass
class PlanningConstraints:
    max_credits_per_semester: int                  = 18
    required_courses:         List[str]            = field(default_factory=list)
    # course id or code -> allowed term names ("Fall") and/or slot ids
    preferred_terms:          Dict[str, List[str]] = field(default_factory=dict)
    target_credits:           float                = 15
    tolerance:                float                = 3
    # terms with no courses are normally reported as under target too
    skip_empty_terms:         bool                 = False

    def validate(self) -> None:
        if self.max_credits_per_semester < 1:
            raise ValueError("max_credits_per_semester must be >= 1")
        if self.target_credits < 0:
            raise ValueError("target_credits must be >= 0")
        if self.tolerance < 0:
            raise ValueError("tolerance must be >= 0")

    def allowed_terms(self, course: Course) -> Optional[set]:
        """Lower-cased allowed terms/slot ids for a course, or None if unrestricted."""
        allowed = self.preferred_terms.get(course.id)
        if allowed is None:
            allowed = self.preferred_terms.get(course.code)
        if allowed is None:
            return None
        return {str(a).strip().lower() for a in allowed}


@dataclass
class SolverParams:
    max_time_in_seconds: float = 10.0
    # CP-SAT runs are only reproducible with a single worker.
    num_workers: int = 1


def current_year() -> int:
    return datetime.date.today().year


@dataclass
class PlanRequest:
    meta:        Dict[str, Any]      = field(default_factory=dict)
    courses:     List[Course]        = field(default_factory=list)
    preferences: PlanningPreferences = field(default_factory=PlanningPreferences)
    constraints: PlanningConstraints = field(default_factory=PlanningConstraints)
    solver:      SolverParams        = field(default_factory=SolverParams)
    start_year:  int                 = field(default_factory=current_year)
    user_id:     str                 = ""
    plan_id:     str                 = "plan"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> None:
        self.constraints.validate()
        if self.solver.max_time_in_seconds <= 0:
            raise ValueError("solver.max_time_in_seconds must be > 0")
        if self.solver.num_workers < 0:
            raise ValueError("solver.num_workers must be >= 0")
