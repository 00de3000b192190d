from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from plan_app.models import AcademicPlan


@dataclass(frozen=True)
class UnplacedCourse:
    course_id: str
    code:      str
    reason:    str


@dataclass(frozen=True)
class Issue:
    type:        str                  # "error" / "warning"
    kind:        str                  # credit_cap / required_course / prerequisite_order / ...
    message:     str
    semester_id: Optional[str] = None
    course_id:   Optional[str] = None


@dataclass
class ValidationResult:
    valid:  bool
    issues: List[Issue] = field(default_factory=list)

    @property
    def errors(self) -> List[Issue]:
        return [i for i in self.issues if i.type == "error"]

    @property
    def warnings(self) -> List[Issue]:
        return [i for i in self.issues if i.type == "warning"]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PlanResult:
    status:      str                      # GREEDY / OPTIMAL / FEASIBLE
    plan:        AcademicPlan
    validation:  ValidationResult
    unplaced:    List[UnplacedCourse] = field(default_factory=list)
    diagnostics: List[str]            = field(default_factory=list)
    stats:       Dict[str, Any]       = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
