"""
Post-hoc plan checks. Every check runs and every problem is reported as an
Issue; nothing here raises for a bad plan. Only errors make a plan invalid,
workload deviations are warnings.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from plan_app.models import AcademicPlan, PlanningConstraints
from plan_app.planner.result import Issue, ValidationResult

_EPS = 1e-9


def _label(plan: AcademicPlan, semester_id: str) -> str:
    for year in plan.years:
        for s in year.semesters:
            if s.id == semester_id:
                return f"{year.name} {s.term}"
    return semester_id


def _check_credit_cap(plan: AcademicPlan, cap: int, issues: List[Issue]) -> None:
    for s in plan.semesters():
        credits = s.total_credits()
        if credits > cap + _EPS:
            issues.append(Issue(
                type        = "error",
                kind        = "credit_cap",
                message     = f"Too many credits ({credits:g}) in {_label(plan, s.id)}; cap is {cap}",
                semester_id = s.id,
            ))


def _check_required(plan: AcademicPlan, required: Iterable[str], issues: List[Issue]) -> None:
    placed = {c.code for s in plan.semesters() for c in s.courses}
    for code in dict.fromkeys(required):
        if code not in placed:
            issues.append(Issue(
                type    = "error",
                kind    = "required_course",
                message = f"Required course {code} is not in the plan",
            ))


def _check_prerequisites(
    plan: AcademicPlan,
    known_codes: Optional[set],
    issues: List[Issue],
) -> None:
    position: Dict[str, int] = {}
    for i, s in enumerate(plan.semesters()):
        for c in s.courses:
            position.setdefault(c.code, i)

    for i, s in enumerate(plan.semesters()):
        for course in s.courses:
            for p in course.course.blocking_prereqs():
                if p.course_id == course.code:
                    continue
                at = position.get(p.course_id)
                if at is None:
                    if p.kind == "required" and (known_codes is None or p.course_id in known_codes):
                        issues.append(Issue(
                            type        = "error",
                            kind        = "prerequisite_missing",
                            message     = f"Prerequisite {p.course_id} for {course.code} is not in the plan",
                            semester_id = s.id,
                            course_id   = course.id,
                        ))
                    continue
                too_late = at >= i if p.kind == "required" else at > i
                if too_late:
                    issues.append(Issue(
                        type        = "error",
                        kind        = "prerequisite_order",
                        message     = f"Prerequisite {p.course_id} not taken before {course.code}",
                        semester_id = s.id,
                        course_id   = course.id,
                    ))


def _check_workload(
    plan: AcademicPlan,
    target: float,
    tolerance: float,
    skip_empty: bool,
    issues: List[Issue],
) -> None:
    for s in plan.semesters():
        if skip_empty and not s.courses:
            continue
        credits = s.total_credits()
        if abs(credits - target) > tolerance + _EPS:
            issues.append(Issue(
                type        = "warning",
                kind        = "workload",
                message     = f"Unbalanced workload ({credits:g} credits) in {_label(plan, s.id)}",
                semester_id = s.id,
            ))


def validate_plan(
    plan: AcademicPlan,
    constraints: PlanningConstraints,
    known_codes: Optional[Iterable[str]] = None,
) -> ValidationResult:
    """
    A required prerequisite missing from the plan is an error. known_codes
    narrows that check to catalog codes: prerequisites outside the catalog
    are then treated as already satisfied, as the graph does.
    """
    issues: List[Issue] = []
    _check_credit_cap(plan, constraints.max_credits_per_semester, issues)
    _check_required(plan, constraints.required_courses, issues)
    _check_prerequisites(plan, set(known_codes) if known_codes is not None else None, issues)
    _check_workload(
        plan, constraints.target_credits, constraints.tolerance,
        constraints.skip_empty_terms, issues,
    )
    return ValidationResult(
        valid  = not any(i.type == "error" for i in issues),
        issues = issues,
    )
