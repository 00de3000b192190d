"""
Translate a slot -> courses mapping into the four-year AcademicPlan shape
the rest of the system keys off: years "year-0".."year-3", semesters
"{yearname}-{term}" in Fall/Spring/Summer order.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from plan_app.models import (TERM_SLOTS, TERMS, YEAR_NAMES, AcademicPlan,
    AcademicYear, Course, PlannedCourse, Semester, slot_id)


def assemble_plan(
    assignments: Dict[str, Sequence[Course]],
    start_year: int,
    plan_id: str = "plan",
    user_id: str = "",
) -> AcademicPlan:
    unknown = [sid for sid in assignments if sid not in TERM_SLOTS]
    if unknown:
        raise ValueError(f"Unknown term slot id(s): {unknown}")

    years: List[AcademicYear] = []
    for index, year_name in enumerate(YEAR_NAMES):
        year_id = f"year-{index}"
        semesters = []
        for term in TERMS:
            sid = slot_id(year_name, term)
            semesters.append(Semester(
                id               = sid,
                term             = term,
                year             = start_year + index,
                academic_year_id = year_id,
                courses          = [PlannedCourse(c, sid) for c in assignments.get(sid, [])],
            ))
        years.append(AcademicYear(
            id         = year_id,
            name       = year_name,
            start_year = start_year + index,
            semesters  = semesters,
        ))

    return AcademicPlan(id=plan_id, user_id=user_id, years=years)
