"""
Course priority score used to order placement attempts.

  score = 0.5 * A-rate        (if prioritize_grades)
        + 30                  (if include_requirements and the course has a
                               required prerequisite)
        + 5 * credits         (always)

Scoring runs inside the ranking sort, so it never raises: any unreadable
field contributes 0.
"""

from __future__ import annotations

import math
from typing import Iterable, List

from plan_app.models import Course, PlanningPreferences, parse_grade_distribution

GRADE_WEIGHT       = 0.5
REQUIREMENT_BONUS  = 30.0
CREDIT_WEIGHT      = 5.0


def _finite(value: object) -> float:
    try:
        f = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    return f if math.isfinite(f) else 0.0


def historical_a_rate(course: Course) -> float:
    """Percentage of students who historically earned an A (0 if unknown)."""
    dist = parse_grade_distribution(course.grade_distribution)
    if not dist:
        return 0.0
    return _finite(dist.get("A", 0.0))


def score_course(course: Course, preferences: PlanningPreferences) -> float:
    score = 0.0
    if preferences.prioritize_grades:
        score += historical_a_rate(course) * GRADE_WEIGHT
    if preferences.include_requirements:
        if course.required_prereqs():
            score += REQUIREMENT_BONUS
    score += _finite(course.credits) * CREDIT_WEIGHT
    return score


def rank_courses(
    courses: Iterable[Course],
    preferences: PlanningPreferences,
    required_codes: Iterable[str] = (),
) -> List[Course]:
    """
    Courses in placement order: required courses first, then by descending
    score. sorted() is stable, so equal keys keep catalog order.
    """
    required = set(required_codes)
    return sorted(
        courses,
        key=lambda c: (c.code not in required, -score_course(c, preferences)),
    )
