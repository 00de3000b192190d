"""
Greedy term assignment.

Courses arrive already ranked (see scoring.rank_courses). Each one goes into
the first slot, in chronological order, that
  (a) offers the course's term,
  (b) is allowed by constraints.preferred_terms for that course, and
  (c) still has room under max_credits_per_semester.

With a CourseGraph the pass is also prerequisite-aware: a course is only
attempted once its in-catalog blocking prerequisites are settled, and its
slot must come strictly after every required prerequisite (not before a
concurrent one). A course whose prerequisite could not be placed stays
unplaced. Without a graph, (a)-(c) are the only checks and ordering is left
to the validator.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from plan_app.models import TERM_SLOTS, Course, PlanningConstraints, slot_index, slot_term
from plan_app.planner.graph import CourseGraph
from plan_app.planner.result import UnplacedCourse

logger = logging.getLogger(__name__)

Assignments = Dict[str, List[Course]]

_EPS = 1e-9


def empty_assignments() -> Assignments:
    return {sid: [] for sid in TERM_SLOTS}


def slot_credits(courses: Sequence[Course]) -> float:
    return sum(c.credits for c in courses)


def slot_accepts(
    course: Course,
    sid: str,
    credits_used: float,
    constraints: PlanningConstraints,
) -> bool:
    term = slot_term(sid)
    if not course.is_offered(term):
        return False
    allowed = constraints.allowed_terms(course)
    if allowed is not None and term.lower() not in allowed and sid not in allowed:
        return False
    return credits_used + course.credits <= constraints.max_credits_per_semester + _EPS


def ordering_window(
    cid: str,
    graph: Optional[CourseGraph],
    placed_at: Dict[str, int],
) -> Tuple[int, int]:
    """
    Inclusive (lo, hi) slot-index range that keeps every placed prerequisite
    before the course and every placed dependent after it.
    """
    lo, hi = 0, len(TERM_SLOTS) - 1
    if graph is None:
        return lo, hi
    for pid, kind in graph.prerequisites.get(cid, {}).items():
        if pid == cid or pid not in placed_at:
            continue
        idx = placed_at[pid]
        lo = max(lo, idx + 1 if kind == "required" else idx)
    for dep in graph.dependents.get(cid, []):
        if dep == cid or dep not in placed_at:
            continue
        idx = placed_at[dep]
        kind = graph.prerequisites[dep][cid]
        hi = min(hi, idx - 1 if kind == "required" else idx)
    return lo, hi


def first_fitting_slot(
    course: Course,
    assignments: Assignments,
    constraints: PlanningConstraints,
    lo: int = 0,
    hi: int = len(TERM_SLOTS) - 1,
    exclude: Optional[str] = None,
) -> Optional[str]:
    for i in range(lo, hi + 1):
        sid = TERM_SLOTS[i]
        if sid == exclude:
            continue
        if slot_accepts(course, sid, slot_credits(assignments[sid]), constraints):
            return sid
    return None


def _no_slot_reason(course: Course, constraints: PlanningConstraints, lo: int) -> str:
    allowed = constraints.allowed_terms(course)
    terms = [t for t in course.terms if allowed is None or t.lower() in allowed
             or any(a.endswith("-" + t.lower()) for a in allowed)]
    if not terms:
        return "no allowed term: offered terms and preferred terms do not overlap"
    if lo >= len(TERM_SLOTS):
        return "prerequisites occupy the final term; no later slot remains"
    return (
        f"no slot with room for {course.credits:g} credits "
        f"(cap {constraints.max_credits_per_semester})"
    )


def _next_ready(
    pending: List[Course],
    graph: CourseGraph,
    settled: set,
) -> int:
    for i, course in enumerate(pending):
        prereqs = graph.prerequisites.get(course.id, {})
        if all(pid in settled for pid in prereqs if pid != course.id):
            return i
    # Only reachable on a cyclic graph; the cycle guard normally runs first.
    return 0


def assign_terms(
    ranked: Sequence[Course],
    constraints: PlanningConstraints,
    graph: Optional[CourseGraph] = None,
) -> Tuple[Assignments, List[UnplacedCourse]]:
    assignments = empty_assignments()
    placed_at: Dict[str, int] = {}
    unplaced:  List[UnplacedCourse] = []

    pending = list(ranked)
    settled: set = set()

    while pending:
        i = _next_ready(pending, graph, settled) if graph is not None else 0
        course = pending.pop(i)
        settled.add(course.id)

        if graph is not None:
            missing = [
                pid for pid in graph.prerequisites.get(course.id, {})
                if pid != course.id and pid not in placed_at
            ]
            if missing:
                codes = ", ".join(graph.code_of(p) for p in missing)
                unplaced.append(UnplacedCourse(
                    course.id, course.code,
                    f"prerequisite {codes} could not be placed",
                ))
                continue

        lo, hi = ordering_window(course.id, graph, placed_at)
        sid = first_fitting_slot(course, assignments, constraints, lo, hi)
        if sid is None:
            reason = _no_slot_reason(course, constraints, lo)
            logger.debug("unplaced %s: %s", course.code, reason)
            unplaced.append(UnplacedCourse(course.id, course.code, reason))
            continue

        assignments[sid].append(course)
        placed_at[course.id] = slot_index(sid)
        logger.debug("placed %s in %s", course.code, sid)

    return assignments, unplaced
