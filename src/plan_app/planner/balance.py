"""
Workload balancing pass.

Any slot carrying more than target + tolerance credits sheds a subset of its
courses whose credits add up to the excess (load - target), or to the
closest total below it. The subset comes from a 0/1 subset-sum table:

  dp[i][c] = fewest courses among the first i that sum to exactly c units,
             None if no combination does

Credits may be fractional, so they are scaled to integer units by their
common denominator first; when that makes the table too large the slot
is skipped. Ties go to the fewest courses; among those the
backtrack picks courses later in the slot list, i.e. lower-ranked ones.

Selected courses move to the first other slot that accepts them under the
usual assignment rules; a course with nowhere to go stays put. Slots below
target are never filled by this pass.
"""

from __future__ import annotations

import logging
import math
from fractions import Fraction
from typing import List, Optional, Sequence, Tuple

from plan_app.models import TERM_SLOTS, Course, PlanningConstraints, slot_index
from plan_app.planner.assign import (Assignments, first_fitting_slot,
    ordering_window, slot_credits)
from plan_app.planner.graph import CourseGraph

logger = logging.getLogger(__name__)

DEFAULT_TARGET    = 15
DEFAULT_TOLERANCE = 3
# subset-sum table size above which a slot is left as it is
MAX_TABLE_CELLS   = 2_000_000


def credit_units(values: Sequence[float]) -> Tuple[List[int], int]:
    """Scale non-negative credit values to integers sharing one denominator."""
    fracs = [Fraction(max(v, 0)).limit_denominator(100) for v in values]
    denom = 1
    for f in fracs:
        denom = denom * f.denominator // math.gcd(denom, f.denominator)
    return [int(f * denom) for f in fracs], denom


def select_relocation_subset(courses: Sequence[Course], excess: float) -> List[Course]:
    """Courses whose credits best fill `excess` without going over it."""
    if excess <= 0 or not courses:
        return []
    units, _ = credit_units([c.credits for c in courses] + [excess])
    weights, budget = units[:-1], units[-1]
    n = len(weights)
    if (n + 1) * (budget + 1) > MAX_TABLE_CELLS:
        logger.debug("credit units too fine to balance (%d x %d); skipped", n + 1, budget + 1)
        return []

    dp: List[List[Optional[int]]] = [[None] * (budget + 1) for _ in range(n + 1)]
    dp[0][0] = 0
    for i in range(1, n + 1):
        w = weights[i - 1]
        prev, row = dp[i - 1], dp[i]
        for c in range(budget + 1):
            best = prev[c]
            if w <= c and prev[c - w] is not None:
                take = prev[c - w] + 1
                if best is None or take < best:
                    best = take
            row[c] = best

    total = next(c for c in range(budget, -1, -1) if dp[n][c] is not None)
    if total == 0:
        return []

    chosen: List[Course] = []
    c = total
    for i in range(n, 0, -1):
        w = weights[i - 1]
        if w <= c and dp[i - 1][c - w] is not None and dp[i - 1][c - w] + 1 == dp[i][c]:
            chosen.append(courses[i - 1])
            c -= w
    chosen.reverse()
    return chosen


def rebalance(
    assignments: Assignments,
    target_credits: float = DEFAULT_TARGET,
    tolerance: float = DEFAULT_TOLERANCE,
    *,
    constraints: Optional[PlanningConstraints] = None,
    graph: Optional[CourseGraph] = None,
) -> Assignments:
    """Return a rebalanced copy of `assignments`; the input is left untouched."""
    constraints = constraints or PlanningConstraints()
    out: Assignments = {sid: list(cs) for sid, cs in assignments.items()}
    for sid in TERM_SLOTS:
        out.setdefault(sid, [])

    placed_at = {c.id: slot_index(sid) for sid in TERM_SLOTS for c in out[sid]}

    for sid in TERM_SLOTS:
        load = slot_credits(out[sid])
        if load - target_credits <= tolerance:
            continue
        excess = load - target_credits
        subset = select_relocation_subset(out[sid], excess)
        logger.debug(
            "%s carries %g credits; relocating %s",
            sid, load, [c.code for c in subset],
        )
        for course in subset:
            lo, hi = ordering_window(course.id, graph, placed_at)
            dest = first_fitting_slot(course, out, constraints, lo, hi, exclude=sid)
            if dest is None:
                logger.debug("%s has no other slot; left in %s", course.code, sid)
                continue
            out[sid].remove(course)
            out[dest].append(course)
            placed_at[course.id] = slot_index(dest)
    return out
