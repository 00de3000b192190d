"""
Constraint-solver term assignment (strategy "cpsat").

An alternative to the greedy pass in assign.py that considers all slots at
once with OR-Tools CP-SAT.

  x[c, t] = 1  iff  course c is placed in slot t
              (only created where the slot's term is offered / preferred
               and the course fits under the cap on its own)

Hard constraints:
  each course at most once; required courses exactly once
  sum of credits in a slot <= max_credits_per_semester
  required prerequisite in a strictly earlier slot,
  concurrent prerequisite in the same or an earlier slot

Objective (maximise):
  placement_weight * placed(c)  scaled so any extra placement wins
  + score(c) * 10               higher-ranked courses first
  - t * x[c, t]                 earlier slots preferred
  - over_weight * over(t)       credits above target (balance_workload only)

Credits are scaled to integers the same way the balancer does it.

Reference: OR-Tools CP-SAT Python API
https://developers.google.com/optimization/reference/python/sat/python/cp_model
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence, Tuple

from ortools.sat.python import cp_model

from plan_app.models import (TERM_SLOTS, Course, PlanningConstraints,
    PlanningPreferences, SolverParams)
from plan_app.planner.assign import Assignments, empty_assignments, slot_accepts
from plan_app.planner.balance import credit_units
from plan_app.planner.graph import CourseGraph
from plan_app.planner.result import UnplacedCourse
from plan_app.planner.scoring import score_course

logger = logging.getLogger(__name__)


def _status_str(s: object) -> str:
    """Convert a CP-SAT solver status value to a readable string."""
    mapping = {
        int(cp_model.OPTIMAL):       "OPTIMAL",
        int(cp_model.FEASIBLE):      "FEASIBLE",
        int(cp_model.INFEASIBLE):    "INFEASIBLE",
        int(cp_model.MODEL_INVALID): "MODEL_INVALID",
    }
    return mapping.get(int(s), "UNKNOWN")  # type: ignore[call-overload]


def solve_assignment(
    ranked: Sequence[Course],
    preferences: PlanningPreferences,
    constraints: PlanningConstraints,
    graph: CourseGraph,
    params: SolverParams,
) -> Tuple[str, Assignments, List[UnplacedCourse], Dict[str, Any]]:
    courses = list(ranked)
    C = len(courses)
    T = len(TERM_SLOTS)
    if not courses:
        return "OPTIMAL", empty_assignments(), [], {}

    units, _ = credit_units(
        [c.credits for c in courses]
        + [constraints.max_credits_per_semester, constraints.target_credits]
    )
    weight = units[:C]
    cap, target = units[C], units[C + 1]
    index = {c.id: ci for ci, c in enumerate(courses)}

    model = cp_model.CpModel()

    x = {
        (ci, t): model.new_bool_var(f"x_c{ci}_t{t}")
        for ci, c in enumerate(courses)
        for t, sid in enumerate(TERM_SLOTS)
        if slot_accepts(c, sid, 0, constraints)
    }

    def slots_of(ci: int) -> List[int]:
        return [t for t in range(T) if (ci, t) in x]

    placed = []
    for ci in range(C):
        p = model.new_bool_var(f"placed_c{ci}")
        model.add(p == sum(x[ci, t] for t in slots_of(ci)))
        placed.append(p)

    required = set(constraints.required_courses)
    for ci, c in enumerate(courses):
        if c.code in required and slots_of(ci):
            model.add(placed[ci] == 1)

    for t in range(T):
        in_slot = [weight[ci] * x[ci, t] for ci in range(C) if (ci, t) in x]
        if in_slot:
            model.add(sum(in_slot) <= cap)

    # Precedence. A dependent whose prerequisite is never placed stays out.
    for cid, pid, kind in graph.blocking_edges():
        if cid == pid or cid not in index or pid not in index:
            continue
        ci, pi = index[cid], index[pid]
        for t in slots_of(ci):
            before = [
                x[pi, u] for u in slots_of(pi)
                if (u < t if kind == "required" else u <= t)
            ]
            if before:
                model.add(sum(before) >= 1).only_enforce_if(x[ci, t])
            else:
                model.add(x[ci, t] == 0)

    # ── objective ─────────────────────────────────────────────────────────────
    over_weight = 2 * T if preferences.balance_workload else 0
    scores = [int(round(score_course(c, preferences) * 10)) for c in courses]
    # larger than every other term combined, so one more placement always wins
    place_weight = 1 + sum(scores) + T * C + over_weight * cap * T

    obj = [(place_weight + scores[ci]) * placed[ci] for ci in range(C)]
    obj.append(-sum(t * v for (_, t), v in x.items()))

    over = []
    if over_weight:
        for t in range(T):
            o = model.new_int_var(0, cap, f"over_t{t}")
            load = sum(weight[ci] * x[ci, t] for ci in range(C) if (ci, t) in x)
            model.add(o >= load - target)
            over.append(o)
        obj.append(-over_weight * sum(over))

    model.maximize(sum(obj))

    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = params.max_time_in_seconds
    solver.parameters.num_workers         = params.num_workers
    status = solver.solve(model)
    name   = _status_str(status)
    logger.debug("cp-sat finished with %s in %.3fs", name, solver.wall_time)

    if name not in ("OPTIMAL", "FEASIBLE"):
        return name, empty_assignments(), [], {"wall_time_s": round(solver.wall_time, 3)}

    assignments = empty_assignments()
    unplaced: List[UnplacedCourse] = []
    for ci, c in enumerate(courses):
        chosen = [t for t in slots_of(ci) if solver.value(x[ci, t]) == 1]
        if chosen:
            assignments[TERM_SLOTS[chosen[0]]].append(c)
        elif not slots_of(ci):
            unplaced.append(UnplacedCourse(
                c.id, c.code, "no allowed term: offered terms and preferred terms do not overlap",
            ))
        else:
            unplaced.append(UnplacedCourse(c.id, c.code, "not selected by the solver"))

    stats = {
        "objective":   int(solver.objective_value),
        "placed":      C - len(unplaced),
        "over_target": int(sum(solver.value(o) for o in over)) if over else 0,
        "wall_time_s": round(solver.wall_time, 3),
    }
    return name, assignments, unplaced, stats
