from __future__ import annotations

import logging
from typing import List

from plan_app.models import PlanRequest
from plan_app.planner.assemble import assemble_plan
from plan_app.planner.assign import assign_terms
from plan_app.planner.balance import rebalance
from plan_app.planner.graph import build_graph
from plan_app.planner.optimize import solve_assignment
from plan_app.planner.precheck import ensure_ok
from plan_app.planner.result import PlanResult
from plan_app.planner.scoring import rank_courses
from plan_app.planner.validate import validate_plan

logger = logging.getLogger(__name__)

STRATEGIES = ("greedy", "cpsat")


def generate_plan(request: PlanRequest, strategy: str = "greedy") -> PlanResult:
    """
    Build a four-year plan for `request` and validate it.

    Raises CircularDependencyError for a prerequisite cycle and PrecheckError
    for structurally invalid input; every other problem ends up in the
    result's validation issues or unplaced list.
    """
    strategy = (strategy or "").lower()
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown strategy: {strategy!r}")

    diagnostics: List[str] = list(ensure_ok(request))

    prefs = request.preferences
    cons  = request.constraints
    graph = build_graph(request.courses)
    ranked = rank_courses(request.courses, prefs, cons.required_courses)

    status = "GREEDY"
    stats: dict = {}
    if strategy == "cpsat":
        status, assignments, unplaced, stats = solve_assignment(
            ranked, prefs, cons, graph, request.solver,
        )
        if status not in ("OPTIMAL", "FEASIBLE"):
            diagnostics.append(
                f"Constraint solver returned {status}; fell back to greedy assignment."
            )
            status = "GREEDY"
    if status == "GREEDY":
        assignments, unplaced = assign_terms(ranked, cons, graph)

    if prefs.balance_workload:
        assignments = rebalance(
            assignments, cons.target_credits, cons.tolerance,
            constraints=cons, graph=graph,
        )

    plan = assemble_plan(assignments, request.start_year, request.plan_id, request.user_id)
    validation = validate_plan(plan, cons, known_codes=[c.code for c in request.courses])

    for u in unplaced:
        diagnostics.append(f"{u.code} left unplaced: {u.reason}")

    stats = dict(stats)
    stats["placed"]   = sum(len(s.courses) for s in plan.semesters())
    stats["unplaced"] = len(unplaced)
    stats["credits"]  = sum(s.total_credits() for s in plan.semesters())
    logger.info(
        "generated plan %s (%s): %d placed, %d unplaced, valid=%s",
        plan.id, status, stats["placed"], stats["unplaced"], validation.valid,
    )

    return PlanResult(
        status      = status,
        plan        = plan,
        validation  = validation,
        unplaced    = unplaced,
        diagnostics = diagnostics,
        stats       = stats,
    )
