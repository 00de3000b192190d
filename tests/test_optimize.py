"""Tests for the CP-SAT assignment strategy."""

from plan_app.models import (Course, PlanningConstraints, PlanningPreferences,
    PlanRequest, Prerequisite, SolverParams)
from plan_app.planner.api import generate_plan
from plan_app.planner.graph import build_graph
from plan_app.planner.optimize import solve_assignment


def _course(code, credits=3, terms=("Fall", "Spring"), prereqs=()):
    return Course(id=code, code=code, credits=credits, terms=tuple(terms),
                  prerequisites=tuple(prereqs))


def _request(courses, **constraints) -> PlanRequest:
    return PlanRequest(
        courses=list(courses),
        constraints=PlanningConstraints(**constraints),
        solver=SolverParams(max_time_in_seconds=5.0, num_workers=1),
        start_year=2026,
    )


def test_cpsat_prerequisite_chain() -> None:
    a = _course("A")
    b = _course("B", prereqs=[Prerequisite("A")])
    result = generate_plan(_request([a, b], required_courses=["A", "B"]), strategy="cpsat")
    assert result.status in ("OPTIMAL", "FEASIBLE")
    assert result.plan.find_semester("A").id == "freshman-fall"
    assert result.plan.find_semester("B").id == "freshman-spring"
    assert result.validation.valid


def test_cpsat_respects_cap_and_places_everything() -> None:
    courses = [_course(f"C{i}", terms=["Fall"]) for i in range(7)]
    result = generate_plan(_request(courses), strategy="cpsat")
    assert result.unplaced == []
    assert all(s.total_credits() <= 18 for s in result.plan.semesters())
    assert sum(len(s.courses) for s in result.plan.semesters()) == 7


def test_cpsat_concurrent_may_share_term() -> None:
    a = _course("A")
    b = _course("B", prereqs=[Prerequisite("A", kind="concurrent")])
    result = generate_plan(_request([a, b]), strategy="cpsat")
    assert result.plan.find_semester("B").id == "freshman-fall"


def test_cpsat_reports_disallowed_course() -> None:
    c = _course("C", terms=["Summer"])
    cons = PlanningConstraints(preferred_terms={"C": ["Fall"]})
    graph = build_graph([c])
    status, assignments, unplaced, _ = solve_assignment(
        [c], PlanningPreferences(), cons, graph, SolverParams(),
    )
    assert status == "OPTIMAL"
    assert all(cs == [] for cs in assignments.values())
    assert [u.code for u in unplaced] == ["C"]
    assert "do not overlap" in unplaced[0].reason


def test_cpsat_balancing_keeps_terms_near_target() -> None:
    courses = [_course(c, 4, terms=["Fall", "Spring", "Summer"]) for c in "ABCDE"]
    req = _request(courses, max_credits_per_semester=20)
    req.preferences = PlanningPreferences(balance_workload=True)
    result = generate_plan(req, strategy="cpsat")
    assert result.unplaced == []
    assert all(s.total_credits() <= 16 for s in result.plan.semesters())


def test_infeasible_model_falls_back_to_greedy() -> None:
    big = _course("BIG", credits=20)
    dep = _course("DEP", prereqs=[Prerequisite("BIG")])
    result = generate_plan(_request([big, dep], required_courses=["DEP"]), strategy="cpsat")
    assert result.status == "GREEDY"
    assert any("fell back" in d for d in result.diagnostics)
    assert {u.code for u in result.unplaced} == {"BIG", "DEP"}
    assert not result.validation.valid


def test_empty_catalog() -> None:
    result = generate_plan(_request([]), strategy="cpsat")
    assert result.status == "OPTIMAL"
    assert result.stats["placed"] == 0
