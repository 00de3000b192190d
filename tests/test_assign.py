"""Tests for greedy term assignment."""

from plan_app.models import TERM_SLOTS, Course, PlanningConstraints, Prerequisite
from plan_app.planner.assign import assign_terms, slot_credits
from plan_app.planner.graph import build_graph


def _course(code, credits=3, terms=("Fall", "Spring"), prereqs=()):
    return Course(id=code, code=code, credits=credits, terms=tuple(terms),
                  prerequisites=tuple(prereqs))


def _where(assignments, code):
    return next(sid for sid, cs in assignments.items() if any(c.code == code for c in cs))


def test_prerequisite_pushes_dependent_to_next_term() -> None:
    a = _course("A")
    b = _course("B", prereqs=[Prerequisite("A")])
    assignments, unplaced = assign_terms([a, b], PlanningConstraints(), build_graph([a, b]))
    assert unplaced == []
    assert _where(assignments, "A") == "freshman-fall"
    assert _where(assignments, "B") == "freshman-spring"


def test_dependent_ranked_first_still_waits_for_prerequisite() -> None:
    a = _course("A")
    b = _course("B", prereqs=[Prerequisite("A")])
    assignments, _ = assign_terms([b, a], PlanningConstraints(), build_graph([a, b]))
    assert _where(assignments, "A") == "freshman-fall"
    assert _where(assignments, "B") == "freshman-spring"


def test_without_graph_ordering_is_not_consulted() -> None:
    a = _course("A")
    b = _course("B", prereqs=[Prerequisite("A")])
    assignments, _ = assign_terms([a, b], PlanningConstraints())
    assert [c.code for c in assignments["freshman-fall"]] == ["A", "B"]


def test_concurrent_prerequisite_may_share_a_term() -> None:
    a = _course("A")
    b = _course("B", prereqs=[Prerequisite("A", kind="concurrent")])
    assignments, _ = assign_terms([a, b], PlanningConstraints(), build_graph([a, b]))
    assert _where(assignments, "B") == "freshman-fall"


def test_recommended_prerequisite_does_not_delay() -> None:
    a = _course("A")
    b = _course("B", prereqs=[Prerequisite("A", kind="recommended")])
    assignments, _ = assign_terms([a, b], PlanningConstraints(), build_graph([a, b]))
    assert _where(assignments, "B") == "freshman-fall"


def test_credit_cap_overflows_to_next_offered_term() -> None:
    courses = [_course(f"C{i}", terms=["Fall"]) for i in range(7)]
    assignments, unplaced = assign_terms(courses, PlanningConstraints(), build_graph(courses))
    assert unplaced == []
    assert len(assignments["freshman-fall"]) == 6
    assert slot_credits(assignments["freshman-fall"]) == 18
    assert [c.code for c in assignments["sophomore-fall"]] == ["C6"]
    assert assignments["freshman-spring"] == []


def test_term_offering_respected() -> None:
    c = _course("S", terms=["Summer"])
    assignments, _ = assign_terms([c], PlanningConstraints(), build_graph([c]))
    assert _where(assignments, "S") == "freshman-summer"


def test_preferred_slot_id_restricts_placement() -> None:
    c = _course("X")
    cons = PlanningConstraints(preferred_terms={"X": ["junior-spring"]})
    assignments, _ = assign_terms([c], cons, build_graph([c]))
    assert _where(assignments, "X") == "junior-spring"


def test_disjoint_preferred_terms_leave_course_unplaced() -> None:
    c = _course("C", terms=["Summer"])
    cons = PlanningConstraints(preferred_terms={"C": ["Fall"]}, required_courses=["C"])
    assignments, unplaced = assign_terms([c], cons, build_graph([c]))
    assert all(cs == [] for cs in assignments.values())
    assert [u.code for u in unplaced] == ["C"]
    assert "do not overlap" in unplaced[0].reason


def test_unplaceable_prerequisite_leaves_dependent_unplaced() -> None:
    big = _course("BIG", credits=20)
    dep = _course("DEP", prereqs=[Prerequisite("BIG")])
    assignments, unplaced = assign_terms([big, dep], PlanningConstraints(), build_graph([big, dep]))
    assert {u.code for u in unplaced} == {"BIG", "DEP"}
    reason = next(u.reason for u in unplaced if u.code == "DEP")
    assert "BIG" in reason


def test_chain_reaching_past_final_term() -> None:
    courses = [_course("L0", terms=["Fall", "Spring", "Summer"])]
    for i in range(1, 13):
        courses.append(_course(f"L{i}", terms=["Fall", "Spring", "Summer"],
                               prereqs=[Prerequisite(f"L{i - 1}")]))
    assignments, unplaced = assign_terms(courses, PlanningConstraints(), build_graph(courses))
    assert [assignments[sid][0].code for sid in TERM_SLOTS] == [f"L{i}" for i in range(12)]
    assert [u.code for u in unplaced] == ["L12"]


def test_unmatched_prerequisite_treated_as_satisfied() -> None:
    c = _course("B", prereqs=[Prerequisite("NOT IN CATALOG")])
    assignments, unplaced = assign_terms([c], PlanningConstraints(), build_graph([c]))
    assert unplaced == []
    assert _where(assignments, "B") == "freshman-fall"


def test_every_slot_present_in_canonical_order() -> None:
    assignments, _ = assign_terms([], PlanningConstraints())
    assert list(assignments) == list(TERM_SLOTS)
