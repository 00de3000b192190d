"""Tests for the prerequisite graph and the cycle guard."""
import pytest

from plan_app.models import Course, Prerequisite
from plan_app.planner.graph import (CircularDependencyError, build_graph,
    ensure_acyclic, find_cycle)


def _course(code, *prereqs):
    return Course(id=code.lower(), code=code, credits=3, prerequisites=tuple(prereqs))


def test_edges_resolve_codes_to_ids() -> None:
    g = build_graph([_course("A"), _course("B", Prerequisite("A"))])
    assert g.prerequisites["b"] == {"a": "required"}
    assert g.dependents["a"] == ["b"]
    assert g.prerequisites["a"] == {}


def test_unmatched_prerequisite_is_ignored() -> None:
    g = build_graph([_course("B", Prerequisite("MISSING 101"))])
    assert g.prerequisites["b"] == {}
    assert g.unmatched["b"] == ["MISSING 101"]
    assert find_cycle(g) is None


def test_recommended_edges_do_not_block() -> None:
    g = build_graph([
        _course("A", Prerequisite("B", kind="recommended")),
        _course("B", Prerequisite("A", kind="recommended")),
    ])
    assert g.prerequisites == {"a": {}, "b": {}}
    assert g.recommended["a"] == ["b"]
    ensure_acyclic(g)


def test_required_cycle_detected() -> None:
    g = build_graph([_course("A", Prerequisite("B")), _course("B", Prerequisite("A"))])
    assert find_cycle(g) == ["a", "b", "a"]
    with pytest.raises(CircularDependencyError) as exc:
        ensure_acyclic(g)
    assert exc.value.cycle == ["a", "b", "a"]
    assert "A -> B -> A" in str(exc.value)


def test_concurrent_edges_take_part_in_cycles() -> None:
    g = build_graph([
        _course("A", Prerequisite("C", kind="concurrent")),
        _course("B", Prerequisite("A")),
        _course("C", Prerequisite("B")),
    ])
    cycle = find_cycle(g)
    assert cycle is not None
    assert set(cycle) == {"a", "b", "c"}


def test_self_prerequisite_is_a_cycle() -> None:
    g = build_graph([_course("A", Prerequisite("A"))])
    assert find_cycle(g) == ["a", "a"]


def test_diamond_is_not_a_cycle() -> None:
    g = build_graph([
        _course("A"),
        _course("B", Prerequisite("A")),
        _course("C", Prerequisite("A")),
        _course("D", Prerequisite("B"), Prerequisite("C")),
    ])
    assert find_cycle(g) is None
    assert g.dependents["a"] == ["b", "c"]


def test_long_chain_does_not_recurse() -> None:
    courses = [_course("C0")] + [
        _course(f"C{i}", Prerequisite(f"C{i - 1}")) for i in range(1, 3000)
    ]
    assert find_cycle(build_graph(courses)) is None
