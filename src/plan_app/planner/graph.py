"""
Prerequisite dependency graph and cycle guard.

Nodes are course ids. Blocking edges (required / concurrent) are stored on
the dependent course and resolved from prerequisite *codes*; recommended
edges are kept separately and never block. A prerequisite code with no
matching catalog entry is recorded in `unmatched` and otherwise ignored,
since catalogs are frequently partial.

Cycle detection is the classic three-colour depth-first search:
  WHITE  not yet visited
  GRAY   on the current DFS path
  BLACK  finished
An edge into a GRAY node closes a cycle. The traversal is iterative so long
prerequisite chains cannot hit the recursion limit.

Reference: Cormen et al., Introduction to Algorithms, 3rd ed., §22.3.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from plan_app.models import Course

logger = logging.getLogger(__name__)

WHITE, GRAY, BLACK = 0, 1, 2


class CircularDependencyError(ValueError):
    """Raised when required/concurrent prerequisites form a cycle."""

    def __init__(self, cycle: List[str], codes: Optional[List[str]] = None) -> None:
        self.cycle = cycle
        self.codes = codes or list(cycle)
        super().__init__(
            "Circular prerequisite chain: " + " -> ".join(self.codes)
        )


@dataclass
class CourseGraph:
    courses:       Dict[str, Course]               = field(default_factory=dict)
    code_to_id:    Dict[str, str]                  = field(default_factory=dict)
    # dependent id -> {prerequisite id: kind}, blocking edges only
    prerequisites: Dict[str, Dict[str, str]]       = field(default_factory=dict)
    dependents:    Dict[str, List[str]]            = field(default_factory=dict)
    recommended:   Dict[str, List[str]]            = field(default_factory=dict)
    unmatched:     Dict[str, List[str]]            = field(default_factory=dict)

    def blocking_edges(self) -> Iterator[Tuple[str, str, str]]:
        """(dependent id, prerequisite id, kind) in catalog order."""
        for cid, prereqs in self.prerequisites.items():
            for pid, kind in prereqs.items():
                yield cid, pid, kind

    def code_of(self, cid: str) -> str:
        course = self.courses.get(cid)
        return course.code if course else cid


def build_graph(courses: Sequence[Course]) -> CourseGraph:
    g = CourseGraph()
    for c in courses:
        if c.id in g.courses:
            logger.debug("duplicate course id %s ignored", c.id)
            continue
        g.courses[c.id] = c
        g.code_to_id.setdefault(c.code, c.id)
        g.prerequisites[c.id] = {}
        g.dependents[c.id]    = []
        g.recommended[c.id]   = []
        g.unmatched[c.id]     = []

    for cid, course in g.courses.items():
        for p in course.prerequisites:
            pid = g.code_to_id.get(p.course_id)
            if pid is None:
                g.unmatched[cid].append(p.course_id)
                continue
            if not p.blocking:
                g.recommended[cid].append(pid)
                continue
            # "required" wins if the same code appears as both kinds
            if g.prerequisites[cid].get(pid) != "required":
                g.prerequisites[cid][pid] = p.kind
            if cid not in g.dependents[pid]:
                g.dependents[pid].append(cid)

    logger.debug(
        "built graph: %d courses, %d blocking edges",
        len(g.courses), sum(len(v) for v in g.prerequisites.values()),
    )
    return g


def find_cycle(graph: CourseGraph) -> Optional[List[str]]:
    """Return one cycle as a list of ids (first id repeated last), or None."""
    color: Dict[str, int] = {cid: WHITE for cid in graph.courses}

    for root in graph.courses:
        if color[root] != WHITE:
            continue
        path:  List[str] = [root]
        stack: List[Iterator[str]] = [iter(graph.prerequisites[root])]
        color[root] = GRAY

        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                color[path.pop()] = BLACK
                stack.pop()
                continue
            if color[nxt] == GRAY:
                return path[path.index(nxt):] + [nxt]
            if color[nxt] == WHITE:
                color[nxt] = GRAY
                path.append(nxt)
                stack.append(iter(graph.prerequisites[nxt]))
    return None


def ensure_acyclic(graph: CourseGraph) -> None:
    cycle = find_cycle(graph)
    if cycle:
        raise CircularDependencyError(cycle, [graph.code_of(c) for c in cycle])
