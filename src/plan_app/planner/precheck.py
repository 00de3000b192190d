"""
Checks that run before any course is placed.

A circular required/concurrent prerequisite chain is fatal
(CircularDependencyError): no ordering of such a catalog exists, so the
pipeline stops rather than guess. Structurally broken input (duplicate ids,
negative credits, invalid constraints) is a PrecheckError. Everything else
is a warning the caller can show alongside the plan.
"""

from __future__ import annotations

from typing import List, Tuple

from plan_app.models import TERM_SLOTS, TERMS, PlanRequest
from plan_app.planner.graph import build_graph, ensure_acyclic


class PrecheckError(ValueError):
    """Raised by ensure_ok() when hard errors are present."""


def precheck(request: PlanRequest) -> Tuple[List[str], List[str]]:
    """Return (errors, warnings). Cycles are not reported here; see ensure_ok()."""
    errors:   List[str] = []
    warnings: List[str] = []

    try:
        request.validate()
    except ValueError as e:
        errors.append(str(e))

    cap = request.constraints.max_credits_per_semester

    seen_ids:   set = set()
    seen_codes: set = set()
    for c in request.courses:
        if not c.id:
            errors.append(f"Course '{c.code}' has an empty id.")
        elif c.id in seen_ids:
            errors.append(f"Duplicate course id '{c.id}'.")
        seen_ids.add(c.id)

        if c.code in seen_codes:
            warnings.append(
                f"Course code '{c.code}' appears more than once; "
                f"prerequisites resolve to the first entry."
            )
        seen_codes.add(c.code)

        if c.credits < 0:
            errors.append(f"Course '{c.code}' has negative credits ({c.credits}).")
        elif c.credits > cap:
            warnings.append(
                f"Course '{c.code}' ({c.credits:g} credits) exceeds the "
                f"{cap}-credit term cap and can never be placed."
            )

        bad_terms = [t for t in c.terms if t not in TERMS]
        if bad_terms:
            errors.append(f"Course '{c.code}' lists unknown term(s): {bad_terms}")
        elif not c.terms:
            warnings.append(f"Course '{c.code}' is not offered in any term.")

    for code in request.constraints.required_courses:
        if code not in seen_codes:
            warnings.append(
                f"Required course '{code}' is not in the catalog; "
                f"the plan will fail validation."
            )

    known_slots = {t.lower() for t in TERMS} | set(TERM_SLOTS)
    for key, allowed in request.constraints.preferred_terms.items():
        if key not in seen_ids and key not in seen_codes:
            warnings.append(f"preferred_terms references unknown course '{key}'.")
        bad = [a for a in allowed if str(a).strip().lower() not in known_slots]
        if bad:
            warnings.append(f"preferred_terms['{key}'] contains unknown term(s): {bad}")

    return errors, warnings


def ensure_ok(request: PlanRequest) -> List[str]:
    """Raise on a prerequisite cycle or hard errors; return the warnings."""
    ensure_acyclic(build_graph(request.courses))
    errors, warnings = precheck(request)
    if errors:
        raise PrecheckError("\n".join(errors))
    return warnings
