"""
JSON serialisation / deserialisation for plan requests and results.

Uses only the Python standard-library json module. Basic structural
validation is applied before domain objects are built, so a malformed
request fails here with a readable ConfigError instead of deep inside the
planner.

Keys are snake_case; the camelCase keys of the catalogue export
(gradeDistribution, term, courseId, maxCreditsPerSemester, ...) are accepted
as well.

Reference: Python docs — json
https://docs.python.org/3/library/json.html
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from plan_app.models import (TERMS, Course, PlanningConstraints,
    PlanningPreferences, PlanRequest, Prerequisite, SolverParams,
    current_year, parse_grade_distribution)
from plan_app.planner.result import PlanResult


class ConfigError(ValueError):
    """Raised when the request JSON is structurally invalid."""


def _require(obj: Dict[str, Any], key: str, ctx: str) -> Any:
    if key not in obj:
        raise ConfigError(f"Missing required key '{key}' in {ctx}")
    return obj[key]


def _get(obj: Dict[str, Any], key: str, alt: str, default: Any = None) -> Any:
    if key in obj:
        return obj[key]
    return obj.get(alt, default)


def _as_list(obj: Any, ctx: str) -> List[Any]:
    if not isinstance(obj, list):
        raise ConfigError(f"Expected a JSON array in {ctx}, got {type(obj).__name__}")
    return obj


def _as_dict(obj: Any, ctx: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise ConfigError(
            f"Expected a JSON object in {ctx}, got {type(obj).__name__}"
        )
    return obj


def _check_unique_ids(items: list, ctx: str) -> None:
    seen: set = set()
    dupes: set = set()
    for item in items:
        item_id = getattr(item, "id", None)
        if not item_id:
            raise ConfigError(f"Empty or missing 'id' in {ctx}")
        if item_id in seen:
            dupes.add(item_id)
        seen.add(item_id)
    if dupes:
        raise ConfigError(f"Duplicate ids in {ctx}: {sorted(dupes)}")


def _parse_terms(raw: Any, ctx: str) -> tuple:
    if raw is None:
        return TERMS
    if isinstance(raw, str):
        raw = [raw]
    terms = tuple(str(t).strip().capitalize() for t in _as_list(raw, ctx))
    bad = [t for t in terms if t not in TERMS]
    if bad:
        raise ConfigError(f"Unknown term(s) {bad} in {ctx}")
    return terms


def _parse_course(c: Dict[str, Any], i: int) -> Course:
    ctx = f"courses[{i}]"
    _as_dict(c, ctx)
    code = str(_require(c, "code", ctx))
    try:
        prereqs = tuple(
            Prerequisite.coerce(p)
            for p in _as_list(c.get("prerequisites", []) or [], f"{ctx}.prerequisites")
        )
    except ValueError as e:
        raise ConfigError(f"{ctx}: {e}") from e

    # Parsed once here; an unreadable distribution becomes None ("unknown").
    grades = parse_grade_distribution(_get(c, "grade_distribution", "gradeDistribution"))

    try:
        credits = float(_require(c, "credits", ctx))
        level   = int(c.get("level", 0) or 0)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{ctx}: {e}") from e

    return Course(
        id                 = str(c.get("id", code)),
        code               = code,
        credits            = credits,
        name               = str(c.get("name", "")),
        department         = str(c.get("department", "")),
        level              = level,
        prerequisites      = prereqs,
        terms              = _parse_terms(_get(c, "terms", "term"), f"{ctx}.terms"),
        grade_distribution = grades,
    )


def load_request(path: str | Path) -> PlanRequest:
    """Load and validate a PlanRequest from a JSON file."""
    with Path(path).open("r", encoding="utf-8") as f:
        raw = json.load(f)

    raw  = _as_dict(raw, "root")
    meta = _as_dict(raw.get("meta") or {}, "meta")

    courses_raw = _as_list(_require(raw, "courses", "root"), "courses")
    prefs_raw   = _as_dict(raw.get("preferences") or {}, "preferences")
    cons_raw    = _as_dict(raw.get("constraints") or {}, "constraints")
    solver_raw  = _as_dict(raw.get("solver") or {}, "solver")

    courses = [_parse_course(c, i) for i, c in enumerate(courses_raw)]

    preferences = PlanningPreferences(
        prioritize_grades    = bool(_get(prefs_raw, "prioritize_grades", "prioritizeGrades", False)),
        balance_workload     = bool(_get(prefs_raw, "balance_workload", "balanceWorkload", False)),
        include_requirements = bool(_get(prefs_raw, "include_requirements", "includeRequirements", False)),
    )

    preferred_raw = _as_dict(
        _get(cons_raw, "preferred_terms", "preferredTerms", {}) or {},
        "constraints.preferred_terms",
    )
    required_raw = _get(cons_raw, "required_courses", "requiredCourses", []) or []
    if isinstance(required_raw, str):
        required_raw = [required_raw]
    constraints = PlanningConstraints(
        max_credits_per_semester = int(_get(cons_raw, "max_credits_per_semester", "maxCreditsPerSemester", 18)),
        required_courses         = [str(x) for x in _as_list(required_raw, "constraints.required_courses")],
        preferred_terms          = {
            str(k): [str(t) for t in _as_list(v, f"constraints.preferred_terms[{k!r}]")]
            for k, v in preferred_raw.items()
        },
        target_credits           = float(_get(cons_raw, "target_credits", "targetCredits", 15)),
        tolerance                = float(cons_raw.get("tolerance", 3)),
        skip_empty_terms         = bool(_get(cons_raw, "skip_empty_terms", "skipEmptyTerms", False)),
    )

    solver = SolverParams(
        max_time_in_seconds = float(solver_raw.get("max_time_in_seconds", 10.0)),
        num_workers         = int(solver_raw.get("num_workers", 1)),
    )

    request = PlanRequest(
        meta        = meta,
        courses     = courses,
        preferences = preferences,
        constraints = constraints,
        solver      = solver,
        start_year  = int(_get(raw, "start_year", "startYear", None) or current_year()),
        user_id     = str(_get(raw, "user_id", "userId", "") or ""),
        plan_id     = str(_get(raw, "plan_id", "planId", "plan") or "plan"),
    )
    try:
        request.validate()
    except ValueError as e:
        raise ConfigError(str(e)) from e
    _check_unique_ids(request.courses, "courses")
    return request


def _dump(data: Dict[str, Any], path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        # sort_keys=True keeps repeated exports byte-identical.
        json.dump(data, f, ensure_ascii=False, indent=2, sort_keys=True)


def save_request(request: PlanRequest, path: str | Path) -> None:
    """Serialise a PlanRequest to JSON, creating parent directories if needed."""
    request.validate()
    _dump(request.to_dict(), path)


def save_result(result: PlanResult, path: str | Path) -> None:
    _dump(result.to_dict(), path)
