"""
Command-line interface for the academic plan generator.

Usage examples:
    python -m plan_app.cli --request data/catalog.json
    python -m plan_app.cli --request data/catalog.json --out plan.json
    python -m plan_app.cli --request data/catalog.json --strategy cpsat

Exit codes:
    0  plan produced and valid
    1  bad arguments, unreadable request, precheck error or circular prerequisites
    2  plan produced but the validator reported errors
"""

from __future__ import annotations

import argparse
import logging
import sys

from plan_app.io_json import ConfigError, load_request, save_result
from plan_app.planner.api import STRATEGIES, generate_plan
from plan_app.planner.graph import CircularDependencyError
from plan_app.planner.precheck import PrecheckError


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Four-year academic plan generator (command-line mode)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  plan-cli --request data/catalog.json\n"
            "  plan-cli --request req.json --out plan.json --strategy cpsat\n"
        ),
    )
    parser.add_argument("--request", required=True, metavar="FILE",
                        help="path to the plan request JSON (catalog + settings)")
    parser.add_argument("--out",     default=None,  metavar="FILE",
                        help="write result JSON to this path (optional)")
    parser.add_argument(
        "--strategy",
        default="greedy",
        choices=list(STRATEGIES),
        help=(
            "term assignment strategy  "
            "[greedy = ranked first-fit, "
            "cpsat = OR-Tools constraint solver]  "
            "(default: greedy)"
        ),
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log planner decisions to stderr")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )

    # ── 1. load request ───────────────────────────────────────────────────────
    try:
        request = load_request(args.request)
    except FileNotFoundError:
        print(f"[ERROR] File not found: {args.request}", file=sys.stderr)
        sys.exit(1)
    except (ConfigError, ValueError) as e:
        print(f"[ERROR] Could not load request: {e}", file=sys.stderr)
        sys.exit(1)

    # ── 2. generate ───────────────────────────────────────────────────────────
    print(f"Generating plan ({args.strategy})…")
    try:
        result = generate_plan(request, args.strategy)
    except CircularDependencyError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)
    except PrecheckError as e:
        print(
            "\n[ERROR] precheck error(s) found; "
            "plan cannot be produced until these are fixed:\n",
            file=sys.stderr,
        )
        for i, err in enumerate(str(e).splitlines(), 1):
            print(f"  {i}. {err}", file=sys.stderr)
        sys.exit(1)

    # ── 3. print summary ──────────────────────────────────────────────────────
    print(f"\nStatus : {result.status}")
    print(f"Valid  : {result.validation.valid}")
    for k, v in result.stats.items():
        print(f"  {k}: {v}")
    for d in result.diagnostics:
        print(f"[DIAG] {d}")

    for year in result.plan.years:
        print(f"\n{year.name} ({year.start_year})")
        for sem in year.semesters:
            codes = ", ".join(c.code for c in sem.courses) or "-"
            print(f"  {sem.term:<6} {sem.total_credits():>5g} cr  {codes}")

    for issue in result.validation.issues:
        tag = "ERROR" if issue.type == "error" else "WARNING"
        print(f"[{tag}] {issue.message}")

    # ── 4. write output file (optional) ──────────────────────────────────────
    if args.out:
        save_result(result, args.out)
        print(f"\nResult written to: {args.out}")

    sys.exit(0 if result.validation.valid else 2)


if __name__ == "__main__":
    main()
