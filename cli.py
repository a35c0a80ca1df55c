# cli.py — solve one calendar date from the command line
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from date_parser import parse_date
from render import render_solution_text
from solver.orchestrator import solve_calendar

EXIT_OK = 0
EXIT_NO_SOLUTION = 1
EXIT_BAD_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calendar-solver",
        description="Find every tiling of the calendar puzzle for one date.",
    )
    parser.add_argument("--day", dest="day", metavar="D",
                        help="day of the month, 1-31")
    parser.add_argument("--month", dest="month", metavar="M",
                        help="month number or name, e.g. 1 or Jan")
    parser.add_argument("--date", dest="date", metavar="TEXT",
                        help='free-text date such as "31/1" or "Jan 31" (used when --day/--month are absent)')
    parser.add_argument("--cross-check", dest="cross_check", action="store_true",
                        help="re-enumerate with OR-Tools CP-SAT and compare")
    parser.add_argument("--limit", dest="limit", type=int, default=None, metavar="N",
                        help="stop after N placement attempts (default: no limit)")
    parser.add_argument("--text", dest="text", action="store_true",
                        help="print every solution as a letter map")
    parser.add_argument("-ll", "--log-level", dest="log_level", default="WARNING", metavar="level",
                        help="CRITICAL, ERROR, WARNING, INFO or DEBUG (default: %(default)s)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    options = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(options.log_level).upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    day, month, err = parse_date({"day": options.day, "month": options.month, "date": options.date})
    if err:
        print(f"error: {err}", file=sys.stderr)
        return EXIT_BAD_INPUT

    result = solve_calendar(day, month, cross_check=options.cross_check or None, node_limit=options.limit)

    print(f"{result.label}: {result.count} solution(s) "
          f"({result.raw_count} found, {result.elapsed:.2f}s)")
    cp = result.meta.get("cp_sat")
    if cp:
        verdict = "agrees" if cp.get("agrees") else "does not agree"
        print(f"CP-SAT: {cp.get('count')} solution(s), {verdict}"
              + (f" ({cp['reason']})" if cp.get("reason") else ""))
    if result.reason:
        print(result.reason)

    if options.text:
        for index, solution in enumerate(result.solutions, start=1):
            print(f"\n#{index}")
            print(render_solution_text(solution, day, month))

    return EXIT_OK if result.ok else EXIT_NO_SOLUTION


if __name__ == "__main__":
    sys.exit(main())
