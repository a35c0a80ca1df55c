# Orchestrator: validate the date, run the search, optionally cross-check with CP-SAT
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import CFG
from date_parser import format_date
from models import Solution
from progress import (
    set_phase, set_phase_total, set_progress_pct, set_search_counters,
    set_elapsed, set_status, set_message, set_date, start_timer,
    log_attempt_detail,
)
from solver.backtracking import SearchStats, SolverSingleThreaded
from solver.cp_isolate import run_cp_sat_isolated

log = logging.getLogger(__name__)


@dataclass
class SolveResult:
    ok: bool
    day: Optional[int]
    month: Optional[int]
    solutions: List[Solution] = field(default_factory=list)
    raw_count: int = 0
    elapsed: float = 0.0
    stopped_reason: Optional[str] = None
    reason: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.solutions)

    @property
    def label(self) -> str:
        if self.day is None or self.month is None:
            return ""
        return format_date(self.day, self.month)


# ---------- helpers ----------

def validate_date(day: Any, month: Any) -> None:
    """Raise ValueError unless day is 1..31 and month is 1..12.

    Every day number has a cell on the board, so 30 February is accepted.
    """
    try:
        d = int(day)
        m = int(month)
    except (TypeError, ValueError):
        raise ValueError(f"Day and month must be whole numbers (got {day!r}, {month!r})") from None
    if not 1 <= d <= 31:
        raise ValueError(f"Day must be between 1 and 31 (got {d})")
    if not 1 <= m <= 12:
        raise ValueError(f"Month must be between 1 and 12 (got {m})")


def _is_crash_reason(reason: Optional[str]) -> bool:
    if not reason:
        return False
    text = str(reason).strip().lower()
    if not text:
        return False
    crash_tokens = (
        "child exit",
        "child ran out of memory",
        "no result from child",
        "killed",
    )
    return any(token in text for token in crash_tokens)


def _publish_stats(stats: SearchStats) -> None:
    set_search_counters(
        nodes=stats.nodes,
        placements=stats.placements,
        backtracks=stats.backtracks,
        solutions=stats.solutions,
    )


def _run_cross_check(day: int, month: int, dfs_solutions: List[Solution],
                     *, seconds: Optional[float] = None) -> Dict[str, Any]:
    seconds = float(CFG.CP_SAT_SECONDS if seconds is None else seconds)
    crash_note: Optional[str] = None
    t0 = time.time()
    try:
        if CFG.CP_SAT_ISOLATE:
            ok, solutions, reason, crash_note = run_cp_sat_isolated(day, month, seconds)
        else:
            from solver.cp_sat import enumerate_solutions_cp_sat
            ok, solutions, reason = enumerate_solutions_cp_sat(day, month, seconds)
    except Exception as exc:
        reason = f"CP-SAT exception: {type(exc).__name__}: {exc}"
        log.warning("cross-check for %d/%d failed: %s", day, month, reason)
        return {"ok": False, "count": 0, "agrees": False, "reason": reason,
                "elapsed": round(time.time() - t0, 3)}

    entry = {
        "ok": bool(ok),
        "count": len(solutions),
        "agrees": bool(ok) and list(solutions) == list(dfs_solutions),
        "reason": reason,
        "elapsed": round(time.time() - t0, 3),
    }
    if crash_note or _is_crash_reason(reason):
        entry["crash_note"] = crash_note or reason
    return entry


# ---------- public entrypoint ----------

def solve_calendar(
    day: Any,
    month: Any,
    *,
    cross_check: Optional[bool] = None,
    cancel_event: Optional[threading.Event] = None,
    hole_check: Optional[str] = None,
    node_limit: Optional[int] = None,
) -> SolveResult:
    """Find every distinct tiling for one calendar date.

    ``ok`` is true when the search ran to exhaustion and found at least one
    tiling. A stopped search keeps the solutions found so far and sets
    ``stopped_reason``. CP-SAT problems land in ``meta["cp_sat"]`` and never
    change ``ok``.
    """
    t0 = time.time()

    try:
        validate_date(day, month)
    except ValueError as exc:
        reason = str(exc)
        set_status("Error")
        set_message(reason)
        log_attempt_detail("Bad date", day=day, month=month, reason=reason)
        return SolveResult(ok=False, day=None, month=None, reason=reason)

    day, month = int(day), int(month)
    do_cross_check = CFG.CROSS_CHECK if cross_check is None else bool(cross_check)

    set_date(day, month)
    start_timer()
    set_status("Solving")
    set_phase_total(3 if do_cross_check else 2)
    set_phase("search")
    set_progress_pct(0.0)

    solver = SolverSingleThreaded(
        day,
        month,
        hole_check=hole_check,
        node_limit=node_limit,
        cancel_event=cancel_event,
        on_progress=_publish_stats,
    )
    log_attempt_detail(
        "Run setup",
        date=format_date(day, month),
        hole_check=solver.board.hole_check,
        node_limit=solver.node_limit or 0,
        cross_check=1 if do_cross_check else 0,
    )

    try:
        raw_count = solver.find_solution_set()
    except Exception as exc:
        reason = f"search exception: {type(exc).__name__}: {exc}"
        log.exception("search for %d/%d failed", day, month)
        set_status("Error")
        set_message(reason)
        return SolveResult(ok=False, day=day, month=month, elapsed=time.time() - t0,
                           reason=reason, meta={"stats": solver.stats.as_dict()})

    stats = solver.stats
    log_attempt_detail(
        "Search finished",
        nodes=stats.nodes,
        placements=stats.placements,
        backtracks=stats.backtracks,
        raw_solutions=raw_count,
        stopped=solver.stopped_reason,
    )

    set_phase("dedupe")
    set_progress_pct(90.0)
    removed = solver.remove_duplicates()
    solutions = list(solver.get_solution_set())
    set_search_counters(solutions=len(solutions))

    meta: Dict[str, Any] = {
        "stats": stats.as_dict(),
        "duplicates_removed": removed,
        "hole_check": solver.board.hole_check,
    }

    if do_cross_check:
        set_phase("cp-sat")
        set_progress_pct(95.0)
        if solver.completed:
            cp_entry = _run_cross_check(day, month, solutions)
        else:
            cp_entry = {"ok": False, "count": 0, "agrees": False,
                        "reason": "Skipped: search did not run to completion"}
        meta["cp_sat"] = cp_entry
        log_attempt_detail(
            "Cross-check",
            ok=cp_entry.get("ok"),
            count=cp_entry.get("count"),
            agrees=cp_entry.get("agrees"),
            reason=cp_entry.get("reason"),
        )
        if cp_entry.get("ok") and not cp_entry.get("agrees"):
            log.warning(
                "CP-SAT found %d solutions for %d/%d, search found %d",
                cp_entry.get("count"), day, month, len(solutions),
            )

    elapsed = time.time() - t0
    set_elapsed(elapsed)

    if solver.stopped_reason:
        reason = (
            f"Search stopped ({solver.stopped_reason}) after {stats.nodes} placement attempts; "
            f"{len(solutions)} solution(s) so far"
        )
        ok = False
    elif not solutions:
        reason = "There is no solution"
        ok = False
    else:
        reason = None
        ok = True

    set_status("Solved" if ok else "Error")
    set_message(reason or f"{len(solutions)} solution(s) for {format_date(day, month)}")

    return SolveResult(
        ok=ok,
        day=day,
        month=month,
        solutions=solutions,
        raw_count=raw_count,
        elapsed=elapsed,
        stopped_reason=solver.stopped_reason,
        reason=reason,
        meta=meta,
    )


__all__ = ["SolveResult", "solve_calendar", "validate_date"]
