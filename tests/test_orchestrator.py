import threading
import time

import pytest

import progress
from solver import orchestrator
from solver.orchestrator import SolveResult, solve_calendar, validate_date


@pytest.mark.parametrize("day,month", [(1, 1), (31, 12), (30, 2), ("7", "3")])
def test_validate_date_accepts_board_dates(day, month):
    validate_date(day, month)


@pytest.mark.parametrize("day,month", [(0, 1), (32, 1), (1, 0), (1, 13), ("x", 1), (None, 2)])
def test_validate_date_rejects_out_of_range(day, month):
    with pytest.raises(ValueError):
        validate_date(day, month)


def test_solve_calendar_reports_bad_date_without_raising():
    progress.reset()
    result = solve_calendar(40, 1)
    assert isinstance(result, SolveResult)
    assert not result.ok
    assert "Day must be between 1 and 31" in result.reason
    assert result.solutions == []
    assert progress.snapshot()["status"] == "Error"


def test_solve_calendar_stopped_search_keeps_partial_result():
    progress.reset()
    result = solve_calendar(31, 1, node_limit=25, cross_check=False)
    assert not result.ok
    assert result.stopped_reason == "node_limit"
    assert "Search stopped (node_limit)" in result.reason
    assert result.meta["stats"]["nodes"] >= 25
    assert "cp_sat" not in result.meta


def test_solve_calendar_cancelled():
    cancel = threading.Event()
    cancel.set()
    result = solve_calendar(31, 1, cancel_event=cancel, cross_check=False)
    assert result.stopped_reason == "cancelled"
    assert result.solutions == []


def test_cross_check_skipped_when_search_incomplete():
    result = solve_calendar(31, 1, node_limit=10, cross_check=True)
    assert result.meta["cp_sat"]["agrees"] is False
    assert result.meta["cp_sat"]["reason"].startswith("Skipped")


def test_solve_calendar_full_run_with_cross_check(monkeypatch, solved_jan_31):
    solver, raw_count, raw = solved_jan_31
    expected = solver.get_solution_set()
    calls = []

    class ReplaySolver(orchestrator.SolverSingleThreaded):
        # replays the shared exhaustive run
        def find_solution_set(self, start_index=0):
            self.solution_set = list(raw)
            self.stats.solutions = len(raw)
            self.stats.finished_at = time.time()
            return len(raw)

    def fake_isolated(day, month, seconds):
        calls.append((day, month, seconds))
        return True, list(expected), None, None

    monkeypatch.setattr(orchestrator, "run_cp_sat_isolated", fake_isolated)
    monkeypatch.setattr(orchestrator, "SolverSingleThreaded", ReplaySolver)
    monkeypatch.setattr(orchestrator.CFG, "CP_SAT_ISOLATE", True)
    monkeypatch.setattr(orchestrator.CFG, "CP_SAT_SECONDS", 7.0)

    progress.reset()
    result = solve_calendar(31, 1, cross_check=True, hole_check="flood")

    assert result.ok
    assert result.reason is None
    assert result.label == "31 Jan"
    assert result.solutions == expected
    assert result.raw_count == raw_count
    assert result.count == len(expected)
    assert result.meta["cp_sat"]["agrees"] is True
    assert result.meta["cp_sat"]["count"] == len(expected)
    assert calls == [(31, 1, 7.0)]

    snap = progress.snapshot()
    assert snap["status"] == "Solved"
    assert snap["date"] == "31 Jan"
    assert snap["solutions"] == len(expected)
    assert snap["phase"] == "cp-sat"


def test_cross_check_failure_lands_in_meta(monkeypatch):
    def boom(day, month, seconds):
        raise RuntimeError("native solver crash")

    monkeypatch.setattr(orchestrator, "run_cp_sat_isolated", boom)
    monkeypatch.setattr(orchestrator.CFG, "CP_SAT_ISOLATE", True)
    entry = orchestrator._run_cross_check(31, 1, [], seconds=1.0)
    assert entry["ok"] is False
    assert entry["agrees"] is False
    assert "RuntimeError" in entry["reason"]


def test_cross_check_records_crash_note(monkeypatch):
    monkeypatch.setattr(
        orchestrator,
        "run_cp_sat_isolated",
        lambda d, m, s: (False, [], "Stopped before enumeration finished (child exit -9)", "child crashed"),
    )
    monkeypatch.setattr(orchestrator.CFG, "CP_SAT_ISOLATE", True)
    entry = orchestrator._run_cross_check(31, 1, [], seconds=1.0)
    assert entry["crash_note"] == "child crashed"
    assert entry["agrees"] is False
