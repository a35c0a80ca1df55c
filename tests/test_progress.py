import importlib
import json
import logging
import os
import time

from progress import (
    log_attempt_detail,
    reset,
    set_date,
    set_done,
    set_result_url,
    set_search_counters,
    set_status,
    snapshot,
)


def test_set_done_no_args_defaults_to_solved():
    reset()
    set_done()
    snap = snapshot()
    assert snap["status"] == "Solved"
    assert snap["percent"] == 100.0
    assert snap["done"] is True
    assert snap["ok"] is True
    assert snap["result_url"] == ""


def test_set_done_accepts_reason_alias():
    reset()
    set_status("Solving")
    set_done(False, reason="boom")
    snap = snapshot()
    assert snap["status"] == "Error"
    assert snap["percent"] == 100.0
    assert snap["message"] == "boom"
    assert snap["done"] is True
    assert snap["ok"] is False


def test_set_result_url_tracks_navigation_target():
    reset()
    set_result_url("/foo")
    snap = snapshot()
    assert snap["result_url"] == "/foo"
    assert snap["done"] is False


def test_reset_increments_run_identifier():
    reset()
    first = snapshot()["run_id"]
    reset()
    second = snapshot()["run_id"]
    assert isinstance(first, int)
    assert isinstance(second, int)
    assert second == first + 1


def test_search_counters_ignore_missing_and_bad_values():
    reset()
    set_search_counters(nodes=120, placements=14, solutions=3)
    set_search_counters(nodes="oops", backtracks=-4)
    snap = snapshot()
    assert snap["nodes"] == 120
    assert snap["placements"] == 14
    assert snap["backtracks"] == 0
    assert snap["solutions"] == 3


def test_set_date_uses_short_month_label():
    reset()
    set_date(31, 1)
    assert snapshot()["date"] == "31 Jan"
    set_date("x", 1)
    assert snapshot()["date"] == ""


def test_log_attempt_detail_writes_key_values(caplog):
    logger = logging.getLogger("solver.attempt_log")
    logger.propagate = True
    try:
        with caplog.at_level(logging.INFO, logger="solver.attempt_log"):
            log_attempt_detail("Search finished", nodes=10, stopped=None, date="31 Jan")
    finally:
        logger.propagate = False
    if logger.handlers:
        assert "Search finished | nodes=10 date=31 Jan" in caplog.text
        assert "stopped" not in caplog.text


def test_snapshot_reads_state_written_by_other_process(tmp_path, monkeypatch):
    import progress as progress_module

    state_path = tmp_path / "state.json"
    monkeypatch.setenv("PROGRESS_STATE_FILE", str(state_path))
    progress = importlib.reload(progress_module)

    progress.reset()
    progress.set_phase("search")
    first = progress.snapshot()
    assert first["phase"] == "search"

    data = dict(first)
    data["phase"] = "cp-sat"
    data["phase_total"] = "3"
    state_path.write_text(json.dumps(data))
    os.utime(state_path, None)

    with progress.PROGRESS_LOCK:
        progress.PROGRESS["phase"] = ""
        progress.PROGRESS["phase_total"] = ""
        progress._LAST_STATE_MTIME = 0.0

    time.sleep(0.01)
    updated = progress.snapshot()
    assert updated["phase"] == "cp-sat"
    assert updated["phase_total"] == "3"

    monkeypatch.delenv("PROGRESS_STATE_FILE", raising=False)
    importlib.reload(progress_module)
