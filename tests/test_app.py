import pytest

pytest.importorskip("flask")

import app as app_module
from solver.orchestrator import SolveResult


@pytest.fixture
def client():
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as c:
        yield c


def test_index_lists_months(client):
    resp = client.get("/")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert 'name="day"' in body
    assert "December" in body


def test_progress_is_not_cached(client):
    resp = client.get("/progress")
    assert resp.status_code == 200
    assert resp.headers["Cache-Control"] == "no-store, max-age=0"
    assert "status" in resp.get_json()


def test_solve_rejects_bad_date(client):
    resp = client.post("/solve", data={"day": "45", "month": "1"})
    assert resp.status_code == 400
    assert "Day must be between 1 and 31" in resp.get_data(as_text=True)
    assert client.get("/progress").get_json()["status"] == "Error"


def test_solve_renders_solutions(client, monkeypatch, solved_jan_31):
    solver, raw_count, _raw = solved_jan_31
    solutions = solver.get_solution_set()
    seen = {}

    def fake_solve(day, month, *, cross_check=None):
        seen["args"] = (day, month, cross_check)
        return SolveResult(ok=True, day=day, month=month, solutions=list(solutions),
                           raw_count=raw_count, elapsed=1.5, meta={"stats": {"nodes": 99}})

    monkeypatch.setattr(app_module, "solve_calendar", fake_solve)
    monkeypatch.setattr(app_module.CFG, "MAX_RENDERED", 2)

    resp = client.post("/solve", json={"date": "Jan 31"})
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert seen["args"] == (31, 1, None)
    assert f"{len(solutions)} solution(s) for 31 Jan" in body
    assert body.count("<svg") == 2
    assert app_module.LAST_RESULT["count"] == len(solutions)

    latest = client.get("/result/latest")
    assert latest.status_code == 200
    assert latest.get_data(as_text=True).count("<svg") == 2

    snap = client.get("/progress").get_json()
    assert snap["done"] is True
    assert snap["ok"] is True
    assert snap["result_url"].endswith("/result/latest")


def test_cross_check_flag_is_forwarded(client, monkeypatch):
    seen = {}

    def fake_solve(day, month, *, cross_check=None):
        seen["cross_check"] = cross_check
        return SolveResult(ok=False, day=day, month=month, reason="There is no solution")

    monkeypatch.setattr(app_module, "solve_calendar", fake_solve)
    resp = client.post("/solve", data={"day": "3", "month": "Feb", "cross_check": "1"})
    assert resp.status_code == 200
    assert seen["cross_check"] is True
    assert "There is no solution" in resp.get_data(as_text=True)
