# app.py — date form, synchronous solve, progress no-cache
from __future__ import annotations
import time
from typing import Any, Dict, List

from flask import Flask, request, render_template, jsonify, url_for

from solver.orchestrator import SolveResult, solve_calendar
from date_parser import MONTH_NAMES, parse_date
from config import CFG
from render import render_solution_svg, render_solution_text

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    set_status, set_done, set_result_url, set_elapsed,
)

LAST_RESULT: Dict[str, Any] = {
    "ok": False,
    "date_label": "",
    "reason": "No puzzle solved yet.",
    "count": 0,
    "raw_count": 0,
    "rendered": [],
    "elapsed_str": "0s",
    "stats": {},
    "cp_sat": None,
}

app = Flask(__name__, template_folder="templates")


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


@app.route("/")
def index():
    return render_template("index.html", months=list(enumerate(MONTH_NAMES, start=1)))


@app.route("/result/latest")
def result_latest():
    return render_template("result.html", **LAST_RESULT)


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return "0s"
    m, s = divmod(int(seconds), 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    if h == 0:
        return f"{m}m {s}s"
    return f"{h}h {m}m {s}s"


def _merge_like_mapping() -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        merged.update(payload)

    for k, v in request.form.to_dict(flat=False).items():
        merged.setdefault(k, v)

    for k, v in request.args.to_dict(flat=False).items():
        merged.setdefault(k, v)

    return merged


def _truthy(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return str(value or "").strip().lower() in ("1", "true", "on", "yes")


def _render_solutions(result: SolveResult) -> List[Dict[str, str]]:
    rendered: List[Dict[str, str]] = []
    for index, solution in enumerate(result.solutions[: max(0, CFG.MAX_RENDERED)], start=1):
        svg, legend = render_solution_svg(solution, result.day, result.month)
        rendered.append({
            "index": index,
            "svg": svg,
            "legend": legend,
            "text": render_solution_text(solution, result.day, result.month),
        })
    return rendered


@app.route("/solve", methods=["POST"])
def solve():
    progress_reset()
    set_status("Solving")
    t0 = time.time()

    like = _merge_like_mapping()
    day, month, err = parse_date(like)

    if err:
        seen_keys = ", ".join(list(like.keys())[:8]) or "—"
        reason = f"Bad date: {err} (saw keys: {seen_keys})"
        set_status("Error")
        set_done(False, reason=reason)
        LAST_RESULT.update({
            "ok": False,
            "date_label": "",
            "reason": reason,
            "count": 0,
            "raw_count": 0,
            "rendered": [],
            "elapsed_str": _fmt_elapsed(time.time() - t0),
            "stats": {},
            "cp_sat": None,
        })
        set_result_url(url_for("result_latest"))
        return render_template("result.html", **LAST_RESULT), 400

    cross_check = _truthy(like.get("cross_check")) or None
    result = solve_calendar(day, month, cross_check=cross_check)

    set_elapsed(time.time() - t0)
    set_done(result.ok, reason=result.reason or f"{result.count} solution(s)")

    LAST_RESULT.update({
        "ok": result.ok,
        "date_label": result.label,
        "reason": result.reason or "",
        "count": result.count,
        "raw_count": result.raw_count,
        "rendered": _render_solutions(result) if result.solutions else [],
        "elapsed_str": _fmt_elapsed(time.time() - t0),
        "stats": result.meta.get("stats", {}),
        "cp_sat": result.meta.get("cp_sat"),
    })
    set_result_url(url_for("result_latest"))
    return render_template("result.html", **LAST_RESULT)


@app.route("/progress")
def progress():
    return jsonify(progress_json())


if __name__ == "__main__":
    app.run(debug=False)
