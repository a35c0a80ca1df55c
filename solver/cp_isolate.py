# solver/cp_isolate.py
import multiprocessing as mp
from typing import List, Tuple, Optional
import traceback

# Worker must be top-level (picklable on Windows spawn)
def _solve_worker(q, day: int, month: int, max_seconds: float):
    try:
        from solver.cp_sat import enumerate_solutions_cp_sat  # import inside child
        ok, solutions, reason = enumerate_solutions_cp_sat(day, month, max_seconds)
        q.put(("ok", ok, solutions, reason))
    except MemoryError:
        q.put(("err", False, [], "Child ran out of memory"))
    except Exception as e:
        q.put(("exc", False, [], f"{e}\n{traceback.format_exc()}"))

def run_cp_sat_isolated(day: int, month: int, max_seconds: float) -> Tuple[bool, List, Optional[str], Optional[str]]:
    """
    Returns (ok, solutions, reason, crash_note).
    crash_note is non-empty only if the child crashed/was killed/timed out.
    """
    ctx = mp.get_context("spawn")  # safest on Windows
    q = ctx.Queue()
    p = ctx.Process(target=_solve_worker, args=(q, int(day), int(month), float(max_seconds)))
    p.daemon = True
    p.start()

    # Allow a small buffer beyond model time for teardown
    timeout = float(max_seconds) + 5.0
    try:
        tag, ok, solutions, reason = q.get(timeout=timeout)
    except Exception:
        tag = None
    p.join(2.0)

    if tag is None:
        if p.is_alive():
            p.terminate()
            p.join(2.0)
            return False, [], "Stopped before enumeration finished (timebox)", "killed: timeout"
        if p.exitcode not in (0, None):
            return False, [], f"Stopped before enumeration finished (child exit {p.exitcode})", "child crashed"
        return False, [], "No result from child process", "no-result"

    if tag == "ok":
        return ok, solutions, reason, None
    return False, [], reason, None
