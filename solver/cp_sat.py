import time
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from ortools.sat.python import cp_model as _cp

from config import CFG
from models import Grid, PiecePosition, Position, Solution
from pieces import CATALOGUE, PieceModel, PieceSpec
from solver.board import initialise_calendar_layout

Option = Tuple[Position, Grid, Tuple[Position, ...]]  # origin, orientation, covered cells

# ---------------- helpers ----------------

def unique_orientations(spec: PieceSpec) -> List[Grid]:
    """Every distinct orientation of ``spec``, in enumeration order."""
    piece = PieceModel.from_spec(spec)
    seen = set()
    out: List[Grid] = []
    while not piece.is_exhausted:
        grid = piece.current_orientation
        key = (grid.shape, grid.data)
        if key not in seen:
            seen.add(key)
            out.append(grid.copy())
        piece.change_orientation()
    return out


def build_options(layout: Grid, specs: Sequence[PieceSpec] = CATALOGUE) -> List[List[Option]]:
    """For each piece, every (origin, orientation) that sits on free cells only."""
    rows, cols = layout.shape.rows, layout.shape.cols
    options: List[List[Option]] = []
    for spec in specs:
        per_piece: List[Option] = []
        for orientation in unique_orientations(spec):
            oh, ow = orientation.shape.rows, orientation.shape.cols
            offsets = list(orientation.cells(1))
            for r0 in range(rows - oh + 1):
                for c0 in range(cols - ow + 1):
                    covered = tuple((r0 + r, c0 + c) for r, c in offsets)
                    if all(layout.get(r, c) == 0 for r, c in covered):
                        per_piece.append(((r0, c0), orientation, covered))
        options.append(per_piece)
    return options


class _SolutionCollector(_cp.CpSolverSolutionCallback):
    def __init__(self, variables, options, specs):
        _cp.CpSolverSolutionCallback.__init__(self)
        self._variables = variables
        self._options = options
        self._specs = specs
        self.solutions: List[Solution] = []

    def OnSolutionCallback(self):
        solution = []
        for i, spec in enumerate(self._specs):
            for k, var in enumerate(self._variables[i]):
                if self.Value(var):
                    origin, orientation, _covered = self._options[i][k]
                    solution.append(PiecePosition(spec.name, origin, orientation.copy()))
                    break
        self.solutions.append(tuple(solution))


def enumerate_solutions_cp_sat(
    day: int,
    month: int,
    max_seconds: Optional[float] = None,
    *,
    specs: Sequence[PieceSpec] = CATALOGUE,
) -> Tuple[bool, List[Solution], Optional[str]]:
    """Enumerate every tiling of the calendar for ``day``/``month`` as an exact-cover model.

    Returns ``(ok, solutions, reason)``. ``ok`` is true only when the
    enumeration finished; a timeout returns the solutions found so far with
    a reason string. Solutions are sorted and use the same
    ``PiecePosition`` records as the backtracking search, so the two result
    sets compare directly.
    """
    seconds = float(CFG.CP_SAT_SECONDS if max_seconds is None else max_seconds)
    layout = initialise_calendar_layout(day, month)
    options = build_options(layout, specs)

    for spec, opts in zip(specs, options):
        if not opts:
            return True, [], f"No placements for piece {spec.name!r}"

    m = _cp.CpModel()
    x = [[m.NewBoolVar(f"x_{i}_{k}") for k in range(len(options[i]))] for i in range(len(specs))]

    # every piece exactly once
    for i in range(len(specs)):
        m.Add(sum(x[i]) == 1)

    # every free cell exactly once
    cover: Dict[Position, List[_cp.IntVar]] = defaultdict(list)
    for i, opts in enumerate(options):
        for k, (_origin, _orientation, covered) in enumerate(opts):
            for cell in covered:
                cover[cell].append(x[i][k])
    for cell in layout.cells(0):
        vars_here = cover.get(cell)
        if not vars_here:
            return True, [], f"Cell {cell} cannot be covered by any piece"
        m.Add(sum(vars_here) == 1)

    solver = _cp.CpSolver()
    solver.parameters.max_time_in_seconds = seconds
    solver.parameters.max_memory_in_mb = int(getattr(CFG, "MAX_MEMORY_MB", 2048))
    solver.parameters.num_search_workers = 1
    solver.parameters.enumerate_all_solutions = True
    solver.parameters.log_search_progress = False

    collector = _SolutionCollector(x, options, specs)
    t0 = time.time()
    res = solver.Solve(m, collector)
    elapsed = time.time() - t0

    solutions = sorted(collector.solutions)
    if res == _cp.OPTIMAL:
        return True, solutions, None
    if res == _cp.INFEASIBLE:
        return True, [], "Proven infeasible"
    if res == _cp.MODEL_INVALID:
        return False, solutions, "Model invalid (configuration error)"
    return False, solutions, f"Stopped before enumeration finished (timebox {seconds:g}s, ran {elapsed:.1f}s)"


__all__ = ["build_options", "enumerate_solutions_cp_sat", "unique_orientations"]
