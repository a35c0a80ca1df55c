import pytest

from solver.backtracking import SolverSingleThreaded


@pytest.fixture(scope="session")
def solved_jan_31():
    """Exhaustive search for 31 January, shared because it is the slow part of the suite."""
    solver = SolverSingleThreaded(31, 1, hole_check="flood", node_limit=0)
    raw_count = solver.find_solution_set()
    raw = list(solver.get_solution_set())
    solver.remove_duplicates()
    return solver, raw_count, raw
