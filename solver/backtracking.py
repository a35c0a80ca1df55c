# solver/backtracking.py — depth-first enumeration of every calendar solution
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from config import CFG
from models import SearchSpaceExhausted, Solution
from pieces import PieceModel, create_piece_models
from solver.board import BoardModel
from solver.history import BoardHistory

log = logging.getLogger(__name__)


@dataclass
class SearchStats:
    nodes: int = 0          # placement attempts (is_piece_valid calls)
    placements: int = 0
    backtracks: int = 0
    solutions: int = 0
    max_depth: int = 0
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    @property
    def elapsed(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.time()
        return max(0.0, end - self.started_at)

    def as_dict(self):
        return {
            "nodes": self.nodes,
            "placements": self.placements,
            "backtracks": self.backtracks,
            "solutions": self.solutions,
            "max_depth": self.max_depth,
            "elapsed": round(self.elapsed, 3),
        }


class SolverSingleThreaded:
    """Exhaustive placement search for one calendar date.

    The search is a loop over an explicit history stack rather than a
    recursive call chain, so backtracking is a pop plus a board restore.
    Pieces are tried in catalogue order and orientations in
    translate → rotate → flip order, which makes the enumeration order of
    solutions reproducible.
    """

    def __init__(
        self,
        day: int,
        month: int,
        *,
        hole_check: Optional[str] = None,
        node_limit: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
        on_progress: Optional[Callable[[SearchStats], None]] = None,
        progress_every: Optional[int] = None,
    ):
        self.day = int(day)
        self.month = int(month)
        self.pieces: List[PieceModel] = create_piece_models()
        self.board = BoardModel(self.day, self.month, hole_check=hole_check)
        self.history = BoardHistory()
        self.solution_set: List[Solution] = []

        limit = CFG.NODE_LIMIT if node_limit is None else node_limit
        self.node_limit = int(limit) if limit and int(limit) > 0 else None
        self.cancel_event = cancel_event
        self.on_progress = on_progress
        every = CFG.PROGRESS_EVERY if progress_every is None else progress_every
        self.progress_every = max(1, int(every or 1))

        self.stats = SearchStats()
        self.stopped_reason: Optional[str] = None

    def get_pieces(self) -> List[PieceModel]:
        return self.pieces

    def get_board(self) -> BoardModel:
        return self.board

    def get_solution_set(self) -> List[Solution]:
        return self.solution_set

    @property
    def completed(self) -> bool:
        """True when the search ran to exhaustion rather than being stopped."""
        return self.stats.finished_at is not None and self.stopped_reason is None

    # ---- search ----

    def _should_stop(self) -> Optional[str]:
        if self.cancel_event is not None and self.cancel_event.is_set():
            return "cancelled"
        if self.node_limit is not None and self.stats.nodes >= self.node_limit:
            return "node_limit"
        return None

    def _record_solution(self) -> None:
        solution = tuple(piece.get_piece_position() for piece in self.pieces)
        self.solution_set.append(solution)
        self.stats.solutions += 1
        log.debug("solution %d for %d/%d", self.stats.solutions, self.day, self.month)

    def _try_place(self, start_index: int) -> bool:
        """Place the first piece (from ``start_index``) that fits the next empty cell."""
        board = self.board
        position = board.next_board_position()
        for index in range(start_index, len(self.pieces)):
            piece = self.pieces[index]
            if piece.is_used:
                continue
            while not piece.is_exhausted:
                self.stats.nodes += 1
                if self.on_progress is not None and self.stats.nodes % self.progress_every == 0:
                    self.on_progress(self.stats)
                if board.is_piece_valid(position, piece):
                    piece.set_board_position(board.placement_origin(position, piece))
                    memento = board.generate_memento()
                    board.add_piece_to_board(piece)
                    piece.set_used(True)
                    self.history.push(index, memento)
                    self.stats.placements += 1
                    self.stats.max_depth = max(self.stats.max_depth, len(self.history))
                    return True
                piece.next_unique_orientation()
            # every orientation failed here; start fresh next time it is offered
            piece.reset()
        return False

    def find_solution_set(self, start_index: int = 0) -> int:
        """Enumerate every solution reachable from the current state.

        Returns the number of (raw, possibly duplicated) solutions collected.
        Stops early, keeping what was found, if the cancel event is set or
        the node limit is reached; ``stopped_reason`` records why.
        """
        self.stats = SearchStats(solutions=len(self.solution_set))
        self.stopped_reason = None

        while True:
            reason = self._should_stop()
            if reason:
                self.stopped_reason = reason
                log.info("search for %d/%d stopped: %s", self.day, self.month, reason)
                break

            if self.board.is_board_complete():
                # nothing left to fill: harvest and force a backtrack
                self._record_solution()
            elif self._try_place(start_index):
                start_index = 0
                continue

            try:
                index, memento = self.history.pop()
            except SearchSpaceExhausted:
                break

            self.stats.backtracks += 1
            self.board.restore_from_memento(memento)
            piece = self.pieces[index]
            piece.set_used(False)
            piece.set_board_position(None)
            piece.next_unique_orientation()
            start_index = index

        self.stats.finished_at = time.time()
        if self.on_progress is not None:
            self.on_progress(self.stats)
        return len(self.solution_set)

    def remove_duplicates(self) -> int:
        """Sort the solution set and drop repeats. Returns how many were removed."""
        before = len(self.solution_set)
        self.solution_set.sort()
        unique: List[Solution] = []
        for solution in self.solution_set:
            if not unique or unique[-1] != solution:
                unique.append(solution)
        self.solution_set = unique
        return before - len(unique)


__all__ = ["SearchStats", "SolverSingleThreaded"]
