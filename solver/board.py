# solver/board.py — the 7×7 calendar surface
from __future__ import annotations

from collections import deque
from typing import AbstractSet, Optional, Sequence

from config import CFG, HOLE_CHECK_MODES
from models import Grid, NoEmptyPosition, Position, Shape
from pieces import PieceModel, fillable_region_sizes
from solver.history import Memento

BOARD_ROWS = 7
BOARD_COLS = 7

# Months fill rows 0-1 (six per row), days rows 2-6 (seven per row).
MONTH_START_ROW, MONTH_END_COL, MONTH_ROW_LEN = 0, 5, 6
DAY_START_ROW, DAY_END_COL, DAY_ROW_LEN = 2, 6, 7

_EMPTY_CALENDAR = (
    (0, 0, 0, 0, 0, 0, 1),
    (0, 0, 0, 0, 0, 0, 1),
    (0, 0, 0, 0, 0, 0, 0),
    (0, 0, 0, 0, 0, 0, 0),
    (0, 0, 0, 0, 0, 0, 0),
    (0, 0, 0, 0, 0, 0, 0),
    (0, 0, 0, 1, 1, 1, 1),
)


def create_empty_calendar() -> Grid:
    """Calendar with the permanently blocked cells set and no date marked."""
    return Grid.from_rows(_EMPTY_CALENDAR)


def get_calendar_position(calendar_entry: int, start_row: int, end_col: int, divisor: int) -> Position:
    """Return the (row, col) of a day or month number on the calendar.

    ``divisor`` is the number of entries per row and ``end_col`` the column
    of the last entry in a row. Entries that land exactly on a row end
    (remainder 0) belong to the previous row's last column.
    """
    quotient, remainder = divmod(calendar_entry, divisor)
    if remainder == 0:
        return start_row + quotient - 1, end_col
    return start_row + quotient, remainder - 1


def day_position(day: int) -> Position:
    return get_calendar_position(day, DAY_START_ROW, DAY_END_COL, DAY_ROW_LEN)


def month_position(month: int) -> Position:
    return get_calendar_position(month, MONTH_START_ROW, MONTH_END_COL, MONTH_ROW_LEN)


def initialise_calendar_layout(day: int, month: int, empty_layout: Optional[Grid] = None) -> Grid:
    layout = create_empty_calendar() if empty_layout is None else empty_layout.copy()
    layout.set(*day_position(day), 1)
    layout.set(*month_position(month), 1)
    return layout


def next_board_position(layout: Grid) -> Position:
    pos = layout.first_index_of(0)
    if pos is None:
        raise NoEmptyPosition("Unable to find an empty board position.")
    return pos


def is_board_complete(layout: Grid) -> bool:
    return not layout.contains(0)


def has_unreachable_hole(layout: Grid, anchor: Position, fillable_sizes: AbstractSet[int]) -> bool:
    """True when ``layout`` cannot be finished.

    Either the anchor cell was left empty (the piece was slid past the cell
    being filled), or some 4-connected empty region has a size no subset of
    the pieces adds up to.
    """
    rows, cols = layout.shape.rows, layout.shape.cols
    data = list(layout.data)
    if data[anchor[0] * cols + anchor[1]] == 0:
        return True

    seen = [False] * len(data)
    for start, value in enumerate(data):
        if value != 0 or seen[start]:
            continue
        seen[start] = True
        size = 0
        queue = deque([start])
        while queue:
            idx = queue.popleft()
            size += 1
            r, c = divmod(idx, cols)
            if r > 0 and not seen[idx - cols] and data[idx - cols] == 0:
                seen[idx - cols] = True
                queue.append(idx - cols)
            if r < rows - 1 and not seen[idx + cols] and data[idx + cols] == 0:
                seen[idx + cols] = True
                queue.append(idx + cols)
            if c > 0 and not seen[idx - 1] and data[idx - 1] == 0:
                seen[idx - 1] = True
                queue.append(idx - 1)
            if c < cols - 1 and not seen[idx + 1] and data[idx + 1] == 0:
                seen[idx + 1] = True
                queue.append(idx + 1)
        if size not in fillable_sizes:
            return True
    return False


class BoardModel:
    def __init__(
        self,
        day: int,
        month: int,
        *,
        fillable_sizes: Optional[AbstractSet[int]] = None,
        hole_check: Optional[str] = None,
        layout: Optional[Grid] = None,
    ):
        self.day = int(day)
        self.month = int(month)
        self.board_layout = (
            initialise_calendar_layout(self.day, self.month) if layout is None else layout.copy()
        )
        self.fillable_sizes = fillable_region_sizes() if fillable_sizes is None else frozenset(fillable_sizes)
        mode = (hole_check or CFG.HOLE_CHECK or "flood").lower()
        if mode not in HOLE_CHECK_MODES:
            raise ValueError(f"Unknown hole check mode {mode!r}; expected one of {HOLE_CHECK_MODES}")
        self.hole_check = mode

    @classmethod
    def from_layout(cls, rows: Sequence[Sequence[int]], **kw) -> "BoardModel":
        """Board with an explicit layout; day/month are informational only."""
        return cls(kw.pop("day", 0), kw.pop("month", 0), layout=Grid.from_rows(rows), **kw)

    @property
    def shape(self) -> Shape:
        return self.board_layout.shape

    def get_board_layout(self) -> Grid:
        return self.board_layout

    def next_board_position(self) -> Position:
        return next_board_position(self.board_layout)

    def is_board_complete(self) -> bool:
        return is_board_complete(self.board_layout)

    # ---- placement ----

    def placement_origin(self, position: Position, piece: PieceModel) -> Position:
        """Top-left corner of the piece's bounding box when anchored at ``position``."""
        return position[0], position[1] - piece.translation_count

    def stamp(self, orientation: Grid, origin: Position) -> Grid:
        """``orientation`` drawn onto an otherwise empty board."""
        shape = self.board_layout.shape
        data = [0] * shape.size
        r0, c0 = origin
        for r, c in orientation.cells(1):
            data[(r0 + r) * shape.cols + c0 + c] = 1
        return Grid(shape, data)

    def is_piece_valid(self, position: Position, piece: PieceModel) -> bool:
        row, col = position

        # The translated piece cannot start left of column 0.
        if piece.translation_count > col:
            return False

        origin = self.placement_origin(position, piece)
        piece_shape = piece.current_orientation.shape
        board_shape = self.board_layout.shape
        if row + piece_shape.rows > board_shape.rows or origin[1] + piece_shape.cols > board_shape.cols:
            return False

        candidate = self.board_layout + self.stamp(piece.current_orientation, origin)
        if candidate.contains(2):
            return False

        if self.hole_check == "flood" and has_unreachable_hole(candidate, position, self.fillable_sizes):
            return False

        return True

    def add_piece_to_board(self, piece: PieceModel) -> None:
        if piece.board_position is None:
            raise ValueError(f"Piece {piece.name!r} has no board position")
        self.board_layout = self.board_layout + self.stamp(piece.current_orientation, piece.board_position)

    # ---- checkpoints ----

    def generate_memento(self) -> Memento:
        return Memento(self.board_layout)

    def restore_from_memento(self, memento: Memento) -> None:
        self.board_layout = memento.get_state()


__all__ = [
    "BOARD_ROWS",
    "BOARD_COLS",
    "BoardModel",
    "create_empty_calendar",
    "day_position",
    "get_calendar_position",
    "has_unreachable_hole",
    "initialise_calendar_layout",
    "is_board_complete",
    "month_position",
    "next_board_position",
]
