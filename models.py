from __future__ import annotations

import enum
from dataclasses import dataclass
from functools import total_ordering
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

Position = Tuple[int, int]


# ---------------- errors ----------------

class ShapeMismatch(ValueError):
    """Grid literal or elementwise operation with inconsistent dimensions."""


class IndexOutOfBounds(IndexError):
    """Grid access outside of its shape."""


class SearchSpaceExhausted(Exception):
    """The backtracking history is empty: every branch has been explored.

    This is the normal way a full enumeration ends, not a fault.
    """


class NoEmptyPosition(RuntimeError):
    """Asked for the next empty cell of a board that has none."""


# ---------------- enums ----------------

class Axis(enum.Enum):
    VERTICAL = "vertical"      # reverse the row order
    HORIZONTAL = "horizontal"  # reverse each row


class Rotation(enum.IntEnum):
    DEG_0 = 0
    DEG_90 = 1
    DEG_180 = 2
    DEG_270 = 3

    @classmethod
    def from_quarter_turns(cls, k: int) -> "Rotation":
        return cls(int(k) % 4)


@dataclass(frozen=True, order=True)
class Shape:
    rows: int
    cols: int

    @property
    def size(self) -> int:
        return self.rows * self.cols


# ---------------- grid ----------------

@total_ordering
class Grid:
    """Fixed-size 2D container of small integers stored row-major.

    Boards and piece orientations are both grids so they can be combined
    with ``+`` and transformed with the same operations.
    """

    __slots__ = ("_shape", "_data")

    def __init__(self, shape: Shape, data: Iterable[int]):
        data = list(data)
        if shape.rows < 1 or shape.cols < 1:
            raise ShapeMismatch(f"Grid needs at least one row and column, got {shape.rows}x{shape.cols}")
        if len(data) != shape.size:
            raise ShapeMismatch(
                f"Grid data has {len(data)} cells, shape {shape.rows}x{shape.cols} needs {shape.size}"
            )
        self._shape = shape
        self._data = data

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> "Grid":
        rows = [list(r) for r in rows]
        if not rows or not rows[0]:
            raise ShapeMismatch("Grid literal must have at least one non-empty row")
        width = len(rows[0])
        data: List[int] = []
        for i, row in enumerate(rows):
            if len(row) != width:
                raise ShapeMismatch(
                    f"Supplied matrix had inconsistent row lengths (row {i} has {len(row)}, expected {width})"
                )
            data.extend(int(v) for v in row)
        return cls(Shape(len(rows), width), data)

    @classmethod
    def zeros(cls, rows: int, cols: int) -> "Grid":
        return cls(Shape(rows, cols), [0] * (rows * cols))

    # ---- accessors ----

    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def data(self) -> Tuple[int, ...]:
        return tuple(self._data)

    def copy(self) -> "Grid":
        return Grid(self._shape, self._data)

    def rows(self) -> List[List[int]]:
        c = self._shape.cols
        return [self._data[r * c:(r + 1) * c] for r in range(self._shape.rows)]

    def _index(self, row: int, col: int) -> int:
        if not (0 <= row < self._shape.rows and 0 <= col < self._shape.cols):
            raise IndexOutOfBounds(
                f"({row}, {col}) outside grid of shape {self._shape.rows}x{self._shape.cols}"
            )
        return row * self._shape.cols + col

    def get(self, row: int, col: int) -> int:
        return self._data[self._index(row, col)]

    def set(self, row: int, col: int, value: int) -> None:
        self._data[self._index(row, col)] = int(value)

    def contains(self, value: int) -> bool:
        return value in self._data

    def count(self, value: int) -> int:
        return self._data.count(value)

    def first_index_of(self, value: int) -> Optional[Position]:
        try:
            idx = self._data.index(value)
        except ValueError:
            return None
        return divmod(idx, self._shape.cols)

    def cells(self, value: int = 1) -> Iterator[Position]:
        """Yield ``(row, col)`` of every cell holding ``value``."""
        c = self._shape.cols
        for idx, v in enumerate(self._data):
            if v == value:
                yield divmod(idx, c)

    # ---- transforms (in place) ----

    def flip(self, axis: Axis) -> None:
        rows, cols = self._shape.rows, self._shape.cols
        d = self._data
        if axis is Axis.VERTICAL:
            for r in range(rows // 2):
                top = r * cols
                bottom = (rows - 1 - r) * cols
                d[top:top + cols], d[bottom:bottom + cols] = d[bottom:bottom + cols], d[top:top + cols]
        elif axis is Axis.HORIZONTAL:
            for r in range(rows):
                start = r * cols
                d[start:start + cols] = d[start:start + cols][::-1]
        else:
            raise TypeError(f"Not an Axis: {axis!r}")

    def transpose(self) -> None:
        # Cycle-following permutation: the value that belongs at index j of
        # the transposed layout lives at (j * cols) mod (mn - 1).
        rows, cols = self._shape.rows, self._shape.cols
        mn = rows * cols
        d = self._data
        visited = [False] * mn
        for cycle_start in range(mn):
            if visited[cycle_start]:
                continue
            old = cycle_start
            while True:
                new = mn - 1 if old == mn - 1 else (cols * old) % (mn - 1)
                if new == cycle_start:
                    visited[old] = True
                    break
                d[old], d[new] = d[new], d[old]
                visited[old] = True
                old = new
        self._shape = Shape(cols, rows)

    def rotate90(self, k: Union[int, Rotation] = 1) -> None:
        """Rotate anti-clockwise by ``k`` quarter turns (negative turns go clockwise)."""
        turn = Rotation.from_quarter_turns(k)
        if turn is Rotation.DEG_90:
            self.flip(Axis.HORIZONTAL)
            self.transpose()
        elif turn is Rotation.DEG_180:
            self.flip(Axis.VERTICAL)
            self.flip(Axis.HORIZONTAL)
        elif turn is Rotation.DEG_270:
            self.transpose()
            self.flip(Axis.HORIZONTAL)

    # ---- arithmetic / comparison ----

    def __add__(self, other: "Grid") -> "Grid":
        if not isinstance(other, Grid):
            return NotImplemented
        if self._shape != other._shape:
            raise ShapeMismatch(
                f"Cannot add {self._shape.rows}x{self._shape.cols} grid to "
                f"{other._shape.rows}x{other._shape.cols} grid"
            )
        return Grid(self._shape, [a + b for a, b in zip(self._data, other._data)])

    def _key(self):
        return (self._shape, self._data)

    def __eq__(self, other):
        if not isinstance(other, Grid):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other):
        if not isinstance(other, Grid):
            return NotImplemented
        return self._key() < other._key()

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"Grid.from_rows({self.rows()!r})"


# ---------------- solution records ----------------

@dataclass(frozen=True, order=True)
class PiecePosition:
    """A piece in the orientation and board position it was placed with.

    ``board_position`` is the top-left corner of the orientation's bounding
    box on the board.
    """
    name: str
    board_position: Position
    orientation: Grid

    def covered_cells(self) -> List[Position]:
        r0, c0 = self.board_position
        return [(r0 + r, c0 + c) for r, c in self.orientation.cells(1)]


Solution = Tuple[PiecePosition, ...]
