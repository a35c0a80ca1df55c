# pieces.py — piece catalogue and orientation enumeration
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

from models import Axis, Grid, PiecePosition, Position

Literal = Tuple[Tuple[int, ...], ...]


@dataclass(frozen=True)
class PieceSpec:
    name: str
    literal: Literal
    max_rotations: int   # quarter turns that still give a new shape
    is_flippable: bool   # no reflective symmetry

    def grid(self) -> Grid:
        return Grid.from_rows(self.literal)

    @property
    def cells(self) -> int:
        return sum(sum(row) for row in self.literal)


CATALOGUE: Tuple[PieceSpec, ...] = (
    PieceSpec("2x3 No Hole", (
        (1, 1, 1),
        (1, 1, 1),
    ), 1, False),
    PieceSpec("2x3 Middle Hole", (
        (1, 0, 1),
        (1, 1, 1),
    ), 3, False),
    PieceSpec("2x3 End Hole", (
        (1, 1, 0),
        (1, 1, 1),
    ), 3, True),
    PieceSpec("2x4 Zig Zag", (
        (0, 0, 1, 1),
        (1, 1, 1, 0),
    ), 3, True),
    PieceSpec("2x4 Tee", (
        (0, 0, 1, 0),
        (1, 1, 1, 1),
    ), 3, True),
    PieceSpec("2x4 L", (
        (0, 0, 0, 1),
        (1, 1, 1, 1),
    ), 3, True),
    PieceSpec("3x3 Zig Zag", (
        (1, 0, 0),
        (1, 1, 1),
        (0, 0, 1),
    ), 1, True),
    PieceSpec("3x3 L", (
        (1, 0, 0),
        (1, 0, 0),
        (1, 1, 1),
    ), 3, False),
)


def fillable_region_sizes(specs=CATALOGUE) -> FrozenSet[int]:
    """Every cell count a subset of the pieces can cover exactly."""
    sums = {0}
    for s in specs:
        sums |= {total + s.cells for total in sums}
    sums.discard(0)
    return frozenset(sums)


def total_piece_cells(specs=CATALOGUE) -> int:
    return sum(s.cells for s in specs)


class PieceModel:
    """A catalogue piece plus its position in the orientation enumeration.

    The enumeration walks translation first, then rotation, then the flip:
    every ``next_unique_orientation`` call moves to the next state, and
    ``is_exhausted`` turns true once the flipped (or, for symmetric pieces,
    the unflipped) rotations have all been offered.
    """

    def __init__(self, name: str, initial_orientation: Grid, max_rotations: int, is_flippable: bool):
        self.name = name
        self.initial_orientation = initial_orientation.copy()
        self.current_orientation = initial_orientation.copy()
        self.board_position: Optional[Position] = None

        self.max_rotations = int(max_rotations)
        self.is_flippable = bool(is_flippable)

        self.rotation_count = 0
        self.translation_count = 0
        self.has_flipped = False
        self.orientation_exhausted = False
        self.translation_exhausted = False
        self.is_used = False

    @classmethod
    def from_spec(cls, spec: PieceSpec) -> "PieceModel":
        return cls(spec.name, spec.grid(), spec.max_rotations, spec.is_flippable)

    def __repr__(self) -> str:
        return (
            f"PieceModel({self.name!r}, rot={self.rotation_count}, "
            f"flipped={self.has_flipped}, shift={self.translation_count}, used={self.is_used})"
        )

    @property
    def is_exhausted(self) -> bool:
        return self.orientation_exhausted

    # ---- orientation state machine ----

    def rotate(self) -> None:
        self.current_orientation.rotate90(1)
        self.rotation_count += 1

    def flip(self) -> None:
        self.current_orientation.flip(Axis.HORIZONTAL)
        self.has_flipped = True
        self.rotation_count = 0

    def change_orientation(self) -> None:
        if self.rotation_count == self.max_rotations:
            if self.is_flippable and not self.has_flipped:
                self.flip()
            else:
                self.orientation_exhausted = True
        else:
            self.rotate()

    def translate(self) -> None:
        """Walk the anchor one column right over a void cell of the top row."""
        if self.current_orientation.get(0, self.translation_count) == 1:
            self.translation_exhausted = True
        else:
            self.translation_count += 1

    def next_unique_orientation(self) -> None:
        if not self.translation_exhausted:
            self.translate()
        if self.translation_exhausted:
            # the solid anchor has already been offered; go straight to the
            # next orientation instead of repeating it
            self.change_orientation()
            self.translation_exhausted = False
            self.translation_count = 0

    def reset(self) -> None:
        self.current_orientation = self.initial_orientation.copy()
        self.rotation_count = 0
        self.translation_count = 0
        self.has_flipped = False
        self.orientation_exhausted = False
        self.translation_exhausted = False

    # ---- placement bookkeeping ----

    def set_used(self, is_used: bool) -> None:
        self.is_used = bool(is_used)

    def set_board_position(self, position: Optional[Position]) -> None:
        self.board_position = None if position is None else (int(position[0]), int(position[1]))

    def get_piece_position(self) -> PiecePosition:
        if self.board_position is None:
            raise ValueError(f"Piece {self.name!r} has not been placed")
        return PiecePosition(self.name, self.board_position, self.current_orientation.copy())


def create_piece_models(specs=CATALOGUE) -> List[PieceModel]:
    return [PieceModel.from_spec(s) for s in specs]


__all__ = [
    "PieceSpec",
    "PieceModel",
    "CATALOGUE",
    "create_piece_models",
    "fillable_region_sizes",
    "total_piece_cells",
]
