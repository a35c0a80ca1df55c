import pytest

from models import Grid, PiecePosition
from pieces import (
    CATALOGUE,
    PieceModel,
    create_piece_models,
    fillable_region_sizes,
    total_piece_cells,
)


def _model(rows, max_rotations=3, flippable=True) -> PieceModel:
    return PieceModel("test", Grid.from_rows(rows), max_rotations, flippable)


def test_catalogue_order_and_sizes():
    names = [s.name for s in CATALOGUE]
    assert names == [
        "2x3 No Hole",
        "2x3 Middle Hole",
        "2x3 End Hole",
        "2x4 Zig Zag",
        "2x4 Tee",
        "2x4 L",
        "3x3 Zig Zag",
        "3x3 L",
    ]
    # 49 cells minus six blocked minus the two date cells
    assert total_piece_cells() == 41


def test_fillable_region_sizes_are_subset_sums():
    sizes = fillable_region_sizes()
    assert 0 not in sizes
    assert {5, 6, 10, 11, 35, 41} <= sizes
    assert not ({1, 2, 3, 4, 7, 8, 9, 12} & sizes)


def test_change_orientation_rotates_then_flips_then_exhausts():
    piece = _model([[1, 1, 0], [1, 1, 1]])
    for _ in range(3):
        piece.change_orientation()
    assert piece.rotation_count == 3
    assert piece.has_flipped is False

    piece.change_orientation()
    assert piece.rotation_count == 0
    assert piece.has_flipped is True
    assert not piece.is_exhausted

    for _ in range(4):
        piece.change_orientation()
    assert piece.orientation_exhausted is True
    assert piece.is_exhausted


def test_unflippable_piece_exhausts_after_rotations():
    piece = _model([[1, 0, 1], [1, 1, 1]], max_rotations=3, flippable=False)
    for _ in range(4):
        piece.change_orientation()
    assert piece.is_exhausted
    assert piece.has_flipped is False


def test_translate_walks_to_first_solid_cell():
    piece = _model([[0, 0, 1, 1], [1, 1, 1, 0]])
    piece.translate()
    piece.translate()
    assert piece.translation_count == 2
    assert not piece.translation_exhausted
    piece.translate()
    assert piece.translation_exhausted
    assert piece.translation_count == 2


def test_next_unique_orientation_visits_each_state_once():
    spec = CATALOGUE[3]  # 2x4 Zig Zag
    piece = PieceModel.from_spec(spec)
    states = []
    while not piece.is_exhausted:
        states.append((piece.current_orientation.data, piece.current_orientation.shape,
                       piece.translation_count))
        piece.next_unique_orientation()
    assert len(states) == len(set(states))
    # every orientation starts at translation 0
    assert sum(1 for s in states if s[2] == 0) == 8


@pytest.mark.parametrize("spec", CATALOGUE, ids=lambda s: s.name)
def test_catalogue_orientations_are_distinct(spec):
    piece = PieceModel.from_spec(spec)
    seen = []
    while not piece.is_exhausted:
        seen.append((piece.current_orientation.shape, piece.current_orientation.data))
        piece.change_orientation()
    assert len(seen) == len(set(seen))


def test_reset_restores_orientation_but_not_placement():
    piece = PieceModel.from_spec(CATALOGUE[2])
    piece.set_used(True)
    piece.set_board_position((1, 2))
    piece.next_unique_orientation()
    piece.change_orientation()
    piece.reset()
    assert piece.current_orientation == CATALOGUE[2].grid()
    assert piece.rotation_count == 0
    assert piece.translation_count == 0
    assert not piece.has_flipped
    assert piece.is_used
    assert piece.board_position == (1, 2)


def test_get_piece_position_requires_placement():
    piece = PieceModel.from_spec(CATALOGUE[0])
    with pytest.raises(ValueError):
        piece.get_piece_position()
    piece.set_board_position((2, 3))
    pos = piece.get_piece_position()
    assert pos == PiecePosition("2x3 No Hole", (2, 3), CATALOGUE[0].grid())
    assert pos.covered_cells() == [(2, 3), (2, 4), (2, 5), (3, 3), (3, 4), (3, 5)]


def test_create_piece_models_gives_independent_state():
    first = create_piece_models()
    second = create_piece_models()
    first[0].change_orientation()
    assert second[0].rotation_count == 0
    assert len(first) == 8
