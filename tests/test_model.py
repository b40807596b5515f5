"""Unit tests for grid geometry and the digit-string codec."""

import pytest

from src.sudoku.model import CLASSIC, Geometry, Grid, ParseError

PUZZLE = "000075400000000008080190000300001060000000034000068170204000603900000020530200000"
SOLVED_4X4 = "1234341221434321"


def test_parse_serialize_round_trip():
    grid = Grid.parse(PUZZLE)
    assert grid.geometry == CLASSIC
    assert grid.serialize() == PUZZLE
    assert str(grid) == PUZZLE


def test_parse_maps_zero_to_unfilled():
    grid = Grid.parse(PUZZLE)
    assert grid[0] == 0
    assert grid[4] == 7
    assert grid.filled_count() == 24
    assert len(grid.unfilled_indexes()) == 81 - 24


def test_parse_rejects_wrong_length():
    with pytest.raises(ParseError):
        Grid.parse(PUZZLE[:-1], CLASSIC)
    with pytest.raises(ParseError):
        Grid.parse("12345")


def test_parse_rejects_non_digit():
    with pytest.raises(ParseError):
        Grid.parse("x" + PUZZLE[1:])


def test_parse_rejects_digit_above_side():
    with pytest.raises(ParseError):
        Grid.parse("5" + SOLVED_4X4[1:])


def test_parse_infers_small_geometry():
    grid = Grid.parse(SOLVED_4X4)
    assert grid.geometry == Geometry(4, 2, 2)
    assert grid.is_complete()


def test_parse_accepts_letters_for_large_sides():
    geometry = Geometry(16, 4, 4)
    text = "G" + "0" * 255
    grid = Grid.parse(text.lower(), geometry)
    assert grid[0] == 16
    assert grid.serialize() == text


def test_geometry_requires_tiling_boxes():
    with pytest.raises(ValueError):
        Geometry(9, 2, 3)


def test_geometry_rejects_non_positive_boxes():
    with pytest.raises(ValueError):
        Geometry(4, -2, -2)
    with pytest.raises(ValueError):
        Geometry(1, 0, 0)


def test_geometry_for_side_prefers_wide_boxes():
    geometry = Geometry.for_side(6)
    assert (geometry.box_width, geometry.box_height) == (3, 2)
    assert Geometry.for_cells(81) == CLASSIC
    with pytest.raises(ValueError):
        Geometry.for_cells(80)


def test_row_col_box_indexes():
    geometry = Geometry.for_side(6)
    assert geometry.row_of(15) == 2
    assert geometry.col_of(15) == 3
    assert geometry.box_of(3) == 1
    assert geometry.box_of(12) == 2
    assert CLASSIC.box_of(80) == 8
    assert CLASSIC.box_of(30) == 4


def test_classic_peers():
    peers = CLASSIC.peers()
    assert len(peers[0]) == 20
    assert 0 not in peers[0]
    assert 20 in peers[0]
    assert 80 not in peers[0]


def test_equality_is_structural():
    assert Grid.parse(PUZZLE) == Grid.parse(PUZZLE)
    assert Grid.parse(PUZZLE) != Grid.parse("1" + PUZZLE[1:])
    assert Grid.empty(Geometry(4, 2, 2)) != Grid.empty()


def test_copy_and_with_value_do_not_alias():
    grid = Grid.parse(PUZZLE)
    clone = grid.copy()
    changed = grid.with_value(0, 6)
    assert clone == grid
    assert changed[0] == 6
    assert grid[0] == 0


def test_with_value_validates_range():
    grid = Grid.empty()
    with pytest.raises(ValueError):
        grid.with_value(0, 10)
    with pytest.raises(ValueError):
        grid.with_value(81, 1)


def test_from_values_validates_range():
    with pytest.raises(ValueError):
        Grid.from_values([0] * 80 + [12])
    with pytest.raises(ValueError):
        Grid.from_values([0] * 10)


def test_pretty_draws_box_separators():
    lines = Grid.parse(SOLVED_4X4).pretty().splitlines()
    assert lines[0] == " 1 2 | 3 4 "
    assert lines[2] == "-----+-----"
    assert len(lines) == 5
    assert Grid.empty(Geometry(4, 2, 2)).pretty().splitlines()[0] == " . . | . . "
