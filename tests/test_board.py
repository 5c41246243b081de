from __future__ import annotations

import random

import numpy as np
import pytest

from blockfall.board import Board, Position
from blockfall.shape import Shape, ShapeType


def _board(width: int = 10, height: int = 20) -> Board:
    return Board(width, height, rng=random.Random(0))


def _place(board: Board, shape_type: ShapeType, x: int, y: int, color: int = 3) -> Shape:
    shape = Shape(shape_type, color=color)
    board.set_current_shape_and_position(shape, Position(x, y))
    return shape


def test_new_board_spawns_centered() -> None:
    board = _board()
    assert board.width == 10
    assert board.height == 20
    assert board.current_position == Position(4, 0)
    assert board.grid.shape == (20, 10)
    assert not board.grid.any()
    assert board.is_valid_position()


def test_spawn_anchor_uses_integer_division() -> None:
    board = Board(7, 16, rng=random.Random(0))
    assert board.current_position == Position(2, 0)


@pytest.mark.parametrize("size", [(0, 20), (10, 1), (-1, 5)])
def test_invalid_dimensions_rejected(size) -> None:
    with pytest.raises(ValueError):
        Board(*size)


def test_cell_accessors() -> None:
    board = _board()
    board.set_cell(19, 0, 5)
    assert board.get_cell(19, 0) == 5
    with pytest.raises(IndexError):
        board.get_cell(20, 0)
    with pytest.raises(IndexError):
        board.set_cell(0, 10, 1)
    with pytest.raises(ValueError):
        board.set_cell(0, 0, 8)


@pytest.mark.parametrize("shape_type", list(ShapeType))
@pytest.mark.parametrize("rotations", range(4))
def test_valid_position_bounds_for_every_rotation(shape_type: ShapeType, rotations: int) -> None:
    board = _board()
    shape = _place(board, shape_type, 0, 0)
    for _ in range(rotations):
        shape.rotate()
    cells = shape.cells()
    min_x = min(x for x, _ in cells)
    max_x = max(x for x, _ in cells)
    max_y = max(y for _, y in cells)

    def valid_at(x: int, y: int) -> bool:
        board.set_current_shape_and_position(shape, Position(x, y))
        return board.is_valid_position()

    assert valid_at(-min_x, board.height - 1 - max_y)
    assert valid_at(board.width - 1 - max_x, 0)
    assert not valid_at(-min_x - 1, 5)
    assert not valid_at(board.width - max_x, 5)
    assert not valid_at(0 - min_x, board.height - max_y)
    # Rows above the visible board are allowed.
    assert valid_at(-min_x, -max_y)
    assert valid_at(-min_x, -max_y - 3)


def test_valid_position_detects_overlap() -> None:
    board = _board()
    _place(board, ShapeType.K, 3, 5)
    board.set_cell(6, 4, 1)
    assert not board.is_valid_position()
    board.set_cell(6, 4, 0)
    assert board.is_valid_position()


def test_horizontal_moves_stop_at_walls() -> None:
    board = _board()
    _place(board, ShapeType.K, 0, 5)
    assert not board.move_left()
    assert board.current_position == Position(0, 5)
    assert board.move_right()
    assert board.current_position == Position(1, 5)

    _place(board, ShapeType.K, 8, 5)
    assert not board.move_right()
    assert board.current_position == Position(8, 5)


def test_move_down_without_contact_does_not_lock() -> None:
    board = _board()
    shape = _place(board, ShapeType.K, 0, 10)
    assert board.move_down()
    assert board.current_position == Position(0, 11)
    assert board.current_shape is shape
    assert not board.grid.any()


def test_move_down_on_floor_locks_and_spawns() -> None:
    board = _board()
    shape = _place(board, ShapeType.K, 0, 18, color=3)
    assert not board.move_down()
    assert board.current_shape is not shape
    assert board.current_position == Position(4, 0)
    for row, col in [(18, 0), (18, 1), (19, 0), (19, 1)]:
        assert board.get_cell(row, col) == 3
    assert int(np.count_nonzero(board.grid)) == 4


def test_lock_skips_cells_above_the_top() -> None:
    board = _board()
    board.set_cell(1, 1, 2)
    _place(board, ShapeType.E, 0, -3, color=4)
    # Cells of the vertical line: (1, -3) .. (1, 0); only row 0 is visible.
    assert not board.move_down()
    assert board.get_cell(0, 1) == 4
    assert int(np.count_nonzero(board.grid)) == 2


def test_rotation_is_reverted_when_blocked() -> None:
    board = _board()
    shape = _place(board, ShapeType.E, -1, 5)
    before = shape.matrix
    assert board.is_valid_position()
    assert not board.rotate()
    assert np.array_equal(board.current_shape.matrix, before)


def test_rotation_kept_when_valid() -> None:
    board = _board()
    shape = _place(board, ShapeType.E, 3, 5)
    assert board.rotate()
    assert sorted(shape.cells()) == [(0, 2), (1, 2), (2, 2), (3, 2)]


def test_rotation_blocked_by_stack() -> None:
    board = _board()
    shape = _place(board, ShapeType.E, 3, 5)
    board.set_cell(7, 5, 1)
    before = shape.matrix
    assert not board.rotate()
    assert np.array_equal(shape.matrix, before)


def test_drop_lands_on_stack() -> None:
    board = _board()
    for col in range(10):
        board.set_cell(19, col, 1)
    board.set_cell(19, 9, 0)
    _place(board, ShapeType.K, 2, 0, color=6)
    board.drop()
    assert board.get_cell(18, 2) == 6
    assert board.get_cell(17, 3) == 6
    assert board.get_cell(16, 2) == 0


def test_game_over_checks_spawn_rows() -> None:
    board = _board()
    assert not board.is_game_over()
    board.set_cell(2, 0, 1)
    assert not board.is_game_over()
    board.set_cell(1, 9, 1)
    assert board.is_game_over()
    board.set_cell(1, 9, 0)
    board.set_cell(0, 3, 7)
    assert board.is_game_over()


def test_load_field_and_clear_field() -> None:
    board = _board(4, 3)
    field = np.zeros((3, 4), dtype=np.uint8)
    field[2, 1] = 5
    board.load_field(field)
    assert board.get_cell(2, 1) == 5
    field[2, 1] = 0
    assert board.get_cell(2, 1) == 5

    with pytest.raises(ValueError):
        board.load_field(np.zeros((4, 3)))
    with pytest.raises(ValueError):
        board.load_field(np.full((3, 4), 9))

    board.clear_field()
    assert not board.grid.any()


def test_field_values_is_a_copy() -> None:
    board = _board()
    values = board.field_values()
    values[0, 0] = 1
    assert board.get_cell(0, 0) == 0
