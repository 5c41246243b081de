from __future__ import annotations

import random

from blockfall.board import Board, Position
from blockfall.shape import Shape, ShapeType
from blockfall.utils import format_grid, render_grid


def test_render_grid_overlays_active_shape_without_locking() -> None:
    board = Board(4, 4, rng=random.Random(0))
    board.set_cell(3, 0, 2)
    board.set_current_shape_and_position(Shape(ShapeType.K, color=5), Position(2, 1))

    grid = render_grid(board)

    assert grid == [
        [0, 0, 0, 0],
        [0, 0, 5, 5],
        [0, 0, 5, 5],
        [2, 0, 0, 0],
    ]
    assert board.get_cell(1, 2) == 0
    assert render_grid(board, include_active=False)[1] == [0, 0, 0, 0]


def test_render_grid_skips_cells_above_the_board() -> None:
    board = Board(4, 4, rng=random.Random(0))
    board.set_current_shape_and_position(Shape(ShapeType.E, color=1), Position(0, -3))
    grid = render_grid(board)
    assert grid[0] == [0, 1, 0, 0]
    assert sum(map(sum, grid)) == 1


def test_format_grid() -> None:
    assert format_grid([[0, 3], [7, 0]]) == ".3\n7."
    assert format_grid([[0, 1]], empty=" ") == " 1"
