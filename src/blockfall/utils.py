"""Utility helpers for presentation layers."""

from __future__ import annotations

from typing import List, Sequence

from .board import Board


def render_grid(board: Board, include_active: bool = True) -> List[List[int]]:
    """Return a copy of the board grid with the active shape overlaid.

    This is a convenience for renderers that want a single 2D array to draw
    without mutating the underlying board state (i.e. without locking the
    shape).  Cells covered by the active shape receive its colour; cells above
    the top edge are skipped.
    """

    grid = board.field_values().tolist()
    if include_active:
        shape = board.current_shape
        anchor_x, anchor_y = board.current_position
        for x, y in shape.cells():
            row, col = anchor_y + y, anchor_x + x
            if 0 <= row < board.height and 0 <= col < board.width:
                grid[row][col] = shape.color
    return grid


def format_grid(grid: Sequence[Sequence[int]], empty: str = ".") -> str:
    """Return ``grid`` as text, one line per row, colours as digits."""

    return "\n".join(
        "".join(str(int(cell)) if cell else empty for cell in row) for row in grid
    )


__all__ = ["render_grid", "format_grid"]
