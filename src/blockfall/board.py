"""Board representation for the playfield."""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple, Optional
import random

import numpy as np
from numpy.typing import NDArray

from .shape import MAX_COLOR, Shape


# Dimensions of the default board.
WIDTH = 10
HEIGHT = 20

Grid = NDArray[np.uint8]


class Position(NamedTuple):
    """Board coordinates of a shape's bounding-box origin."""

    x: int
    y: int


class ClearPolicy(str, Enum):
    """How :meth:`Board.clear_full_lines` continues after removing a row.

    ``RECHECK`` examines the same row index again, because the row shifted
    into it may itself be full.  ``ADVANCE`` moves on to the next row up, so
    of two adjacent full rows only the lower one is removed per call.
    """

    RECHECK = "recheck"
    ADVANCE = "advance"


def create_empty_grid(width: int = WIDTH, height: int = HEIGHT) -> Grid:
    """Return a new empty board grid filled with zeros."""

    return np.zeros((height, width), dtype=np.uint8)


class Board:
    """Fixed-size grid of locked cells plus the active falling shape.

    The grid is indexed ``grid[y, x]``; row ``0`` is the top of the board.
    """

    def __init__(
        self,
        width: int = WIDTH,
        height: int = HEIGHT,
        *,
        rng: Optional[random.Random] = None,
        clear_policy: ClearPolicy = ClearPolicy.RECHECK,
    ) -> None:
        if width < 1 or height < 2:
            raise ValueError(f"Board must be at least 1x2, got {width}x{height}")
        self._width = int(width)
        self._height = int(height)
        self._rng = rng or random.Random()
        self.clear_policy = ClearPolicy(clear_policy)
        self.grid: Grid = create_empty_grid(self._width, self._height)
        self._current_shape: Shape
        self._current_position: Position
        self.spawn_shape()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def current_shape(self) -> Shape:
        return self._current_shape

    @property
    def current_position(self) -> Position:
        return self._current_position

    @property
    def spawn_position(self) -> Position:
        return Position(self._width // 2 - 1, 0)

    def field_values(self) -> Grid:
        """Return a copy of the grid."""

        return self.grid.copy()

    def get_cell(self, row: int, col: int) -> int:
        """Safely return the value at ``(row, col)``.

        Raises:
            IndexError: If the coordinates are outside the board.
        """
        if 0 <= row < self._height and 0 <= col < self._width:
            return int(self.grid[row, col])
        raise IndexError("Cell out of bounds")

    def set_cell(self, row: int, col: int, value: int) -> None:
        """Safely set the value at ``(row, col)``.

        Raises:
            IndexError: If the coordinates are outside the board.
            ValueError: If ``value`` is not a valid cell value.
        """
        if not 0 <= value <= MAX_COLOR:
            raise ValueError(f"Cell value must be in 0..{MAX_COLOR}, got {value}")
        if 0 <= row < self._height and 0 <= col < self._width:
            self.grid[row, col] = np.uint8(value)
        else:
            raise IndexError("Cell out of bounds")

    # ------------------------------------------------------------------
    # Field management
    # ------------------------------------------------------------------
    def clear_field(self) -> None:
        self.grid.fill(0)

    def load_field(self, field) -> None:
        """Copy ``field`` (``height x width`` values) into the grid.

        Raises:
            ValueError: If the shape does not match the board or a value is
                outside ``0..7``.
        """

        values = np.asarray(field)
        if values.shape != (self._height, self._width):
            raise ValueError(
                f"Field must be {self._height}x{self._width} rows x columns, "
                f"got {values.shape}"
            )
        if np.any((values < 0) | (values > MAX_COLOR)):
            raise ValueError(f"Field values must be in 0..{MAX_COLOR}")
        self.grid[:, :] = values.astype(np.uint8)

    def spawn_shape(self) -> Shape:
        """Replace the active shape with a random one at the spawn anchor."""

        self._current_shape = Shape.create_random(self._rng)
        self._current_position = self.spawn_position
        return self._current_shape

    def set_current_shape_and_position(self, shape: Shape, position: Position) -> None:
        self._current_shape = shape
        self._current_position = Position(int(position[0]), int(position[1]))

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------
    def is_valid_position(self) -> bool:
        """Return ``True`` if the active shape fits at its anchor.

        Cells above the top edge (negative ``y``) are allowed so pieces can
        spawn and rotate partially off-screen.
        """

        anchor_x, anchor_y = self._current_position
        for x, y in self._current_shape.cells():
            board_x = anchor_x + x
            board_y = anchor_y + y
            if board_x < 0 or board_x >= self._width or board_y >= self._height:
                return False
            if board_y >= 0 and self.grid[board_y, board_x] != 0:
                return False
        return True

    def _shift(self, dx: int, dy: int) -> bool:
        previous = self._current_position
        self._current_position = Position(previous.x + dx, previous.y + dy)
        if not self.is_valid_position():
            self._current_position = previous
            return False
        return True

    def move_left(self) -> bool:
        return self._shift(-1, 0)

    def move_right(self) -> bool:
        return self._shift(1, 0)

    def move_down(self) -> bool:
        """Move the active shape one row down.

        When the move is blocked the shape is locked into the grid, a new
        random shape is spawned and ``False`` is returned.
        """

        if self._shift(0, 1):
            return True
        self.lock_shape()
        self.spawn_shape()
        return False

    def rotate(self) -> bool:
        """Rotate the active shape clockwise, reverting if it does not fit."""

        self._current_shape.rotate()
        if self.is_valid_position():
            return True
        for _ in range(3):
            self._current_shape.rotate()
        return False

    def drop(self) -> None:
        """Hard-drop the active shape until it locks."""

        while self.move_down():
            pass

    def lock_shape(self) -> None:
        """Write the active shape's colour into every visible cell it covers."""

        anchor_x, anchor_y = self._current_position
        color = np.uint8(self._current_shape.color)
        for x, y in self._current_shape.cells():
            board_x = anchor_x + x
            board_y = anchor_y + y
            if 0 <= board_y < self._height and 0 <= board_x < self._width:
                self.grid[board_y, board_x] = color

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------
    def is_game_over(self) -> bool:
        """Return ``True`` if any cell in the two spawn rows is occupied."""

        return bool(np.any(self.grid[:2] != 0))

    def is_line_full(self, row: int) -> bool:
        return bool(np.all(self.grid[row] != 0))

    def _clear_line(self, row: int) -> None:
        self.grid[1 : row + 1] = self.grid[:row].copy()
        self.grid[0] = 0

    def clear_full_lines(self) -> int:
        """Clear completed rows from the bottom up and return how many were removed."""

        cleared = 0
        row = self._height - 1
        while row >= 0:
            if self.is_line_full(row):
                self._clear_line(row)
                cleared += 1
                if self.clear_policy is ClearPolicy.RECHECK:
                    continue
            row -= 1
        return cleared


__all__ = ["Board", "ClearPolicy", "Position", "create_empty_grid", "WIDTH", "HEIGHT"]
