"""Shape definitions and basic behaviour.

A shape is the falling piece of the game.  Each of the five variants is
described by a square occupancy matrix indexed ``matrix[x, y]`` (local column,
local row) and carries a colour tag that is written into the board when the
piece locks.  Rotation replaces the matrix; the variant tag never
changes so that snapshots and save files can rebuild the piece from it.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Tuple
import random

import numpy as np
from numpy.typing import NDArray

Matrix = NDArray[np.uint8]

# Colour tags are drawn uniformly from this inclusive range.
MIN_COLOR = 1
MAX_COLOR = 7


class ShapeType(str, Enum):
    """Enumeration of the five shape variants."""

    K = "K"
    E = "E"
    L = "L"
    T = "T"
    R = "R"


# Canonical matrices in spawn orientation.  Each inner list is one ``x``
# column of the piece, so ``E`` is a vertical bar once placed on the board.
_BASE_MATRICES: Dict[ShapeType, List[List[int]]] = {
    ShapeType.K: [
        [1, 1],
        [1, 1],
    ],
    ShapeType.E: [
        [0, 0, 0, 0],
        [1, 1, 1, 1],
        [0, 0, 0, 0],
        [0, 0, 0, 0],
    ],
    ShapeType.L: [
        [0, 0, 1],
        [1, 1, 1],
        [0, 0, 0],
    ],
    ShapeType.T: [
        [0, 1, 0],
        [1, 1, 1],
        [0, 0, 0],
    ],
    ShapeType.R: [
        [0, 0, 1],
        [0, 1, 1],
        [0, 1, 0],
    ],
}


def base_matrix(shape_type: ShapeType) -> Matrix:
    """Return a fresh copy of the canonical matrix for ``shape_type``."""

    return np.array(_BASE_MATRICES[ShapeType(shape_type)], dtype=np.uint8)


def _rotate(matrix: Matrix) -> Matrix:
    """Return ``matrix`` rotated 90 degrees clockwise.

    ``rotated[x, y] == matrix[size - 1 - y, x]``.
    """

    return np.rot90(matrix, 1, axes=(1, 0)).copy()


class Shape:
    """Active falling piece in the game."""

    def __init__(
        self,
        shape_type: ShapeType,
        color: Optional[int] = None,
        *,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._shape_type = ShapeType(shape_type)
        self._matrix: Matrix = base_matrix(self._shape_type)
        if color is None:
            color = (rng or random).randint(MIN_COLOR, MAX_COLOR)
        self._color = MIN_COLOR
        self.set_color(color)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------
    @classmethod
    def create(cls, shape_type: ShapeType, rng: Optional[random.Random] = None) -> "Shape":
        """Return a new shape of ``shape_type`` with a random colour."""

        return cls(shape_type, rng=rng)

    @classmethod
    def create_random(cls, rng: Optional[random.Random] = None) -> "Shape":
        """Return a new shape of a uniformly chosen variant."""

        chooser = rng or random
        return cls(chooser.choice(list(ShapeType)), rng=rng)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def shape_type(self) -> ShapeType:
        return self._shape_type

    @property
    def color(self) -> int:
        return self._color

    @property
    def size(self) -> int:
        return int(self._matrix.shape[0])

    @property
    def matrix(self) -> Matrix:
        """Return a copy of the current occupancy matrix."""

        return self._matrix.copy()

    def occupancy(self, x: int, y: int) -> int:
        """Return the occupancy (0 or 1) at local coordinates ``(x, y)``.

        Raises:
            IndexError: If the coordinates are outside the matrix.
        """

        if 0 <= x < self.size and 0 <= y < self.size:
            return int(self._matrix[x, y])
        raise IndexError("Shape cell out of bounds")

    def __getitem__(self, key: Tuple[int, int]) -> int:
        x, y = key
        return self.occupancy(x, y)

    def cells(self) -> List[Tuple[int, int]]:
        """Return the local ``(x, y)`` offsets of the occupied cells."""

        xs, ys = np.nonzero(self._matrix)
        return [(int(x), int(y)) for x, y in zip(xs, ys)]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def rotate(self) -> None:
        """Rotate the piece 90 degrees clockwise.

        This is purely geometric; callers validate the resulting placement.
        Four rotations restore the original matrix.
        """

        self._matrix = _rotate(self._matrix)

    def set_color(self, color: int) -> None:
        color = int(color)
        if not MIN_COLOR <= color <= MAX_COLOR:
            raise ValueError(f"Colour must be in {MIN_COLOR}..{MAX_COLOR}, got {color}")
        self._color = color

    def set_matrix(self, matrix) -> None:
        """Replace the occupancy matrix, e.g. with one read from a save file.

        Raises:
            ValueError: If ``matrix`` is not ``size x size`` or holds values
                other than 0 and 1.
        """

        values = np.asarray(matrix)
        if values.shape != (self.size, self.size):
            raise ValueError(
                f"Matrix for shape {self._shape_type.value} must be "
                f"{self.size}x{self.size}, got {values.shape}"
            )
        if np.any((values != 0) & (values != 1)):
            raise ValueError("Shape matrix may only contain 0 and 1")
        self._matrix = values.astype(np.uint8, copy=True)

    def clone(self) -> "Shape":
        """Return an independent copy keeping variant, colour and orientation."""

        cloned = Shape(self._shape_type, self._color)
        cloned._matrix = self._matrix.copy()
        return cloned

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Shape):
            return NotImplemented
        return (
            self._shape_type is other._shape_type
            and self._color == other._color
            and np.array_equal(self._matrix, other._matrix)
        )

    def __repr__(self) -> str:
        return (
            f"Shape({self._shape_type.value!r}, color={self._color}, "
            f"matrix={self._matrix.tolist()})"
        )


__all__ = ["Shape", "ShapeType", "base_matrix", "MIN_COLOR", "MAX_COLOR"]
