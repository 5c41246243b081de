"""Snapshot of a complete game, used for pause/resume and save files."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import numpy as np

from .board import Grid, Position
from .shape import Shape


@dataclass(eq=False)
class GameState:
    """Independent copy of grid, active shape, timing and counters.

    ``field`` is a ``height x width`` grid indexed ``field[y, x]``.
    """

    field: Grid
    current_shape: Optional[Shape]
    current_position: Position
    elapsed_time: Optional[timedelta]
    lines_cleared: int
    width: int
    height: int

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameState):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self.lines_cleared == other.lines_cleared
            and tuple(self.current_position) == tuple(other.current_position)
            and self.elapsed_time == other.elapsed_time
            and self.current_shape == other.current_shape
            and np.array_equal(self.field, other.field)
        )

    def copy(self) -> "GameState":
        """Return a deep copy that shares no mutable data with ``self``."""

        return GameState(
            field=np.array(self.field, dtype=np.uint8, copy=True),
            current_shape=self.current_shape.clone() if self.current_shape else None,
            current_position=Position(*self.current_position),
            elapsed_time=self.elapsed_time,
            lines_cleared=self.lines_cleared,
            width=self.width,
            height=self.height,
        )


__all__ = ["GameState"]
