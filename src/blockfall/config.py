"""Engine settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .board import HEIGHT, WIDTH, ClearPolicy
from .timer import DEFAULT_INTERVAL_MS


@dataclass(frozen=True)
class EngineConfig:
    """Tunable behaviour of :class:`~blockfall.model.GameModel`.

    ``notify_rejected_moves`` controls whether a sideways move or rotation
    that the board refuses still raises an ``UPDATED`` notification.
    """

    width: int = WIDTH
    height: int = HEIGHT
    tick_interval_ms: float = DEFAULT_INTERVAL_MS
    notify_rejected_moves: bool = True
    clear_policy: ClearPolicy = ClearPolicy.RECHECK

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 2:
            raise ValueError(f"Invalid board size {self.width}x{self.height}")
        if self.tick_interval_ms <= 0:
            raise ValueError("tick_interval_ms must be positive")
        object.__setattr__(self, "clear_policy", ClearPolicy(self.clear_policy))


def parse_board_size(text: str) -> Optional[Tuple[int, int]]:
    """Parse a ``"<width>x<height>"`` preset such as ``"10x20"``.

    Returns ``None`` when ``text`` is malformed or describes a board smaller
    than 1x2 so callers can fall back to the current size.
    """

    parts = text.strip().lower().split("x")
    if len(parts) != 2:
        return None
    try:
        width, height = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if width < 1 or height < 2:
        return None
    return width, height


__all__ = ["EngineConfig", "parse_board_size"]
