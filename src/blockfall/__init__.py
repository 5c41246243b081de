"""Falling-block puzzle game engine."""

from .board import Board, ClearPolicy, Position
from .shape import Shape, ShapeType
from .game_state import GameState
from .config import EngineConfig, parse_board_size
from .timer import AsyncioTimer, ManualTimer, Timer
from .persistence import (
    DataAccess,
    DataAccessError,
    FileDataAccess,
    decode_state,
    encode_state,
)
from .model import EngineState, GameEvent, GameModel, InvalidOperationError
from .utils import format_grid, render_grid

__all__ = [
    "Board",
    "ClearPolicy",
    "Position",
    "Shape",
    "ShapeType",
    "GameState",
    "EngineConfig",
    "parse_board_size",
    "Timer",
    "ManualTimer",
    "AsyncioTimer",
    "DataAccess",
    "DataAccessError",
    "FileDataAccess",
    "decode_state",
    "encode_state",
    "EngineState",
    "GameEvent",
    "GameModel",
    "InvalidOperationError",
    "format_grid",
    "render_grid",
]
