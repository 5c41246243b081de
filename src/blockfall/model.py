"""Game engine: run/pause/resume/game-over state machine.

:class:`GameModel` owns the :class:`~blockfall.board.Board`, reacts to ticks
from a :class:`~blockfall.timer.Timer` and to player commands, keeps the
line counter and elapsed time, and notifies subscribers about changes.

Commands issued in a state where they make no sense (moving while paused,
pausing a finished game, ...) are ignored rather than raising, so input
handlers can forward every key press unconditionally.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from typing import Callable, Dict, List, Optional
import logging
import random
import time

from .board import Board, Grid, Position
from .config import EngineConfig
from .game_state import GameState
from .persistence import DataAccess, DataAccessError, FileDataAccess, PathLike
from .shape import Shape
from .timer import Timer


LOGGER = logging.getLogger(__name__)


class EngineState(str, Enum):
    """Exactly one of these holds at any time."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    PAUSED = "paused"
    GAME_OVER = "game_over"


class GameEvent(str, Enum):
    """Notifications raised for the presentation layer."""

    UPDATED = "updated"
    GAME_OVER = "game_over"
    LINES_CLEARED_CHANGED = "lines_cleared_changed"
    PAUSED = "paused"
    RESUMED = "resumed"


class InvalidOperationError(RuntimeError):
    """Raised when an operation is not allowed in the current state."""


EventCallback = Callable[["GameModel"], None]


class GameModel:
    """Falling-block game engine.

    Parameters
    ----------
    timer:
        Tick source driving gravity.  Every tick is treated as
        :meth:`move_down`.
    data_access:
        Storage used by :meth:`save_game` and :meth:`load_game`.  Defaults to
        :class:`~blockfall.persistence.FileDataAccess`.
    width, height:
        Size of the initial board; default to ``config``.
    clock:
        Callable returning monotonic seconds.  Defaults to
        :func:`time.monotonic`; tests pass a fake.
    rng:
        Random source for spawned shapes.
    config:
        :class:`~blockfall.config.EngineConfig` with tick interval and
        notification/line-clear policies.
    """

    def __init__(
        self,
        timer: Timer,
        data_access: Optional[DataAccess] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        *,
        clock: Optional[Callable[[], float]] = None,
        rng: Optional[random.Random] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._clock = clock or time.monotonic
        self._rng = rng or random.Random()
        self._timer = timer
        self._data_access = data_access or FileDataAccess()
        self._board = self._new_board(
            self.config.width if width is None else width,
            self.config.height if height is None else height,
        )
        self._state = EngineState.NOT_STARTED
        self._lines_cleared = 0
        self._start_time = 0.0
        self._paused_duration = 0.0
        self._pause_start_time = 0.0
        self._final_elapsed = 0.0
        self._paused_snapshot: Optional[GameState] = None
        self._listeners: Dict[GameEvent, List[EventCallback]] = {event: [] for event in GameEvent}

        self._timer.interval = self.config.tick_interval_ms
        self._timer.subscribe(self._on_tick)

    # ------------------------------------------------------------------
    # Public accessors
    # ------------------------------------------------------------------
    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def board(self) -> Board:
        return self._board

    @property
    def width(self) -> int:
        return self._board.width

    @property
    def height(self) -> int:
        return self._board.height

    @property
    def field(self) -> Grid:
        """Return a copy of the locked cells, indexed ``field[y, x]``."""

        return self._board.field_values()

    @property
    def current_shape(self) -> Shape:
        return self._board.current_shape

    @property
    def current_position(self) -> Position:
        return self._board.current_position

    @property
    def game_started(self) -> bool:
        return self._state in (EngineState.RUNNING, EngineState.PAUSED)

    @property
    def is_paused(self) -> bool:
        return self._state is EngineState.PAUSED

    @property
    def is_game_over(self) -> bool:
        return self._state is EngineState.GAME_OVER

    @property
    def lines_cleared(self) -> int:
        return self._lines_cleared

    @property
    def elapsed_time(self) -> timedelta:
        """Playing time excluding pauses.

        Frozen once the game is over and while it is paused.
        """

        if self._state is EngineState.GAME_OVER:
            return timedelta(seconds=self._final_elapsed)
        if self._state is EngineState.NOT_STARTED:
            return timedelta(0)
        now = self._pause_start_time if self._state is EngineState.PAUSED else self._clock()
        return timedelta(seconds=now - self._start_time - self._paused_duration)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def subscribe(self, event: GameEvent, callback: EventCallback) -> None:
        """Call ``callback(model)`` whenever ``event`` is raised."""

        self._listeners[GameEvent(event)].append(callback)

    def unsubscribe(self, event: GameEvent, callback: EventCallback) -> None:
        listeners = self._listeners[GameEvent(event)]
        if callback in listeners:
            listeners.remove(callback)

    def _notify(self, event: GameEvent) -> None:
        for callback in list(self._listeners[event]):
            callback(self)

    # ------------------------------------------------------------------
    # Game flow
    # ------------------------------------------------------------------
    def start_game(self, width: Optional[int] = None, height: Optional[int] = None) -> None:
        """Start a new game, by default at the current board size."""

        board = self._new_board(
            self._board.width if width is None else width,
            self._board.height if height is None else height,
        )
        # Start ticking before committing so a timer failure leaves the
        # engine as it was.
        self._timer.start()
        self._board = board
        self._lines_cleared = 0
        self._paused_snapshot = None
        self._state = EngineState.RUNNING
        self._start_time = self._clock()
        self._paused_duration = 0.0
        self._pause_start_time = 0.0
        self._final_elapsed = 0.0

        LOGGER.info("Started a %dx%d game", board.width, board.height)

        self._notify(GameEvent.UPDATED)
        self._notify(GameEvent.LINES_CLEARED_CHANGED)

    def pause_game(self) -> None:
        if not self._accepts("pause_game"):
            return
        self._timer.stop()
        self._pause_start_time = self._clock()
        self._state = EngineState.PAUSED
        self._paused_snapshot = self.save_game_state()
        LOGGER.debug("Paused after %s", self.elapsed_time)
        self._notify(GameEvent.PAUSED)

    def resume_game(self) -> None:
        if self._state is not EngineState.PAUSED:
            LOGGER.debug("Ignoring resume_game while %s", self._state.value)
            return
        self._timer.start()
        self._paused_duration += self._clock() - self._pause_start_time
        snapshot, self._paused_snapshot = self._paused_snapshot, None
        if snapshot is not None:
            # The snapshot's elapsed time matches the clock once the pause is
            # accounted for, so the clock is left as is.
            self._restore(snapshot, reanchor_clock=False)
        else:
            self._state = EngineState.RUNNING
        LOGGER.debug("Resumed at %s", self.elapsed_time)
        self._notify(GameEvent.RESUMED)
        self._notify(GameEvent.UPDATED)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def move_left(self) -> None:
        if self._accepts("move_left"):
            self._moved(self._board.move_left())

    def move_right(self) -> None:
        if self._accepts("move_right"):
            self._moved(self._board.move_right())

    def rotate(self) -> None:
        if self._accepts("rotate"):
            self._moved(self._board.rotate())

    def move_down(self) -> None:
        """Move the active shape down one row, locking it when it lands."""

        if not self._accepts("move_down"):
            return
        if not self._board.move_down() and self._after_lock():
            return
        self._notify(GameEvent.UPDATED)

    def drop(self) -> None:
        """Hard-drop the active shape and lock it."""

        if not self._accepts("drop"):
            return
        self._board.drop()
        if self._after_lock():
            return
        self._notify(GameEvent.UPDATED)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def save_game_state(self) -> GameState:
        """Return an independent snapshot of the current game."""

        board = self._board
        return GameState(
            field=board.field_values(),
            current_shape=board.current_shape.clone(),
            current_position=board.current_position,
            elapsed_time=self.elapsed_time,
            lines_cleared=self._lines_cleared,
            width=board.width,
            height=board.height,
        )

    def restore_game_state(self, state: GameState) -> None:
        """Replace the current game with ``state``.

        The board is rebuilt at the snapshot's size.  If the restored field
        already has blocks in the spawn rows the game ends immediately,
        otherwise it is running with the elapsed time carried over.

        Raises:
            ValueError: If the snapshot is inconsistent.  The current game is
                left untouched in that case.
        """

        self._restore(state, reanchor_clock=True)
        self._notify(GameEvent.LINES_CLEARED_CHANGED)
        self._notify(GameEvent.UPDATED)

    async def save_game(self, path: PathLike) -> None:
        """Write the running game to ``path``.

        Raises:
            InvalidOperationError: If no game is running.
            DataAccessError: If the data access fails.
        """

        if self._state is not EngineState.RUNNING:
            raise InvalidOperationError(
                f"A game can only be saved while it is running (currently {self._state.value})"
            )
        state = self.save_game_state()
        await self._data_access.save(path, state)
        LOGGER.info("Saved game to %s", path)

    async def load_game(self, path: PathLike) -> None:
        """Pause the current game and replace it with the one stored at ``path``.

        Raises:
            DataAccessError: If the file cannot be read or parsed.  The current
                game stays as it was (paused if it was running).
        """

        if self._state is EngineState.RUNNING:
            self.pause_game()
        try:
            state = await self._data_access.load(path)
        except DataAccessError:
            LOGGER.warning("Failed to load game from %s", path, exc_info=True)
            raise
        self.restore_game_state(state)
        LOGGER.info("Loaded game from %s", path)

    def close(self) -> None:
        """Stop the timer and detach from it."""

        self._timer.stop()
        self._timer.unsubscribe(self._on_tick)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _on_tick(self) -> None:
        self.move_down()

    def _new_board(self, width: int, height: int) -> Board:
        return Board(width, height, rng=self._rng, clear_policy=self.config.clear_policy)

    def _accepts(self, command: str) -> bool:
        if self._state is EngineState.RUNNING:
            return True
        LOGGER.debug("Ignoring %s while %s", command, self._state.value)
        return False

    def _moved(self, accepted: bool) -> None:
        if accepted or self.config.notify_rejected_moves:
            self._notify(GameEvent.UPDATED)

    def _after_lock(self) -> bool:
        """Clear lines after a lock and end the game if needed.

        Returns ``True`` if the game ended.
        """

        cleared = self._board.clear_full_lines()
        if cleared:
            self._lines_cleared += cleared
            LOGGER.debug("Cleared %d line(s), %d total", cleared, self._lines_cleared)
            self._notify(GameEvent.LINES_CLEARED_CHANGED)
        if self._board.is_game_over():
            self._end_game()
            return True
        return False

    def _end_game(self) -> None:
        self._timer.stop()
        self._final_elapsed = self._clock() - self._start_time - self._paused_duration
        self._state = EngineState.GAME_OVER
        self._paused_snapshot = None
        LOGGER.info(
            "Game over after %s with %d line(s) cleared",
            timedelta(seconds=self._final_elapsed),
            self._lines_cleared,
        )
        self._notify(GameEvent.GAME_OVER)

    def _restore(self, state: GameState, *, reanchor_clock: bool) -> None:
        if state.lines_cleared < 0:
            raise ValueError("lines_cleared must not be negative")
        board = self._new_board(state.width, state.height)
        board.load_field(state.field)
        if state.current_shape is not None:
            board.set_current_shape_and_position(
                state.current_shape.clone(), state.current_position
            )
        ended = board.is_game_over()
        if not ended:
            self._timer.start()

        now = self._clock()
        if self._state is EngineState.PAUSED and reanchor_clock:
            self._paused_duration += now - self._pause_start_time
        if reanchor_clock:
            if state.elapsed_time is not None:
                self._start_time = now - state.elapsed_time.total_seconds()
                self._paused_duration = 0.0
            elif self._state in (EngineState.NOT_STARTED, EngineState.GAME_OVER):
                self._start_time = now
                self._paused_duration = 0.0

        self._board = board
        self._lines_cleared = state.lines_cleared
        self._paused_snapshot = None

        if ended:
            self._end_game()
        else:
            self._state = EngineState.RUNNING


__all__ = [
    "EngineState",
    "GameEvent",
    "GameModel",
    "InvalidOperationError",
]
