"""Text record codec and file data access for saved games.

A saved game is a line-oriented record of whitespace separated tokens::

    <width> <height> <elapsedTime> <linesCleared>
    <shapeType> <color>
    <anchorX> <anchorY>
    <shapeSize>
    <shapeSize lines of shapeSize 0/1 values, line i holds matrix[i, :]>
    <height lines of width cell values, line y holds field[y, :]>

``elapsedTime`` uses the constant duration format ``[-][d.]hh:mm:ss[.fffffff]``.
Decoding validates the whole record before anything is returned so a broken
file never produces a partially built :class:`GameState`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta
from pathlib import Path
from typing import List, Optional, Union
import asyncio
import logging
import re

import numpy as np

from .board import Position
from .game_state import GameState
from .shape import MAX_COLOR, Shape, ShapeType


LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]

_DURATION_RE = re.compile(
    r"^(?P<sign>-)?(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{1,2}):"
    r"(?P<seconds>\d{1,2})(?:\.(?P<fraction>\d{1,7}))?$",
    re.ASCII,
)
_INT_RE = re.compile(r"-?[0-9]+")


class DataAccessError(Exception):
    """Raised when a saved game cannot be read or written."""


# ----------------------------------------------------------------------
# Durations
# ----------------------------------------------------------------------
def format_elapsed(value: Optional[timedelta]) -> str:
    """Format ``value`` as ``[-][d.]hh:mm:ss[.fffffff]``.

    ``None`` is written as a zero duration.
    """

    if value is None:
        value = timedelta(0)
    sign = "-" if value < timedelta(0) else ""
    value = abs(value)
    hours, rem = divmod(value.seconds, 3600)
    minutes, seconds = divmod(rem, 60)
    text = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if value.days:
        text = f"{value.days}.{text}"
    if value.microseconds:
        # Seven fractional digits; the last one is always zero because
        # timedelta resolution is one microsecond.
        text = f"{text}.{value.microseconds * 10:07d}"
    return sign + text


def parse_elapsed(text: str) -> timedelta:
    """Parse a duration written by :func:`format_elapsed`.

    Fractions finer than one microsecond are truncated.

    Raises:
        ValueError: If ``text`` is not a valid duration.
    """

    match = _DURATION_RE.match(text)
    if match is None:
        raise ValueError(f"Invalid duration: {text!r}")
    hours = int(match["hours"])
    minutes = int(match["minutes"])
    seconds = int(match["seconds"])
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValueError(f"Duration component out of range: {text!r}")
    fraction = (match["fraction"] or "").ljust(7, "0")
    value = timedelta(
        days=int(match["days"] or 0),
        hours=hours,
        minutes=minutes,
        seconds=seconds,
        microseconds=int(fraction) // 10,
    )
    return -value if match["sign"] else value


# ----------------------------------------------------------------------
# Codec
# ----------------------------------------------------------------------
def _join(values) -> str:
    return " ".join(str(int(v)) for v in values)


def encode_state(state: GameState) -> str:
    """Return the text record for ``state``."""

    if state.current_shape is None:
        raise ValueError("Cannot encode a game state without an active shape")
    shape = state.current_shape
    lines = [
        f"{state.width} {state.height} {format_elapsed(state.elapsed_time)} {state.lines_cleared}",
        f"{shape.shape_type.value} {shape.color}",
        f"{state.current_position[0]} {state.current_position[1]}",
        str(shape.size),
    ]
    matrix = shape.matrix
    lines.extend(_join(row) for row in matrix)
    field = np.asarray(state.field)
    lines.extend(_join(row) for row in field)
    return "\n".join(lines) + "\n"


class _RecordReader:
    """Sequential access to the lines of a record with positional errors."""

    def __init__(self, text: str) -> None:
        self._lines = text.splitlines()
        self._index = 0

    def tokens(self, count: int, what: str) -> List[str]:
        if self._index >= len(self._lines):
            raise DataAccessError(f"Unexpected end of data, expected {what}")
        self._index += 1
        parts = self._lines[self._index - 1].split()
        if len(parts) != count:
            raise DataAccessError(
                f"Line {self._index}: expected {count} values for {what}, got {len(parts)}"
            )
        return parts

    def ints(self, count: int, what: str) -> List[int]:
        parts = self.tokens(count, what)
        return [self.parse_int(part, what) for part in parts]

    def parse_int(self, token: str, what: str) -> int:
        # ``int`` alone would also take "+3", "1_0" and non-ASCII digits.
        if _INT_RE.fullmatch(token) is None:
            raise DataAccessError(f"Line {self._index}: {what} is not a number: {token!r}")
        return int(token)

    def ensure_exhausted(self) -> None:
        rest = [line for line in self._lines[self._index:] if line.strip()]
        if rest:
            raise DataAccessError(f"Line {self._index + 1}: unexpected trailing data")


def decode_state(text: str) -> GameState:
    """Parse a text record produced by :func:`encode_state`.

    Raises:
        DataAccessError: If the record is malformed in any way.
    """

    reader = _RecordReader(text)

    header = reader.tokens(4, "header")
    width = reader.parse_int(header[0], "width")
    height = reader.parse_int(header[1], "height")
    try:
        elapsed = parse_elapsed(header[2])
    except ValueError as exc:
        raise DataAccessError(f"Line 1: {exc}") from exc
    lines_cleared = reader.parse_int(header[3], "lines cleared")
    if width < 1 or height < 2:
        raise DataAccessError(f"Line 1: invalid board size {width}x{height}")
    if lines_cleared < 0:
        raise DataAccessError("Line 1: lines cleared must not be negative")

    tag, color_token = reader.tokens(2, "shape type and colour")
    try:
        shape_type = ShapeType(tag)
    except ValueError as exc:
        raise DataAccessError(f"Line 2: unknown shape type {tag!r}") from exc
    color = reader.parse_int(color_token, "colour")

    anchor_x, anchor_y = reader.ints(2, "position")

    (size,) = reader.ints(1, "shape size")
    if size < 1:
        raise DataAccessError(f"Line 4: invalid shape size {size}")
    matrix = [reader.ints(size, f"shape row {i}") for i in range(size)]

    field = [reader.ints(width, f"board row {y}") for y in range(height)]
    reader.ensure_exhausted()

    shape = Shape(shape_type, color=1)
    try:
        shape.set_matrix(matrix)
        shape.set_color(color)
    except ValueError as exc:
        raise DataAccessError(f"Invalid shape data: {exc}") from exc

    grid = np.asarray(field, dtype=np.int64)
    if np.any((grid < 0) | (grid > MAX_COLOR)):
        raise DataAccessError(f"Board values must be in 0..{MAX_COLOR}")

    return GameState(
        field=grid.astype(np.uint8),
        current_shape=shape,
        current_position=Position(anchor_x, anchor_y),
        elapsed_time=elapsed,
        lines_cleared=lines_cleared,
        width=width,
        height=height,
    )


# ----------------------------------------------------------------------
# Data access
# ----------------------------------------------------------------------
class DataAccess(ABC):
    """Asynchronous storage for saved games."""

    @abstractmethod
    async def load(self, path: PathLike) -> GameState:
        """Load and return the game stored at ``path``."""

    @abstractmethod
    async def save(self, path: PathLike, state: GameState) -> None:
        """Store ``state`` at ``path``."""


class FileDataAccess(DataAccess):
    """Read and write text records on the local file system.

    Blocking file I/O runs in a worker thread so the event loop that drives
    the game stays responsive.  The game state itself is only touched on the
    caller's thread.
    """

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    async def load(self, path: PathLike) -> GameState:
        try:
            text = await asyncio.to_thread(Path(path).read_text, encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise DataAccessError(f"Error while loading {path}: {exc}") from exc
        try:
            state = decode_state(text)
        except DataAccessError as exc:
            raise DataAccessError(f"Error while loading {path}: {exc}") from exc
        LOGGER.debug("Loaded %dx%d game from %s", state.width, state.height, path)
        return state

    async def save(self, path: PathLike, state: GameState) -> None:
        try:
            text = encode_state(state)
        except ValueError as exc:
            raise DataAccessError(f"Error while saving {path}: {exc}") from exc
        try:
            await asyncio.to_thread(Path(path).write_text, text, encoding=self.encoding)
        except OSError as exc:
            raise DataAccessError(f"Error while saving {path}: {exc}") from exc
        LOGGER.debug("Saved %dx%d game to %s", state.width, state.height, path)


__all__ = [
    "DataAccess",
    "DataAccessError",
    "FileDataAccess",
    "decode_state",
    "encode_state",
    "format_elapsed",
    "parse_elapsed",
]
