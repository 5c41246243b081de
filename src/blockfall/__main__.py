"""Headless ASCII demo for the game engine.

Run with: `python -m blockfall`

The demo drives :class:`~blockfall.model.GameModel` with a manual timer and
random player commands until the game ends or the step budget runs out, then
prints the final frame.  ``--load`` starts from a saved game and ``--save``
writes the game to disk when the run stops while it is still in progress.
"""

from __future__ import annotations

from typing import Optional, Sequence
import argparse
import asyncio
import logging
import random

from . import EngineConfig, GameModel, ManualTimer, format_grid, parse_board_size, render_grid
from .board import ClearPolicy
from .model import EngineState
from .persistence import DataAccessError


LOGGER = logging.getLogger(__name__)

COMMANDS = ("move_left", "move_right", "rotate")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--size", default="10x20", help="Board size as WIDTHxHEIGHT.")
    parser.add_argument("--steps", type=int, default=200, help="Maximum number of ticks to play.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for shapes and commands.")
    parser.add_argument(
        "--clear-policy",
        choices=[policy.value for policy in ClearPolicy],
        default=ClearPolicy.RECHECK.value,
        help="Whether a row is re-examined after the rows above it shift down.",
    )
    parser.add_argument("--load", default=None, help="Load a saved game before playing.")
    parser.add_argument("--save", default=None, help="Save the game here if it is still running.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING).",
    )
    return parser.parse_args(argv)


async def play(args: argparse.Namespace) -> GameModel:
    size = parse_board_size(args.size)
    if size is None:
        raise SystemExit(f"Invalid board size: {args.size!r}")
    width, height = size

    rng = random.Random(args.seed)
    timer = ManualTimer()
    config = EngineConfig(width=width, height=height, clear_policy=ClearPolicy(args.clear_policy))
    model = GameModel(timer, rng=rng, config=config)

    if args.load:
        try:
            await model.load_game(args.load)
        except DataAccessError as exc:
            model.close()
            raise SystemExit(str(exc)) from exc
    else:
        model.start_game()

    ticks = 0
    for ticks in range(1, args.steps + 1):
        if not model.game_started:
            break
        getattr(model, rng.choice(COMMANDS))()
        if rng.random() < 0.1:
            model.drop()
        timer.fire()
    LOGGER.info("Stopped after %d tick(s), %d line(s) cleared", ticks, model.lines_cleared)

    if args.save and model.state is EngineState.RUNNING:
        try:
            await model.save_game(args.save)
        except DataAccessError as exc:
            LOGGER.error("Failed to save game to %s", args.save)
            model.close()
            raise SystemExit(str(exc)) from exc
    return model


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(message)s")

    model = asyncio.run(play(args))
    print(format_grid(render_grid(model.board, include_active=not model.is_game_over)))
    print(f"Lines cleared: {model.lines_cleared}")
    print(f"State: {model.state.value}")
    model.close()


if __name__ == "__main__":
    main()
