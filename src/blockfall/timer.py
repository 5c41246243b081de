"""Tick sources that drive gravity.

The engine only depends on the small :class:`Timer` interface: it sets the
interval, starts and stops the timer and subscribes a zero-argument callback
that is invoked once per interval while the timer is enabled.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import asyncio

TickCallback = Callable[[], None]

DEFAULT_INTERVAL_MS = 700.0


class Timer(ABC):
    """Abstract tick source."""

    def __init__(self, interval: float = DEFAULT_INTERVAL_MS) -> None:
        self._interval = DEFAULT_INTERVAL_MS
        self.interval = interval
        self._callbacks: List[TickCallback] = []

    @property
    def interval(self) -> float:
        """Milliseconds between ticks."""

        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"Timer interval must be positive, got {value}")
        self._interval = float(value)

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """Return ``True`` while the timer is running."""

    @abstractmethod
    def start(self) -> None:
        """Start (or keep) delivering ticks."""

    @abstractmethod
    def stop(self) -> None:
        """Stop delivering ticks."""

    def subscribe(self, callback: TickCallback) -> None:
        self._callbacks.append(callback)

    def unsubscribe(self, callback: TickCallback) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def _notify(self) -> None:
        for callback in list(self._callbacks):
            callback()


class ManualTimer(Timer):
    """Timer that only ticks when :meth:`fire` is called.

    Useful for tests and headless drivers that advance the game explicitly.
    """

    def __init__(self, interval: float = DEFAULT_INTERVAL_MS) -> None:
        super().__init__(interval)
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start(self) -> None:
        self._enabled = True

    def stop(self) -> None:
        self._enabled = False

    def fire(self) -> bool:
        """Deliver one tick if the timer is enabled and report whether it did."""

        if not self._enabled:
            return False
        self._notify()
        return True


class AsyncioTimer(Timer):
    """Timer scheduled on an asyncio event loop.

    Ticks are delivered on the loop's thread via ``loop.call_later`` so the
    engine never sees concurrent calls.  ``start`` must be called while the
    loop is running unless an explicit ``loop`` is supplied.
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL_MS,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        super().__init__(interval)
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def enabled(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._schedule(self._loop)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self, loop: asyncio.AbstractEventLoop) -> None:
        self._handle = loop.call_later(self.interval / 1000.0, self._tick, loop)

    def _tick(self, loop: asyncio.AbstractEventLoop) -> None:
        # Re-arm before notifying so a callback calling ``stop`` wins.
        self._schedule(loop)
        self._notify()


__all__ = ["Timer", "ManualTimer", "AsyncioTimer", "DEFAULT_INTERVAL_MS"]
