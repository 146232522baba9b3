# quiz_engine/timer.py
"""
Countdown controller for timed quizzes.

    Idle -> Running -> Expired | Stopped

Ticks are scheduled on the running asyncio loop with ``call_later``; nothing
here blocks. The handle is always released by ``cancel()``/``stop()`` or by
leaving ``async with Countdown(...)``.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class TimerState(str, enum.Enum):
    idle = "idle"
    running = "running"
    expired = "expired"
    stopped = "stopped"


class Countdown:
    def __init__(
        self,
        remaining_seconds: Optional[int],
        on_expire: Callable[[], Any],
        on_tick: Optional[Callable[[int], Any]] = None,
        interval: float = TICK_SECONDS,
    ):
        self.remaining_seconds = remaining_seconds
        self.state = TimerState.idle
        self.interval = interval
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._handle: Optional[asyncio.TimerHandle] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._closed = False
        self.expiry_task: Optional[asyncio.Future] = None

    @property
    def is_timed(self) -> bool:
        return self.remaining_seconds is not None

    def start(self) -> None:
        """Begin counting down. Untimed countdowns stay idle forever."""
        if self.state != TimerState.idle or not self.is_timed or self._closed:
            return
        self._loop = asyncio.get_running_loop()
        self.state = TimerState.running
        if self.remaining_seconds <= 0:
            # resumed with nothing left on the clock
            self.remaining_seconds = 0
            self._expire()
            return
        self._schedule()

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        self._handle = None
        self.tick()
        if self.state == TimerState.running:
            self._schedule()

    def tick(self) -> None:
        """Take one second off the clock; fires expiry on reaching zero."""
        if self.state != TimerState.running:
            return
        self.remaining_seconds = max(0, self.remaining_seconds - 1)
        if self._on_tick is not None:
            self._on_tick(self.remaining_seconds)
        if self.remaining_seconds == 0:
            self._expire()

    def _expire(self) -> None:
        self._release()
        self.state = TimerState.expired
        logger.info("countdown expired")
        res = self._on_expire()
        if inspect.isawaitable(res):
            self.expiry_task = asyncio.ensure_future(res)

    def _release(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def stop(self) -> None:
        """A result exists; no further ticks."""
        self._release()
        if self.state == TimerState.running:
            self.state = TimerState.stopped

    def cancel(self) -> None:
        """Tear-down path. A cancelled countdown can never be started again."""
        self._closed = True
        self.stop()

    async def __aenter__(self) -> "Countdown":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.cancel()
