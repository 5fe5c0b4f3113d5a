"""Cancellable recurring timers on the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from .sequencer import StateMachine

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """Invoke a callback every ``interval`` seconds until cancelled.

    Starting the timer cancels any schedule it already had, so one timer never
    has two pending ticks. After :meth:`cancel` returns no further callback
    runs.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._interval = 0.0
        self.fired = 0

    @property
    def active(self) -> bool:
        return self._handle is not None

    @property
    def interval(self) -> float:
        return self._interval

    def start(self, interval: float, callback: Callable[[], None]) -> None:
        if interval <= 0:
            raise ValueError(f"Timer interval must be positive, got {interval}")
        self.cancel()
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._interval = float(interval)
        self._handle = self._loop.call_later(self._interval, self._fire, self._loop, callback)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, loop: asyncio.AbstractEventLoop, callback: Callable[[], None]) -> None:
        # Re-arm before the callback so a cancel() inside it wins.
        self._handle = loop.call_later(self._interval, self._fire, loop, callback)
        self.fired += 1
        callback()


class TimedRunner:
    """Drive a :class:`StateMachine` with its own :class:`RepeatingTimer`.

    The runner follows the machine: when it starts running the timer begins
    ticking at the machine's interval, and any transition to a stopped state
    (pause, reset, manual step, jump or the terminal tick) cancels the timer.
    A runner attached to a machine that is already running starts ticking
    immediately. Create runners and start their machines from inside a running
    event loop.
    """

    def __init__(
        self,
        machine: StateMachine,
        timer: RepeatingTimer | None = None,
        *,
        name: str = "playback",
    ) -> None:
        self.machine = machine
        self.timer = timer or RepeatingTimer()
        self.name = name
        self._interval_ms: int | None = None
        self._stopped = asyncio.Event()
        self._stopped.set()
        self._unsubscribe = machine.subscribe(self._on_change)
        if machine.is_running:
            self._on_change(machine.state)

    def _on_change(self, _state) -> None:
        if self.machine.is_running:
            interval_ms = self.machine.interval_ms
            if not self.timer.active or interval_ms != self._interval_ms:
                logger.debug("%s timer running every %d ms", self.name, interval_ms)
                self._interval_ms = interval_ms
                self.timer.start(interval_ms / 1000.0, self._on_tick)
            self._stopped.clear()
        else:
            if self.timer.active:
                logger.debug("%s timer cancelled", self.name)
            self.timer.cancel()
            self._interval_ms = None
            self._stopped.set()

    def _on_tick(self) -> None:
        self.machine.tick()

    async def wait_stopped(self, timeout: float | None = None):
        """Wait until the machine stops running and return its state."""

        if self.machine.is_running:
            await asyncio.wait_for(self._stopped.wait(), timeout)
        return self.machine.state

    def close(self) -> None:
        self._unsubscribe()
        self.timer.cancel()


__all__ = ["RepeatingTimer", "TimedRunner"]
