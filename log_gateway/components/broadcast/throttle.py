"""
Leading + trailing edge throttle.

Contract for an interval T > 0:

- A call while no window is open runs the function immediately (leading
  edge) and opens a window of T.
- Calls while a window is open do not run the function; they mark a
  trailing run as pending.
- When the window closes, a pending trailing run executes once and opens a
  new window. Without a pending run the throttle goes idle.

So the function runs at most once per T, and every call is followed by a run
no later than the end of the window it landed in. T == 0 disables throttling:
every call runs the function synchronously.

The timer is the only suspension point; the throttle must be driven from the
event loop thread. Without a loop to schedule on (no loop given or bound, and
none running) the function runs synchronously on every call, as with T == 0.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Subset of asyncio.AbstractEventLoop the throttle needs."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class Throttle:
    """
    Usage:
        flush = Throttle(buffer.flush, interval_ms=200)
        flush()   # runs now
        flush()   # coalesced, runs once when the 200 ms window closes
    """

    def __init__(
        self,
        func: Callable[[], Any],
        interval_ms: int,
        loop: Scheduler | None = None,
    ) -> None:
        if interval_ms < 0:
            raise ValueError("interval_ms must be >= 0")
        self._func = func
        self._interval = interval_ms / 1000.0
        self._loop = loop
        self._timer: TimerHandle | None = None
        self._pending = False

    @property
    def interval_ms(self) -> int:
        return int(self._interval * 1000)

    @property
    def window_open(self) -> bool:
        return self._timer is not None

    @property
    def pending(self) -> bool:
        """A trailing run is scheduled for the end of the current window."""
        return self._pending

    def __call__(self) -> None:
        if self._interval == 0:
            self._func()
            return
        if self._timer is not None:
            self._pending = True
            return
        self._run()

    def bind_loop(self, loop: Scheduler) -> None:
        """Schedule windows on `loop` unless one was given at construction."""
        if self._loop is None:
            self._loop = loop

    def cancel(self) -> None:
        """Drop the open window and any pending trailing run."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = False

    def _run(self) -> None:
        self._pending = False
        scheduler = self._scheduler()
        if scheduler is None:
            self._func()
            return
        # Window opens before the call so a re-entrant call is coalesced
        self._timer = scheduler.call_later(self._interval, self._window_closed)
        self._func()

    def _window_closed(self) -> None:
        self._timer = None
        if self._pending:
            self._run()

    def _scheduler(self) -> Scheduler | None:
        loop = self._loop
        if loop is not None:
            if isinstance(loop, asyncio.AbstractEventLoop) and loop.is_closed():
                return None
            return loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None
