from __future__ import annotations

import heapq
import itertools
import logging
from typing import Callable, Dict, List, Tuple

from backdrop.core.events import EventBus
from backdrop.core.timing import Clock, ManualClock
from backdrop.types import FrameHandle, TimerHandle

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]
TimerCallback = Callable[[], None]


class FrameHost:
    """
    The host side of the animation loop.

    Offers two primitives:
      - request_frame: call back once, at the next frame dispatch.
      - call_later: call back once, after a delay in milliseconds.

    Concrete hosts decide when dispatch_frame() and run_due_timers() are
    called (a real window loop, or a simulated clock).
    """

    def __init__(self, clock: Clock):
        self.clock = clock
        self.events = EventBus()

        self._handles = itertools.count(1)
        self._frame_callbacks: Dict[FrameHandle, FrameCallback] = {}
        self._timers: Dict[TimerHandle, TimerCallback] = {}
        self._timer_queue: List[Tuple[float, int, TimerHandle]] = []

    def request_frame(self, callback: FrameCallback) -> FrameHandle:
        handle = FrameHandle(next(self._handles))
        self._frame_callbacks[handle] = callback
        return handle

    def cancel_frame(self, handle: FrameHandle) -> None:
        self._frame_callbacks.pop(handle, None)

    def call_later(self, delay_ms: float, callback: TimerCallback) -> TimerHandle:
        handle = TimerHandle(next(self._handles))
        due = self.clock.now_ms() + max(0.0, delay_ms)
        self._timers[handle] = callback
        heapq.heappush(self._timer_queue, (due, handle, handle))
        return handle

    def cancel_timer(self, handle: TimerHandle) -> None:
        # The heap entry is left behind and skipped when it comes due.
        self._timers.pop(handle, None)

    @property
    def pending_frames(self) -> int:
        return len(self._frame_callbacks)

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def dispatch_frame(self) -> int:
        """
        Run every callback requested before this dispatch.
        Callbacks requested while dispatching wait for the next one.
        """
        if not self._frame_callbacks:
            return 0

        batch = self._frame_callbacks
        self._frame_callbacks = {}

        now = self.clock.now_ms()
        for callback in batch.values():
            callback(now)

        return len(batch)

    def run_due_timers(self) -> int:
        now = self.clock.now_ms()
        fired = 0

        while self._timer_queue and self._timer_queue[0][0] <= now:
            _, _, handle = heapq.heappop(self._timer_queue)
            callback = self._timers.pop(handle, None)
            if callback is None:
                continue
            callback()
            fired += 1

        return fired

    def clear(self) -> None:
        self._frame_callbacks.clear()
        self._timers.clear()
        self._timer_queue.clear()
        self.events.clear_all()


class ManualFrameHost(FrameHost):
    """
    Deterministic host driven by a ManualClock.

    Each step() advances time by one refresh period (or an explicit amount),
    fires due timers and then dispatches one frame.
    """

    def __init__(self, refresh_hz: float = 60.0, start_ms: float = 0.0):
        if refresh_hz <= 0:
            raise ValueError(f"refresh_hz must be positive, got {refresh_hz}")

        self.manual_clock = ManualClock(start_ms)
        super().__init__(self.manual_clock)

        self.refresh_hz = refresh_hz
        self.frames_dispatched = 0

    @property
    def frame_period_ms(self) -> float:
        return 1000.0 / self.refresh_hz

    def step(self, ms: float | None = None) -> int:
        self.manual_clock.advance(self.frame_period_ms if ms is None else ms)
        self.run_due_timers()
        self.frames_dispatched += 1
        return self.dispatch_frame()

    def run_for(self, duration_ms: float) -> int:
        """Step at the refresh rate for duration_ms. Returns frames stepped."""
        steps = int(round(duration_ms / self.frame_period_ms))
        for _ in range(steps):
            self.step()
        return steps

    def advance_idle(self, ms: float) -> int:
        """Move time forward without dispatching a frame (a stalled host)."""
        self.manual_clock.advance(ms)
        return self.run_due_timers()
