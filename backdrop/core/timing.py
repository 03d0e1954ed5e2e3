import time
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> float: ...


class MonotonicClock:
    """Wall clock backed by time.perf_counter, in milliseconds."""

    def __init__(self):
        self._origin = time.perf_counter()

    def now_ms(self) -> float:
        return (time.perf_counter() - self._origin) * 1000.0


@dataclass
class ManualClock:
    """
    Clock that only moves when told to.
    Used by headless hosts and tests to simulate frame timing exactly.
    """

    current_ms: float = 0.0

    def now_ms(self) -> float:
        return self.current_ms

    def advance(self, ms: float) -> float:
        if ms < 0:
            raise ValueError(f"Cannot move a clock backwards ({ms}ms)")
        self.current_ms += ms
        return self.current_ms
