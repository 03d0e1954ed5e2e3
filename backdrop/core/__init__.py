# backdrop/core/__init__.py
from backdrop.core.events import (
    Event,
    EventBus,
    PointerMoved,
    Resized,
    VisibilityChanged,
)
from backdrop.core.frames import FrameHost, ManualFrameHost
from backdrop.core.timing import Clock, ManualClock, MonotonicClock

__all__ = [
    "Clock",
    "ManualClock",
    "MonotonicClock",
    "Event",
    "EventBus",
    "PointerMoved",
    "Resized",
    "VisibilityChanged",
    "FrameHost",
    "ManualFrameHost",
]
