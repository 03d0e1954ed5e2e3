from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

E = TypeVar("E")

Listener = Callable[[Any], None]


class Event:
    """Base class for all host events."""

    pass


@dataclass(frozen=True, slots=True)
class PointerMoved(Event):
    # Normalized device coordinates, [-1, 1] with y pointing up.
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class Resized(Event):
    width: int
    height: int
    target: Optional[Any] = None


@dataclass(frozen=True, slots=True)
class VisibilityChanged(Event):
    visible: bool
    # None means the whole host (window/tab); otherwise a specific container.
    target: Optional[Any] = None


class EventBus:
    """
    Host event listeners keyed by event type.

    Listeners run synchronously inside emit(). A listener removed while an
    event is being delivered still sees that event.
    """

    def __init__(self):
        self._listeners: Dict[Type[Any], List[Listener]] = defaultdict(list)

    def subscribe(self, event_type: Type[E], listener: Callable[[E], None]) -> None:
        listeners = self._listeners[event_type]
        if listener not in listeners:
            listeners.append(listener)

    def unsubscribe(
        self, event_type: Type[E], listener: Callable[[E], None]
    ) -> None:
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def emit(self, event: Any) -> int:
        """Deliver event to its listeners, returning how many ran."""
        listeners = list(self._listeners.get(type(event), ()))
        for listener in listeners:
            listener(event)
        return len(listeners)

    def listener_count(self, event_type: Type[Any]) -> int:
        return len(self._listeners.get(event_type, ()))

    def clear_all(self) -> None:
        self._listeners.clear()
