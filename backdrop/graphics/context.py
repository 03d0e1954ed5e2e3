# backdrop/graphics/context.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from backdrop.graphics.container import Container, StaticBackdrop
from backdrop.settings import ContextOptions
from backdrop.types import ContextId, Size


class Surface(Protocol):
    """A live handle to the host's graphics subsystem."""

    def resize(self, width: int, height: int) -> None: ...

    def render(self, scene: Any) -> None: ...

    def dispose(self) -> None: ...


SurfaceFactory = Callable[[Container, Size, ContextOptions], Surface]


class NullSurface:
    """
    Stand-in used when the host refuses a graphics surface.
    Every operation is a no-op; it shows a static fill in its container.
    """

    def __init__(self, options: ContextOptions | None = None):
        color = (options or ContextOptions()).clear_color
        self.element = StaticBackdrop(color=color)

    def resize(self, width: int, height: int) -> None:
        pass

    def render(self, scene: Any) -> None:
        pass

    def dispose(self) -> None:
        pass


@dataclass(slots=True, eq=False)
class RenderContext:
    """
    One pooled surface plus its bookkeeping.

    Owned by ContextPool; everyone else refers to it by id.
    """

    id: ContextId
    surface: Surface
    container: Container
    size: Size
    created_at: float
    last_used_at: float
    fallback: bool = False
    disposed: bool = False
    render_count: int = field(default=0)
    # Unique per created context; a re-acquired id gets a new one.
    generation: int = 0

    @property
    def element(self) -> Any:
        """What gets attached to the container."""
        return getattr(self.surface, "element", self.surface)

    def resize(self, width: int, height: int) -> None:
        if self.disposed:
            return
        self.surface.resize(width, height)
        self.size = Size(width, height)

    def render(self, scene: Any) -> bool:
        """Draw scene. Returns False when the context is already gone."""
        if self.disposed:
            return False
        self.surface.render(scene)
        self.render_count += 1
        return True
