# backdrop/graphics/container.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from backdrop.types import Color, Size


@dataclass
class Container:
    """
    A host element that surfaces are attached to.

    Only the bits the pool needs: a size in pixels and an ordered list of
    child elements.
    """

    width: int
    height: int
    children: List[Any] = field(default_factory=list)

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    def attach(self, child: Any) -> None:
        if child not in self.children:
            self.children.append(child)

    def detach(self, child: Any) -> bool:
        if child in self.children:
            self.children.remove(child)
            return True
        return False

    def contains(self, child: Any) -> bool:
        return child in self.children

    def resize(self, width: int, height: int) -> None:
        self.width = max(0, int(width))
        self.height = max(0, int(height))


@dataclass(frozen=True, slots=True)
class StaticBackdrop:
    """Flat fill shown instead of the animation."""

    color: Color = (0.07, 0.07, 0.07)
