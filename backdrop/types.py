# backdrop/types.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, NewType, Tuple, TypeAlias

ContextId = NewType("ContextId", str)
TimerHandle = NewType("TimerHandle", int)
FrameHandle = NewType("FrameHandle", int)

Color = Tuple[float, float, float]

Scalar: TypeAlias = float


@dataclass(frozen=True, slots=True)
class Size:
    width: int
    height: int

    @property
    def aspect(self) -> float:
        if self.height <= 0:
            return 1.0
        return self.width / self.height

    def __iter__(self) -> Iterator[int]:
        yield self.width
        yield self.height


@dataclass(frozen=True, slots=True)
class Vector2:
    x: Scalar
    y: Scalar

    @staticmethod
    def zero() -> Vector2:
        return Vector2(0.0, 0.0)

    def __iter__(self) -> Iterator[Scalar]:
        yield self.x
        yield self.y

    def __len__(self) -> int:
        return 2

    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)

    def lerp(self, target: Vector2, factor: float) -> Vector2:
        """Move a fraction of the way towards target."""
        return self + (target - self) * factor
