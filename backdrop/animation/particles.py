# backdrop/animation/particles.py
from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from backdrop.types import Color, Vector2

# Per rendered frame, in radians.
BASE_SPIN = Vector2(0.0002, 0.0003)
POINTER_GAIN = 0.0002


@dataclass(frozen=True, slots=True)
class ParticleStyle:
    size: float = 0.12
    color: Color = (0.388, 0.4, 0.945)
    opacity: float = 0.7
    # Particles are scattered in a cube of this edge length.
    spread: float = 100.0


@dataclass(frozen=True, slots=True)
class ParticleFrame:
    """Everything a surface needs to draw one frame of the field."""

    positions: NDArray[np.float32]
    rotation: Vector2
    style: ParticleStyle

    @property
    def count(self) -> int:
        return int(self.positions.shape[0])


class ParticleField:
    """
    A slowly spinning cloud of points that leans towards the pointer.

    The pointer offset is smoothed exponentially so sudden jumps in the
    pointer position ease in over several frames.
    """

    def __init__(
        self,
        count: int,
        style: ParticleStyle | None = None,
        seed: int | None = None,
        smoothing: float = 0.05,
    ):
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")

        self.style = style or ParticleStyle()
        self.smoothing = smoothing

        rng = np.random.default_rng(seed)
        half = self.style.spread * 0.5
        self._positions: NDArray[np.float32] = rng.uniform(
            -half, half, size=(count, 3)
        ).astype(np.float32)

        self.rotation = Vector2.zero()
        self.pointer = Vector2.zero()
        self.target_pointer = Vector2.zero()
        self._disposed = False

    @property
    def count(self) -> int:
        return int(self._positions.shape[0])

    @property
    def positions(self) -> NDArray[np.float32]:
        return self._positions

    @property
    def disposed(self) -> bool:
        return self._disposed

    def point_at(self, x: float, y: float) -> None:
        self.target_pointer = Vector2(x, y)

    def advance(self, follow_pointer: bool = True) -> None:
        self.pointer = self.pointer.lerp(self.target_pointer, self.smoothing)

        rot_x = self.rotation.x + BASE_SPIN.x
        rot_y = self.rotation.y + BASE_SPIN.y

        if follow_pointer:
            rot_x += self.pointer.y * POINTER_GAIN
            rot_y += self.pointer.x * POINTER_GAIN

        self.rotation = Vector2(rot_x, rot_y)

    def trim(self, count: int) -> int:
        """Drop particles beyond count. Returns how many were removed."""
        count = max(0, count)
        removed = max(0, self.count - count)
        if removed:
            self._positions = self._positions[:count].copy()
        return removed

    def frame(self) -> ParticleFrame:
        return ParticleFrame(
            positions=self._positions,
            rotation=self.rotation,
            style=self.style,
        )

    def dispose(self) -> None:
        self._positions = np.empty((0, 3), dtype=np.float32)
        self._disposed = True
