# backdrop/animation/quality.py
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional

from backdrop.settings import Precision


class QualityTier(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2

    def lower(self) -> Optional[QualityTier]:
        """The next tier down, or None at the floor."""
        if self is QualityTier.LOW:
            return None
        return QualityTier(self - 1)


@dataclass(frozen=True, slots=True)
class TierProfile:
    target_fps: int
    particle_count: int
    precision: Precision

    def __post_init__(self):
        if self.target_fps <= 0:
            raise ValueError(f"target_fps must be positive, got {self.target_fps}")
        if self.particle_count < 0:
            raise ValueError(
                f"particle_count must be >= 0, got {self.particle_count}"
            )

    @property
    def frame_interval_ms(self) -> float:
        return frame_interval_ms(self.target_fps)


DEFAULT_PROFILES: Dict[QualityTier, TierProfile] = {
    QualityTier.HIGH: TierProfile(60, 1200, Precision.HIGH),
    QualityTier.MEDIUM: TierProfile(30, 800, Precision.MEDIUM),
    QualityTier.LOW: TierProfile(15, 500, Precision.LOW),
}


def frame_interval_ms(fps: float) -> float:
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")
    return 1000.0 / fps


def resolve_tier(
    requested: Optional[QualityTier], constrained_device: bool
) -> QualityTier:
    if requested is not None:
        return QualityTier(requested)
    return QualityTier.LOW if constrained_device else QualityTier.MEDIUM
