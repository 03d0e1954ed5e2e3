# backdrop/settings.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from backdrop.types import Color

if TYPE_CHECKING:
    from backdrop.animation.quality import QualityTier


class Precision(str, Enum):
    """Float precision requested from the fragment stage."""

    LOW = "lowp"
    MEDIUM = "mediump"
    HIGH = "highp"


@dataclass(frozen=True, slots=True)
class PoolSettings:
    """
    Limits for the rendering context pool.

    Contexts are a scarce host resource, so capacity stays small (1-3).
    """

    capacity: int = 1
    idle_timeout_ms: float = 30_000.0
    sweep_interval_ms: float = 30_000.0

    # Evict every live context when full instead of just the LRU one.
    aggressive_eviction: bool = False

    def __post_init__(self):
        if self.capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {self.capacity}")
        if self.idle_timeout_ms <= 0:
            raise ValueError(
                f"idle_timeout_ms must be positive, got {self.idle_timeout_ms}"
            )
        if self.sweep_interval_ms <= 0:
            raise ValueError(
                f"sweep_interval_ms must be positive, got {self.sweep_interval_ms}"
            )


@dataclass(frozen=True, slots=True)
class AnimationSettings:
    """
    Tuning knobs for the animation loop and its adaptive degradation.
    """

    # A sample whose gap since the previous one exceeds this is "slow".
    slow_frame_ms: float = 200.0
    # Degrade once more than this many consecutive slow samples pile up.
    slow_frame_threshold: int = 3
    recovery_pause_ms: float = 100.0

    visibility_grace_ms: float = 3_000.0
    pointer_smoothing: float = 0.05
    aggressive_fps_cap: int = 15

    def __post_init__(self):
        if self.slow_frame_ms <= 0:
            raise ValueError(
                f"slow_frame_ms must be positive, got {self.slow_frame_ms}"
            )
        if self.slow_frame_threshold < 0:
            raise ValueError(
                "slow_frame_threshold must be >= 0, "
                f"got {self.slow_frame_threshold}"
            )
        if self.recovery_pause_ms < 0 or self.visibility_grace_ms < 0:
            raise ValueError("pause durations must be >= 0")
        if not 0.0 < self.pointer_smoothing <= 1.0:
            raise ValueError(
                f"pointer_smoothing must be in (0, 1], got {self.pointer_smoothing}"
            )
        if self.aggressive_fps_cap <= 0:
            raise ValueError(
                f"aggressive_fps_cap must be positive, got {self.aggressive_fps_cap}"
            )


@dataclass(frozen=True, slots=True)
class ContextOptions:
    """Creation parameters handed to the surface factory."""

    antialias: bool = False
    alpha: bool = True
    precision: Precision = Precision.MEDIUM
    pixel_ratio: float = 1.0
    clear_color: Color = (0.07, 0.07, 0.07)

    def __post_init__(self):
        if self.pixel_ratio <= 0:
            raise ValueError(
                f"pixel_ratio must be positive, got {self.pixel_ratio}"
            )


@dataclass(frozen=True, slots=True)
class AnimationOptions:
    """
    Per-animation overrides. Anything left as None is resolved from the
    quality tier.
    """

    quality: Optional["QualityTier"] = None
    frame_rate: Optional[int] = None
    particle_count: Optional[int] = None
    track_pointer: bool = True
    seed: Optional[int] = None

    def __post_init__(self):
        if self.frame_rate is not None and self.frame_rate <= 0:
            raise ValueError(
                f"frame_rate must be positive, got {self.frame_rate}"
            )
        if self.particle_count is not None and self.particle_count < 0:
            raise ValueError(
                f"particle_count must be >= 0, got {self.particle_count}"
            )
