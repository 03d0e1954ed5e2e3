# backdrop/animation/pacing.py
"""
Frame pacing and adaptive quality, as pure functions.

The controller owns the mutable loop; everything that decides *whether* to
render and *how* quality changes lives here so it can be driven with plain
numbers: (state, elapsed time, last frame gap) in, (next state, verdict,
next delay) out.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Mapping, Optional

from backdrop.animation.quality import (
    DEFAULT_PROFILES,
    QualityTier,
    TierProfile,
    frame_interval_ms,
)
from backdrop.settings import AnimationSettings

# Host callbacks jitter; without slack a 30fps cap on a 60Hz host would
# occasionally miss every other frame by a fraction of a millisecond.
FRAME_SLACK_MS = 1.0


class Verdict(Enum):
    STEADY = "steady"
    DEGRADED = "degraded"
    DISABLED = "disabled"


@dataclass(frozen=True, slots=True)
class PacingState:
    tier: QualityTier
    target_fps: float
    particle_count: int
    consecutive_slow_frames: int = 0

    @property
    def frame_interval_ms(self) -> float:
        return frame_interval_ms(self.target_fps)


@dataclass(frozen=True, slots=True)
class DegradePolicy:
    slow_frame_ms: float = 200.0
    slow_frame_threshold: int = 3
    recovery_pause_ms: float = 100.0
    profiles: Mapping[QualityTier, TierProfile] = field(
        default_factory=lambda: dict(DEFAULT_PROFILES)
    )

    @classmethod
    def from_settings(
        cls,
        settings: AnimationSettings,
        profiles: Optional[Mapping[QualityTier, TierProfile]] = None,
    ) -> DegradePolicy:
        return cls(
            slow_frame_ms=settings.slow_frame_ms,
            slow_frame_threshold=settings.slow_frame_threshold,
            recovery_pause_ms=settings.recovery_pause_ms,
            profiles=dict(profiles or DEFAULT_PROFILES),
        )


@dataclass(frozen=True, slots=True)
class PacingStep:
    state: PacingState
    verdict: Verdict
    # How long until the loop should render again.
    next_delay_ms: float


def frame_due(elapsed_ms: float, interval_ms: float) -> bool:
    return elapsed_ms >= interval_ms - FRAME_SLACK_MS


def initial_state(
    tier: QualityTier,
    profiles: Mapping[QualityTier, TierProfile] = DEFAULT_PROFILES,
    frame_rate: Optional[float] = None,
    particle_count: Optional[int] = None,
    fps_cap: Optional[float] = None,
) -> PacingState:
    profile = profiles[tier]

    fps = float(frame_rate if frame_rate is not None else profile.target_fps)
    if fps_cap is not None:
        fps = min(fps, float(fps_cap))

    count = profile.particle_count if particle_count is None else particle_count
    return PacingState(tier=tier, target_fps=fps, particle_count=count)


def observe_frame(
    state: PacingState, gap_ms: float, policy: DegradePolicy
) -> PacingStep:
    """
    Feed one frame-time sample. A sample is slow when it arrives more than
    slow_frame_ms later than the frame interval asked for. More than
    slow_frame_threshold consecutive slow samples degrade one step; a
    normal sample resets the streak.
    """
    if gap_ms - state.frame_interval_ms > policy.slow_frame_ms:
        streak = state.consecutive_slow_frames + 1
    else:
        streak = 0

    if streak > policy.slow_frame_threshold:
        return degrade(replace(state, consecutive_slow_frames=streak), policy)

    return PacingStep(
        state=replace(state, consecutive_slow_frames=streak),
        verdict=Verdict.STEADY,
        next_delay_ms=state.frame_interval_ms,
    )


def degrade(state: PacingState, policy: DegradePolicy) -> PacingStep:
    """Drop one tier, or report DISABLED when already at the floor."""
    lower = state.tier.lower()
    if lower is None:
        return PacingStep(
            state=replace(state, consecutive_slow_frames=0),
            verdict=Verdict.DISABLED,
            next_delay_ms=0.0,
        )

    profile = policy.profiles[lower]
    lowered = PacingState(
        tier=lower,
        target_fps=min(state.target_fps, float(profile.target_fps)),
        particle_count=min(state.particle_count, profile.particle_count),
        consecutive_slow_frames=0,
    )
    return PacingStep(
        state=lowered,
        verdict=Verdict.DEGRADED,
        next_delay_ms=policy.recovery_pause_ms,
    )
