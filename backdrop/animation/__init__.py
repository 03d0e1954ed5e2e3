# backdrop/animation/__init__.py
from backdrop.animation.capabilities import HostCapabilities, probe_capabilities
from backdrop.animation.controller import (
    AnimationController,
    AnimationSession,
    ControllerState,
    PauseReason,
)
from backdrop.animation.particles import ParticleField, ParticleFrame, ParticleStyle
from backdrop.animation.quality import DEFAULT_PROFILES, QualityTier, TierProfile

__all__ = [
    "AnimationController",
    "AnimationSession",
    "ControllerState",
    "PauseReason",
    "HostCapabilities",
    "probe_capabilities",
    "ParticleField",
    "ParticleFrame",
    "ParticleStyle",
    "QualityTier",
    "TierProfile",
    "DEFAULT_PROFILES",
]
