# backdrop/__init__.py
from backdrop.animation import AnimationController, QualityTier
from backdrop.graphics import Container, ContextPool
from backdrop.runtime import BackdropRuntime
from backdrop.settings import (
    AnimationOptions,
    AnimationSettings,
    ContextOptions,
    PoolSettings,
)

__all__ = [
    "AnimationController",
    "AnimationOptions",
    "AnimationSettings",
    "BackdropRuntime",
    "Container",
    "ContextOptions",
    "ContextPool",
    "PoolSettings",
    "QualityTier",
]
