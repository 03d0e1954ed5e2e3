# backdrop/graphics/__init__.py
from backdrop.graphics.container import Container, StaticBackdrop
from backdrop.graphics.context import (
    NullSurface,
    RenderContext,
    Surface,
    SurfaceFactory,
)
from backdrop.graphics.pool import ContextPool, PoolStats

__all__ = [
    "Container",
    "StaticBackdrop",
    "Surface",
    "SurfaceFactory",
    "NullSurface",
    "RenderContext",
    "ContextPool",
    "PoolStats",
]
