from typing import Any, List

import pytest

from backdrop.core.frames import ManualFrameHost
from backdrop.graphics.container import Container
from backdrop.graphics.pool import ContextPool
from backdrop.settings import ContextOptions, PoolSettings
from backdrop.types import Size


class RecordingSurface:
    """Surface double that counts calls instead of drawing."""

    def __init__(self, size: Size, options: ContextOptions):
        self.size = size
        self.options = options
        self.renders = 0
        self.resizes: List[Size] = []
        self.disposed = 0
        self.last_scene: Any = None
        self.fail_renders = False
        self.fail_dispose = False

    def resize(self, width: int, height: int) -> None:
        self.resizes.append(Size(width, height))

    def render(self, scene: Any) -> None:
        if self.fail_renders:
            raise RuntimeError("render blew up")
        self.renders += 1
        self.last_scene = scene

    def dispose(self) -> None:
        self.disposed += 1
        if self.fail_dispose:
            raise RuntimeError("dispose blew up")


class SurfaceRecorder:
    """Surface factory that remembers everything it built."""

    def __init__(self):
        self.surfaces: List[RecordingSurface] = []
        self.fail = False

    def __call__(
        self, container: Container, size: Size, options: ContextOptions
    ) -> RecordingSurface:
        if self.fail:
            raise RuntimeError("graphics access denied")
        surface = RecordingSurface(size, options)
        self.surfaces.append(surface)
        return surface

    @property
    def last(self) -> RecordingSurface:
        return self.surfaces[-1]

    @property
    def total_renders(self) -> int:
        return sum(s.renders for s in self.surfaces)


@pytest.fixture
def host():
    """60Hz manual host starting at t=0."""
    return ManualFrameHost(refresh_hz=60.0)


@pytest.fixture
def recorder():
    return SurfaceRecorder()


@pytest.fixture
def container():
    return Container(800, 600)


@pytest.fixture
def make_pool(host, recorder):
    def _make(**settings) -> ContextPool:
        return ContextPool(recorder, host.clock, PoolSettings(**settings))

    return _make


@pytest.fixture
def pool(make_pool):
    return make_pool(capacity=1)
