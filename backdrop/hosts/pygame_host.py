# backdrop/hosts/pygame_host.py
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Tuple

import moderngl
import pygame

from backdrop.core.events import EventBus, PointerMoved, Resized, VisibilityChanged
from backdrop.core.frames import FrameHost
from backdrop.core.timing import MonotonicClock
from backdrop.graphics.container import Container
from backdrop.graphics.moderngl_surface import ModernGLSurface
from backdrop.settings import ContextOptions
from backdrop.types import Size

logger = logging.getLogger(__name__)

_HIDDEN_EVENTS = {pygame.WINDOWHIDDEN, pygame.WINDOWMINIMIZED}
_SHOWN_EVENTS = {pygame.WINDOWSHOWN, pygame.WINDOWRESTORED, pygame.WINDOWEXPOSED}


class EventTranslator:
    """
    Turns raw pygame events into backdrop events on an EventBus.

    Kept apart from the window so it can be fed synthetic events.
    """

    def __init__(self, events: EventBus, root: Container):
        self.events = events
        self.root = root
        self.visible = True
        self.quit_requested = False
        self._key_bindings: Dict[int, Callable[[], None]] = {}

    def bind_key(self, key: int, action: Callable[[], None]) -> None:
        self._key_bindings[key] = action

    def translate(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit_requested = True
        elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            self.quit_requested = True
        elif event.type == pygame.KEYDOWN and event.key in self._key_bindings:
            self._key_bindings[event.key]()

        elif event.type == pygame.MOUSEMOTION:
            w, h = self.root.width or 1, self.root.height or 1
            x = (event.pos[0] / w) * 2.0 - 1.0
            y = -(event.pos[1] / h) * 2.0 + 1.0
            self.events.emit(PointerMoved(x, y))

        elif event.type == pygame.VIDEORESIZE:
            self.root.resize(event.w, event.h)
            self.events.emit(Resized(event.w, event.h))

        elif event.type in _HIDDEN_EVENTS and self.visible:
            self.visible = False
            self.events.emit(VisibilityChanged(False))

        elif event.type in _SHOWN_EVENTS and not self.visible:
            self.visible = True
            self.events.emit(VisibilityChanged(True))


class PygameFrameHost(FrameHost):
    """
    A pygame window playing the part of the browser page.

    One loop iteration = poll events, fire due timers, dispatch the frame
    callbacks, flip. The window itself is exposed as `root`, the container
    that surfaces attach to.
    """

    def __init__(
        self,
        size: Tuple[int, int] = (1280, 720),
        title: str = "Backdrop",
        refresh_hz: int = 60,
    ):
        super().__init__(MonotonicClock())
        self.refresh_hz = refresh_hz

        if not pygame.get_init():
            pygame.init()

        pygame.display.gl_set_attribute(pygame.GL_CONTEXT_MAJOR_VERSION, 3)
        pygame.display.gl_set_attribute(pygame.GL_CONTEXT_MINOR_VERSION, 3)
        pygame.display.gl_set_attribute(
            pygame.GL_CONTEXT_PROFILE_MASK, pygame.GL_CONTEXT_PROFILE_CORE
        )
        pygame.display.gl_set_attribute(pygame.GL_DOUBLEBUFFER, 1)

        self._screen = pygame.display.set_mode(
            size, pygame.OPENGL | pygame.DOUBLEBUF | pygame.RESIZABLE
        )
        pygame.display.set_caption(title)

        self.root = Container(*size)
        self.input = EventTranslator(self.events, self.root)
        self._clock = pygame.time.Clock()
        self.running = False

    def bind_key(self, key: int, action: Callable[[], None]) -> None:
        self.input.bind_key(key, action)

    @property
    def size(self) -> Size:
        w, h = self._screen.get_size()
        return Size(w, h)

    def run(self, duration_ms: Optional[float] = None) -> None:
        self.running = True
        self.input.quit_requested = False
        started = self.clock.now_ms()

        while self.running:
            for event in pygame.event.get():
                self.input.translate(event)
            if self.input.quit_requested:
                self.running = False
                break

            self.run_due_timers()
            self.dispatch_frame()
            pygame.display.flip()

            self._clock.tick(self.refresh_hz)

            if duration_ms is not None and self.clock.now_ms() - started >= duration_ms:
                self.running = False

    def close(self) -> None:
        self.clear()
        pygame.quit()


def window_surface_factory(
    container: Container, size: Size, options: ContextOptions
) -> ModernGLSurface:
    """Surface drawing straight to the current pygame window."""
    gl = moderngl.create_context()
    version = gl.version_code
    logger.info(
        "OpenGL Context Created: %s.%s", str(version)[0], str(version)[1:]
    )
    return ModernGLSurface(gl, size, options, offscreen=False)
