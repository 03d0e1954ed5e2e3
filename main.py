"""
Background particle demo.

Opens a window, probes the host and runs the decorative particle field on a
pooled context until the window is closed.

Expected keys:
    - ESC: quit
    - SPACE: pause / resume
"""

from __future__ import annotations

import sys
from pathlib import Path

import pygame

from backdrop.animation.capabilities import probe_capabilities
from backdrop.debug.log import setup_default_logging
from backdrop.graphics.moderngl_surface import probe_max_texture_size
from backdrop.hosts.pygame_host import PygameFrameHost, window_surface_factory
from backdrop.preferences import PreferenceStore
from backdrop.runtime import BackdropRuntime
from backdrop.settings import AnimationOptions, PoolSettings
from backdrop.types import ContextId

BACKGROUND_ID = ContextId("background")


def main() -> int:
    setup_default_logging("INFO")

    host = PygameFrameHost(size=(1280, 720), title="Backdrop")
    capabilities = probe_capabilities(
        host.size, max_texture_size=probe_max_texture_size()
    )
    preferences = PreferenceStore(Path(".debug") / "preferences.json")

    runtime = BackdropRuntime(
        host,
        window_surface_factory,
        pool_settings=PoolSettings(capacity=1),
        capabilities=capabilities,
        preferences=preferences,
    )

    with runtime:
        controller = runtime.start_animation(
            BACKGROUND_ID, host.root, AnimationOptions(frame_rate=30)
        )

        def toggle_pause() -> None:
            if controller is None:
                return
            if controller.is_paused:
                controller.resume()
            else:
                controller.pause()

        host.bind_key(pygame.K_SPACE, toggle_pause)
        host.run()

    host.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
