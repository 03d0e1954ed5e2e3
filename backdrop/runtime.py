# backdrop/runtime.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Mapping, Optional

from backdrop.animation.capabilities import HostCapabilities
from backdrop.animation.controller import AnimationController, ControllerState
from backdrop.animation.quality import QualityTier, TierProfile
from backdrop.core.events import VisibilityChanged
from backdrop.core.frames import FrameHost
from backdrop.graphics.container import Container, StaticBackdrop
from backdrop.graphics.context import SurfaceFactory
from backdrop.graphics.pool import ContextPool
from backdrop.preferences import PreferenceStore
from backdrop.settings import (
    AnimationOptions,
    AnimationSettings,
    ContextOptions,
    PoolSettings,
)
from backdrop.types import ContextId, TimerHandle

logger = logging.getLogger(__name__)


class BackdropRuntime:
    """
    Application-lifetime owner of the context pool.

    Create one at startup, call start(), hand out animations with
    start_animation(), and call shutdown() on the way out. Nothing here is
    module-global, so independent runtimes (and tests) never share state.
    """

    def __init__(
        self,
        host: FrameHost,
        surface_factory: SurfaceFactory,
        *,
        pool_settings: Optional[PoolSettings] = None,
        animation_settings: Optional[AnimationSettings] = None,
        capabilities: Optional[HostCapabilities] = None,
        preferences: Optional[PreferenceStore] = None,
        context_options: Optional[ContextOptions] = None,
        profiles: Optional[Mapping[QualityTier, TierProfile]] = None,
    ):
        self.host = host
        self.capabilities = capabilities or HostCapabilities()
        self.animation_settings = animation_settings or AnimationSettings()
        self.preferences = preferences or PreferenceStore()
        self.context_options = context_options or ContextOptions()
        self.profiles = profiles

        pool_settings = pool_settings or PoolSettings()
        if self.capabilities.aggressive_eviction and not pool_settings.aggressive_eviction:
            pool_settings = replace(pool_settings, aggressive_eviction=True)

        self.pool = ContextPool(surface_factory, host.clock, pool_settings)
        self.controllers: Dict[ContextId, AnimationController] = {}

        self._sweep_timer: Optional[TimerHandle] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._arm_sweep()
        self.host.events.subscribe(VisibilityChanged, self._on_visibility)
        logger.info(
            "Backdrop runtime started (capacity=%d, aggressive_eviction=%s)",
            self.pool.capacity,
            self.pool.settings.aggressive_eviction,
        )

    def _arm_sweep(self) -> None:
        self._sweep_timer = self.host.call_later(
            self.pool.settings.sweep_interval_ms, self._on_sweep
        )

    def _on_sweep(self) -> None:
        self._sweep_timer = None
        if not self._running:
            return

        swept = self.pool.sweep()
        if swept:
            logger.info("Swept %d idle context(s): %s", len(swept), swept)
        self._forget_finished()
        self._arm_sweep()

    def _on_visibility(self, event: VisibilityChanged) -> None:
        if not event.visible:
            return

        # Animations released while hidden come back with a fresh start.
        for cid, controller in list(self.controllers.items()):
            if not controller.expired:
                continue
            target = event.target
            if target is not None and target is not controller.container:
                continue
            del self.controllers[cid]
            logger.info("Restarting animation '%s' after it was hidden", cid)
            self.start_animation(cid, controller.container, controller.options)

    def _forget_finished(self) -> None:
        for cid, controller in list(self.controllers.items()):
            # Expired ones stay so they can be restarted when shown again.
            finished = controller.state is ControllerState.DESTROYED
            if finished and not controller.expired:
                del self.controllers[cid]

    def start_animation(
        self,
        context_id: ContextId,
        container: Container,
        options: Optional[AnimationOptions] = None,
    ) -> Optional[AnimationController]:
        """
        Start (or restart) the animation for context_id.

        Returns None and shows a static backdrop when the user preference
        has particles turned off.
        """
        if not self.preferences.particles_enabled:
            logger.info("Particles disabled by preference, showing static backdrop")
            container.attach(StaticBackdrop(self.context_options.clear_color))
            return None

        previous = self.controllers.pop(context_id, None)
        if previous is not None:
            previous.cleanup()

        controller = AnimationController.start(
            context_id,
            container,
            self.pool,
            self.host,
            options,
            settings=self.animation_settings,
            capabilities=self.capabilities,
            profiles=self.profiles,
            context_options=self.context_options,
            on_disabled=self._on_disabled,
        )
        self.controllers[context_id] = controller
        return controller

    def stop_animation(self, context_id: ContextId, release: bool = True) -> bool:
        controller = self.controllers.pop(context_id, None)
        if controller is None:
            return False
        controller.cleanup()
        if release:
            self.pool.release(context_id)
        return True

    def _on_disabled(self, controller: AnimationController) -> None:
        self.controllers.pop(controller.context_id, None)
        self.pool.release(controller.context_id)
        controller.container.attach(StaticBackdrop(self.context_options.clear_color))

        try:
            self.preferences.disable_particles()
        except OSError:
            logger.warning(
                "Could not persist disabled particles preference", exc_info=True
            )

    def shutdown(self) -> None:
        if self._sweep_timer is not None:
            self.host.cancel_timer(self._sweep_timer)
            self._sweep_timer = None
        self._running = False
        self.host.events.unsubscribe(VisibilityChanged, self._on_visibility)

        for controller in self.controllers.values():
            controller.cleanup()
        self.controllers.clear()

        self.pool.shutdown()

    def __enter__(self) -> BackdropRuntime:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
