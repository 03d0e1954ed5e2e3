# backdrop/animation/controller.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Callable, Mapping, Optional, Set

from backdrop.animation.capabilities import HostCapabilities
from backdrop.animation.pacing import (
    DegradePolicy,
    PacingStep,
    Verdict,
    degrade,
    frame_due,
    initial_state,
    observe_frame,
)
from backdrop.animation.particles import ParticleField
from backdrop.animation.quality import (
    DEFAULT_PROFILES,
    QualityTier,
    TierProfile,
    resolve_tier,
)
from backdrop.core.events import PointerMoved, Resized, VisibilityChanged
from backdrop.core.frames import FrameHost
from backdrop.graphics.container import Container
from backdrop.graphics.context import RenderContext
from backdrop.graphics.pool import ContextPool
from backdrop.settings import AnimationOptions, AnimationSettings, ContextOptions
from backdrop.types import ContextId, FrameHandle, TimerHandle

logger = logging.getLogger(__name__)


class ControllerState(Enum):
    CREATED = auto()
    RUNNING = auto()
    PAUSED = auto()
    DESTROYED = auto()


class PauseReason(Enum):
    USER = auto()
    RECOVERY = auto()
    HIDDEN = auto()


@dataclass(slots=True)
class AnimationSession:
    context_id: ContextId
    quality_tier: QualityTier
    frame_interval_ms: float
    particle_count: int
    is_paused: bool = False
    # Frames actually rendered, and host callbacks received.
    frame_count: int = 0
    tick_count: int = 0
    consecutive_slow_frames: int = 0


DisabledCallback = Callable[["AnimationController"], None]


class AnimationController:
    """
    Drives one particle animation on one pooled context.

    The loop re-arms itself on every host frame callback and decides per
    tick whether to render (paused? frame-rate cap?). Pausing keeps the
    callback chain alive and only skips work, so resuming is immediate.

    The context is looked up through the pool on every rendered frame. If
    the pool has evicted it, the controller stops quietly.

    Construction starts the animation (CREATED -> RUNNING). cleanup() is the
    only way to stop it and may be called any number of times.
    """

    def __init__(
        self,
        context_id: ContextId,
        container: Container,
        pool: ContextPool,
        host: FrameHost,
        options: Optional[AnimationOptions] = None,
        *,
        settings: Optional[AnimationSettings] = None,
        capabilities: Optional[HostCapabilities] = None,
        profiles: Optional[Mapping[QualityTier, TierProfile]] = None,
        context_options: Optional[ContextOptions] = None,
        on_disabled: Optional[DisabledCallback] = None,
    ):
        self.context_id = context_id
        self.container = container
        self.pool = pool
        self.host = host
        self.options = options or AnimationOptions()
        self.settings = settings or AnimationSettings()
        self.capabilities = capabilities or HostCapabilities()
        self.profiles = dict(profiles or DEFAULT_PROFILES)
        self._context_options = context_options or ContextOptions()
        self._on_disabled = on_disabled

        self._policy = DegradePolicy.from_settings(self.settings, self.profiles)

        self._destroyed = False
        self._started = False
        self.disabled = False
        self.expired = False

        self._pause_reasons: Set[PauseReason] = set()
        self._frame_handle: Optional[FrameHandle] = None
        self._recovery_timer: Optional[TimerHandle] = None
        self._grace_timer: Optional[TimerHandle] = None
        self._fallback_ctx: Optional[RenderContext] = None
        self._generation = 0
        self._listening = False

        self._last_rendered_at = 0.0
        self._last_sample_at = 0.0

        tier = resolve_tier(self.options.quality, self.capabilities.constrained)
        fps_cap = (
            self.settings.aggressive_fps_cap
            if self.capabilities.aggressive_eviction
            else None
        )
        self._pacing = initial_state(
            tier,
            self.profiles,
            frame_rate=self.options.frame_rate,
            particle_count=self.options.particle_count,
            fps_cap=fps_cap,
        )

        self.session = AnimationSession(
            context_id=context_id,
            quality_tier=tier,
            frame_interval_ms=self._pacing.frame_interval_ms,
            particle_count=self._pacing.particle_count,
        )
        self.field = ParticleField(
            self._pacing.particle_count,
            seed=self.options.seed,
            smoothing=self.settings.pointer_smoothing,
        )
        self._follow_pointer = (
            self.options.track_pointer and not self.capabilities.constrained
        )

        self._begin()

    @classmethod
    def start(
        cls,
        context_id: ContextId,
        container: Container,
        pool: ContextPool,
        host: FrameHost,
        options: Optional[AnimationOptions] = None,
        **kwargs,
    ) -> AnimationController:
        return cls(context_id, container, pool, host, options, **kwargs)

    def _begin(self) -> None:
        profile = self.profiles[self._pacing.tier]
        ctx_options = replace(self._context_options, precision=profile.precision)

        ctx = self.pool.acquire(self.context_id, self.container, options=ctx_options)
        if ctx.fallback:
            logger.info(
                "Animation '%s' running without graphics (fallback context)",
                self.context_id,
            )
            self._fallback_ctx = ctx
        self._generation = ctx.generation

        self._subscribe()

        now = self.host.clock.now_ms()
        self._last_rendered_at = now
        self._last_sample_at = now

        self._started = True
        self._frame_handle = self.host.request_frame(self._on_frame)

        logger.debug(
            "Started animation '%s' at %s tier (%.0f fps, %d particles)",
            self.context_id,
            self._pacing.tier.name,
            self._pacing.target_fps,
            self._pacing.particle_count,
        )

    # --- state -----------------------------------------------------------

    @property
    def state(self) -> ControllerState:
        if self._destroyed:
            return ControllerState.DESTROYED
        if not self._started:
            return ControllerState.CREATED
        if self._pause_reasons:
            return ControllerState.PAUSED
        return ControllerState.RUNNING

    @property
    def is_paused(self) -> bool:
        return bool(self._pause_reasons)

    @property
    def quality_tier(self) -> QualityTier:
        return self._pacing.tier

    @property
    def target_fps(self) -> float:
        return self._pacing.target_fps

    @property
    def context(self) -> Optional[RenderContext]:
        return self._resolve()

    # --- public controls -------------------------------------------------

    def pause(self) -> None:
        if self._destroyed:
            return
        self._hold(PauseReason.USER)

    def resume(self) -> None:
        if self._destroyed:
            return
        self._release(PauseReason.USER)

    def cleanup(self) -> bool:
        """
        Stop the loop and free what the controller owns. The pooled context
        stays with the pool. Returns False if already cleaned up.
        """
        if self._destroyed:
            return False
        self._destroyed = True

        # Cancel the pending callback first so nothing fires after this.
        if self._frame_handle is not None:
            self.host.cancel_frame(self._frame_handle)
            self._frame_handle = None
        if self._recovery_timer is not None:
            self.host.cancel_timer(self._recovery_timer)
            self._recovery_timer = None
        if self._grace_timer is not None:
            self.host.cancel_timer(self._grace_timer)
            self._grace_timer = None

        self._unsubscribe()
        self.field.dispose()

        if self._fallback_ctx is not None:
            ContextPool.dispose_fallback(self._fallback_ctx)
            self._fallback_ctx = None

        logger.debug("Cleaned up animation '%s'", self.context_id)
        return True

    # --- frame loop ------------------------------------------------------

    def _on_frame(self, now: float) -> None:
        if self._destroyed:
            return

        self._frame_handle = self.host.request_frame(self._on_frame)
        self.session.tick_count += 1

        if self._pause_reasons:
            return

        if not frame_due(now - self._last_rendered_at, self._pacing.frame_interval_ms):
            return

        ctx = self._resolve()
        if ctx is None:
            logger.info(
                "Context '%s' no longer available, stopping animation",
                self.context_id,
            )
            self.cleanup()
            return

        step = observe_frame(self._pacing, now - self._last_sample_at, self._policy)
        self._last_sample_at = now
        if step.verdict is not Verdict.STEADY:
            self._apply(step)
            return
        self._set_pacing(step.state)

        self.field.advance(self._follow_pointer)
        self._last_rendered_at = now

        try:
            rendered = ctx.render(self.field.frame())
        except Exception:
            logger.warning(
                "Rendering error on '%s'", self.context_id, exc_info=True
            )
            self._apply(degrade(self._pacing, self._policy))
            return

        if not rendered:
            return

        self.session.frame_count += 1
        if not ctx.fallback:
            self.pool.touch(self.context_id)

    def _resolve(self) -> Optional[RenderContext]:
        if self._fallback_ctx is not None:
            return None if self._fallback_ctx.disposed else self._fallback_ctx
        ctx = self.pool.get(self.context_id)
        # Same id, different context: ours was released and rebuilt.
        if ctx is None or ctx.generation != self._generation:
            return None
        return ctx

    def _set_pacing(self, state) -> None:
        self._pacing = state
        self.session.quality_tier = state.tier
        self.session.frame_interval_ms = state.frame_interval_ms
        self.session.particle_count = state.particle_count
        self.session.consecutive_slow_frames = state.consecutive_slow_frames

    def _apply(self, step: PacingStep) -> None:
        self._set_pacing(step.state)

        if step.verdict is Verdict.DEGRADED:
            self.field.trim(step.state.particle_count)
            logger.warning(
                "Reducing animation quality of '%s' to %s (%.0f fps, %d particles)",
                self.context_id,
                step.state.tier.name,
                step.state.target_fps,
                step.state.particle_count,
            )

            # Short forced pause so the host can recover.
            self._hold(PauseReason.RECOVERY)
            if self._recovery_timer is not None:
                self.host.cancel_timer(self._recovery_timer)
            self._recovery_timer = self.host.call_later(
                step.next_delay_ms, self._end_recovery
            )

        elif step.verdict is Verdict.DISABLED:
            logger.warning(
                "Performance issues detected, disabling animation '%s'",
                self.context_id,
            )
            self.disabled = True
            self.cleanup()
            if self._on_disabled is not None:
                try:
                    self._on_disabled(self)
                except Exception:
                    logger.exception(
                        "Disabled handler for '%s' failed", self.context_id
                    )

    def _end_recovery(self) -> None:
        self._recovery_timer = None
        self._release(PauseReason.RECOVERY)

    # --- pause bookkeeping -----------------------------------------------

    def _hold(self, reason: PauseReason) -> None:
        self._pause_reasons.add(reason)
        self.session.is_paused = True

    def _release(self, reason: PauseReason) -> None:
        if reason not in self._pause_reasons:
            return
        self._pause_reasons.discard(reason)
        if self._pause_reasons:
            return

        # The paused stretch is not a backlog to catch up on.
        now = self.host.clock.now_ms()
        self._last_rendered_at = now
        self._last_sample_at = now
        self.session.is_paused = False

    # --- host events -----------------------------------------------------

    def _subscribe(self) -> None:
        events = self.host.events
        events.subscribe(Resized, self._on_resize)
        events.subscribe(VisibilityChanged, self._on_visibility)
        if self._follow_pointer:
            events.subscribe(PointerMoved, self._on_pointer)
        self._listening = True

    def _unsubscribe(self) -> None:
        if not self._listening:
            return
        events = self.host.events
        events.unsubscribe(Resized, self._on_resize)
        events.unsubscribe(VisibilityChanged, self._on_visibility)
        events.unsubscribe(PointerMoved, self._on_pointer)
        self._listening = False

    def _targets_me(self, target) -> bool:
        return target is None or target is self.container

    def _on_resize(self, event: Resized) -> None:
        if self._destroyed or not self._targets_me(event.target):
            return
        ctx = self._resolve()
        if ctx is not None:
            ctx.resize(event.width, event.height)

    def _on_pointer(self, event: PointerMoved) -> None:
        if self._destroyed:
            return
        self.field.point_at(event.x, event.y)

    def _on_visibility(self, event: VisibilityChanged) -> None:
        if self._destroyed or not self._targets_me(event.target):
            return

        if not event.visible:
            self._hold(PauseReason.HIDDEN)
            if self._grace_timer is None:
                self._grace_timer = self.host.call_later(
                    self.settings.visibility_grace_ms, self._expire_hidden
                )
            return

        if self._grace_timer is not None:
            self.host.cancel_timer(self._grace_timer)
            self._grace_timer = None
        self._release(PauseReason.HIDDEN)

    def _expire_hidden(self) -> None:
        self._grace_timer = None
        if self._destroyed:
            return

        logger.info(
            "Animation '%s' hidden for %.0fms, releasing its context",
            self.context_id,
            self.settings.visibility_grace_ms,
        )
        self.expired = True
        ctx = self._resolve()
        self.cleanup()
        if ctx is not None and not ctx.fallback:
            self.pool.release(self.context_id)
