import pytest

from backdrop.animation.capabilities import HostCapabilities
from backdrop.animation.controller import (
    AnimationController,
    ControllerState,
)
from backdrop.animation.quality import DEFAULT_PROFILES, QualityTier
from backdrop.core.events import PointerMoved, Resized, VisibilityChanged
from backdrop.graphics.container import Container, StaticBackdrop
from backdrop.settings import AnimationOptions, AnimationSettings
from backdrop.types import ContextId, Size, Vector2

BG = ContextId("background")


@pytest.fixture
def start(pool, host, container):
    def _start(options=None, **kwargs):
        return AnimationController.start(
            BG, container, pool, host, options or AnimationOptions(seed=1), **kwargs
        )

    return _start


def test_starts_running(start, pool, recorder):
    controller = start()

    assert controller.state is ControllerState.RUNNING
    assert controller.quality_tier is QualityTier.MEDIUM
    assert BG in pool
    assert recorder.last.options.precision is DEFAULT_PROFILES[QualityTier.MEDIUM].precision


def test_thirty_fps_on_sixty_hz_host(start, host, recorder):
    controller = start(AnimationOptions(frame_rate=30, seed=1))

    host.run_for(1000)

    assert 28 <= recorder.total_renders <= 31
    assert controller.session.frame_count == recorder.total_renders
    assert controller.session.tick_count == 60


def test_rendered_frames_keep_context_fresh(start, host, pool):
    start()
    host.run_for(500)

    assert pool.get(BG).last_used_at > 400


def test_pause_skips_rendering_but_keeps_ticking(start, host, recorder):
    controller = start()
    host.run_for(200)
    rendered = recorder.total_renders
    ticks = controller.session.tick_count

    controller.pause()
    host.run_for(1000)

    assert controller.state is ControllerState.PAUSED
    assert controller.session.is_paused
    assert recorder.total_renders == rendered
    assert controller.session.tick_count == ticks + 60


def test_resume_does_not_render_the_backlog(start, host, recorder):
    controller = start()
    controller.pause()
    host.run_for(1000)

    controller.resume()
    host.step()
    assert recorder.total_renders == 0

    host.step()
    assert recorder.total_renders == 1
    assert controller.state is ControllerState.RUNNING


def test_cleanup_is_idempotent_and_final(start, host, recorder, pool):
    controller = start()
    host.run_for(100)
    rendered = recorder.total_renders
    ticks = controller.session.tick_count

    assert controller.cleanup() is True
    assert controller.cleanup() is False

    host.run_for(1000)

    assert controller.state is ControllerState.DESTROYED
    assert host.pending_frames == 0
    assert recorder.total_renders == rendered
    assert controller.session.tick_count == ticks
    # The pool still owns the context.
    assert BG in pool


def test_cleanup_detaches_listeners(start, host):
    controller = start()
    assert host.events.listener_count(Resized) == 1
    assert host.events.listener_count(PointerMoved) == 1

    controller.cleanup()

    for event_type in (Resized, VisibilityChanged, PointerMoved):
        assert host.events.listener_count(event_type) == 0


def test_controls_after_cleanup_are_ignored(start, host):
    controller = start()
    controller.cleanup()

    controller.pause()
    controller.resume()

    assert controller.state is ControllerState.DESTROYED


def test_four_slow_frames_degrade_exactly_once(start, host, recorder):
    controller = start(AnimationOptions(frame_rate=30, seed=1))

    for _ in range(4):
        host.step(250)

    assert controller.quality_tier is QualityTier.LOW
    assert controller.target_fps == 15
    assert controller.field.count == DEFAULT_PROFILES[QualityTier.LOW].particle_count
    assert controller.state is ControllerState.PAUSED
    assert recorder.total_renders == 3

    host.run_for(2000)

    assert controller.quality_tier is QualityTier.LOW
    assert controller.state is ControllerState.RUNNING
    assert recorder.total_renders > 3


def test_low_frame_rate_on_idle_host_stays_enabled(start, host, recorder):
    controller = start(AnimationOptions(frame_rate=4, seed=1))

    host.run_for(10_000)

    assert not controller.disabled
    assert controller.quality_tier is QualityTier.MEDIUM
    assert controller.state is ControllerState.RUNNING
    assert 38 <= recorder.total_renders <= 41


def test_slow_frames_at_floor_disable_the_animation(start, host, pool):
    disabled = []
    controller = start(
        AnimationOptions(quality=QualityTier.LOW, seed=1), on_disabled=disabled.append
    )

    for _ in range(4):
        host.step(300)

    assert controller.disabled
    assert controller.state is ControllerState.DESTROYED
    assert disabled == [controller]
    assert host.pending_frames == 0


def test_failing_disabled_handler_is_contained(start, host):
    def explode(controller):
        raise RuntimeError("handler failed")

    controller = start(
        AnimationOptions(quality=QualityTier.LOW, seed=1), on_disabled=explode
    )

    for _ in range(4):
        host.step(300)

    assert controller.disabled


def test_render_error_degrades_instead_of_raising(start, host, recorder):
    controller = start()
    recorder.last.fail_renders = True

    host.step()
    host.step()

    assert controller.quality_tier is QualityTier.LOW
    assert controller.state is ControllerState.PAUSED

    host.run_for(1000)

    assert controller.disabled
    assert controller.state is ControllerState.DESTROYED


def test_eviction_stops_the_animation_quietly(start, host, pool, container):
    disabled = []
    controller = start(on_disabled=disabled.append)
    host.run_for(100)

    pool.acquire(ContextId("other"), container)
    host.run_for(100)

    assert controller.state is ControllerState.DESTROYED
    assert not controller.disabled
    assert disabled == []


def test_rebuilt_context_under_same_id_is_not_adopted(
    start, host, pool, container, recorder
):
    controller = start()
    host.run_for(100)

    pool.release(BG)
    replacement = pool.acquire(BG, container)
    acquired_at = replacement.last_used_at
    host.run_for(100)

    assert controller.state is ControllerState.DESTROYED
    assert recorder.last.renders == 0
    assert replacement.last_used_at == acquired_at
    assert pool.get(BG) is replacement
    assert not replacement.disposed


def test_fallback_context_runs_without_output(start, host, recorder, container):
    recorder.fail = True
    controller = start()

    host.run_for(1000)

    assert controller.state is ControllerState.RUNNING
    assert controller.context.fallback
    assert controller.session.frame_count > 0
    assert recorder.total_renders == 0
    assert any(isinstance(c, StaticBackdrop) for c in container.children)

    controller.cleanup()

    assert container.children == []


def test_hidden_pauses_and_visible_resumes(start, host, recorder):
    controller = start()

    host.events.emit(VisibilityChanged(visible=False))
    host.run_for(1000)
    assert recorder.total_renders == 0
    assert controller.state is ControllerState.PAUSED

    host.events.emit(VisibilityChanged(visible=True))
    host.run_for(1000)

    assert controller.state is ControllerState.RUNNING
    assert recorder.total_renders > 0
    assert host.pending_timers == 0


def test_hidden_past_grace_releases_the_context(start, host, pool, recorder):
    controller = start(settings=AnimationSettings(visibility_grace_ms=3000))

    host.events.emit(VisibilityChanged(visible=False))
    host.advance_idle(2999)
    assert controller.state is ControllerState.PAUSED

    host.advance_idle(1)

    assert controller.expired
    assert controller.state is ControllerState.DESTROYED
    assert BG not in pool
    assert recorder.last.disposed == 1


def test_user_pause_survives_becoming_visible(start, host):
    controller = start()
    controller.pause()

    host.events.emit(VisibilityChanged(visible=False))
    host.events.emit(VisibilityChanged(visible=True))

    assert controller.state is ControllerState.PAUSED


def test_visibility_of_another_container_is_ignored(start, host):
    controller = start()

    host.events.emit(VisibilityChanged(visible=False, target=Container(1, 1)))

    assert controller.state is ControllerState.RUNNING


def test_resize_is_forwarded_to_the_surface(start, host, recorder, pool):
    start()

    host.events.emit(Resized(1024, 768))
    host.events.emit(Resized(10, 10, target=Container(10, 10)))

    assert recorder.last.resizes == [Size(1024, 768)]
    assert pool.get(BG).size == Size(1024, 768)


def test_pointer_moves_steer_the_field(start, host):
    controller = start()

    host.events.emit(PointerMoved(0.5, -0.25))

    assert controller.field.target_pointer == Vector2(0.5, -0.25)


def test_constrained_host_starts_low_and_ignores_pointer(start, host):
    controller = start(capabilities=HostCapabilities(constrained=True))

    assert controller.quality_tier is QualityTier.LOW
    assert host.events.listener_count(PointerMoved) == 0


def test_aggressive_hosts_cap_the_frame_rate(start):
    controller = start(
        AnimationOptions(quality=QualityTier.HIGH, seed=1),
        capabilities=HostCapabilities(aggressive_eviction=True),
        settings=AnimationSettings(aggressive_fps_cap=20),
    )

    assert controller.quality_tier is QualityTier.HIGH
    assert controller.target_fps == 20


def test_explicit_particle_count(start, recorder, host):
    controller = start(AnimationOptions(particle_count=42, seed=1))
    host.run_for(100)

    assert controller.field.count == 42
    assert recorder.last.last_scene.count == 42
