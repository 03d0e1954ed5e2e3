import pytest

from backdrop.animation.pacing import (
    DegradePolicy,
    Verdict,
    degrade,
    frame_due,
    initial_state,
    observe_frame,
)
from backdrop.animation.quality import (
    DEFAULT_PROFILES,
    QualityTier,
    TierProfile,
    frame_interval_ms,
    resolve_tier,
)
from backdrop.settings import AnimationSettings, Precision


@pytest.fixture
def policy():
    return DegradePolicy(slow_frame_ms=200, slow_frame_threshold=3, recovery_pause_ms=100)


def test_tier_order_and_floor():
    assert QualityTier.HIGH.lower() is QualityTier.MEDIUM
    assert QualityTier.MEDIUM.lower() is QualityTier.LOW
    assert QualityTier.LOW.lower() is None
    assert QualityTier.LOW < QualityTier.MEDIUM < QualityTier.HIGH


def test_resolve_tier():
    assert resolve_tier(None, constrained_device=True) is QualityTier.LOW
    assert resolve_tier(None, constrained_device=False) is QualityTier.MEDIUM
    assert resolve_tier(QualityTier.HIGH, constrained_device=True) is QualityTier.HIGH


def test_frame_interval():
    assert frame_interval_ms(30) == pytest.approx(33.333, rel=1e-3)
    with pytest.raises(ValueError):
        frame_interval_ms(0)
    with pytest.raises(ValueError):
        TierProfile(0, 10, Precision.LOW)


def test_frame_due_allows_small_jitter():
    interval = frame_interval_ms(30)
    assert not frame_due(16.7, interval)
    assert frame_due(33.3, interval)
    assert frame_due(interval, interval)
    assert frame_due(50.0, interval)


def test_initial_state_defaults_from_profile():
    state = initial_state(QualityTier.MEDIUM)
    profile = DEFAULT_PROFILES[QualityTier.MEDIUM]

    assert state.target_fps == profile.target_fps
    assert state.particle_count == profile.particle_count
    assert state.consecutive_slow_frames == 0


def test_initial_state_overrides_and_cap():
    state = initial_state(
        QualityTier.HIGH, frame_rate=45, particle_count=10, fps_cap=15
    )

    assert state.target_fps == 15
    assert state.particle_count == 10


def test_fast_frames_keep_streak_at_zero(policy):
    step = observe_frame(initial_state(QualityTier.MEDIUM), 40.0, policy)

    assert step.verdict is Verdict.STEADY
    assert step.state.consecutive_slow_frames == 0
    assert step.next_delay_ms == pytest.approx(step.state.frame_interval_ms)


def test_slow_frames_at_threshold_do_not_degrade(policy):
    state = initial_state(QualityTier.MEDIUM)
    for _ in range(3):
        step = observe_frame(state, 250.0, policy)
        state = step.state
        assert step.verdict is Verdict.STEADY

    assert state.consecutive_slow_frames == 3
    assert state.tier is QualityTier.MEDIUM


def test_fourth_slow_frame_degrades_exactly_one_tier(policy):
    state = initial_state(QualityTier.MEDIUM)
    verdicts = []
    for _ in range(4):
        step = observe_frame(state, 250.0, policy)
        state = step.state
        verdicts.append(step.verdict)

    assert verdicts == [Verdict.STEADY] * 3 + [Verdict.DEGRADED]
    assert state.tier is QualityTier.LOW
    assert state.consecutive_slow_frames == 0
    assert step.next_delay_ms == 100


def test_normal_frame_breaks_the_streak(policy):
    state = initial_state(QualityTier.MEDIUM)
    for gap in (250.0, 250.0, 250.0, 20.0, 250.0, 250.0, 250.0):
        step = observe_frame(state, gap, policy)
        state = step.state
        assert step.verdict is Verdict.STEADY

    assert state.tier is QualityTier.MEDIUM


def test_degrade_lowers_fps_and_particles():
    state = initial_state(QualityTier.HIGH)
    step = degrade(state, DegradePolicy())

    medium = DEFAULT_PROFILES[QualityTier.MEDIUM]
    assert step.verdict is Verdict.DEGRADED
    assert step.state.tier is QualityTier.MEDIUM
    assert step.state.target_fps == medium.target_fps
    assert step.state.particle_count == medium.particle_count


def test_degrade_never_raises_fps_above_current():
    state = initial_state(QualityTier.MEDIUM, frame_rate=10, particle_count=50)
    step = degrade(state, DegradePolicy())

    assert step.state.target_fps == 10
    assert step.state.particle_count == 50


def test_degrade_at_floor_disables(policy):
    state = initial_state(QualityTier.LOW)
    step = degrade(state, policy)

    assert step.verdict is Verdict.DISABLED
    assert step.state.tier is QualityTier.LOW


def test_slow_streak_at_floor_disables(policy):
    state = initial_state(QualityTier.LOW)
    verdicts = []
    for _ in range(4):
        step = observe_frame(state, 500.0, policy)
        state = step.state
        verdicts.append(step.verdict)

    assert verdicts[-1] is Verdict.DISABLED
    assert state.tier is QualityTier.LOW


def test_policy_from_settings():
    settings = AnimationSettings(slow_frame_ms=120, slow_frame_threshold=5)
    policy = DegradePolicy.from_settings(settings)

    assert policy.slow_frame_ms == 120
    assert policy.slow_frame_threshold == 5
    assert policy.recovery_pause_ms == settings.recovery_pause_ms


def test_low_frame_rate_cap_is_not_a_slow_frame(policy):
    state = initial_state(QualityTier.MEDIUM, frame_rate=4)
    for _ in range(10):
        step = observe_frame(state, 250.0, policy)
        state = step.state
        assert step.verdict is Verdict.STEADY

    assert state.consecutive_slow_frames == 0


def test_slow_frame_is_measured_past_the_interval(policy):
    state = initial_state(QualityTier.MEDIUM, frame_rate=4)

    assert observe_frame(state, 450.0, policy).state.consecutive_slow_frames == 0
    assert observe_frame(state, 451.0, policy).state.consecutive_slow_frames == 1
