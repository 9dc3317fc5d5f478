import math

import numpy as np
import pytest

from ptp_planner.motion.profile import (
    ProfileKind,
    profile_for_duration,
    stationary_profile,
    time_optimal_profile,
)


def approx_equal(a, b, tol=1e-6):
    return abs(a - b) <= tol


def _sample(profile, n=4001):
    times = np.linspace(0.0, profile.total_duration, n)
    states = np.array([profile.evaluate(t) for t in times])
    return times, states


def assert_consistent(profile, goal, v_max, a_max, d_max):
    """Reaches the goal at rest, stays within bounds and is continuous in position and velocity."""
    T = profile.total_duration
    assert all(d >= 0.0 for d in profile.durations)
    pos_end, vel_end, _ = profile.evaluate(max(T - 1e-9, 0.0))
    assert approx_equal(pos_end, goal)
    assert approx_equal(vel_end, 0.0)
    assert profile.evaluate(T) == (pytest.approx(goal), 0.0, 0.0)

    times, states = _sample(profile)
    v0 = profile.start_velocity
    assert np.all(np.abs(states[:, 1]) <= max(v_max, abs(v0)) + 1e-9)
    assert np.all(np.abs(states[:, 2]) <= max(a_max, d_max) + 1e-9)

    dt = times[1] - times[0] if len(times) > 1 else 0.0
    v_bound = max(v_max, abs(v0)) + 1e-9
    a_bound = max(a_max, d_max) + 1e-9
    assert np.all(np.abs(np.diff(states[:, 0])) <= v_bound * dt + 1e-9)
    assert np.all(np.abs(np.diff(states[:, 1])) <= a_bound * dt + 1e-9)


def test_triangular_profile_short_move():
    p = time_optimal_profile(0.0, 1.0, 0.0, 1.0, 0.5, 1.0)
    vp = math.sqrt(2.0 / 3.0)

    assert p.kind is ProfileKind.TRIANGULAR
    assert approx_equal(p.peak_velocity, vp)
    assert approx_equal(p.durations[0], vp / 0.5)
    assert p.durations[1] == 0.0
    assert approx_equal(p.durations[2], vp / 1.0)
    assert approx_equal(p.total_duration, 3.0 * vp)
    assert approx_equal(p.total_duration, 2.449, tol=1e-3)
    assert_consistent(p, 1.0, 1.0, 0.5, 1.0)


def test_trapezoidal_profile_long_move():
    p = time_optimal_profile(0.0, 3.0, 0.0, 1.0, 0.5, -1.0)

    assert p.kind is ProfileKind.TRAPEZOIDAL
    assert p.durations == pytest.approx((2.0, 1.5, 1.0))
    assert p.peak_velocity == pytest.approx(1.0)
    assert p.acceleration == pytest.approx(0.5)
    assert p.deceleration == pytest.approx(-1.0)
    assert p.total_duration == pytest.approx(4.5)

    pos, vel, acc = p.evaluate(1.0)
    assert (pos, vel, acc) == pytest.approx((0.25, 0.5, 0.5))
    pos, vel, acc = p.evaluate(4.0)
    assert (pos, vel, acc) == pytest.approx((2.875, 0.5, -1.0))
    assert_consistent(p, 3.0, 1.0, 0.5, 1.0)


def test_negative_direction_mirrors_positive():
    fwd = time_optimal_profile(0.5, 3.5, 0.0, 1.0, 0.5, 1.0)
    rev = time_optimal_profile(0.5, -2.5, 0.0, 1.0, 0.5, 1.0)

    assert rev.total_duration == pytest.approx(fwd.total_duration)
    assert rev.peak_velocity == pytest.approx(-fwd.peak_velocity)
    assert rev.acceleration == pytest.approx(-0.5)
    assert rev.deceleration == pytest.approx(1.0)
    for t in (0.3, 2.2, 3.9):
        pf, vf, af = fwd.evaluate(t)
        pr, vr, ar = rev.evaluate(t)
        assert pr - 0.5 == pytest.approx(-(pf - 0.5))
        assert vr == pytest.approx(-vf)
        assert ar == pytest.approx(-af)


def test_zero_displacement_is_degenerate():
    p = time_optimal_profile(1.2, 1.2, 0.0, 1.0, 0.5, 1.0)
    assert p.kind is ProfileKind.DEGENERATE
    assert p.total_duration == 0.0
    assert p.evaluate(0.0) == (1.2, 0.0, 0.0)
    assert p.evaluate(5.0) == (1.2, 0.0, 0.0)


def test_stationary_profile_holds_position():
    p = stationary_profile(-0.7, 3.0)
    assert p.total_duration == 3.0
    assert p.evaluate(1.5) == (-0.7, 0.0, 0.0)
    assert p.evaluate(-1.0) == (-0.7, 0.0, 0.0)


def test_start_velocity_towards_goal():
    p = time_optimal_profile(0.0, 3.0, 0.5, 1.0, 0.5, 1.0)

    assert p.kind is ProfileKind.TRAPEZOIDAL
    assert p.durations == pytest.approx((1.0, 1.75, 1.0))
    assert p.evaluate(0.0) == pytest.approx((0.0, 0.5, 0.5))
    assert_consistent(p, 3.0, 1.0, 0.5, 1.0)


def test_start_velocity_away_from_goal_reverses():
    p = time_optimal_profile(0.0, 1.0, -0.5, 1.0, 0.5, 1.0)
    vp = math.sqrt(1.25 / 1.5)

    assert p.kind is ProfileKind.TRIANGULAR
    assert p.peak_velocity == pytest.approx(vp)
    assert p.acceleration == pytest.approx(0.5)
    assert p.durations[0] == pytest.approx((vp + 0.5) / 0.5)
    assert_consistent(p, 1.0, 1.0, 0.5, 1.0)


def test_start_velocity_overshooting_goal_comes_back():
    p = time_optimal_profile(0.0, 0.1, 1.0, 1.0, 0.5, 1.0)

    assert p.peak_velocity < 0.0
    assert p.peak_velocity == pytest.approx(-math.sqrt(0.6))
    assert_consistent(p, 0.1, 1.0, 0.5, 1.0)
    # passes beyond the goal before returning
    _, states = _sample(p)
    assert states[:, 0].max() > 0.1


def test_start_velocity_above_velocity_limit_brakes_first():
    p = time_optimal_profile(0.0, 5.0, 2.0, 1.0, 1.0, 1.0)

    assert p.peak_velocity == pytest.approx(1.0)
    assert p.acceleration == pytest.approx(-1.0)
    assert p.durations == pytest.approx((1.0, 3.0, 1.0))
    assert_consistent(p, 5.0, 1.0, 1.0, 1.0)


def test_moving_start_with_zero_displacement():
    p = time_optimal_profile(0.0, 0.0, 0.4, 1.0, 0.5, 1.0)
    assert p.total_duration > 0.0
    assert_consistent(p, 0.0, 1.0, 0.5, 1.0)


@pytest.mark.parametrize("bounds", [(0.0, 0.5, 1.0), (1.0, -0.5, 1.0), (1.0, 0.5, 0.0)])
def test_non_positive_bounds_raise(bounds):
    with pytest.raises(ValueError):
        time_optimal_profile(0.0, 1.0, 0.0, *bounds)


@pytest.mark.parametrize(
    "start,goal,v0,v_max,a_max,d_max",
    [
        (0.0, 1.0, 0.0, 1.0, 0.5, 1.0),
        (0.3, -2.0, 0.0, 0.8, 2.0, 0.4),
        (0.0, 10.0, 0.0, 2.0, 3.0, 3.0),
        (-1.0, 1e-4, 0.0, 1.0, 1.0, 1.0),
        (0.0, 2.0, 0.9, 1.0, 0.5, 1.0),
        (0.0, -2.0, 0.9, 1.0, 0.5, 2.0),
        (1.0, 1.05, -0.3, 1.0, 2.0, 0.5),
        (0.0, 0.01, 0.8, 1.0, 2.0, 0.5),
    ],
)
def test_time_optimal_profile_is_consistent(start, goal, v0, v_max, a_max, d_max):
    p = time_optimal_profile(start, goal, v0, v_max, a_max, d_max)
    assert p.start_position == start
    assert p.goal_position == pytest.approx(goal)
    assert_consistent(p, goal, v_max, a_max, d_max)


def test_stretch_with_lead_phase_durations_scales_proportionally():
    p = profile_for_duration(0.0, 1.5, 0.0, 4.5, 0.5, 1.0, max_velocity=1.0, phase_durations=(2.0, 1.5, 1.0))

    assert p.durations == pytest.approx((2.0, 1.5, 1.0))
    assert p.peak_velocity == pytest.approx(0.5)
    assert p.acceleration == pytest.approx(0.25)
    assert p.deceleration == pytest.approx(-0.5)
    assert p.evaluate(1.0) == pytest.approx((0.125, 0.25, 0.25))
    assert_consistent(p, 1.5, 1.0, 0.5, 1.0)


def test_stretch_falls_back_when_lead_durations_break_bounds():
    # fitting (2, 1.5, 1) would need a deceleration of 1/6 > 0.15
    p = profile_for_duration(0.0, 0.5, 0.0, 4.5, 0.1, 0.15, max_velocity=1.0, phase_durations=(2.0, 1.5, 1.0))

    assert p.total_duration == pytest.approx(4.5)
    assert abs(p.acceleration) <= 0.1 + 1e-9
    assert abs(p.deceleration) <= 0.15 + 1e-9
    assert_consistent(p, 0.5, 1.0, 0.1, 0.15)


def test_stretch_without_phase_durations_lowers_cruise():
    p = profile_for_duration(0.0, 1.0, 0.0, 5.0, 0.5, 1.0)

    assert p.kind is ProfileKind.TRAPEZOIDAL
    assert p.total_duration == pytest.approx(5.0)
    assert p.peak_velocity == pytest.approx(2.0 / (5.0 + math.sqrt(19.0)))
    assert p.acceleration == pytest.approx(0.5)
    assert p.deceleration == pytest.approx(-1.0)
    assert_consistent(p, 1.0, math.inf, 0.5, 1.0)


@pytest.mark.parametrize(
    "goal,v0,duration",
    [
        (1.0, 0.5, 6.0),  # brakes below the start velocity
        (1.0, -0.5, 8.0),  # moving away from the goal
        (0.1, 1.0, 10.0),  # overshoots and comes back
        (-1.0, 0.0, 7.5),
    ],
)
def test_stretch_with_start_velocity(goal, v0, duration):
    p = profile_for_duration(0.0, goal, v0, duration, 0.5, 1.0, max_velocity=1.0)

    assert p.total_duration == pytest.approx(duration)
    assert p.evaluate(0.0)[1] == pytest.approx(v0)
    assert_consistent(p, goal, 1.0, 0.5, 1.0)


def test_stretch_braking_case_cruise_velocity():
    p = profile_for_duration(0.0, 1.0, 0.5, 6.0, 0.5, 1.0, max_velocity=1.0)
    assert p.peak_velocity == pytest.approx((1.0 - 0.125) / 5.5)
    assert p.acceleration == pytest.approx(-1.0)


def test_stretch_of_stationary_joint():
    p = profile_for_duration(0.4, 0.4, 0.0, 3.0, 0.5, 1.0, phase_durations=(1.0, 1.0, 1.0))
    assert p.kind is ProfileKind.DEGENERATE
    assert p.total_duration == 3.0
    assert p.evaluate(2.0) == (0.4, 0.0, 0.0)


def test_stretch_to_optimal_duration_returns_optimal_profile():
    optimal = time_optimal_profile(0.0, 3.0, 0.0, 1.0, 0.5, 1.0)
    p = profile_for_duration(0.0, 3.0, 0.0, 4.5, 0.5, 1.0, max_velocity=1.0)
    assert p == optimal


def test_stretch_shorter_than_optimal_raises():
    with pytest.raises(ValueError, match="shorter than the time-optimal"):
        profile_for_duration(0.0, 3.0, 0.0, 4.0, 0.5, 1.0, max_velocity=1.0)
    with pytest.raises(ValueError):
        profile_for_duration(0.0, 3.0, 0.0, float("nan"), 0.5, 1.0)
