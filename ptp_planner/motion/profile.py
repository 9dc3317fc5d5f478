"""
Single-joint trapezoidal velocity profiles.

A profile has three phases of constant acceleration:
1. ramp from the start velocity to the (signed) cruise velocity
2. cruise at constant velocity (zero length for triangular profiles)
3. ramp from the cruise velocity down to rest at the goal

Degenerate profiles do not move; the synchronizer stretches them by giving
them a zero-velocity cruise phase.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from ptp_planner.config import LIMIT_TOLERANCE


class ProfileKind(Enum):
    DEGENERATE = "degenerate"
    TRIANGULAR = "triangular"
    TRAPEZOIDAL = "trapezoidal"


@dataclass(frozen=True)
class JointProfile:
    """
    Closed-form motion of one joint.

    ``acceleration`` and ``deceleration`` are the signed rates of phase 1 and
    phase 3; ``durations`` holds the three phase durations.
    """
    start_position: float
    displacement: float
    start_velocity: float
    peak_velocity: float
    acceleration: float
    deceleration: float
    durations: tuple[float, float, float]
    kind: ProfileKind

    @property
    def total_duration(self) -> float:
        return sum(self.durations)

    @property
    def goal_position(self) -> float:
        return self.start_position + self.displacement

    def evaluate(self, t: float) -> tuple[float, float, float]:
        """Position, velocity and acceleration at time ``t`` from the start."""
        t_acc, t_const, t_dec = self.durations
        if t >= self.total_duration:
            return self.goal_position, 0.0, 0.0
        t = max(t, 0.0)

        v0 = self.start_velocity
        vp = self.peak_velocity
        if t < t_acc:
            pos = self.start_position + v0 * t + 0.5 * self.acceleration * t**2
            return pos, v0 + self.acceleration * t, self.acceleration

        acc_end = self.start_position + v0 * t_acc + 0.5 * self.acceleration * t_acc**2
        if t < t_acc + t_const:
            return acc_end + vp * (t - t_acc), vp, 0.0

        tau = t - t_acc - t_const
        const_end = acc_end + vp * t_const
        pos = const_end + vp * tau + 0.5 * self.deceleration * tau**2
        return pos, vp + self.deceleration * tau, self.deceleration


def _build(
    start: float,
    displacement: float,
    start_velocity: float,
    peak_velocity: float,
    t_acc: float,
    t_const: float,
    t_dec: float,
    kind: ProfileKind,
) -> JointProfile:
    # Round-off can push a phase slightly negative
    t_acc, t_const, t_dec = max(0.0, t_acc), max(0.0, t_const), max(0.0, t_dec)
    acc = (peak_velocity - start_velocity) / t_acc if t_acc > 0 else 0.0
    dec = -peak_velocity / t_dec if t_dec > 0 else 0.0
    return JointProfile(
        start_position=float(start),
        displacement=float(displacement),
        start_velocity=float(start_velocity),
        peak_velocity=float(peak_velocity),
        acceleration=acc,
        deceleration=dec,
        durations=(t_acc, t_const, t_dec),
        kind=kind,
    )


def stationary_profile(position: float, duration: float = 0.0) -> JointProfile:
    """A joint that stays at ``position`` for ``duration`` seconds."""
    return JointProfile(
        start_position=float(position),
        displacement=0.0,
        start_velocity=0.0,
        peak_velocity=0.0,
        acceleration=0.0,
        deceleration=0.0,
        durations=(0.0, max(0.0, float(duration)), 0.0),
        kind=ProfileKind.DEGENERATE,
    )


def _first_phase_rate(u0: float, cruise: float, a_max: float, d_max: float) -> float:
    """Rate bound of the ramp from ``u0`` to ``cruise``."""
    if u0 * cruise < 0:
        # Crosses zero velocity: brakes and accelerates within one phase
        return min(a_max, d_max)
    if abs(cruise) >= abs(u0):
        return a_max
    return d_max


def _direction(displacement: float, start_velocity: float) -> float:
    if displacement != 0.0:
        return math.copysign(1.0, displacement)
    return math.copysign(1.0, start_velocity)


def _check_bounds(**bounds: float) -> None:
    for name, value in bounds.items():
        if not value > 0:
            raise ValueError(f"{name} must be positive, got {value}")


def time_optimal_profile(
    start: float,
    goal: float,
    start_velocity: float,
    max_velocity: float,
    max_acceleration: float,
    max_deceleration: float,
) -> JointProfile:
    """
    Minimal-time profile from ``start`` (moving at ``start_velocity``) to rest at ``goal``.

    ``max_deceleration`` is taken by magnitude. Works in the frame of the
    motion direction: ramps at ``max_acceleration`` towards the cruise velocity,
    then at ``max_deceleration`` down to rest. When the displacement is too short
    to reach ``max_velocity`` the profile is triangular with

        vp^2 = (2 * a * d * |s| + d * v0^2) / (a + d)

    A start velocity pointing away from the goal, or one too fast to stop in
    time, makes the first ramp cross zero velocity; it then uses the smaller of
    both rates.
    """
    v_max = float(max_velocity)
    a_max = float(max_acceleration)
    d_max = abs(float(max_deceleration))
    _check_bounds(max_velocity=v_max, max_acceleration=a_max, max_deceleration=d_max)

    v0 = float(start_velocity)
    displacement = float(goal) - float(start)
    if displacement == 0.0 and v0 == 0.0:
        return stationary_profile(start)

    direction = _direction(displacement, v0)
    distance = abs(displacement)
    u0 = direction * v0

    if u0 >= 0 and u0 * u0 <= 2.0 * d_max * distance:
        peak = math.sqrt((2.0 * a_max * d_max * distance + d_max * u0 * u0) / (a_max + d_max))
        cruise = min(peak, v_max)
    elif u0 < 0:
        rate = min(a_max, d_max)
        peak = math.sqrt((2.0 * rate * d_max * distance + d_max * u0 * u0) / (rate + d_max))
        cruise = min(peak, v_max)
    else:
        # Stopping at d_max overshoots the goal: come back with negative cruise
        rate = min(a_max, d_max)
        peak = math.sqrt((u0 * u0 - 2.0 * rate * distance) / (1.0 + rate / d_max))
        cruise = -min(peak, v_max)

    triangular = abs(cruise) >= peak
    t_acc = abs(cruise - u0) / _first_phase_rate(u0, cruise, a_max, d_max)
    t_dec = abs(cruise) / d_max
    if triangular:
        t_const = 0.0
        kind = ProfileKind.TRIANGULAR
    else:
        ramp = 0.5 * (u0 + cruise) * t_acc + 0.5 * cruise * t_dec
        t_const = (distance - ramp) / cruise
        kind = ProfileKind.TRAPEZOIDAL

    return _build(start, displacement, v0, direction * cruise, t_acc, t_const, t_dec, kind)


def _smaller_root(a: float, b: float, c: float) -> float:
    """Smaller positive root of a*x^2 - b*x + c = 0 (a, b, c > 0)."""
    disc = max(b * b - 4.0 * a * c, 0.0)
    return 2.0 * c / (b + math.sqrt(disc))


def _fit_phase_durations(
    start: float,
    displacement: float,
    start_velocity: float,
    duration: float,
    phase_durations: Sequence[float],
) -> JointProfile | None:
    """
    Reuse the phase durations of another profile, scaled to ``duration``.

    Solves the cruise velocity from d = (v0 + vp)/2 * ta + vp * tc + vp/2 * td.
    Returns None when the durations cannot carry this motion.
    """
    t_acc, t_const, t_dec = (max(0.0, float(x)) for x in phase_durations)
    total = t_acc + t_const + t_dec
    if total <= 0.0:
        return None
    scale = duration / total
    t_acc, t_const, t_dec = t_acc * scale, t_const * scale, t_dec * scale

    denom = 0.5 * t_acc + t_const + 0.5 * t_dec
    if denom <= 0.0:
        return None
    peak = (displacement - 0.5 * start_velocity * t_acc) / denom
    if t_acc == 0.0 and not math.isclose(peak, start_velocity, rel_tol=1e-9, abs_tol=1e-12):
        return None
    if t_dec == 0.0 and abs(peak) > 1e-12:
        return None

    kind = ProfileKind.TRIANGULAR if t_const == 0.0 else ProfileKind.TRAPEZOIDAL
    return _build(start, displacement, start_velocity, peak, t_acc, t_const, t_dec, kind)


def _within_bounds(profile: JointProfile, v_max: float, a_max: float, d_max: float) -> bool:
    slack = 1.0 + LIMIT_TOLERANCE
    v0 = profile.start_velocity
    vp = profile.peak_velocity
    if abs(vp) > max(v_max, abs(v0)) * slack:
        return False
    rate = _first_phase_rate(v0, vp, a_max, d_max)
    if abs(profile.acceleration) > rate * slack + 1e-12:
        return False
    return abs(profile.deceleration) <= d_max * slack + 1e-12


def _lower_cruise(
    start: float,
    displacement: float,
    start_velocity: float,
    duration: float,
    a_max: float,
    d_max: float,
) -> JointProfile:
    """
    Profile spanning exactly ``duration`` with ramps at the joint's own rates.

    Only the cruise velocity is lowered; valid for any ``duration`` at least as
    long as the time-optimal one.
    """
    direction = _direction(displacement, start_velocity)
    distance = abs(displacement)
    u0 = direction * start_velocity
    T = duration

    if u0 > 0 and u0 * u0 > 2.0 * d_max * distance:
        rate = min(a_max, d_max)
        a = 0.5 / rate + 0.5 / d_max
        b = T - u0 / rate
        c = u0 * u0 / (2.0 * rate) - distance
        cruise = -_smaller_root(a, b, c)
    elif u0 > 0 and T >= distance / u0 + u0 / (2.0 * d_max):
        # Brake straight down to a cruise slower than the start velocity
        cruise = max(0.0, (distance - u0 * u0 / (2.0 * d_max)) / (T - u0 / d_max))
    else:
        rate = a_max if u0 >= 0 else min(a_max, d_max)
        a = 0.5 / rate + 0.5 / d_max
        b = T + u0 / rate
        c = distance + u0 * u0 / (2.0 * rate)
        cruise = _smaller_root(a, b, c)

    t_acc = abs(cruise - u0) / _first_phase_rate(u0, cruise, a_max, d_max)
    t_dec = abs(cruise) / d_max
    t_const = T - t_acc - t_dec
    kind = ProfileKind.TRAPEZOIDAL if t_const > 0 else ProfileKind.TRIANGULAR
    return _build(start, displacement, start_velocity, direction * cruise, t_acc, t_const, t_dec, kind)


def profile_for_duration(
    start: float,
    goal: float,
    start_velocity: float,
    duration: float,
    max_acceleration: float,
    max_deceleration: float,
    max_velocity: float = math.inf,
    phase_durations: Sequence[float] | None = None,
) -> JointProfile:
    """
    Profile from ``start`` to rest at ``goal`` taking exactly ``duration`` seconds.

    With ``phase_durations`` (normally the bottleneck joint's), the joint ramps
    and cruises in lock-step with it: velocity and rates shrink proportionally
    to the displacement. If that would break this joint's own bounds, or no
    phase durations are given, the ramps keep the joint's rates and only the
    cruise velocity is lowered.

    Raises ValueError if ``duration`` is shorter than the time-optimal duration.
    """
    duration = float(duration)
    if not (math.isfinite(duration) and duration >= 0.0):
        raise ValueError(f"duration must be finite and non-negative, got {duration}")

    a_max = float(max_acceleration)
    d_max = abs(float(max_deceleration))
    v0 = float(start_velocity)
    displacement = float(goal) - float(start)
    if displacement == 0.0 and v0 == 0.0:
        return stationary_profile(start, duration)

    optimal = time_optimal_profile(start, goal, v0, max_velocity, a_max, d_max)
    slack = LIMIT_TOLERANCE * max(1.0, optimal.total_duration)
    if duration < optimal.total_duration - slack:
        raise ValueError(
            f"duration {duration:.6f}s is shorter than the time-optimal {optimal.total_duration:.6f}s"
        )
    if duration <= optimal.total_duration + slack:
        return optimal

    if phase_durations is not None:
        fitted = _fit_phase_durations(start, displacement, v0, duration, phase_durations)
        if fitted is not None and _within_bounds(fitted, float(max_velocity), a_max, d_max):
            return fitted

    return _lower_cruise(start, displacement, v0, duration, a_max, d_max)
