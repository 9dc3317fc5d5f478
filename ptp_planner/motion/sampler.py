"""
Fixed-step sampling of synchronized joint profiles.
"""

import math
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

from ptp_planner.config import SAMPLING_TIME_S

from .synchronizer import SynchronizedTrajectory


@dataclass(frozen=True)
class Waypoint:
    """Joint state at ``time_from_start``; arrays follow the trajectory's joint order."""
    time_from_start: float
    positions: np.ndarray
    velocities: np.ndarray
    accelerations: np.ndarray


def _waypoint_at(trajectory: SynchronizedTrajectory, t: float) -> Waypoint:
    states = np.array(
        [trajectory.profiles[name].evaluate(t) for name in trajectory.joint_names],
        dtype=float,
    ).reshape(-1, 3)
    return Waypoint(
        time_from_start=float(t),
        positions=states[:, 0].copy(),
        velocities=states[:, 1].copy(),
        accelerations=states[:, 2].copy(),
    )


def _start_waypoint(trajectory: SynchronizedTrajectory) -> Waypoint:
    profiles = [trajectory.profiles[name] for name in trajectory.joint_names]
    return Waypoint(
        time_from_start=0.0,
        positions=np.array([p.start_position for p in profiles], dtype=float),
        velocities=np.array([p.start_velocity for p in profiles], dtype=float),
        accelerations=np.zeros(len(profiles), dtype=float),
    )


def _goal_waypoint(trajectory: SynchronizedTrajectory) -> Waypoint:
    profiles = [trajectory.profiles[name] for name in trajectory.joint_names]
    return Waypoint(
        time_from_start=float(trajectory.duration),
        positions=np.array([p.goal_position for p in profiles], dtype=float),
        velocities=np.zeros(len(profiles), dtype=float),
        accelerations=np.zeros(len(profiles), dtype=float),
    )


def sample_trajectory(
    trajectory: SynchronizedTrajectory,
    sampling_time: float | None = None,
) -> Iterator[Waypoint]:
    """
    Yield waypoints at t = 0, dt, 2*dt, ... and a final one at exactly ``duration``.

    Times are computed as k * dt, so no drift accumulates. The last waypoint
    holds the goal position with zero velocity and acceleration. A zero-length
    trajectory yields the start state only.
    """
    dt = SAMPLING_TIME_S if sampling_time is None else float(sampling_time)
    if not (math.isfinite(dt) and dt > 0):
        raise ValueError(f"sampling_time must be positive, got {dt}")

    duration = trajectory.duration
    if duration <= 0:
        yield _start_waypoint(trajectory)
        return

    # Skip a sample that would land (numerically) on the final time
    count = max(1, int(math.ceil(duration / dt - 1e-6)))
    for k in range(count):
        yield _waypoint_at(trajectory, k * dt)
    yield _goal_waypoint(trajectory)
