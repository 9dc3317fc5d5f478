"""
Pytest configuration and shared fixtures for the ptp_planner tests.

Provides a six-joint limit registry in the ``joint_limits.yaml`` layout, a
generator built on it, request builders and a recording IK stub.
"""

import os
import sys

import pytest

# Add the parent directory to Python path so we can import the package modules
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from ptp_planner.generator import PtpTrajectoryGenerator
from ptp_planner.limits import JointLimit, LimitRegistry
from ptp_planner.request import GoalConstraints, MotionPlanRequest, RobotState

JOINT_NAMES = tuple(f"prbt_joint_{i}" for i in range(1, 7))


def make_limit(max_velocity=1.0, max_acceleration=0.5, max_deceleration=-1.0, position=3.124):
    return JointLimit(
        has_position_limits=True,
        min_position=-position,
        max_position=position,
        has_velocity_limits=True,
        max_velocity=max_velocity,
        has_acceleration_limits=True,
        max_acceleration=max_acceleration,
        has_deceleration_limits=True,
        max_deceleration=max_deceleration,
    )


def make_registry(limit=None, joint_names=JOINT_NAMES, extra=None):
    """Registry with ``limit`` on every joint plus an unrelated ``fake_joint``."""
    limit = limit or make_limit()
    registry = LimitRegistry()
    for name in joint_names:
        registry.add_limit(name, limit)
    registry.add_limit("fake_joint", extra or limit)
    return registry


def make_request(goal, start=None, velocities=None, velocity_scaling=1.0, acceleration_scaling=1.0):
    positions = {name: 0.0 for name in JOINT_NAMES}
    positions.update(start or {})
    goals = [GoalConstraints.from_joint_positions(goal)] if goal is not None else []
    return MotionPlanRequest(
        start_state=RobotState(positions=positions, velocities=dict(velocities or {})),
        goal_constraints=goals,
        max_velocity_scaling_factor=velocity_scaling,
        max_acceleration_scaling_factor=acceleration_scaling,
        group_name="manipulator",
    )


class RecordingIk:
    """IK stub returning a fixed solution (or None) and recording every call."""

    def __init__(self, solution=None):
        self.solution = solution
        self.calls = []

    def __call__(self, seed, pose, link_name, tolerance):
        self.calls.append((dict(seed), pose, link_name, tolerance))
        return None if self.solution is None else dict(self.solution)


@pytest.fixture
def joint_names():
    return JOINT_NAMES


@pytest.fixture
def registry():
    return make_registry()


@pytest.fixture
def generator(registry):
    return PtpTrajectoryGenerator(registry, JOINT_NAMES, sampling_time=0.01)
