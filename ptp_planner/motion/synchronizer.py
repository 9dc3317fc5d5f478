"""
Multi-joint synchronization of time-optimal joint profiles.

The joint needing the most time (the bottleneck) keeps its time-optimal
profile; every other joint is re-derived to last exactly as long, so all
joints start and stop together.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from ptp_planner.config import LIMIT_TOLERANCE, TRACE
from ptp_planner.limits import KinematicBounds

from .profile import JointProfile, profile_for_duration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SynchronizedTrajectory:
    """Per-joint profiles sharing one total ``duration``."""
    joint_names: tuple[str, ...]
    profiles: Mapping[str, JointProfile]
    duration: float
    leading_joint: str | None = None

    def evaluate(self, t: float) -> dict[str, tuple[float, float, float]]:
        return {name: self.profiles[name].evaluate(t) for name in self.joint_names}


def synchronize(
    profiles: Mapping[str, JointProfile],
    bounds: Mapping[str, KinematicBounds],
) -> SynchronizedTrajectory:
    """
    Stretch every profile to the bottleneck duration.

    Args:
        profiles: time-optimal profile per joint (insertion order is kept)
        bounds: scaled bounds per joint, used to keep stretched profiles feasible

    Returns:
        SynchronizedTrajectory whose profiles all last ``max(total_duration)``
    """
    joint_names = tuple(profiles)
    if not joint_names:
        return SynchronizedTrajectory(joint_names=(), profiles={}, duration=0.0)

    leading_joint = max(joint_names, key=lambda name: profiles[name].total_duration)
    lead = profiles[leading_joint]
    duration = lead.total_duration
    slack = LIMIT_TOLERANCE * max(1.0, duration)

    synced: dict[str, JointProfile] = {}
    for name in joint_names:
        profile = profiles[name]
        if profile.total_duration >= duration - slack:
            synced[name] = profile
            continue
        b = bounds[name]
        synced[name] = profile_for_duration(
            profile.start_position,
            profile.goal_position,
            profile.start_velocity,
            duration,
            b.max_acceleration,
            b.max_deceleration,
            max_velocity=b.max_velocity,
            phase_durations=lead.durations,
        )
        logger.log(
            TRACE,
            "stretched %s: %.4fs -> %.4fs (%s, vp=%.4f)",
            name,
            profile.total_duration,
            duration,
            synced[name].kind.value,
            synced[name].peak_velocity,
        )

    logger.debug(f"Synchronized {len(joint_names)} joints to {duration:.4f}s, bottleneck '{leading_joint}'")
    return SynchronizedTrajectory(
        joint_names=joint_names,
        profiles=synced,
        duration=duration,
        leading_joint=leading_joint,
    )
