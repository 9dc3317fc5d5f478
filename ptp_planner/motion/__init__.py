from .profile import JointProfile, ProfileKind, profile_for_duration, stationary_profile, time_optimal_profile
from .sampler import Waypoint, sample_trajectory
from .synchronizer import SynchronizedTrajectory, synchronize

__all__ = [
    "JointProfile",
    "ProfileKind",
    "time_optimal_profile",
    "profile_for_duration",
    "stationary_profile",
    "SynchronizedTrajectory",
    "synchronize",
    "Waypoint",
    "sample_trajectory",
]
