"""
ptp_planner Python Package

Time-optimal point-to-point joint trajectories with multi-joint
synchronization under per-joint position, velocity, acceleration and
deceleration limits.

Key components:
- PtpTrajectoryGenerator: validates limits once, then plans requests
- LimitRegistry / JointLimit: per-joint kinematic limits
- MotionPlanRequest / GoalConstraints / RobotState: request types
- MotionPlanResponse / JointTrajectory: planning result
- RoboticsToolboxIkSolver: IK capability for Cartesian goals (ptp_planner.utils.ik)
"""

from ._version import __version__
from .generator import JointTrajectory, MotionPlanResponse, PlanningStage, PtpTrajectoryGenerator
from .limits import JointLimit, KinematicBounds, LimitRegistry, validate_limits
from .request import (
    GoalConstraints,
    JointConstraint,
    MotionPlanRequest,
    OrientationConstraint,
    PositionConstraint,
    RobotState,
)
from .utils.errors import PlanningStatus

__all__ = [
    "__version__",
    "PtpTrajectoryGenerator",
    "MotionPlanResponse",
    "JointTrajectory",
    "PlanningStage",
    "PlanningStatus",
    "JointLimit",
    "KinematicBounds",
    "LimitRegistry",
    "validate_limits",
    "MotionPlanRequest",
    "GoalConstraints",
    "JointConstraint",
    "PositionConstraint",
    "OrientationConstraint",
    "RobotState",
]
