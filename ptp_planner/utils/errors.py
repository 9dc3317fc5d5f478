"""
Custom exception types and status codes for the PTP planning pipeline.
Keep this focused and non-redundant; prefer built-ins where appropriate.
"""

from enum import Enum


class PlanningStatus(Enum):
    """User-visible outcome of a planning call."""
    SUCCESS = "SUCCESS"
    EMPTY_REQUEST = "EMPTY_REQUEST"
    INVALID_GOAL_CONSTRAINTS = "INVALID_GOAL_CONSTRAINTS"
    NO_IK_SOLUTION = "NO_IK_SOLUTION"
    INVALID_LIMITS = "INVALID_LIMITS"  # construction time only
    INVALID_START_STATE = "INVALID_START_STATE"
    INVALID_SCALING_FACTOR = "INVALID_SCALING_FACTOR"


class TrajectoryGeneratorError(RuntimeError):
    """Base class of every failure the generator reports with a status code."""

    status: PlanningStatus
    prefix = "Trajectory Generator Error"

    def __init__(self, message: str):
        self.original_message = message
        super().__init__(f"{self.prefix}: {message}")

    def __str__(self):
        return f"{self.prefix}: {self.original_message}"


class InvalidLimitsError(TrajectoryGeneratorError):
    """Joint limits are missing or inconsistent (raised at construction)."""

    status = PlanningStatus.INVALID_LIMITS
    prefix = "Invalid Limits"


class EmptyRequestError(TrajectoryGeneratorError):
    """Request carries no goal constraints."""

    status = PlanningStatus.EMPTY_REQUEST
    prefix = "Empty Request"


class InvalidGoalConstraintsError(TrajectoryGeneratorError):
    """Goal constraints are malformed (unknown joints, missing link names, ...)."""

    status = PlanningStatus.INVALID_GOAL_CONSTRAINTS
    prefix = "Invalid Goal Constraints"


class NoIkSolutionError(TrajectoryGeneratorError):
    """Inverse kinematics found no joint configuration for the goal pose."""

    status = PlanningStatus.NO_IK_SOLUTION
    prefix = "IK ERROR"


class InvalidStartStateError(TrajectoryGeneratorError):
    """Start state misses active joints or violates position limits."""

    status = PlanningStatus.INVALID_START_STATE
    prefix = "Invalid Start State"


class InvalidScalingFactorError(TrajectoryGeneratorError):
    """Velocity or acceleration scaling factor outside (0, 1]."""

    status = PlanningStatus.INVALID_SCALING_FACTOR
    prefix = "Invalid Scaling Factor"
