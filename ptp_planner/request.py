"""
Motion plan request types.

Goals are expressed like MoveIt goal constraints: either a list of joint
constraints, or one position plus one orientation constraint on a link.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from ptp_planner.config import IK_TOLERANCE


@dataclass(frozen=True)
class RobotState:
    """Joint positions and (optional) velocities keyed by joint name."""
    positions: Mapping[str, float]
    velocities: Mapping[str, float] = field(default_factory=dict)

    def velocity(self, joint_name: str) -> float:
        return float(self.velocities.get(joint_name, 0.0))


@dataclass(frozen=True)
class JointConstraint:
    joint_name: str
    position: float


@dataclass(frozen=True)
class PositionConstraint:
    """Target position (x, y, z) of ``link_name`` in the base frame."""
    link_name: str
    position: tuple[float, float, float]
    tolerance: float = IK_TOLERANCE


@dataclass(frozen=True)
class OrientationConstraint:
    """Target orientation of ``link_name`` as a unit quaternion (w, x, y, z)."""
    link_name: str
    orientation: tuple[float, float, float, float]
    tolerance: float = IK_TOLERANCE


@dataclass
class GoalConstraints:
    joint_constraints: list[JointConstraint] = field(default_factory=list)
    position_constraints: list[PositionConstraint] = field(default_factory=list)
    orientation_constraints: list[OrientationConstraint] = field(default_factory=list)

    @classmethod
    def from_joint_positions(cls, positions: Mapping[str, float]) -> "GoalConstraints":
        return cls(joint_constraints=[JointConstraint(name, float(p)) for name, p in positions.items()])

    @classmethod
    def from_pose(
        cls,
        link_name: str,
        position: Sequence[float],
        orientation: Sequence[float] = (1.0, 0.0, 0.0, 0.0),
        position_tolerance: float = IK_TOLERANCE,
        orientation_tolerance: float = IK_TOLERANCE,
    ) -> "GoalConstraints":
        x, y, z = (float(v) for v in position)
        w, qx, qy, qz = (float(v) for v in orientation)
        return cls(
            position_constraints=[PositionConstraint(link_name, (x, y, z), position_tolerance)],
            orientation_constraints=[OrientationConstraint(link_name, (w, qx, qy, qz), orientation_tolerance)],
        )

    @property
    def is_cartesian(self) -> bool:
        return bool(self.position_constraints or self.orientation_constraints)


@dataclass
class MotionPlanRequest:
    start_state: RobotState
    goal_constraints: list[GoalConstraints] = field(default_factory=list)
    max_velocity_scaling_factor: float = 1.0
    max_acceleration_scaling_factor: float = 1.0
    group_name: str = ""
