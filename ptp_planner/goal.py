"""
Goal resolution: turns the request's goal constraints into joint positions.

Joint goals pass through after validation; Cartesian goals are handed to an
injected IK capability seeded with the start state.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Protocol

import numpy as np
from spatialmath import SE3, UnitQuaternion

from ptp_planner.limits import JointLimit, LimitRegistry
from ptp_planner.request import GoalConstraints, MotionPlanRequest
from ptp_planner.utils.errors import EmptyRequestError, InvalidGoalConstraintsError, NoIkSolutionError

logger = logging.getLogger(__name__)


class IkSolver(Protocol):
    """
    Inverse kinematics capability.

    Returns joint positions by name placing ``link_name`` at ``pose`` within
    ``tolerance``, or None if there is no such configuration.
    """

    def __call__(
        self,
        seed: Mapping[str, float],
        pose: SE3,
        link_name: str,
        tolerance: float,
    ) -> Mapping[str, float] | None: ...


def pose_from_constraints(goal: GoalConstraints) -> SE3:
    """Target pose from one position and one orientation constraint."""
    position = np.asarray(goal.position_constraints[0].position, dtype=float)
    quat = np.asarray(goal.orientation_constraints[0].orientation, dtype=float)
    if position.shape != (3,) or quat.shape != (4,):
        raise InvalidGoalConstraintsError("pose needs 3 position and 4 quaternion components")
    if not (np.all(np.isfinite(position)) and np.all(np.isfinite(quat))) or np.linalg.norm(quat) < 1e-9:
        raise InvalidGoalConstraintsError(f"invalid pose: position={position.tolist()} orientation={quat.tolist()}")
    rotation = UnitQuaternion(quat).R
    return SE3.Rt(rotation, position)


class GoalResolver:
    """Resolves a request's goal to a position for every active joint."""

    def __init__(
        self,
        limits: Mapping[str, JointLimit],
        joint_names: Sequence[str],
        ik_solver: IkSolver | None = None,
    ):
        self.limits = limits if isinstance(limits, LimitRegistry) else LimitRegistry(limits)
        self.joint_names = tuple(joint_names)
        self.ik_solver = ik_solver

    def resolve(self, request: MotionPlanRequest) -> dict[str, float]:
        """
        Joint goal for every active joint; joints without a constraint keep their start position.

        Raises:
            EmptyRequestError: no goal constraints at all
            InvalidGoalConstraintsError: malformed goal (checked before any IK call)
            NoIkSolutionError: Cartesian goal not reachable
        """
        if not request.goal_constraints:
            raise EmptyRequestError("request has no goal constraints")
        if len(request.goal_constraints) > 1:
            raise InvalidGoalConstraintsError(
                f"exactly one goal is supported, got {len(request.goal_constraints)}"
            )

        goal = request.goal_constraints[0]
        start = {name: float(request.start_state.positions[name]) for name in self.joint_names}

        if goal.joint_constraints and goal.is_cartesian:
            raise InvalidGoalConstraintsError("goal mixes joint and Cartesian constraints")
        if goal.joint_constraints:
            resolved = self._resolve_joint_goal(goal, start)
        elif goal.is_cartesian:
            resolved = self._resolve_cartesian_goal(goal, start)
        else:
            raise InvalidGoalConstraintsError("goal has neither joint nor Cartesian constraints")

        logger.debug(f"Resolved goal: {resolved}")
        return resolved

    def _resolve_joint_goal(self, goal: GoalConstraints, start: Mapping[str, float]) -> dict[str, float]:
        resolved = dict(start)
        seen: set[str] = set()
        for jc in goal.joint_constraints:
            if jc.joint_name not in resolved:
                raise InvalidGoalConstraintsError(f"unknown joint '{jc.joint_name}' in goal")
            if jc.joint_name in seen:
                raise InvalidGoalConstraintsError(f"joint '{jc.joint_name}' constrained twice")
            seen.add(jc.joint_name)
            position = float(jc.position)
            if not math.isfinite(position):
                raise InvalidGoalConstraintsError(f"goal for joint '{jc.joint_name}' is not finite")
            if not self.limits.verify_position(jc.joint_name, position):
                limit = self.limits[jc.joint_name]
                raise InvalidGoalConstraintsError(
                    f"goal {position:.4f} for joint '{jc.joint_name}' outside "
                    f"[{limit.min_position}, {limit.max_position}]"
                )
            resolved[jc.joint_name] = position
        return resolved

    def _resolve_cartesian_goal(self, goal: GoalConstraints, start: Mapping[str, float]) -> dict[str, float]:
        if len(goal.position_constraints) != 1 or len(goal.orientation_constraints) != 1:
            raise InvalidGoalConstraintsError(
                "Cartesian goal needs exactly one position and one orientation constraint"
            )
        position_link = goal.position_constraints[0].link_name
        orientation_link = goal.orientation_constraints[0].link_name
        if not position_link:
            raise InvalidGoalConstraintsError("position constraint has no link name")
        if not orientation_link:
            raise InvalidGoalConstraintsError("orientation constraint has no link name")
        if position_link != orientation_link:
            raise InvalidGoalConstraintsError(
                f"position link '{position_link}' differs from orientation link '{orientation_link}'"
            )

        pose = pose_from_constraints(goal)
        tolerance = min(goal.position_constraints[0].tolerance, goal.orientation_constraints[0].tolerance)

        if self.ik_solver is None:
            raise NoIkSolutionError("no IK solver configured for Cartesian goals")
        solution = self.ik_solver(dict(start), pose, position_link, tolerance)
        if solution is None:
            raise NoIkSolutionError(f"no IK solution for link '{position_link}' at {pose.t.tolist()}")

        resolved: dict[str, float] = {}
        for name in self.joint_names:
            if name not in solution:
                raise NoIkSolutionError(f"IK solution misses joint '{name}'")
            position = float(solution[name])
            if not self.limits.verify_position(name, position):
                raise NoIkSolutionError(f"IK solution for joint '{name}' ({position:.4f}) violates position limits")
            resolved[name] = position
        return resolved
