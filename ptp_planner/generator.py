"""
Point-to-point (PTP) trajectory generator.

Orchestrates request validation, goal resolution, per-joint profile synthesis,
synchronization and sampling into one request/response call.
"""

import logging
import math
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from ptp_planner.config import MIN_MOVEMENT, SAMPLING_TIME_S, TRACE, VELOCITY_TOLERANCE
from ptp_planner.goal import GoalResolver, IkSolver
from ptp_planner.limits import JointLimit, KinematicBounds, LimitRegistry, validate_limits
from ptp_planner.motion import (
    JointProfile,
    SynchronizedTrajectory,
    Waypoint,
    sample_trajectory,
    stationary_profile,
    synchronize,
    time_optimal_profile,
)
from ptp_planner.request import MotionPlanRequest
from ptp_planner.utils.errors import (
    EmptyRequestError,
    InvalidLimitsError,
    InvalidScalingFactorError,
    InvalidStartStateError,
    PlanningStatus,
    TrajectoryGeneratorError,
)

logger = logging.getLogger(__name__)


class PlanningStage(Enum):
    """Progress of one planning call."""
    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    RESOLVED = "RESOLVED"
    PROFILED = "PROFILED"
    SYNCHRONIZED = "SYNCHRONIZED"
    SAMPLED = "SAMPLED"
    FAILED = "FAILED"


@dataclass
class JointTrajectory:
    """Sampled joint trajectory; empty when planning failed."""
    joint_names: tuple[str, ...] = ()
    points: list[Waypoint] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def empty(self) -> bool:
        return not self.points

    @property
    def duration(self) -> float:
        return self.points[-1].time_from_start if self.points else 0.0

    def clear(self) -> None:
        self.points.clear()

    def as_arrays(self) -> dict[str, np.ndarray]:
        """
        Stack the waypoints.

        Returns:
            dict with "timestamps" of shape (N,) and "position", "velocity",
            "acceleration" of shape (N, J)
        """
        n_joints = len(self.joint_names)
        if not self.points:
            empty = np.zeros((0, n_joints))
            return {"timestamps": np.zeros(0), "position": empty, "velocity": empty.copy(), "acceleration": empty.copy()}
        return {
            "timestamps": np.array([p.time_from_start for p in self.points], dtype=float),
            "position": np.vstack([p.positions for p in self.points]),
            "velocity": np.vstack([p.velocities for p in self.points]),
            "acceleration": np.vstack([p.accelerations for p in self.points]),
        }


@dataclass
class MotionPlanResponse:
    error_code: PlanningStatus
    trajectory: JointTrajectory = field(default_factory=JointTrajectory)
    message: str = ""
    stage: PlanningStage = PlanningStage.IDLE
    planning_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.error_code is PlanningStatus.SUCCESS


class PtpTrajectoryGenerator:
    """
    Time-optimal, synchronized point-to-point joint trajectories.

    The limits are validated once here; an incomplete registry raises
    InvalidLimitsError and no generator is created. Afterwards the instance
    only reads its state, so ``generate`` may be called from several threads.
    """

    def __init__(
        self,
        limits: Mapping[str, JointLimit],
        joint_names: Sequence[str],
        ik_solver: IkSolver | None = None,
        sampling_time: float | None = None,
        use_common_limits: bool = False,
    ):
        """
        Args:
            limits: joint name -> JointLimit; must cover every active joint
            joint_names: active joints of the planning group, in trajectory order
            ik_solver: IK capability for Cartesian goals (optional)
            sampling_time: waypoint spacing in seconds (default: config.SAMPLING_TIME_S)
            use_common_limits: plan every joint with the most strict registered limit
        """
        self.joint_names = tuple(joint_names)
        registry = LimitRegistry(limits)
        try:
            validate_limits(registry, self.joint_names)
        except InvalidLimitsError as e:
            logger.error(f"Cannot create PTP generator: {e}")
            raise
        self.limits = registry

        self.sampling_time = SAMPLING_TIME_S if sampling_time is None else float(sampling_time)
        if not (math.isfinite(self.sampling_time) and self.sampling_time > 0):
            raise ValueError(f"sampling_time must be positive, got {self.sampling_time}")

        self.common_limit: JointLimit | None = None
        if use_common_limits:
            self.common_limit = registry.common_limit()
            validate_limits({"common": self.common_limit}, ["common"])

        self.goal_resolver = GoalResolver(registry, self.joint_names, ik_solver)
        logger.info(
            f"PTP generator ready for {len(self.joint_names)} joints "
            f"(dt={self.sampling_time}s, common_limits={use_common_limits})"
        )

    def generate(self, request: MotionPlanRequest) -> MotionPlanResponse:
        """
        Plan a PTP motion.

        Request-scoped failures do not raise; they are reported through
        ``error_code`` and leave the trajectory empty.
        """
        started = time.perf_counter()
        stage = PlanningStage.VALIDATING
        logger.log(TRACE, "ptp_stage %s", stage.value)
        try:
            self._validate_request(request)
            goal = self.goal_resolver.resolve(request)
            stage = PlanningStage.RESOLVED
            logger.log(TRACE, "ptp_stage %s", stage.value)

            profiles = self._plan_profiles(request, goal)
            stage = PlanningStage.PROFILED
            logger.log(TRACE, "ptp_stage %s", stage.value)

            synced = self._synchronize(profiles, request)
            stage = PlanningStage.SYNCHRONIZED
            logger.log(TRACE, "ptp_stage %s", stage.value)

            points = list(sample_trajectory(synced, self.sampling_time))
            stage = PlanningStage.SAMPLED
            logger.log(TRACE, "ptp_stage %s", stage.value)
        except TrajectoryGeneratorError as e:
            logger.warning(f"PTP planning failed while {stage.value}: {e}")
            return MotionPlanResponse(
                error_code=e.status,
                trajectory=JointTrajectory(self.joint_names),
                message=str(e),
                stage=PlanningStage.FAILED,
                planning_time=time.perf_counter() - started,
            )

        trajectory = JointTrajectory(self.joint_names, points)
        logger.info(
            f"PTP trajectory: {len(points)} waypoints over {synced.duration:.3f}s "
            f"(bottleneck '{synced.leading_joint}')"
        )
        return MotionPlanResponse(
            error_code=PlanningStatus.SUCCESS,
            trajectory=trajectory,
            message="Success",
            stage=stage,
            planning_time=time.perf_counter() - started,
        )

    def bounds_for(self, joint_name: str, velocity_scale: float = 1.0, acceleration_scale: float = 1.0) -> KinematicBounds:
        limit = self.common_limit if self.common_limit is not None else self.limits[joint_name]
        return limit.scaled(velocity_scale, acceleration_scale)

    def _validate_request(self, request: MotionPlanRequest) -> None:
        if not request.goal_constraints:
            raise EmptyRequestError("request has no goal constraints")

        for label, factor in (
            ("velocity", request.max_velocity_scaling_factor),
            ("acceleration", request.max_acceleration_scaling_factor),
        ):
            if not (math.isfinite(factor) and 0.0 < factor <= 1.0):
                raise InvalidScalingFactorError(f"{label} scaling factor {factor} not in (0, 1]")

        state = request.start_state
        for name in self.joint_names:
            if name not in state.positions:
                raise InvalidStartStateError(f"start state misses joint '{name}'")
            position = float(state.positions[name])
            velocity = state.velocity(name)
            if not (math.isfinite(position) and math.isfinite(velocity)):
                raise InvalidStartStateError(f"start state of joint '{name}' is not finite")
            if not self.limits.verify_position(name, position):
                raise InvalidStartStateError(
                    f"start position {position:.4f} of joint '{name}' violates position limits"
                )

    def _plan_profiles(self, request: MotionPlanRequest, goal: Mapping[str, float]) -> dict[str, JointProfile]:
        state = request.start_state
        start = {name: float(state.positions[name]) for name in self.joint_names}

        reached = all(
            abs(goal[name] - start[name]) < MIN_MOVEMENT and abs(state.velocity(name)) < VELOCITY_TOLERANCE
            for name in self.joint_names
        )
        if reached:
            logger.info("Goal already reached, returning the start state only")
            return {name: stationary_profile(start[name]) for name in self.joint_names}

        profiles: dict[str, JointProfile] = {}
        for name in self.joint_names:
            b = self.bounds_for(name, request.max_velocity_scaling_factor, request.max_acceleration_scaling_factor)
            profiles[name] = time_optimal_profile(
                start[name],
                goal[name],
                state.velocity(name),
                b.max_velocity,
                b.max_acceleration,
                b.max_deceleration,
            )
            logger.debug(
                f"{name}: {profiles[name].kind.value} {start[name]:.4f} -> {goal[name]:.4f} "
                f"in {profiles[name].total_duration:.4f}s (vp={profiles[name].peak_velocity:.4f})"
            )
        return profiles

    def _synchronize(self, profiles: Mapping[str, JointProfile], request: MotionPlanRequest) -> SynchronizedTrajectory:
        bounds = {
            name: self.bounds_for(name, request.max_velocity_scaling_factor, request.max_acceleration_scaling_factor)
            for name in profiles
        }
        return synchronize(profiles, bounds)
