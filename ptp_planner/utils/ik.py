"""
IK capability backed by roboticstoolbox.
Wraps a robot model into the (seed, pose, link, tolerance) -> joints callable
the goal resolver expects.
"""

import logging
from collections.abc import Mapping, Sequence

import numpy as np
from roboticstoolbox import Robot
from spatialmath import SE3

logger = logging.getLogger(__name__)


def unwrap_angles(q_solution, q_current):
    """
    Vectorized unwrap: bring solution angles near current by adding/subtracting 2*pi.
    This minimizes joint motion between consecutive configurations.
    """
    qs = np.asarray(q_solution, dtype=float)
    qc = np.asarray(q_current, dtype=float)
    diff = qs - qc
    q_unwrapped = qs.copy()
    q_unwrapped[diff > np.pi] -= 2 * np.pi
    q_unwrapped[diff < -np.pi] += 2 * np.pi
    return q_unwrapped


def pose_error(actual: SE3, target: SE3) -> tuple[float, float]:
    """Translation error (m) and rotation angle error (rad) between two poses."""
    translation = float(np.linalg.norm(actual.t - target.t))
    r_err = actual.R.T @ target.R
    cos_angle = np.clip((np.trace(r_err) - 1.0) / 2.0, -1.0, 1.0)
    return translation, float(np.arccos(cos_angle))


class RoboticsToolboxIkSolver:
    """
    IK solver for a roboticstoolbox robot model.

    Parameters
    ----------
    robot : Robot | DHRobot
        Robot model
    joint_names : sequence of str, optional
        Names of the model's joints in chain order (default: joint_1..joint_n)
    tip_link : str, optional
        Link name that maps to the full chain; other names are looked up in the model
    """

    def __init__(
        self,
        robot: Robot,
        joint_names: Sequence[str] | None = None,
        tip_link: str | None = None,
    ):
        self.robot = robot
        n = int(robot.n)
        self.joint_names = tuple(joint_names) if joint_names is not None else tuple(
            f"joint_{i + 1}" for i in range(n)
        )
        if len(self.joint_names) != n:
            raise ValueError(f"robot has {n} joints, got {len(self.joint_names)} names")
        self.tip_link = tip_link

    def _ets(self, link_name: str):
        if self.tip_link is None or link_name == self.tip_link:
            return self.robot.ets()
        return self.robot.ets(end=link_name)

    def __call__(
        self,
        seed: Mapping[str, float],
        pose: SE3,
        link_name: str,
        tolerance: float,
    ) -> dict[str, float] | None:
        q_seed = np.array([float(seed.get(name, 0.0)) for name in self.joint_names], dtype=float)
        ets = self._ets(link_name)

        result = ets.ik_LM(
            pose,
            q0=q_seed,
            tol=1e-10,
            joint_limits=True,
            k=0.0,
            method="sugihara",
        )
        q = np.asarray(result[0], dtype=float)
        success = result[1] > 0
        if not success:
            logger.warning(f"IK failed to solve for '{link_name}' (iterations={result[2]})")
            return None

        # Stay on the seed's branch when the unwrapped angles remain inside the limits
        q_unwrapped = unwrap_angles(q, q_seed)
        qlim = ets.qlim
        if qlim is None or np.all((q_unwrapped >= qlim[0, :]) & (q_unwrapped <= qlim[1, :])):
            q = q_unwrapped

        translation_err, rotation_err = pose_error(ets.fkine(q), pose)
        if translation_err > tolerance or rotation_err > tolerance:
            logger.warning(
                f"IK residual too large for '{link_name}': "
                f"translation={translation_err:.2e} rotation={rotation_err:.2e} tol={tolerance:.2e}"
            )
            return None
        return dict(zip(self.joint_names, (float(v) for v in q)))
