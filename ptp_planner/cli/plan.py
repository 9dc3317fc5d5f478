"""
CLI entry point for the ptp-plan command.

Plans a joint-space PTP motion from two JSON documents and prints a summary:

    ptp-plan joint_limits.json request.json --every 10

The limits file follows the ``joint_limits.yaml`` layout::

    {"joint_limits": {"joint_1": {"has_velocity_limits": true, "max_velocity": 1.0, ...}}}

The request file::

    {
        "joint_names": ["joint_1", "joint_2"],
        "start": {"positions": {"joint_1": 0.0, "joint_2": 0.0}},
        "goal": {"joint_1": 1.5},
        "velocity_scaling": 1.0,
        "acceleration_scaling": 1.0
    }
"""

import argparse
import json
import logging
from pathlib import Path

from ptp_planner.config import LOG_LEVEL_DEFAULT, TRACE, TRACE_ENABLED
from ptp_planner.generator import PtpTrajectoryGenerator
from ptp_planner.limits import LimitRegistry
from ptp_planner.request import GoalConstraints, MotionPlanRequest, RobotState
from ptp_planner.utils.errors import InvalidLimitsError

logger = logging.getLogger("ptp_planner.cli.plan")


def _load_json(path: str) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def build_request(data: dict) -> MotionPlanRequest:
    start = data.get("start", {})
    goal = data.get("goal", {})
    return MotionPlanRequest(
        start_state=RobotState(
            positions={k: float(v) for k, v in start.get("positions", {}).items()},
            velocities={k: float(v) for k, v in start.get("velocities", {}).items()},
        ),
        goal_constraints=[GoalConstraints.from_joint_positions(goal)] if goal else [],
        max_velocity_scaling_factor=float(data.get("velocity_scaling", 1.0)),
        max_acceleration_scaling_factor=float(data.get("acceleration_scaling", 1.0)),
        group_name=str(data.get("group_name", "")),
    )


def _log_level(args: argparse.Namespace) -> int:
    if args.log_level:
        return TRACE if args.log_level == "TRACE" else getattr(logging, args.log_level)
    if args.verbose >= 2 or TRACE_ENABLED:
        return TRACE
    if args.verbose == 1:
        return logging.DEBUG
    if args.quiet:
        return logging.WARNING
    return getattr(logging, LOG_LEVEL_DEFAULT.upper(), logging.INFO)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Plan a point-to-point joint trajectory")
    parser.add_argument("limits", help="JSON file with joint limits")
    parser.add_argument("request", help="JSON file with start state and joint goal")
    parser.add_argument("--sampling-time", type=float, default=None, help="Waypoint spacing in seconds")
    parser.add_argument("--common-limits", action="store_true",
                        help="Plan every joint with the most strict registered limit")
    parser.add_argument("--every", type=int, default=1, help="Print every Nth waypoint")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase verbosity; -v=DEBUG, -vv=TRACE")
    parser.add_argument("-q", "--quiet", action="store_true", help="Enable quiet logging (WARNING level)")
    parser.add_argument("--log-level", choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Set specific log level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=_log_level(args),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    registry = LimitRegistry.from_mapping(_load_json(args.limits))
    request_data = _load_json(args.request)
    joint_names = request_data.get("joint_names") or list(registry)

    try:
        generator = PtpTrajectoryGenerator(
            registry,
            joint_names,
            sampling_time=args.sampling_time,
            use_common_limits=args.common_limits,
        )
    except InvalidLimitsError as e:
        logger.error(f"{e}")
        return 2

    response = generator.generate(build_request(request_data))
    print(f"status: {response.error_code.value}")
    if not response.success:
        print(f"reason: {response.message}")
        return 1

    trajectory = response.trajectory
    print(f"duration: {trajectory.duration:.4f} s, waypoints: {len(trajectory)}")
    print("t[s]      " + "  ".join(f"{name:>24}" for name in trajectory.joint_names))
    step = max(1, args.every)
    for i, point in enumerate(trajectory.points):
        if i % step and i != len(trajectory) - 1:
            continue
        cells = (
            f"{p:+8.4f} {v:+7.4f} {a:+7.4f}"
            for p, v, a in zip(point.positions, point.velocities, point.accelerations)
        )
        print(f"{point.time_from_start:8.4f}  " + "  ".join(cells))
    return 0


def main_entry():
    """Entry point for the ptp-plan command."""
    raise SystemExit(main())


if __name__ == "__main__":
    main_entry()
