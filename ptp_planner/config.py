"""
Central configuration for ptp_planner tunables and shared constants.
"""

import logging
import os

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")

TRACE_ENABLED = str(os.getenv("PTP_TRACE", "0")).lower() in ("1", "true", "yes", "on")

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


# Time between two consecutive trajectory samples (s)
SAMPLING_TIME_S: float = _env_float("PTP_SAMPLING_TIME_S", 0.01)

# A goal closer than this to the start (per joint, rad or m) counts as reached
MIN_MOVEMENT: float = _env_float("PTP_MIN_MOVEMENT", 1e-3)

# Start velocities below this magnitude count as "at rest"
VELOCITY_TOLERANCE: float = _env_float("PTP_VELOCITY_TOLERANCE", 1e-6)

# Relative slack when checking a fitted profile against its bounds
LIMIT_TOLERANCE: float = _env_float("PTP_LIMIT_TOLERANCE", 1e-9)

# Default Cartesian tolerance handed to the IK capability (m / rad)
IK_TOLERANCE: float = _env_float("PTP_IK_TOLERANCE", 1e-3)

LOG_LEVEL_DEFAULT: str = os.getenv("PTP_LOG_LEVEL", "INFO")
