"""
Per-joint kinematic limits.

Defines the limit record of a single joint, the registry holding one record per
joint name, and the validation the generator runs once at construction.
Deceleration bounds follow the ``joint_limits.yaml`` convention and are stored
as negative numbers; ``KinematicBounds`` carries positive magnitudes only.
"""

import logging
import math
from collections import namedtuple
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, replace
from typing import Any

from ptp_planner.utils.errors import InvalidLimitsError

logger = logging.getLogger(__name__)

KinematicBounds = namedtuple("KinematicBounds", "max_velocity max_acceleration max_deceleration")

_LIMIT_KEYS = (
    "has_position_limits",
    "min_position",
    "max_position",
    "has_velocity_limits",
    "max_velocity",
    "has_acceleration_limits",
    "max_acceleration",
    "has_deceleration_limits",
    "max_deceleration",
)


@dataclass(frozen=True)
class JointLimit:
    """Limits of one joint; each bound is only meaningful when its flag is set."""
    has_position_limits: bool = False
    min_position: float = 0.0
    max_position: float = 0.0
    has_velocity_limits: bool = False
    max_velocity: float = 0.0
    has_acceleration_limits: bool = False
    max_acceleration: float = 0.0
    has_deceleration_limits: bool = False
    max_deceleration: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "JointLimit":
        """Build from a ``joint_limits.yaml`` style entry, ignoring unknown keys."""
        kwargs: dict[str, Any] = {}
        for key in _LIMIT_KEYS:
            if key not in data:
                continue
            kwargs[key] = bool(data[key]) if key.startswith("has_") else float(data[key])
        return cls(**kwargs)

    @property
    def complete(self) -> bool:
        return self.has_velocity_limits and self.has_acceleration_limits and self.has_deceleration_limits

    def within_position_limits(self, position: float, tolerance: float = 0.0) -> bool:
        if not self.has_position_limits:
            return True
        return self.min_position - tolerance <= position <= self.max_position + tolerance

    def scaled(self, velocity_scale: float = 1.0, acceleration_scale: float = 1.0) -> KinematicBounds:
        """Positive velocity/acceleration/deceleration magnitudes after scaling."""
        return KinematicBounds(
            max_velocity=abs(self.max_velocity) * velocity_scale,
            max_acceleration=abs(self.max_acceleration) * acceleration_scale,
            max_deceleration=abs(self.max_deceleration) * acceleration_scale,
        )


class LimitRegistry(Mapping[str, JointLimit]):
    """
    Joint name -> JointLimit.

    Entries are added once (duplicates are rejected) and the registry is only
    read afterwards, so a single instance may be shared between threads.
    """

    def __init__(self, limits: Mapping[str, JointLimit] | None = None):
        self._limits: dict[str, JointLimit] = {}
        if limits:
            for name, limit in limits.items():
                self.add_limit(name, limit)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LimitRegistry":
        """
        Build from a ``joint_limits.yaml`` shaped document.

        Accepts either ``{"joint_limits": {name: {...}}}`` or the inner mapping.
        """
        entries = data.get("joint_limits", data)
        registry = cls()
        for name, entry in entries.items():
            registry.add_limit(name, JointLimit.from_mapping(entry))
        return registry

    def add_limit(self, joint_name: str, limit: JointLimit) -> None:
        if not joint_name:
            raise InvalidLimitsError("joint name must not be empty")
        if joint_name in self._limits:
            raise InvalidLimitsError(f"limit for joint '{joint_name}' already registered")
        self._limits[joint_name] = limit

    def __getitem__(self, joint_name: str) -> JointLimit:
        return self._limits[joint_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._limits)

    def __len__(self) -> int:
        return len(self._limits)

    def __repr__(self) -> str:
        return f"LimitRegistry({sorted(self._limits)})"

    def verify_position(self, joint_name: str, position: float) -> bool:
        limit = self._limits.get(joint_name)
        return limit is not None and limit.within_position_limits(position)

    def common_limit(self, joint_names: Iterable[str] | None = None) -> JointLimit:
        """
        Most strict limit over the given joints (all registered joints by default).

        Deceleration is compared by magnitude; a bound is present in the result
        if any of the merged limits has it.
        """
        names = list(self._limits) if joint_names is None else list(joint_names)
        common = JointLimit()
        for name in names:
            limit = self._limits[name]
            if limit.has_position_limits:
                if common.has_position_limits:
                    common = replace(
                        common,
                        min_position=max(common.min_position, limit.min_position),
                        max_position=min(common.max_position, limit.max_position),
                    )
                else:
                    common = replace(
                        common,
                        has_position_limits=True,
                        min_position=limit.min_position,
                        max_position=limit.max_position,
                    )
            if limit.has_velocity_limits:
                v = limit.max_velocity
                if common.has_velocity_limits:
                    v = min(v, common.max_velocity)
                common = replace(common, has_velocity_limits=True, max_velocity=v)
            if limit.has_acceleration_limits:
                a = limit.max_acceleration
                if common.has_acceleration_limits:
                    a = min(a, common.max_acceleration)
                common = replace(common, has_acceleration_limits=True, max_acceleration=a)
            if limit.has_deceleration_limits:
                d = limit.max_deceleration
                if common.has_deceleration_limits:
                    d = max(d, common.max_deceleration)
                common = replace(common, has_deceleration_limits=True, max_deceleration=d)
        return common


def validate_limits(registry: Mapping[str, JointLimit], joint_names: Iterable[str]) -> None:
    """
    Check that every active joint has a complete and consistent limit.

    Raises InvalidLimitsError on the first problem found. Position limits are
    optional (absent means unbounded range).
    """
    names = list(joint_names)
    if not registry:
        raise InvalidLimitsError("no joint limits given")
    if not names:
        raise InvalidLimitsError("planning group has no active joints")

    for name in names:
        limit = registry.get(name)
        if limit is None:
            raise InvalidLimitsError(f"no limits registered for joint '{name}'")
        if not limit.has_velocity_limits:
            raise InvalidLimitsError(f"joint '{name}' has no velocity limit")
        if not limit.has_acceleration_limits:
            raise InvalidLimitsError(f"joint '{name}' has no acceleration limit")
        if not limit.has_deceleration_limits:
            raise InvalidLimitsError(f"joint '{name}' has no deceleration limit")
        if not (math.isfinite(limit.max_velocity) and limit.max_velocity > 0):
            raise InvalidLimitsError(f"joint '{name}': max_velocity must be positive, got {limit.max_velocity}")
        if not (math.isfinite(limit.max_acceleration) and limit.max_acceleration > 0):
            raise InvalidLimitsError(
                f"joint '{name}': max_acceleration must be positive, got {limit.max_acceleration}"
            )
        if not (math.isfinite(limit.max_deceleration) and limit.max_deceleration < 0):
            raise InvalidLimitsError(
                f"joint '{name}': max_deceleration must be negative, got {limit.max_deceleration}"
            )
        if limit.has_position_limits and not limit.min_position <= limit.max_position:
            raise InvalidLimitsError(
                f"joint '{name}': min_position {limit.min_position} exceeds max_position {limit.max_position}"
            )

    logger.debug(f"Validated limits for {len(names)} joints: {names}")
