"""
Joint group and per-joint kinematic bounds.

A JointGroup is the robot-model context a trajectory is planned for: ordered
joint names, their bound records, and which joints are continuous (revolute
without position limits, eligible for angle unwinding).

Usage:
  group = JointGroup.from_limits(["j1", "j2"], velocity=[1.0, 2.0], acceleration=[3.0, 3.0])
  group.bounds[0].velocity_limit()            → 1.0
  group.bounds[0].acceleration_limit()        → 3.0
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import ArrayLike

from splinetime.config import DEFAULTS


@dataclass(frozen=True, slots=True)
class VariableBounds:
    """Kinematic bounds of one joint variable (SI units)."""

    min_velocity: float = 0.0  # rad/s
    max_velocity: float = 0.0  # rad/s
    velocity_bounded: bool = False
    min_acceleration: float = 0.0  # rad/s²
    max_acceleration: float = 0.0  # rad/s²
    acceleration_bounded: bool = False
    max_jerk: float | None = None  # rad/s³, None = use default

    @classmethod
    def from_limits(
        cls,
        velocity: float | None = None,
        acceleration: float | None = None,
        jerk: float | None = None,
    ) -> VariableBounds:
        """Build symmetric bounds; None leaves that quantity unbounded."""
        return cls(
            min_velocity=-abs(velocity) if velocity is not None else 0.0,
            max_velocity=abs(velocity) if velocity is not None else 0.0,
            velocity_bounded=velocity is not None,
            min_acceleration=-abs(acceleration) if acceleration is not None else 0.0,
            max_acceleration=abs(acceleration) if acceleration is not None else 0.0,
            acceleration_bounded=acceleration is not None,
            max_jerk=abs(jerk) if jerk is not None else None,
        )

    def velocity_limit(self) -> float:
        """Tightest symmetric velocity limit, or the default when unbounded."""
        if self.velocity_bounded:
            return min(abs(self.max_velocity), abs(self.min_velocity))
        return DEFAULTS.velocity

    def acceleration_limit(self) -> float:
        """Tightest symmetric acceleration limit, or the default when unbounded."""
        if self.acceleration_bounded:
            return min(abs(self.max_acceleration), abs(self.min_acceleration))
        return DEFAULTS.acceleration

    def jerk_limit(self) -> float:
        return abs(self.max_jerk) if self.max_jerk is not None else DEFAULTS.jerk


@dataclass
class JointGroup:
    """
    Ordered set of joint variables a trajectory is defined over.

    Attributes:
        name: Group name (for logging)
        joint_names: Variable names, one per trajectory column
        bounds: Bound record per joint, same order as joint_names
        continuous: Per-joint flag for wrap-around revolute joints
    """

    name: str
    joint_names: list[str]
    bounds: list[VariableBounds]
    continuous: list[bool] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.bounds) != len(self.joint_names):
            raise ValueError(
                f"Got {len(self.bounds)} bounds for {len(self.joint_names)} joints"
            )
        if not self.continuous:
            self.continuous = [False] * len(self.joint_names)
        elif len(self.continuous) != len(self.joint_names):
            raise ValueError("continuous must have one flag per joint")

    @property
    def variable_count(self) -> int:
        return len(self.joint_names)

    @classmethod
    def from_limits(
        cls,
        joint_names: Sequence[str],
        velocity: ArrayLike | None = None,
        acceleration: ArrayLike | None = None,
        jerk: ArrayLike | None = None,
        name: str = "arm",
        continuous: Sequence[bool] | None = None,
    ) -> JointGroup:
        """
        Build a group with symmetric per-joint limits.

        Args:
            joint_names: Joint variable names
            velocity: Per-joint velocity limits, None for unbounded (defaults)
            acceleration: Per-joint acceleration limits, None for unbounded
            jerk: Per-joint jerk limits, None for the default jerk limit
            name: Group name
            continuous: Per-joint wrap-around flags
        """
        n = len(joint_names)

        def _per_joint(values: ArrayLike | None) -> list[float | None]:
            if values is None:
                return [None] * n
            arr = np.broadcast_to(np.asarray(values, dtype=np.float64), (n,))
            return [float(v) for v in arr]

        vel = _per_joint(velocity)
        acc = _per_joint(acceleration)
        jrk = _per_joint(jerk)
        bounds = [
            VariableBounds.from_limits(vel[j], acc[j], jrk[j]) for j in range(n)
        ]
        return cls(
            name=name,
            joint_names=list(joint_names),
            bounds=bounds,
            continuous=list(continuous) if continuous is not None else [],
        )
