"""
Waypoint trajectory storage.

JointTrajectory holds an ordered list of joint-space waypoints together with
per-waypoint velocities, accelerations and the duration from the previous
waypoint. It is the container the parameterization reads from and commits to:

  1. A planner fills positions (velocities/accelerations only matter at the ends)
  2. IterativeSplineParameterization assigns durations and derivatives
  3. sample() evaluates the resulting piecewise cubic at a fixed interval
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import ArrayLike, NDArray

from splinetime.config import INTERVAL_S
from splinetime.model import JointGroup

logger = logging.getLogger(__name__)


def _as_matrix(values: ArrayLike | None, shape: tuple[int, int], name: str) -> NDArray:
    if values is None:
        return np.zeros(shape, dtype=np.float64)
    arr = np.array(values, dtype=np.float64, ndmin=2)
    if arr.shape != shape:
        raise ValueError(f"{name} must have shape {shape}, got {arr.shape}")
    return arr


@dataclass
class JointTrajectory:
    """
    Joint-space trajectory, indexed [waypoint, joint].

    Attributes:
        group: Joint group the trajectory was planned for (None if unknown)
        positions: (N, J) joint positions
        velocities: (N, J) joint velocities
        accelerations: (N, J) joint accelerations
        durations: (N,) time from the previous waypoint; durations[0] is 0
    """

    group: JointGroup | None
    positions: NDArray[np.float64]
    velocities: NDArray[np.float64] = field(default=None)  # type: ignore[assignment]
    accelerations: NDArray[np.float64] = field(default=None)  # type: ignore[assignment]
    durations: NDArray[np.float64] = field(default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        positions = np.array(self.positions, dtype=np.float64, ndmin=2)
        if positions.size == 0:
            # [] and [[]] mean no waypoints, not one waypoint with no joints
            n_joints = self.group.variable_count if self.group is not None else positions.shape[-1]
            positions = positions.reshape(0, n_joints)
        self.positions = positions
        if self.positions.ndim != 2:
            raise ValueError("positions must be a 2D (waypoints, joints) array")
        shape = self.positions.shape
        if self.group is not None and shape[1] != self.group.variable_count:
            raise ValueError(
                f"positions have {shape[1]} joints, group '{self.group.name}' "
                f"has {self.group.variable_count}"
            )
        self.velocities = _as_matrix(self.velocities, shape, "velocities")
        self.accelerations = _as_matrix(self.accelerations, shape, "accelerations")
        if self.durations is None:
            self.durations = np.zeros(shape[0], dtype=np.float64)
        else:
            self.durations = np.array(self.durations, dtype=np.float64)
            if self.durations.shape != (shape[0],):
                raise ValueError(f"durations must have shape ({shape[0]},)")

    def __len__(self) -> int:
        return len(self.positions)

    def __getitem__(self, idx: int) -> NDArray[np.float64]:
        return self.positions[idx]

    @property
    def empty(self) -> bool:
        return len(self.positions) == 0

    @property
    def waypoint_count(self) -> int:
        return len(self.positions)

    @property
    def joint_count(self) -> int:
        return self.positions.shape[1]

    # -- per-variable accessors -------------------------------------------

    def get_variable_position(self, waypoint: int, joint: int) -> float:
        return float(self.positions[waypoint, joint])

    def set_variable_position(self, waypoint: int, joint: int, value: float) -> None:
        self.positions[waypoint, joint] = value

    def get_variable_velocity(self, waypoint: int, joint: int) -> float:
        return float(self.velocities[waypoint, joint])

    def set_variable_velocity(self, waypoint: int, joint: int, value: float) -> None:
        self.velocities[waypoint, joint] = value

    def get_variable_acceleration(self, waypoint: int, joint: int) -> float:
        return float(self.accelerations[waypoint, joint])

    def set_variable_acceleration(self, waypoint: int, joint: int, value: float) -> None:
        self.accelerations[waypoint, joint] = value

    def get_waypoint_duration_from_previous(self, waypoint: int) -> float:
        return float(self.durations[waypoint])

    def set_waypoint_duration_from_previous(self, waypoint: int, value: float) -> None:
        if value < 0:
            raise ValueError(f"Duration must be non-negative, got {value}")
        self.durations[waypoint] = value

    def insert_waypoint(
        self,
        index: int,
        positions: ArrayLike,
        velocities: ArrayLike | None = None,
        accelerations: ArrayLike | None = None,
        duration_from_previous: float = 0.0,
    ) -> None:
        """
        Insert a waypoint before `index` (index == len(self) appends).

        Args:
            index: Position of the new waypoint
            positions: (J,) joint positions
            velocities: (J,) joint velocities, zeros if None
            accelerations: (J,) joint accelerations, zeros if None
            duration_from_previous: Duration assigned to the new waypoint
        """
        n_joints = self.joint_count
        if not 0 <= index <= len(self):
            raise IndexError(f"Insert index {index} out of range for {len(self)} waypoints")

        def _row(values: ArrayLike | None, name: str) -> NDArray:
            if values is None:
                return np.zeros(n_joints, dtype=np.float64)
            row = np.asarray(values, dtype=np.float64)
            if row.shape != (n_joints,):
                raise ValueError(f"{name} must have shape ({n_joints},), got {row.shape}")
            return row

        self.positions = np.insert(self.positions, index, _row(positions, "positions"), axis=0)
        self.velocities = np.insert(
            self.velocities, index, _row(velocities, "velocities"), axis=0
        )
        self.accelerations = np.insert(
            self.accelerations, index, _row(accelerations, "accelerations"), axis=0
        )
        self.durations = np.insert(self.durations, index, float(duration_from_previous))

    # -- whole-trajectory helpers -----------------------------------------

    def unwind(self) -> None:
        """
        Remove 2π jumps on continuous joints so consecutive waypoints take the
        short way round. Non-continuous joints are left as they are.
        """
        if self.group is None or len(self) < 2:
            return
        for j, is_continuous in enumerate(self.group.continuous):
            if is_continuous:
                self.positions[:, j] = np.unwrap(self.positions[:, j])

    def time_from_start(self) -> NDArray[np.float64]:
        """Cumulative time stamp of every waypoint."""
        return np.cumsum(self.durations)

    @property
    def duration(self) -> float:
        return float(np.sum(self.durations))

    def copy(self) -> JointTrajectory:
        return JointTrajectory(
            group=self.group,
            positions=self.positions.copy(),
            velocities=self.velocities.copy(),
            accelerations=self.accelerations.copy(),
            durations=self.durations.copy(),
        )

    def sample(
        self, dt: float = INTERVAL_S
    ) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        """
        Evaluate the time-parameterized cubic spline at a fixed interval.

        Each segment is the cubic fixed by its end positions and end
        accelerations, which is exactly the spline the parameterization fitted.

        Args:
            dt: Sample interval in seconds

        Returns:
            (times, positions, velocities, accelerations), the last three of
            shape (M, J). The final waypoint is always included.

        Raises:
            ValueError: If the trajectory has not been time parameterized
        """
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        if len(self) < 2:
            times = np.zeros(len(self))
            return times, self.positions.copy(), self.velocities.copy(), self.accelerations.copy()

        h_all = self.durations[1:]
        if np.any(h_all <= 0):
            raise ValueError("Trajectory is not time parameterized (non-positive duration)")

        knots = self.time_from_start()
        total = float(knots[-1])
        n_output = max(2, int(np.ceil(total / dt - 1e-9)) + 1)
        times = np.empty(n_output, dtype=np.float64)
        times[:-1] = np.arange(n_output - 1) * dt
        times[-1] = total

        seg = np.clip(np.searchsorted(knots, times, side="right") - 1, 0, len(self) - 2)
        t = (times - knots[seg]).reshape(-1, 1)
        h = h_all[seg].reshape(-1, 1)
        x0 = self.positions[seg]
        x1 = self.positions[seg + 1]
        m0 = self.accelerations[seg]
        m1 = self.accelerations[seg + 1]

        tau = h - t
        b0 = x0 / h - m0 * h / 6.0
        b1 = x1 / h - m1 * h / 6.0
        pos = m0 * tau**3 / (6.0 * h) + m1 * t**3 / (6.0 * h) + b0 * tau + b1 * t
        vel = -m0 * tau**2 / (2.0 * h) + m1 * t**2 / (2.0 * h) - b0 + b1
        acc = m0 * tau / h + m1 * t / h

        logger.debug(
            "JointTrajectory.sample: %d samples over %.3fs (dt=%.4f)",
            n_output,
            total,
            dt,
        )
        return times, pos, vel, acc

    # -- constructors -----------------------------------------------------

    @classmethod
    def from_positions(
        cls,
        positions: ArrayLike,
        group: JointGroup | None,
        initial_velocity: ArrayLike | None = None,
        final_velocity: ArrayLike | None = None,
        initial_acceleration: ArrayLike | None = None,
        final_acceleration: ArrayLike | None = None,
    ) -> JointTrajectory:
        """
        Build an untimed trajectory from waypoint positions and boundary conditions.

        Args:
            positions: (N, J) waypoint positions
            group: Joint group context
            initial_velocity / final_velocity: (J,) boundary velocities, zero if None
            initial_acceleration / final_acceleration: (J,) boundary accelerations
        """
        traj = cls(group=group, positions=np.array(positions, dtype=np.float64, ndmin=2))
        if len(traj) == 0:
            return traj
        if initial_velocity is not None:
            traj.velocities[0] = initial_velocity
        if final_velocity is not None:
            traj.velocities[-1] = final_velocity
        if initial_acceleration is not None:
            traj.accelerations[0] = initial_acceleration
        if final_acceleration is not None:
            traj.accelerations[-1] = final_acceleration
        return traj

    @classmethod
    def interpolate(
        cls,
        start: ArrayLike,
        end: ArrayLike,
        n_samples: int,
        group: JointGroup | None = None,
    ) -> JointTrajectory:
        """
        Straight joint-space line from start to end (minimum 2 samples).
        """
        n_samples = max(2, n_samples)
        start_arr = np.asarray(start, dtype=np.float64)
        end_arr = np.asarray(end, dtype=np.float64)
        if start_arr.shape != end_arr.shape:
            raise ValueError("start and end must have the same shape")

        t = np.linspace(0, 1, n_samples).reshape(-1, 1)
        positions = start_arr + t * (end_arr - start_arr)
        return cls(group=group, positions=positions)
