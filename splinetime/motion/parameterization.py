"""
Iterative spline time parameterization.

Assigns a duration to every segment of a JointTrajectory and recomputes
per-joint velocities and accelerations so that the clamped cubic spline
through the waypoints respects each joint's velocity, acceleration and
(optionally) jerk limits.

Pipeline:
  1. Validate inputs and snapshot the trajectory into one JointSeries per joint
  2. Optionally insert two helper points next to each end
  3. Seed the shared duration vector from a max-velocity estimate
  4. Stretch durations until no joint violates a bound (cross-joint fixed point)
  5. Optionally move the helper points so endpoint accelerations match, and
     re-converge
  6. Commit durations and derivatives back to the trajectory

Every joint is fitted against the same duration vector, so a stretch made for
one joint invalidates the others' fits; the outer loops only stop after a full
pass over all joints makes no stretch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from splinetime import config as cfg
from splinetime.model import JointGroup
from splinetime.motion.spline import _adjust_two_positions_jit
from splinetime.motion.timing import _fit_spline_and_adjust_times_jit, _init_times_jit
from splinetime.motion.trajectory import JointTrajectory
from splinetime.utils.errors import TrajectoryPlanningError

logger = logging.getLogger(__name__)

MIN_WAYPOINTS: int = 4


class ParameterizationStatus(Enum):
    """Outcome of a compute_time_stamps() call."""

    SUCCESS = "success"
    INVALID_CONFIGURATION = "invalid_configuration"  # bad stretch factor, too few points, no group
    INFEASIBLE_BOUNDARY = "infeasible_boundary"  # boundary velocity/acceleration out of bounds
    NOT_CONVERGED = "not_converged"  # iteration guard tripped


@dataclass
class TimeParameterizationResult:
    """Result of a parameterization run. Truthy on success."""

    status: ParameterizationStatus
    iterations: int = 0
    message: str | None = None

    @property
    def success(self) -> bool:
        return self.status is ParameterizationStatus.SUCCESS

    def __bool__(self) -> bool:
        return self.success


@dataclass
class JointSeries:
    """
    Working copy of one joint's waypoints.

    positions/velocities/accelerations are mutated in place by the kernels.
    Boundary values and limits are fixed for the whole run.
    """

    positions: NDArray[np.float64]
    velocities: NDArray[np.float64]
    accelerations: NDArray[np.float64]
    initial_velocity: float
    final_velocity: float
    initial_acceleration: float
    final_acceleration: float
    max_velocity: float
    max_acceleration: float
    max_jerk: float  # np.inf when jerk limiting is off

    def insert_end_points(self, outer_weight: float) -> None:
        """Add a blend point after the first and before the last waypoint."""
        x = self.positions
        first = outer_weight * x[0] + (1.0 - outer_weight) * x[1]
        last = (1.0 - outer_weight) * x[-2] + outer_weight * x[-1]
        n = len(x)
        self.positions = np.insert(x, [1, n - 1], [first, last])
        self.velocities = np.insert(self.velocities, [1, n - 1], 0.0)
        self.accelerations = np.insert(self.accelerations, [1, n - 1], 0.0)


class _IterationLimitExceeded(Exception):
    pass


class _Solver:
    """Shared duration vector plus scratch buffers for one run."""

    def __init__(self, n_points: int, tfactor: float, max_iterations: int):
        self.dt = np.zeros(n_points - 1, dtype=np.float64)
        self.tfactor = tfactor
        self.max_iterations = max_iterations
        self.iterations = 0
        self._c = np.empty(n_points, dtype=np.float64)
        self._d = np.empty(n_points, dtype=np.float64)

    def converge(self, s: JointSeries) -> bool:
        """Fit and stretch until this joint is within bounds. True if dt changed."""
        stretched = False
        while True:
            self.iterations += 1
            if self.iterations > self.max_iterations:
                raise _IterationLimitExceeded
            n = _fit_spline_and_adjust_times_jit(
                self.dt,
                s.positions,
                s.velocities,
                s.accelerations,
                s.max_velocity,
                s.max_acceleration,
                s.max_jerk,
                self.tfactor,
                self._c,
                self._d,
            )
            if n == 0:
                return stretched
            stretched = True

    def match_endpoint_accelerations(self, s: JointSeries) -> None:
        _adjust_two_positions_jit(
            self.dt,
            s.positions,
            s.velocities,
            s.accelerations,
            s.initial_acceleration,
            s.final_acceleration,
            self._c,
            self._d,
        )


def _scaling_factor(value: float, name: str) -> float:
    """Return value if it lies in (0, 1], else 1.0 (silently for exactly 0.0)."""
    default = 1.0
    if 0.0 < value <= 1.0:
        return value
    if value == 0.0:
        logger.debug(
            "A %s of 0.0 was specified, defaulting to %f instead.", name, default
        )
    else:
        logger.warning(
            "Invalid %s %f specified, defaulting to %f instead.", name, value, default
        )
    return default


class IterativeSplineParameterization:
    """
    Time parameterization by iterative stretching of a clamped cubic spline.

    Not time optimal: durations start from a straight-line estimate and grow
    by max_time_change_per_it until every joint's spline is within bounds.
    """

    def __init__(
        self,
        max_time_change_per_it: float = cfg.DEFAULT_MAX_TIME_CHANGE_PER_IT,
        add_points: bool = cfg.ADD_POINTS_DEFAULT,
        limit_jerk: bool = cfg.LIMIT_JERK_DEFAULT,
        max_iterations: int = cfg.MAX_ITERATIONS,
        unwind: bool = True,
    ):
        """
        Args:
            max_time_change_per_it: Stretch factor per violation, must be > 1.0
                (checked per call so a bad value fails without side effects)
            add_points: Insert helper points next to each end and match the
                boundary accelerations
            limit_jerk: Enforce per-joint jerk limits
            max_iterations: Bound-check passes allowed per call
            unwind: Unwrap continuous joints before fitting
        """
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
        self.max_time_change_per_it = max_time_change_per_it
        self.add_points = add_points
        self.limit_jerk = limit_jerk
        self.max_iterations = max_iterations
        self.unwind = unwind

    def compute_time_stamps(
        self,
        trajectory: JointTrajectory,
        max_velocity_scaling_factor: float = 1.0,
        max_acceleration_scaling_factor: float = 1.0,
    ) -> TimeParameterizationResult:
        """
        Time parameterize trajectory in place.

        Args:
            trajectory: Waypoints to parameterize. Velocities and accelerations
                of the first and last waypoint are the boundary conditions.
            max_velocity_scaling_factor: Fraction of the joint velocity limits, (0, 1]
            max_acceleration_scaling_factor: Fraction of the acceleration limits, (0, 1]

        Returns:
            Result with status SUCCESS, INVALID_CONFIGURATION, INFEASIBLE_BOUNDARY
            or NOT_CONVERGED. The trajectory is only modified on SUCCESS.
        """
        if trajectory.empty:
            return TimeParameterizationResult(ParameterizationStatus.SUCCESS)

        group = trajectory.group
        if group is None:
            return self._fail(
                ParameterizationStatus.INVALID_CONFIGURATION,
                "It looks like the planner did not set the group the plan was computed for",
            )
        if not self.max_time_change_per_it > 1.0:
            return self._fail(
                ParameterizationStatus.INVALID_CONFIGURATION,
                f"max_time_change_per_it must be greater than 1.0, "
                f"got {self.max_time_change_per_it}",
            )
        num_points = trajectory.waypoint_count
        if num_points < MIN_WAYPOINTS:
            return self._fail(
                ParameterizationStatus.INVALID_CONFIGURATION,
                f"At least {MIN_WAYPOINTS} waypoints are required, got {num_points}",
            )

        vscale = _scaling_factor(
            max_velocity_scaling_factor, "max_velocity_scaling_factor"
        )
        ascale = _scaling_factor(
            max_acceleration_scaling_factor, "max_acceleration_scaling_factor"
        )

        series = self._snapshot(trajectory, group, vscale, ascale)

        for j, s in enumerate(series):
            name = group.joint_names[j]
            if not (s.max_velocity > 0.0 and s.max_acceleration > 0.0 and s.max_jerk > 0.0):
                return self._fail(
                    ParameterizationStatus.INVALID_CONFIGURATION,
                    f"Limits of '{name}' must be positive (velocity {s.max_velocity:f}, "
                    f"acceleration {s.max_acceleration:f}, jerk {s.max_jerk:f})",
                )

        for j, s in enumerate(series):
            name = group.joint_names[j]
            if abs(s.initial_velocity) > s.max_velocity:
                msg = f"Initial velocity {s.initial_velocity:f} of '{name}' out of bounds"
            elif abs(s.final_velocity) > s.max_velocity:
                msg = f"Final velocity {s.final_velocity:f} of '{name}' out of bounds"
            elif abs(s.initial_acceleration) > s.max_acceleration:
                msg = f"Initial acceleration {s.initial_acceleration:f} of '{name}' out of bounds"
            elif abs(s.final_acceleration) > s.max_acceleration:
                msg = f"Final acceleration {s.final_acceleration:f} of '{name}' out of bounds"
            else:
                continue
            return self._fail(ParameterizationStatus.INFEASIBLE_BOUNDARY, msg)

        if self.add_points:
            for s in series:
                s.insert_end_points(cfg.ADD_POINTS_OUTER_WEIGHT)
            num_points += 2

        solver = _Solver(num_points, self.max_time_change_per_it, self.max_iterations)
        try:
            self._solve(solver, series)
        except _IterationLimitExceeded:
            msg = (
                f"Did not converge within {self.max_iterations} iterations "
                f"(group '{group.name}', {num_points} points)"
            )
            logger.warning(msg)
            return TimeParameterizationResult(
                ParameterizationStatus.NOT_CONVERGED,
                iterations=solver.iterations - 1,
                message=msg,
            )

        self._commit(trajectory, solver.dt, series)
        logger.debug(
            "IterativeSplineParameterization: group=%s points=%d duration=%.3fs iterations=%d",
            group.name,
            num_points,
            float(np.sum(solver.dt)),
            solver.iterations,
        )
        return TimeParameterizationResult(
            ParameterizationStatus.SUCCESS, iterations=solver.iterations
        )

    def _fail(
        self, status: ParameterizationStatus, msg: str
    ) -> TimeParameterizationResult:
        logger.error(msg)
        return TimeParameterizationResult(status, message=msg)

    def _snapshot(
        self,
        trajectory: JointTrajectory,
        group: JointGroup,
        vscale: float,
        ascale: float,
    ) -> list[JointSeries]:
        """Copy the trajectory into per-joint series with scaled limits."""
        source = trajectory
        if self.unwind and any(group.continuous):
            source = trajectory.copy()
            source.unwind()

        series: list[JointSeries] = []
        for j, bounds in enumerate(group.bounds):
            velocities = source.velocities[:, j].copy()
            accelerations = source.accelerations[:, j].copy()
            series.append(
                JointSeries(
                    positions=source.positions[:, j].copy(),
                    velocities=velocities,
                    accelerations=accelerations,
                    initial_velocity=float(velocities[0]),
                    final_velocity=float(velocities[-1]),
                    initial_acceleration=float(accelerations[0]),
                    final_acceleration=float(accelerations[-1]),
                    max_velocity=bounds.velocity_limit() * vscale,
                    max_acceleration=bounds.acceleration_limit() * ascale,
                    max_jerk=bounds.jerk_limit() if self.limit_jerk else np.inf,
                )
            )
        return series

    def _solve(self, solver: _Solver, series: list[JointSeries]) -> None:
        for s in series:
            _init_times_jit(solver.dt, s.positions, s.max_velocity, cfg.INIT_TIME_MARGIN_S)

        # Velocity/acceleration/jerk bounds, repeated until no joint stretches
        passes = 0
        while True:
            passes += 1
            stretched = [solver.converge(s) for s in series]
            if cfg.TRACE_ENABLED:
                logger.trace(  # type: ignore[attr-defined]
                    "bounds pass %d: stretched joints %s", passes, np.flatnonzero(stretched)
                )
            if not any(stretched):
                break

        if not self.add_points:
            return

        # Move helper points to hit the boundary accelerations, re-converge
        passes = 0
        loop = True
        while loop:
            passes += 1
            loop = False
            for s in series:
                solver.match_endpoint_accelerations(s)
                if solver.converge(s):
                    loop = True
            if cfg.TRACE_ENABLED:
                logger.trace(  # type: ignore[attr-defined]
                    "endpoint acceleration pass %d: stretched=%s", passes, loop
                )

    def _commit(
        self,
        trajectory: JointTrajectory,
        dt: NDArray[np.float64],
        series: list[JointSeries],
    ) -> None:
        if self.add_points:
            last = trajectory.waypoint_count  # index of the final point after the first insert
            trajectory.insert_waypoint(1, [s.positions[1] for s in series])
            trajectory.insert_waypoint(last, [s.positions[-2] for s in series])

        trajectory.set_waypoint_duration_from_previous(0, 0.0)
        for i in range(1, trajectory.waypoint_count):
            trajectory.set_waypoint_duration_from_previous(i, float(dt[i - 1]))
        for j, s in enumerate(series):
            trajectory.positions[:, j] = s.positions
            trajectory.velocities[:, j] = s.velocities
            trajectory.accelerations[:, j] = s.accelerations


def parameterize(
    trajectory: JointTrajectory,
    max_velocity_scaling_factor: float = 1.0,
    max_acceleration_scaling_factor: float = 1.0,
    **kwargs,
) -> JointTrajectory:
    """
    Time parameterize trajectory in place and return it.

    Keyword arguments are forwarded to IterativeSplineParameterization.

    Raises:
        TrajectoryPlanningError: If the parameterization fails
    """
    result = IterativeSplineParameterization(**kwargs).compute_time_stamps(
        trajectory, max_velocity_scaling_factor, max_acceleration_scaling_factor
    )
    if not result:
        raise TrajectoryPlanningError(
            result.message or "time parameterization failed", status=result.status.value
        )
    return trajectory
