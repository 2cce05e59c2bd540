"""
Motion pipeline for time parameterization of joint-space waypoints.

Waypoints live in a JointTrajectory. IterativeSplineParameterization assigns
segment durations and per-joint derivatives so the clamped cubic spline through
the waypoints respects velocity, acceleration and (optionally) jerk limits.

The spline and timing kernels are exposed for callers that manage their own
duration vector.
"""

from splinetime.motion.parameterization import (
    IterativeSplineParameterization,
    JointSeries,
    ParameterizationStatus,
    TimeParameterizationResult,
    parameterize,
)
from splinetime.motion.spline import adjust_two_positions, fit_cubic_spline
from splinetime.motion.timing import fit_spline_and_adjust_times, init_times
from splinetime.motion.trajectory import JointTrajectory

__all__ = [
    # Parameterization
    "IterativeSplineParameterization",
    "ParameterizationStatus",
    "TimeParameterizationResult",
    "JointSeries",
    "parameterize",
    # Trajectory storage
    "JointTrajectory",
    # Kernels
    "fit_cubic_spline",
    "adjust_two_positions",
    "init_times",
    "fit_spline_and_adjust_times",
]
