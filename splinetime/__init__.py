"""
splinetime Python Package

Time parameterization of joint-space waypoint paths with a clamped cubic
spline that is iteratively stretched until per-joint velocity, acceleration
and jerk limits hold.

Key components:
- JointTrajectory: Waypoint storage with boundary conditions and sampling
- JointGroup / VariableBounds: Per-joint kinematic limits
- IterativeSplineParameterization: Assigns durations and derivatives
- parameterize: Convenience wrapper that raises on failure
"""

from ._version import __version__
from .model import JointGroup, VariableBounds
from .motion import (
    IterativeSplineParameterization,
    JointTrajectory,
    ParameterizationStatus,
    TimeParameterizationResult,
    parameterize,
)
from .utils.errors import TrajectoryPlanningError

__all__ = [
    "__version__",
    "JointGroup",
    "VariableBounds",
    "JointTrajectory",
    "IterativeSplineParameterization",
    "ParameterizationStatus",
    "TimeParameterizationResult",
    "TrajectoryPlanningError",
    "parameterize",
]
