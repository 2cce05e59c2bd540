"""
Segment duration seeding and bound-driven stretching for one joint.

Both kernels work on the shared duration vector in place. Durations only ever
grow: init_times raises them to a straight-line estimate, and
fit_spline_and_adjust_times multiplies offending segments by a factor > 1.
"""

from __future__ import annotations

import numpy as np
from numba import njit  # type: ignore[import-untyped]
from numpy.typing import NDArray

from splinetime.config import INIT_TIME_MARGIN_S
from splinetime.motion.spline import _check_spline_args, _fit_cubic_spline_jit


@njit(cache=True)
def _init_times_jit(
    dt: np.ndarray, x: np.ndarray, max_velocity: float, margin: float
) -> None:
    """Raise each dt[i] to at least |x[i+1]-x[i]| / max_velocity + margin."""
    for i in range(dt.shape[0]):
        min_dt = abs(x[i + 1] - x[i]) / max_velocity + margin
        if dt[i] < min_dt:
            dt[i] = min_dt


@njit(cache=True)
def _fit_spline_and_adjust_times_jit(
    dt: np.ndarray,
    x: np.ndarray,
    x1: np.ndarray,
    x2: np.ndarray,
    vlimit: float,
    alimit: float,
    jlimit: float,
    tfactor: float,
    c: np.ndarray,
    d: np.ndarray,
) -> int:
    """
    Fit the spline on the current grid, then stretch every segment that breaks
    a bound. Velocity, acceleration and jerk are evaluated independently per
    segment, so one segment can be stretched up to three times in a pass.

    Returns the number of stretches applied (0 means all bounds hold).
    """
    _fit_cubic_spline_jit(dt, x, x1, x2, c, d)

    stretches = 0
    for i in range(dt.shape[0]):
        h = dt[i]
        if abs(x1[i]) > vlimit or abs(x1[i + 1]) > vlimit:
            dt[i] *= tfactor
            stretches += 1
        if abs(x2[i]) > alimit or abs(x2[i + 1]) > alimit:
            dt[i] *= tfactor
            stretches += 1
        # Jerk is constant over a segment
        jrk = (x2[i + 1] - x2[i]) / h
        if abs(jrk) > jlimit:
            dt[i] *= tfactor
            stretches += 1
    return stretches


def init_times(
    dt: NDArray[np.float64],
    x: NDArray[np.float64],
    max_velocity: float,
    margin: float = INIT_TIME_MARGIN_S,
) -> None:
    """
    Seed segment durations from a max-velocity straight-line estimate.

    Never lowers an existing duration, so calling it once per joint against
    the same dt leaves the per-segment maximum over all joints.

    Args:
        dt: (N-1,) shared duration vector, updated in place
        x: (N,) positions of one joint
        max_velocity: joint velocity limit (> 0)
        margin: positive slack added to every estimate (seconds)
    """
    if x.shape[0] < 2 or dt.shape != (x.shape[0] - 1,):
        raise ValueError("dt must have exactly one entry per segment of x")
    if max_velocity <= 0:
        raise ValueError(f"max_velocity must be positive, got {max_velocity}")
    if margin <= 0:
        raise ValueError(f"margin must be positive, got {margin}")
    _init_times_jit(dt, x, float(max_velocity), float(margin))


def fit_spline_and_adjust_times(
    dt: NDArray[np.float64],
    x: NDArray[np.float64],
    x1: NDArray[np.float64],
    x2: NDArray[np.float64],
    vlimit: float,
    alimit: float,
    jlimit: float = np.inf,
    tfactor: float = 1.01,
) -> bool:
    """
    Re-fit one joint's spline and stretch segments that violate its bounds.

    Args:
        dt: (N-1,) shared duration vector, updated in place
        x: (N,) positions
        x1: (N,) velocities; boundary entries are the clamped values
        x2: (N,) accelerations (output)
        vlimit: velocity limit
        alimit: acceleration limit
        jlimit: jerk limit, np.inf disables the jerk check
        tfactor: multiplicative stretch (> 1)

    Returns:
        True if any segment was stretched
    """
    _check_spline_args(dt, x, x1, x2)
    if tfactor <= 1.0:
        raise ValueError(f"tfactor must be greater than 1.0, got {tfactor}")
    n = x.shape[0]
    c = np.empty(n, dtype=np.float64)
    d = np.empty(n, dtype=np.float64)
    stretches = _fit_spline_and_adjust_times_jit(
        dt, x, x1, x2, float(vlimit), float(alimit), float(jlimit), float(tfactor), c, d
    )
    return stretches > 0
