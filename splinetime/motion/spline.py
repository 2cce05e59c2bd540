"""
Clamped cubic spline fitting for a single joint.

A clamped spline has its first derivative (velocity) fixed at both endpoints.
Fitting it means solving the tridiagonal system

  [ 2*h0    h0                                ][M0  ]       [ (x1-x0)/h0 - v0                 ]
  [ h0      2*(h0+h1)   h1                    ][M1  ]       [ (x2-x1)/h1 - (x1-x0)/h0         ]
  [         ...         ...         ...       ][... ] = 6 * [ ...                             ]
  [                     h_{n-2}   2*h_{n-2}   ][Mn-1]       [ vf - (x_{n-1}-x_{n-2})/h_{n-2}  ]

for the second derivatives M (accelerations), where h_i is the duration of
segment i. The Thomas algorithm solves it in O(N): a forward elimination
sweep into scratch coefficients c/d, then back substitution.

All hot paths are numba kernels writing into caller-provided buffers so the
iteration loop in parameterization.py allocates nothing per pass.
"""

from __future__ import annotations

import numpy as np
from numba import njit  # type: ignore[import-untyped]
from numpy.typing import NDArray


@njit(cache=True)
def _fit_cubic_spline_jit(
    dt: np.ndarray,
    x: np.ndarray,
    x1: np.ndarray,
    x2: np.ndarray,
    c: np.ndarray,
    d: np.ndarray,
) -> None:
    """
    Fit a clamped cubic spline in place.

    x1[0] and x1[n-1] hold the boundary velocities on entry and are preserved.
    Interior x1 and all of x2 are overwritten. c and d are scratch (size n).
    """
    n = x.shape[0]
    v_i = x1[0]
    v_f = x1[n - 1]

    # Forward sweep
    c[0] = 0.5
    d[0] = 3.0 * ((x[1] - x[0]) / dt[0] - v_i) / dt[0]
    for i in range(1, n - 1):
        dt2 = dt[i - 1] + dt[i]
        a = dt[i - 1] / dt2
        denom = 2.0 - a * c[i - 1]
        c[i] = (1.0 - a) / denom
        rhs = 6.0 * ((x[i + 1] - x[i]) / dt[i] - (x[i] - x[i - 1]) / dt[i - 1]) / dt2
        d[i] = (rhs - a * d[i - 1]) / denom
    h = dt[n - 2]
    rhs = 6.0 * (v_f - (x[n - 1] - x[n - 2]) / h)
    d[n - 1] = (rhs - h * d[n - 2]) / (h * (2.0 - c[n - 2]))

    # Back substitution: 2nd derivative
    x2[n - 1] = d[n - 1]
    for i in range(n - 2, -1, -1):
        x2[i] = d[i] - c[i] * x2[i + 1]

    # 1st derivative
    x1[0] = v_i
    for i in range(1, n - 1):
        x1[i] = (x[i + 1] - x[i]) / dt[i] - (2.0 * x2[i] + x2[i + 1]) * dt[i] / 6.0
    x1[n - 1] = v_f


@njit(cache=True)
def _adjust_two_positions_jit(
    dt: np.ndarray,
    x: np.ndarray,
    x1: np.ndarray,
    x2: np.ndarray,
    x2_i: float,
    x2_f: float,
    c: np.ndarray,
    d: np.ndarray,
) -> int:
    """
    Move x[1] and x[n-2] so the fitted spline starts with curvature x2_i and
    ends with curvature x2_f.

    For a fixed time grid both endpoint curvatures are affine in the two
    interior coordinates. Three fits (both points on their outer neighbour,
    then each moved to its inner neighbour) give the full 2x2 linear map, and
    solving it places both points exactly.

    An end whose curvature does not change when its point moves is left at
    its original position; the other end is then solved on its own with one
    extra fit.

    Returns a bitmask of the ends that were moved (1 = start, 2 = end).
    """
    n = x.shape[0]
    start_orig = x[1]
    end_orig = x[n - 2]
    s_out = x[0]
    s_in = x[2]
    e_out = x[n - 1]
    e_in = x[n - 3]

    x[1] = s_out
    x[n - 2] = e_out
    _fit_cubic_spline_jit(dt, x, x1, x2, c, d)
    a_start = x2[0]
    a_end = x2[n - 1]

    # Start point moved to its inner neighbour
    x[1] = s_in
    _fit_cubic_spline_jit(dt, x, x1, x2, c, d)
    u_start = x2[0] - a_start
    u_end = x2[n - 1] - a_end

    # End point moved to its inner neighbour
    x[1] = s_out
    x[n - 2] = e_in
    _fit_cubic_spline_jit(dt, x, x1, x2, c, d)
    w_start = x2[0] - a_start
    w_end = x2[n - 1] - a_end

    start_ok = u_start != 0.0
    end_ok = w_end != 0.0
    det = u_start * w_end - w_start * u_end
    if start_ok and end_ok and det != 0.0:
        ds = x2_i - a_start
        de = x2_f - a_end
        alpha = (ds * w_end - w_start * de) / det
        beta = (u_start * de - u_end * ds) / det
        x[1] = s_out + alpha * (s_in - s_out)
        x[n - 2] = e_out + beta * (e_in - e_out)
        return 3

    x[1] = start_orig
    x[n - 2] = end_orig
    if start_ok:
        x[1] = s_out
        _fit_cubic_spline_jit(dt, x, x1, x2, c, d)
        x[1] = s_out + (x2_i - x2[0]) / u_start * (s_in - s_out)
        return 1
    if end_ok:
        x[n - 2] = e_out
        _fit_cubic_spline_jit(dt, x, x1, x2, c, d)
        x[n - 2] = e_out + (x2_f - x2[n - 1]) / w_end * (e_in - e_out)
        return 2
    return 0


def _check_spline_args(dt: NDArray, x: NDArray, x1: NDArray, x2: NDArray) -> None:
    n = x.shape[0]
    if n < 2:
        raise ValueError(f"At least 2 points are required, got {n}")
    if dt.shape != (n - 1,):
        raise ValueError(f"dt must have shape ({n - 1},), got {dt.shape}")
    if x1.shape != (n,) or x2.shape != (n,):
        raise ValueError("x1 and x2 must have the same shape as x")
    if np.any(dt <= 0.0):
        raise ValueError("Segment durations must be strictly positive")


def fit_cubic_spline(
    dt: NDArray[np.float64],
    x: NDArray[np.float64],
    x1: NDArray[np.float64],
    x2: NDArray[np.float64],
) -> None:
    """
    Fit a clamped cubic spline through x over the time grid dt.

    Args:
        dt: (N-1,) segment durations, all > 0
        x: (N,) positions
        x1: (N,) velocities; x1[0] and x1[-1] are the boundary velocities.
            Interior entries are overwritten.
        x2: (N,) output accelerations

    Raises:
        ValueError: On shape mismatch or a non-positive duration
    """
    _check_spline_args(dt, x, x1, x2)
    n = x.shape[0]
    c = np.empty(n, dtype=np.float64)
    d = np.empty(n, dtype=np.float64)
    _fit_cubic_spline_jit(dt, x, x1, x2, c, d)


def adjust_two_positions(
    dt: NDArray[np.float64],
    x: NDArray[np.float64],
    x1: NDArray[np.float64],
    x2: NDArray[np.float64],
    x2_i: float,
    x2_f: float,
) -> tuple[bool, bool]:
    """
    Reposition x[1] and x[-2] so the spline's endpoint accelerations match
    x2_i and x2_f. Needs at least 4 points.

    Returns:
        (start_moved, end_moved). An end is not moved when its curvature does
        not depend on its interior point.
    """
    _check_spline_args(dt, x, x1, x2)
    n = x.shape[0]
    if n < 4:
        raise ValueError(f"At least 4 points are required, got {n}")
    c = np.empty(n, dtype=np.float64)
    d = np.empty(n, dtype=np.float64)
    moved = _adjust_two_positions_jit(dt, x, x1, x2, float(x2_i), float(x2_f), c, d)
    return bool(moved & 1), bool(moved & 2)
