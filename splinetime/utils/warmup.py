"""
JIT warmup utilities.

Call warmup_jit() on startup to pre-compile all numba kernels before the first
parameterization. With cache=True, this is fast if the cache exists, slower on
first run.
"""

import logging
import time

import numpy as np

from splinetime.motion.spline import _adjust_two_positions_jit, _fit_cubic_spline_jit
from splinetime.motion.timing import _fit_spline_and_adjust_times_jit, _init_times_jit

logger = logging.getLogger(__name__)


def warmup_jit() -> float:
    """
    Pre-compile all numba JIT functions by calling them with dummy data.

    Returns the time taken in seconds.
    """
    logger.info("Warming JIT...")
    start = time.perf_counter()

    n = 6
    dt = np.ones(n - 1, dtype=np.float64)
    x = np.linspace(0.0, 1.0, n)
    x1 = np.zeros(n, dtype=np.float64)
    x2 = np.zeros(n, dtype=np.float64)
    c = np.empty(n, dtype=np.float64)
    d = np.empty(n, dtype=np.float64)

    # splinetime/motion/spline.py
    _fit_cubic_spline_jit(dt, x, x1, x2, c, d)
    _adjust_two_positions_jit(dt, x, x1, x2, 0.0, 0.0, c, d)

    # splinetime/motion/timing.py
    _init_times_jit(dt, x, 1.0, 1e-3)
    _fit_spline_and_adjust_times_jit(dt, x, x1, x2, 1.0, 1.0, np.inf, 1.01, c, d)

    elapsed = time.perf_counter() - start
    logger.info("JIT warmup complete in %.3fs", elapsed)
    return elapsed
