"""
Central configuration for splinetime tunables and shared constants.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

TRACE: int = 5
logging.addLevelName(TRACE, "TRACE")
# Add Logger.trace if missing
if not hasattr(logging.Logger, "trace"):

    def _trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = _trace  # type: ignore[attr-defined]
    logging.TRACE = TRACE  # type: ignore[attr-defined]

TRACE_ENABLED = str(os.getenv("SPLINETIME_TRACE", "0")).lower() in (
    "1",
    "true",
    "yes",
    "on",
)

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    s = raw.strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    logger.warning("Ignoring unrecognized boolean %s=%r", name, raw)
    return default


# Fallback limits for joints whose model declares no bound (SI units: rad/s, rad/s², rad/s³)
DEFAULT_VELOCITY_LIMIT: float = float(os.getenv("SPLINETIME_VELOCITY_LIMIT", "1.0"))
DEFAULT_ACCELERATION_LIMIT: float = float(
    os.getenv("SPLINETIME_ACCELERATION_LIMIT", "1.0")
)
DEFAULT_JERK_LIMIT: float = float(os.getenv("SPLINETIME_JERK_LIMIT", "1.0"))

# Multiplicative stretch applied to an offending segment per pass (must be > 1)
DEFAULT_MAX_TIME_CHANGE_PER_IT: float = float(
    os.getenv("SPLINETIME_MAX_TIME_CHANGE_PER_IT", "1.01")
)

# Added to the straight-line duration estimate so the first check never sees a
# zero-length segment (seconds)
INIT_TIME_MARGIN_S: float = float(os.getenv("SPLINETIME_INIT_TIME_MARGIN_S", "1e-3"))

# Upper bound on bound-checker passes for a single compute_time_stamps() call
MAX_ITERATIONS: int = int(os.getenv("SPLINETIME_MAX_ITERATIONS", "100000"))

# Runtime feature toggles
LIMIT_JERK_DEFAULT: bool = _env_bool("SPLINETIME_LIMIT_JERK", False)
ADD_POINTS_DEFAULT: bool = _env_bool("SPLINETIME_ADD_POINTS", False)

# Blend weight of the outer waypoint for points inserted next to each end
ADD_POINTS_OUTER_WEIGHT: float = 0.9

# Sampling rate for consumers that need fixed-interval setpoints (Hz)
CONTROL_RATE_HZ: float = float(os.getenv("SPLINETIME_CONTROL_RATE_HZ", "250"))

# Centralized sample interval (seconds).
INTERVAL_S: float = max(1e-6, 1.0 / max(CONTROL_RATE_HZ, 1.0))


@dataclass(frozen=True, slots=True)
class KinodynamicDefaults:
    """Fallback joint limits used when a joint declares no bound."""

    velocity: float  # rad/s
    acceleration: float  # rad/s²
    jerk: float  # rad/s³


DEFAULTS: KinodynamicDefaults = KinodynamicDefaults(
    velocity=DEFAULT_VELOCITY_LIMIT,
    acceleration=DEFAULT_ACCELERATION_LIMIT,
    jerk=DEFAULT_JERK_LIMIT,
)

# Validate defaults at module load
if DEFAULTS.velocity <= 0 or DEFAULTS.acceleration <= 0 or DEFAULTS.jerk <= 0:
    raise ValueError("Default joint limits must be positive. Check SPLINETIME_* env.")
if DEFAULT_MAX_TIME_CHANGE_PER_IT <= 1.0:
    raise ValueError("SPLINETIME_MAX_TIME_CHANGE_PER_IT must be greater than 1.0")
if INIT_TIME_MARGIN_S <= 0:
    raise ValueError("SPLINETIME_INIT_TIME_MARGIN_S must be positive")
