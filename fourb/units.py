"""Frame-rate detection and angle unit normalization.

Capture exports carry no unit metadata, so the sampling rate is read
off the timestamp column and angle columns are assumed to be in
radians when their peak magnitude is implausibly small for degrees.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from .constants import RAD_TO_DEG
from .parsing import get_signal

logger = logging.getLogger(__name__)

DEFAULT_FPS = 240.0
RADIANS_PEAK_THRESHOLD = 8.0


def detect_fps(times, fallback: float = DEFAULT_FPS) -> float:
    """Derive the sampling rate from the first two timestamps.

    Parameters
    ----------
    times : array-like or None
        Timestamp samples in seconds.
    fallback : float
        Returned when detection fails: fewer than two samples, or a
        first interval that is non-positive or one second or longer.

    Returns
    -------
    float
        Frames per second.
    """
    if times is None:
        return float(fallback)
    t = np.asarray(times, dtype=float)
    if t.size < 2:
        return float(fallback)
    dt = float(t[1] - t[0])
    if not np.isfinite(dt) or dt <= 0 or dt >= 1:
        logger.debug(f"Unusable first time delta {dt!r}, using fps={fallback}")
        return float(fallback)
    return 1.0 / dt


def detect_table_fps(df: pd.DataFrame, fallback: float = DEFAULT_FPS) -> float:
    """Frames per second of a parsed table, via its timestamp column."""
    return detect_fps(get_signal(df, "time"), fallback=fallback)


def maybe_radians_to_degrees(
    values,
    threshold: float = RADIANS_PEAK_THRESHOLD,
    label: Optional[str] = None,
) -> np.ndarray:
    """Convert an angle series to degrees if it looks like radians.

    A series whose peak absolute value is below *threshold* is
    multiplied by ``180/pi``; anything else is returned unchanged.

    Parameters
    ----------
    values : array-like
        Angle samples.
    threshold : float
        Peak magnitude below which the series is taken as radians.
    label : str, optional
        Signal name for log messages.

    Returns
    -------
    np.ndarray
    """
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return arr
    peak = float(np.max(np.abs(arr)))
    if peak < threshold:
        logger.debug(f"{label or 'angle'}: peak |value| {peak:.3f} < {threshold}, converting rad -> deg")
        return arr * RAD_TO_DEG
    return arr
