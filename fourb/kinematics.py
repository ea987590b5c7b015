"""Kinematic velocity extraction.

Angular velocities of the pelvis and torso, hip-shoulder separation
(X-factor) and its rate of change (stretch rate), plus the
consistency coefficient of variation that feeds the Brain score.

All peaks are taken inside the swing window only.
"""

import logging
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from scipy.stats import variation

from .parsing import get_signal
from .units import maybe_radians_to_degrees
from .window import peak_in_window, window_slice

logger = logging.getLogger(__name__)


def angular_velocity(angles, fps: float, max_velocity: Optional[float] = None) -> np.ndarray:
    """Backward-difference angular velocity (units/s).

    ``v[0] = 0`` and ``v[i] = (x[i] - x[i-1]) * fps``. Samples whose
    magnitude exceeds *max_velocity* are zeroed as capture artifacts.

    Parameters
    ----------
    angles : array-like
        Angle samples (degrees).
    fps : float
        Sampling rate.
    max_velocity : float, optional
        Implausibility ceiling. None keeps every sample.

    Returns
    -------
    np.ndarray
        Same length as *angles*.
    """
    x = np.asarray(angles, dtype=float)
    v = np.zeros_like(x)
    if x.size > 1:
        v[1:] = np.diff(x) * fps
    if max_velocity is not None:
        spikes = np.abs(v) > max_velocity
        if spikes.any():
            logger.debug(f"Zeroed {int(spikes.sum())} samples above {max_velocity}/s")
            v[spikes] = 0.0
    return v


def x_factor_series(torso, pelvis) -> np.ndarray:
    """Per-frame hip-shoulder separation ``|torso - pelvis|``."""
    torso = np.asarray(torso, dtype=float)
    pelvis = np.asarray(pelvis, dtype=float)
    n = min(torso.size, pelvis.size)
    return np.abs(torso[:n] - pelvis[:n])


def consistency_cv(
    velocities: Sequence[np.ndarray],
    window: dict,
    min_velocity: float = 10.0,
) -> Optional[float]:
    """Mean coefficient of variation (%) of in-window velocity samples.

    For each series, in-window samples with ``|v| > min_velocity`` are
    kept and their CV (population standard deviation over mean) is
    computed. Series with fewer than two kept samples are ignored.

    Returns
    -------
    float or None
        None when no series qualifies.
    """
    cvs = []
    for series in velocities:
        if series is None:
            continue
        samples = np.abs(window_slice(series, window))
        samples = samples[samples > min_velocity]
        if samples.size < 2:
            continue
        cvs.append(float(variation(samples)) * 100.0)
    if not cvs:
        return None
    return float(np.mean(cvs))


def extract_kinematics(
    kinematics: Optional[pd.DataFrame],
    window: dict,
    fps: float,
    config: dict,
) -> dict:
    """Peak rotational metrics of one swing.

    Parameters
    ----------
    kinematics : pd.DataFrame or None
        Per-swing inverse-kinematics table.
    window : dict
        Output of :func:`~fourb.window.detect_swing_window`.
    fps : float
        Sampling rate.
    config : dict
        Full engine config (``units`` and ``kinematics`` sections).

    Returns
    -------
    dict
        Keys ``pelvis_velocity``, ``torso_velocity``, ``x_factor``,
        ``stretch_rate`` (0 when the signal is missing),
        ``consistency_cv`` (None when unavailable), ``has_pelvis`` and
        ``has_torso``.
    """
    kin_cfg = config["kinematics"]
    rad_threshold = config["units"]["radians_peak_threshold"]
    max_joint = kin_cfg["max_joint_velocity"]

    pelvis = get_signal(kinematics, "pelvis_rot")
    torso = get_signal(kinematics, "torso_rot")
    if pelvis is not None:
        pelvis = maybe_radians_to_degrees(pelvis, rad_threshold, "pelvis_rot")
    if torso is not None:
        torso = maybe_radians_to_degrees(torso, rad_threshold, "torso_rot")

    pelvis_vel = angular_velocity(pelvis, fps, max_joint) if pelvis is not None else None
    torso_vel = angular_velocity(torso, fps, max_joint) if torso is not None else None

    result = {
        "pelvis_velocity": peak_in_window(pelvis_vel, window),
        "torso_velocity": peak_in_window(torso_vel, window),
        "x_factor": 0.0,
        "stretch_rate": 0.0,
        "consistency_cv": consistency_cv(
            [pelvis_vel, torso_vel], window, kin_cfg["consistency_min_velocity"],
        ),
        "has_pelvis": pelvis is not None,
        "has_torso": torso is not None,
    }

    if pelvis is not None and torso is not None:
        separation = x_factor_series(torso, pelvis)
        stretch = angular_velocity(separation, fps, kin_cfg["max_stretch_rate"])
        result["x_factor"] = peak_in_window(separation, window)
        result["stretch_rate"] = peak_in_window(stretch, window)
    else:
        missing = [name for name, sig in (("pelvis_rot", pelvis), ("torso_rot", torso)) if sig is None]
        logger.debug(f"Missing rotation columns {missing}; separation metrics zeroed")

    return result
