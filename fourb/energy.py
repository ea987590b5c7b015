"""Energetic and momentum extraction.

Peak kinetic energy of the bat, the whole body and each body segment,
peak angular momentum of pelvis, torso and arms, and the transfer
ratios derived from them. Peaks follow the same in-window rule as the
kinematic metrics.
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from .parsing import get_signal
from .window import peak_frame_in_window, peak_in_window

logger = logging.getLogger(__name__)


def safe_ratio(numerator: float, denominator: float, min_denominator: float = 0.01) -> float:
    """``numerator / denominator``, or 0 when the denominator is near zero."""
    if denominator is None or abs(denominator) <= min_denominator:
        return 0.0
    return float(numerator) / float(denominator)


def _lookup(tables, signal: str) -> Optional[np.ndarray]:
    for df in tables:
        values = get_signal(df, signal)
        if values is not None:
            return values
    return None


def _combined(tables, combined: str, left: str, right: str) -> Optional[np.ndarray]:
    """A combined segment signal, or the sum of its left/right parts."""
    values = _lookup(tables, combined)
    if values is not None:
        return values
    parts = [p for p in (_lookup(tables, left), _lookup(tables, right)) if p is not None]
    if not parts:
        return None
    n = min(p.size for p in parts)
    return np.sum([p[:n] for p in parts], axis=0)


def extract_energetics(
    energy: Optional[pd.DataFrame],
    window: dict,
    config: dict,
    kinematics: Optional[pd.DataFrame] = None,
) -> dict:
    """Peak energy and momentum metrics of one swing.

    Signals are looked up in *energy* first, then in *kinematics*.

    Parameters
    ----------
    energy : pd.DataFrame or None
        Per-swing momentum/energy table.
    window : dict
        Swing window.
    config : dict
        Full engine config (``energy`` section).
    kinematics : pd.DataFrame, optional
        Secondary table searched for signals missing from *energy*.

    Returns
    -------
    dict
        Peak values (``bat_ke``, ``total_ke``, ``legs_ke``,
        ``torso_ke``, ``arms_ke``, ``pelvis_momentum``,
        ``torso_momentum``, ``arms_momentum``), ratios
        (``transfer_efficiency`` in %, ``tp_ratio``, ``at_ratio``),
        presence flags (``has_bat``, ``has_total``, ``has_legs``,
        ``has_torso_ke``) and the in-window peak frames
        ``legs_peak_frame`` / ``arms_peak_frame`` (None if absent).
    """
    cfg = config["energy"]
    eps = cfg["min_denominator"]
    tables = (energy, kinematics)

    bat = _lookup(tables, "bat_ke")
    total = _lookup(tables, "total_ke")
    legs = _combined(tables, "legs_ke", "lleg_ke", "rleg_ke")
    torso = _lookup(tables, "torso_ke")
    arms = _combined(tables, "arms_ke", "larm_ke", "rarm_ke")
    pelvis_mom = _lookup(tables, "pelvis_momentum")
    torso_mom = _lookup(tables, "torso_momentum")
    arms_mom = _lookup(tables, "arms_momentum")

    result = {
        "bat_ke": peak_in_window(bat, window),
        "total_ke": peak_in_window(total, window),
        "legs_ke": peak_in_window(legs, window),
        "torso_ke": peak_in_window(torso, window),
        "arms_ke": peak_in_window(arms, window),
        "pelvis_momentum": peak_in_window(pelvis_mom, window),
        "torso_momentum": peak_in_window(torso_mom, window),
        "arms_momentum": peak_in_window(arms_mom, window),
    }
    result["transfer_efficiency"] = safe_ratio(result["bat_ke"], result["total_ke"], eps) * 100.0
    result["tp_ratio"] = safe_ratio(result["torso_momentum"], result["pelvis_momentum"], eps)
    result["at_ratio"] = safe_ratio(result["arms_momentum"], result["torso_momentum"], eps)

    result["has_bat"] = bat is not None and result["bat_ke"] > cfg["min_bat_ke"]
    result["has_total"] = total is not None
    result["has_legs"] = legs is not None
    result["has_torso_ke"] = torso is not None and result["torso_ke"] > 0
    result["legs_peak_frame"] = peak_frame_in_window(legs, window)
    result["arms_peak_frame"] = peak_frame_in_window(arms, window)

    if bat is None:
        logger.debug("No bat kinetic energy column; bat/ball scores will use fallbacks")
    return result
