"""Kinetic-chain leak classification.

Looks across the scored swings of a session and names the dominant
way energy fails to reach the barrel. Rules are checked in order and
the first match wins:

1. ``no_bat_delivery``: most swings peak below 10 J of bat energy.
2. ``late_legs``: in most swings the legs peak after the arms.
3. ``torso_bypass``: the torso carries energy but passes less than
   half of it on to the arms.
4. ``early_arms``: fewer than 40% of swings fire legs before arms.
5. ``clean_transfer``: more than 70% of swings fire in order and the
   mean transfer efficiency exceeds 30%.

Anything else is ``unknown``.
"""

import logging
from typing import List

import numpy as np

from .energy import safe_ratio

logger = logging.getLogger(__name__)

NO_BAT_KE = 10.0
MAJORITY = 0.5
TORSO_BYPASS_TRANSFER = 50.0
EARLY_ARMS_PROPER_FRACTION = 0.4
CLEAN_PROPER_FRACTION = 0.7
CLEAN_TRANSFER_EFFICIENCY = 30.0

LEAK_MESSAGES = {
    "clean_transfer": {
        "caption": "Energy flowed through the chain.",
        "training": "Keep doing what you're doing.",
    },
    "late_legs": {
        "caption": "Your legs fired late, so the energy showed up after your hands.",
        "training": "Get to the ground earlier.",
    },
    "early_arms": {
        "caption": "Your arms took over before your legs finished.",
        "training": "Let the legs lead.",
    },
    "torso_bypass": {
        "caption": "Energy jumped from legs to arms, skipping your core.",
        "training": "Let your core catch and redirect the energy.",
    },
    "no_bat_delivery": {
        "caption": "Energy didn't make it to the barrel.",
        "training": "Focus on delivering energy through the hands.",
    },
    "unknown": {"caption": "", "training": ""},
}


def _leak(leak_type: str) -> dict:
    return {"type": leak_type, **LEAK_MESSAGES[leak_type]}


def _sequence(swing: dict):
    """True if legs peak no later than arms, False if after, None if unknown."""
    legs = swing.get("legs_peak_frame")
    arms = swing.get("arms_peak_frame")
    if legs is None or arms is None:
        return None
    return legs <= arms


def detect_leak(swings: List[dict]) -> dict:
    """Classify the energy leak of a set of swing records.

    Parameters
    ----------
    swings : list of dict
        Swing records from :func:`~fourb.session.score_swing`.

    Returns
    -------
    dict
        ``{"type", "caption", "training"}``.
    """
    if not swings:
        return _leak("unknown")

    n = len(swings)
    order = [_sequence(s) for s in swings]
    proper = sum(1 for o in order if o is True) / n
    late_legs = sum(1 for o in order if o is False) / n
    no_bat = sum(1 for s in swings if s.get("bat_ke", 0.0) < NO_BAT_KE) / n

    mean_torso_ke = float(np.mean([s.get("torso_ke", 0.0) for s in swings]))
    mean_arms_transfer = float(np.mean([
        safe_ratio(s.get("arms_ke", 0.0), s.get("torso_ke", 0.0)) * 100.0 for s in swings
    ]))
    mean_transfer = float(np.mean([s.get("transfer_efficiency", 0.0) for s in swings]))

    if no_bat > MAJORITY:
        leak_type = "no_bat_delivery"
    elif late_legs > MAJORITY:
        leak_type = "late_legs"
    elif mean_torso_ke > 0 and mean_arms_transfer < TORSO_BYPASS_TRANSFER:
        leak_type = "torso_bypass"
    elif proper < EARLY_ARMS_PROPER_FRACTION:
        leak_type = "early_arms"
    elif proper > CLEAN_PROPER_FRACTION and mean_transfer > CLEAN_TRANSFER_EFFICIENCY:
        leak_type = "clean_transfer"
    else:
        leak_type = "unknown"

    logger.debug(
        f"Leak {leak_type}: proper={proper:.2f} late_legs={late_legs:.2f} "
        f"no_bat={no_bat:.2f} arms/torso={mean_arms_transfer:.1f}%"
    )
    return _leak(leak_type)
