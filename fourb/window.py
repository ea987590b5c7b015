"""Swing-window detection.

Bounds the scored interval of a swing (stride to contact) so setup
and follow-through frames never contribute to peaks.

Contact is located by an ordered cascade of detectors; the first one
that returns an answer wins:

- **explicit**: a ``contact_frame`` column in either table.
- **bat_ke_peak**: frame of peak bat kinetic energy ("high").
- **total_ke_peak**: frame of peak total kinetic energy ("medium").

If no detector answers, a fixed-ratio fallback places contact at
``contact_ratio`` of the frame count ("low"). The stride frame comes
from an explicit ``stride_frame`` column when present, else from
``stride_ratio`` of the contact frame.

All detectors are registered in CONTACT_DETECTORS and can be extended
via register_contact_detector(). A detector takes
``(kinematics, energy, n_frames, config)`` and returns
``(contact_frame, confidence)`` or None when it has no opinion.
"""

import logging
from typing import Callable, Dict, Optional, Tuple

import numpy as np
import pandas as pd

from .parsing import get_signal
from .scoring import round_half_up

logger = logging.getLogger(__name__)


# ── Detectors ────────────────────────────────────────────────────────


def _first_positive(values) -> Optional[int]:
    if values is None:
        return None
    positive = values[values > 0]
    if positive.size == 0:
        return None
    return round_half_up(positive[0])


def _explicit_column(kinematics, energy, signal: str) -> Optional[int]:
    for df in (kinematics, energy):
        frame = _first_positive(get_signal(df, signal))
        if frame is not None:
            return frame
    return None


def _detect_explicit(kinematics, energy, n_frames, config):
    """Contact frame taken from a ``contact_frame`` column."""
    frame = _explicit_column(kinematics, energy, "contact_frame")
    if frame is None:
        return None
    if frame >= n_frames:
        logger.debug(f"Explicit contact_frame {frame} beyond {n_frames} frames, ignored")
        return None
    return frame, "high"


def _peak_detector(signal: str, confidence: str) -> Callable:
    def detect(kinematics, energy, n_frames, config):
        values = get_signal(energy, signal)
        if values is None:
            values = get_signal(kinematics, signal)
        if values is None or values.size == 0:
            return None
        frame = int(np.argmax(np.abs(values)))
        if values[frame] == 0:
            return None
        if frame <= config["min_peak_fraction"] * n_frames:
            logger.debug(f"{signal} peak at frame {frame} too early ({n_frames} frames), ignored")
            return None
        return frame, confidence

    detect.__name__ = f"_detect_{signal}_peak"
    detect.__doc__ = f"Contact frame at the peak of {signal}."
    return detect


CONTACT_DETECTORS: Dict[str, Callable] = {
    "explicit": _detect_explicit,
    "bat_ke_peak": _peak_detector("bat_ke", "high"),
    "total_ke_peak": _peak_detector("total_ke", "medium"),
}


def register_contact_detector(name: str, func: Callable):
    """Register a custom contact-frame detector.

    The function must accept (kinematics, energy, n_frames, config)
    and return ``(contact_frame, confidence)`` or None.
    """
    CONTACT_DETECTORS[name] = func


def list_contact_detectors() -> list:
    """Return available contact detector names."""
    return list(CONTACT_DETECTORS.keys())


# ── Window ───────────────────────────────────────────────────────────


def frame_count(kinematics: Optional[pd.DataFrame], energy: Optional[pd.DataFrame]) -> int:
    """Number of frames of a swing (longest of the two tables)."""
    sizes = [len(df) for df in (kinematics, energy) if df is not None]
    return max(sizes) if sizes else 0


def detect_swing_window(
    kinematics: Optional[pd.DataFrame],
    energy: Optional[pd.DataFrame],
    config: dict,
) -> dict:
    """Locate the stride-to-contact window of one swing.

    Parameters
    ----------
    kinematics, energy : pd.DataFrame or None
        Per-swing tables.
    config : dict
        The ``window`` section of the engine config.

    Returns
    -------
    dict
        ``{"stride_frame", "contact_frame", "confidence", "method"}``.
        Frames are inclusive indices; ``confidence`` is one of
        ``"high"``, ``"medium"``, ``"low"``.
    """
    n = frame_count(kinematics, energy)
    contact, confidence, method = None, "low", "ratio"

    for name in config["detectors"]:
        detector = CONTACT_DETECTORS.get(name)
        if detector is None:
            logger.warning(f"Skipping unknown contact detector: {name}")
            continue
        result = detector(kinematics, energy, n, config)
        if result is not None:
            contact, confidence = result
            method = name
            break

    if contact is None:
        contact = int(config["contact_ratio"] * n)
    contact = max(0, min(int(contact), n - 1))

    stride = _explicit_column(kinematics, energy, "stride_frame")
    if stride is None or stride >= contact:
        stride = int(config["stride_ratio"] * contact)

    window = {
        "stride_frame": stride,
        "contact_frame": contact,
        "confidence": confidence,
        "method": method,
    }
    logger.debug(f"Swing window {stride}-{contact} of {n} frames via {method} ({confidence})")
    return window


# ── Peak helpers ─────────────────────────────────────────────────────


def window_slice(values, window: dict) -> np.ndarray:
    """Samples of *values* inside ``[stride_frame, contact_frame]``."""
    arr = np.asarray(values, dtype=float)
    return arr[window["stride_frame"]:window["contact_frame"] + 1]


def peak_in_window(values, window: dict) -> float:
    """Maximum absolute value within the window (0 when empty)."""
    if values is None:
        return 0.0
    segment = window_slice(values, window)
    if segment.size == 0:
        return 0.0
    return float(np.max(np.abs(segment)))


def peak_frame_in_window(values, window: dict) -> Optional[int]:
    """Absolute frame index of the in-window peak, or None."""
    if values is None:
        return None
    segment = window_slice(values, window)
    if segment.size == 0:
        return None
    return window["stride_frame"] + int(np.argmax(np.abs(segment)))
