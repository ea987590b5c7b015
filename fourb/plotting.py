"""4B visualization with matplotlib.

All functions return ``matplotlib.figure.Figure`` objects for saving
or display.

Functions
---------
plot_4b_profile
    Horizontal bars of the four category scores on the 20-80 scale.
plot_swing_window
    Rotation velocities and kinetic energy of one swing with the
    scored window shaded.
"""

import logging
from typing import Optional

import numpy as np
import matplotlib
if matplotlib.get_backend() == "":
    matplotlib.use("Agg")
import matplotlib.pyplot as plt

from .constants import CATEGORIES, SCORE_MAX, SCORE_MIN, SCORE_NEUTRAL
from .kinematics import angular_velocity
from .parsing import get_signal
from .units import DEFAULT_FPS, detect_table_fps, maybe_radians_to_degrees

logger = logging.getLogger(__name__)

_COLORS = {
    "pelvis": "#2171b5",
    "torso": "#cb181d",
    "bat": "#1a9850",
    "total": "#737373",
    "window": "#fdd49e",
}


def _score_color(score):
    if score >= 60:
        return "#2ca02c"
    if score >= 45:
        return "#ff7f0e"
    return "#d62728"


def plot_4b_profile(record: dict, figsize: Optional[tuple] = None) -> plt.Figure:
    """Horizontal barplot of Brain, Body, Bat and Ball scores.

    The weakest category is outlined and the composite is shown in the
    title. A vertical line marks the average (50).

    Parameters
    ----------
    record : dict
        Swing or session score record.
    figsize : tuple, optional
        Figure size ``(width, height)`` in inches.

    Returns
    -------
    matplotlib.figure.Figure
    """
    fig, ax = plt.subplots(figsize=figsize or (8, 4))
    y_positions = np.arange(len(CATEGORIES))
    weakest = record.get("weakest_link")

    for i, cat in enumerate(CATEGORIES):
        score = record.get(f"{cat}_score", SCORE_NEUTRAL)
        ax.barh(
            y_positions[i], score - SCORE_MIN, left=SCORE_MIN, height=0.6,
            color=_score_color(score),
            edgecolor="black" if cat == weakest else "white",
            linewidth=2.0 if cat == weakest else 0.5,
        )
        ax.text(score + 0.8, y_positions[i], str(score), va="center", fontsize=9)

    ax.axvline(SCORE_NEUTRAL, color="gray", linestyle="--", linewidth=1)
    ax.set_yticks(y_positions)
    ax.set_yticklabels([c.capitalize() for c in CATEGORIES])
    ax.invert_yaxis()
    ax.set_xlim(SCORE_MIN, SCORE_MAX + 5)
    ax.set_xlabel("Score (20-80)")
    ax.set_title(
        f"4B profile: composite {record.get('composite_score', SCORE_NEUTRAL)} "
        f"({record.get('grade', '')})"
    )
    ax.grid(True, axis="x", alpha=0.3)
    fig.tight_layout()
    return fig


def plot_swing_window(
    kinematics,
    energy,
    window: dict,
    fps: Optional[float] = None,
    figsize: Optional[tuple] = None,
) -> plt.Figure:
    """Plot one swing's signals with the scored window shaded.

    Top panel: pelvis and torso angular velocity. Bottom panel: bat and
    total kinetic energy. Missing signals are skipped.

    Parameters
    ----------
    kinematics, energy : pd.DataFrame or None
        Per-swing tables.
    window : dict
        Swing window (``stride_frame``, ``contact_frame``).
    fps : float, optional
        Sampling rate; detected from the timestamp column if omitted.
    figsize : tuple, optional
        Figure size ``(width, height)`` in inches.

    Returns
    -------
    matplotlib.figure.Figure
    """
    if fps is None:
        fps = detect_table_fps(kinematics) if kinematics is not None else DEFAULT_FPS

    fig, (ax_vel, ax_ke) = plt.subplots(2, 1, sharex=True, figsize=figsize or (10, 6))

    for name, signal in (("pelvis", "pelvis_rot"), ("torso", "torso_rot")):
        angles = get_signal(kinematics, signal)
        if angles is None:
            continue
        velocity = angular_velocity(maybe_radians_to_degrees(angles), fps)
        ax_vel.plot(velocity, color=_COLORS[name], linewidth=1.2, label=name.capitalize())

    for name, signal in (("bat", "bat_ke"), ("total", "total_ke")):
        values = get_signal(energy, signal)
        if values is None:
            continue
        ax_ke.plot(values, color=_COLORS[name], linewidth=1.2, label=f"{name.capitalize()} KE")

    for ax in (ax_vel, ax_ke):
        ax.axvspan(window["stride_frame"], window["contact_frame"],
                   color=_COLORS["window"], alpha=0.4)
        ax.axvline(window["contact_frame"], color="black", linestyle=":", linewidth=1)
        if ax.get_legend_handles_labels()[0]:
            ax.legend(loc="upper left", fontsize=8)
        ax.grid(True, alpha=0.3)

    ax_vel.set_ylabel("Angular velocity (deg/s)")
    ax_ke.set_ylabel("Kinetic energy (J)")
    ax_ke.set_xlabel("Frame")
    ax_vel.set_title(
        f"Swing window {window['stride_frame']}-{window['contact_frame']} "
        f"({window.get('confidence', '?')} confidence)"
    )
    fig.tight_layout()
    return fig
