"""4B score normalization and composition.

Maps raw swing metrics onto the 20-80 scouting scale and composes the
four category scores (Brain, Body, Bat, Ball), the flow sub-scores and
the weighted composite.

Composition:
    ground_flow = avg(pelvis velocity, legs KE)
    core_flow   = avg(torso velocity, X-factor, stretch rate)
    upper_flow  = avg(bat KE, transfer efficiency)
    body        = 0.4 * ground_flow + 0.6 * core_flow
    bat         = upper_flow, or 0.9 * avg(body, core_flow) without bat data
    ball        = transfer efficiency score, or 0.85 * bat without bat data
    brain       = inverted consistency CV score (50 when CV is unavailable)
    composite   = 0.35 * body + 0.30 * bat + 0.20 * brain + 0.15 * ball

All category and flow scores are integers in [20, 80].
"""

import math
from typing import Optional

import numpy as np

from .constants import (
    CATEGORIES,
    CATEGORY_WEIGHTS,
    CONSISTENCY_BANDS,
    CONSISTENCY_FLOOR,
    CORE_FLOW_WEIGHT,
    GRADE_BANDS,
    GRADE_FLOOR,
    GROUND_FLOW_WEIGHT,
    NEUTRAL_SESSION_RECORD,
    SCORE_MAX,
    SCORE_MIN,
    SCORE_NEUTRAL,
)


# ── Scale ────────────────────────────────────────────────────────────


def to_2080_scale(value: Optional[float], threshold: dict) -> int:
    """Linear min-max mapping of a metric onto the 20-80 scale.

    Parameters
    ----------
    value : float or None
        Raw metric. ``None`` and NaN map to 20; ``+-inf`` are clamped.
    threshold : dict
        ``{"min", "max", "invert"}``. With ``invert`` set, lower
        values score higher.

    Returns
    -------
    int
        Score in [20, 80]. 50 when ``min == max``.
    """
    if value is None or math.isnan(value):
        return SCORE_MIN
    lo, hi = float(threshold["min"]), float(threshold["max"])
    if lo == hi:
        return SCORE_NEUTRAL
    t = (float(value) - lo) / (hi - lo)
    t = min(max(t, 0.0), 1.0)
    if threshold.get("invert", False):
        t = 1.0 - t
    return round_half_up(SCORE_MIN + (SCORE_MAX - SCORE_MIN) * t)


def round_half_up(value: float, decimals: int = 0):
    """Round with ties going up (2.5 -> 3, -2.5 -> -2).

    Returns an int when *decimals* is 0, a float otherwise.
    """
    if decimals == 0:
        return int(math.floor(float(value) + 0.5))
    scale = 10 ** decimals
    return math.floor(float(value) * scale + 0.5) / scale


def _clamp_score(value: float) -> int:
    return min(max(round_half_up(value), SCORE_MIN), SCORE_MAX)


def _avg(*values) -> float:
    return float(np.mean(values))


# ── Labels ───────────────────────────────────────────────────────────


def grade_for(score: float) -> str:
    """Scouting grade label for a 20-80 score."""
    for lower, label in GRADE_BANDS:
        if score >= lower:
            return label
    return GRADE_FLOOR


def consistency_grade_for(cv: float) -> str:
    """Consistency label for a coefficient of variation (%)."""
    for upper, label in CONSISTENCY_BANDS:
        if cv < upper:
            return label
    return CONSISTENCY_FLOOR


def weakest_link(scores: dict) -> str:
    """Category with the lowest score; ties resolve brain, body, bat, ball."""
    return min(CATEGORIES, key=lambda c: scores.get(f"{c}_score", scores.get(c, math.inf)))


def composite_score(body: float, bat: float, brain: float, ball: float) -> int:
    """Weighted composite of the four category scores."""
    return round_half_up(
        CATEGORY_WEIGHTS["body"] * body
        + CATEGORY_WEIGHTS["bat"] * bat
        + CATEGORY_WEIGHTS["brain"] * brain
        + CATEGORY_WEIGHTS["ball"] * ball
    )


# ── Composition ──────────────────────────────────────────────────────


def compose_scores(metrics: dict, config: dict) -> dict:
    """Compose category, flow and composite scores for one swing.

    Parameters
    ----------
    metrics : dict
        Merged output of :func:`~fourb.kinematics.extract_kinematics`
        and :func:`~fourb.energy.extract_energetics`.
    config : dict
        Full engine config (``thresholds`` and ``fallback``).

    Returns
    -------
    dict
        Score fields, ``grade``, ``weakest_link``, ``consistency_cv``
        and ``consistency_grade``.
    """
    th = config["thresholds"]
    fb = config["fallback"]

    def score(metric):
        return to_2080_scale(metrics.get(metric, 0.0), th[metric])

    ground = _clamp_score(_avg(score("pelvis_velocity"), score("legs_ke")))
    core = _clamp_score(_avg(score("torso_velocity"), score("x_factor"), score("stretch_rate")))
    body = _clamp_score(GROUND_FLOW_WEIGHT * ground + CORE_FLOW_WEIGHT * core)

    if metrics.get("has_bat", False):
        transfer = score("transfer_efficiency")
        upper = _clamp_score(_avg(score("bat_ke"), transfer))
        bat = upper
        ball = transfer
    else:
        bat = _clamp_score(fb["bat_from_body"] * _avg(body, core))
        upper = bat
        ball = _clamp_score(fb["ball_from_bat"] * bat)

    cv = metrics.get("consistency_cv")
    if cv is None:
        cv = NEUTRAL_SESSION_RECORD["consistency_cv"]
        brain = SCORE_NEUTRAL
    else:
        brain = to_2080_scale(cv, th["consistency_cv"])

    scores = {
        "brain_score": brain,
        "body_score": body,
        "bat_score": bat,
        "ball_score": ball,
        "ground_flow_score": ground,
        "core_flow_score": core,
        "upper_flow_score": upper,
    }
    return finalize_labels({**scores, "consistency_cv": float(cv)})


def finalize_labels(record: dict) -> dict:
    """(Re)compute composite, grade, weakest link and consistency grade.

    Used both for fresh swing scores and for averaged session records
    so the composite and the categorical fields always agree with the
    category scores beside them.
    """
    record["composite_score"] = composite_score(
        record["body_score"], record["bat_score"], record["brain_score"], record["ball_score"],
    )
    record["grade"] = grade_for(record["composite_score"])
    record["weakest_link"] = weakest_link(record)
    record["consistency_grade"] = consistency_grade_for(record["consistency_cv"])
    return record
