"""Shared constants for the 4B scoring engine.

Column alias tables used to locate signals in capture exports, score
band tables for grades, category weights, and the neutral default
record returned when a capture cannot be scored.

Attributes
----------
COLUMN_ALIASES : dict
    Signal name -> ordered tuple of candidate column names.
MOVEMENT_ID_COLUMNS : tuple
    Column names that identify the swing a row belongs to.
CATEGORY_WEIGHTS : dict
    Composite weights per category.
GRADE_BANDS : tuple
    ``(lower_bound, label)`` pairs, checked top-down against a score.
CONSISTENCY_BANDS : tuple
    ``(upper_bound, label)`` pairs, checked top-down against a CV (%).
NEUTRAL_SESSION_RECORD : dict
    Fixed record returned when no swing could be scored.
"""

import math

# ── Column aliases ───────────────────────────────────────────────────

COLUMN_ALIASES = {
    "time": ("timestamp", "time", "t"),
    "pelvis_rot": ("pelvis_rot", "pelvis_rotation"),
    "torso_rot": ("torso_rot", "torso_rotation"),
    "bat_ke": ("bat_kinetic_energy", "bat_ke"),
    "total_ke": ("total_kinetic_energy", "total_ke"),
    "legs_ke": ("legs_kinetic_energy", "legs_ke"),
    "lleg_ke": ("lleg_kinetic_energy", "lleg_ke"),
    "rleg_ke": ("rleg_kinetic_energy", "rleg_ke"),
    "torso_ke": ("torso_kinetic_energy", "torso_ke"),
    "arms_ke": ("arms_kinetic_energy", "arms_ke"),
    "larm_ke": ("larm_kinetic_energy", "larm_ke"),
    "rarm_ke": ("rarm_kinetic_energy", "rarm_ke"),
    "pelvis_momentum": (
        "lowertorso_angular_momentum_z",
        "pelvis_angular_momentum_z",
    ),
    "torso_momentum": ("torso_angular_momentum_z",),
    "arms_momentum": ("arms_angular_momentum_z", "larm_angular_momentum_z"),
    "contact_frame": ("contact_frame",),
    "stride_frame": ("stride_frame",),
}

# Aliases shorter than this are only matched exactly ("t" would
# otherwise match nearly every column).
MIN_PARTIAL_ALIAS_LENGTH = 3

MOVEMENT_ID_COLUMNS = ("org_movement_id", "movement_id")

# Movement ids treated as "no swing assigned".
MISSING_MOVEMENT_IDS = ("", "n/a", "na", "nan", "none", "null", "undefined")

# ── Units ────────────────────────────────────────────────────────────

RAD_TO_DEG = 180.0 / math.pi

# ── Scoring ──────────────────────────────────────────────────────────

SCORE_MIN = 20
SCORE_MAX = 80
SCORE_NEUTRAL = 50

CATEGORIES = ("brain", "body", "bat", "ball")

CATEGORY_WEIGHTS = {
    "body": 0.35,
    "bat": 0.30,
    "brain": 0.20,
    "ball": 0.15,
}

GROUND_FLOW_WEIGHT = 0.4
CORE_FLOW_WEIGHT = 0.6

GRADE_BANDS = (
    (70, "Plus-Plus"),
    (60, "Plus"),
    (55, "Above Avg"),
    (45, "Average"),
    (40, "Below Avg"),
    (30, "Fringe"),
)
GRADE_FLOOR = "Poor"

CONSISTENCY_BANDS = (
    (6.0, "Elite"),
    (10.0, "Plus"),
    (15.0, "Average"),
    (20.0, "Below Avg"),
)
CONSISTENCY_FLOOR = "Poor"

THRESHOLD_METRICS = (
    "pelvis_velocity",
    "torso_velocity",
    "x_factor",
    "stretch_rate",
    "legs_ke",
    "bat_ke",
    "transfer_efficiency",
    "consistency_cv",
)

# Record fields and the number of decimals kept on output.
# ``0`` means the field is stored as an int.
SCORE_FIELDS = {
    "brain_score": 0,
    "body_score": 0,
    "bat_score": 0,
    "ball_score": 0,
    "composite_score": 0,
    "ground_flow_score": 0,
    "core_flow_score": 0,
    "upper_flow_score": 0,
}

METRIC_FIELDS = {
    "pelvis_velocity": 0,
    "torso_velocity": 0,
    "x_factor": 1,
    "stretch_rate": 0,
    "bat_ke": 1,
    "total_ke": 1,
    "legs_ke": 1,
    "torso_ke": 1,
    "arms_ke": 1,
    "transfer_efficiency": 1,
    "consistency_cv": 1,
    "pelvis_momentum": 2,
    "torso_momentum": 2,
    "arms_momentum": 2,
    "tp_ratio": 2,
    "at_ratio": 2,
}

NUMERIC_FIELDS = {**SCORE_FIELDS, **METRIC_FIELDS}

# ── Neutral default ──────────────────────────────────────────────────

NEUTRAL_SESSION_RECORD = {
    "brain_score": 50,
    "body_score": 50,
    "bat_score": 50,
    "ball_score": 50,
    "composite_score": 50,
    "grade": "Average",
    "ground_flow_score": 50,
    "core_flow_score": 50,
    "upper_flow_score": 50,
    "weakest_link": "body",
    "pelvis_velocity": 0,
    "torso_velocity": 0,
    "x_factor": 0.0,
    "stretch_rate": 0,
    "bat_ke": 0.0,
    "total_ke": 0.0,
    "legs_ke": 0.0,
    "torso_ke": 0.0,
    "arms_ke": 0.0,
    "transfer_efficiency": 0.0,
    "consistency_cv": 15.0,
    "consistency_grade": "Average",
    "pelvis_momentum": 0.0,
    "torso_momentum": 0.0,
    "arms_momentum": 0.0,
    "tp_ratio": 0.0,
    "at_ratio": 0.0,
    "leak": {"type": "unknown", "caption": "", "training": ""},
}
