"""fourb -- 4B swing scoring from motion-capture exports.

Quick start::

    from fourb import score_capture_csv
    record = score_capture_csv(open("ik.csv").read(), open("me.csv").read())
    record["composite_score"], record["grade"], record["weakest_link"]

Step by step on parsed tables::

    from fourb import parse_metric_csv, score_capture, build_threshold_config
    kin = parse_metric_csv(ik_text, label="kinematics")
    me = parse_metric_csv(me_text, label="energy")
    config = build_threshold_config(pelvis_velocity={"min": 350, "max": 850})
    record = score_capture(kin, me, config)

Fetching exports::

    from fourb import fetch_capture_pair, retry_with_backoff
    ik, me = retry_with_backoff(lambda: fetch_capture_pair(ik_url, me_url))

Export and plots::

    from fourb import save_session, export_csv, plot_4b_profile
    save_session(record, "session.json")
    export_csv(record, "./tables")
    plot_4b_profile(record).savefig("profile.png")
"""

__version__ = "0.1.0"

from .config import load_config, save_config, build_threshold_config, DEFAULT_CONFIG
from .parsing import cap_payload, parse_metric_csv, split_movements, find_column, get_signal
from .units import detect_fps, detect_table_fps, maybe_radians_to_degrees
from .window import (
    detect_swing_window,
    register_contact_detector,
    list_contact_detectors,
    peak_in_window,
)
from .kinematics import angular_velocity, x_factor_series, consistency_cv, extract_kinematics
from .energy import safe_ratio, extract_energetics
from .scoring import (
    round_half_up,
    to_2080_scale,
    grade_for,
    consistency_grade_for,
    weakest_link,
    composite_score,
    compose_scores,
)
from .leaks import detect_leak
from .session import (
    score_swing,
    aggregate_swings,
    score_capture,
    score_capture_csv,
    neutral_session_record,
)
from .sources import (
    UpstreamFetchError,
    AccessTokenCache,
    retry_with_backoff,
    load_payload,
    fetch_capture_pair,
)
from .schema import save_session, load_session, validate_session
from .export import to_dataframe, export_csv
from .plotting import plot_4b_profile, plot_swing_window

__all__ = [
    # Engine
    "score_capture",
    "score_capture_csv",
    "score_swing",
    "aggregate_swings",
    "neutral_session_record",
    # Parsing & units
    "cap_payload",
    "parse_metric_csv",
    "split_movements",
    "find_column",
    "get_signal",
    "detect_fps",
    "detect_table_fps",
    "maybe_radians_to_degrees",
    # Window
    "detect_swing_window",
    "register_contact_detector",
    "list_contact_detectors",
    "peak_in_window",
    # Metrics
    "angular_velocity",
    "x_factor_series",
    "consistency_cv",
    "extract_kinematics",
    "safe_ratio",
    "extract_energetics",
    # Scoring
    "round_half_up",
    "to_2080_scale",
    "grade_for",
    "consistency_grade_for",
    "weakest_link",
    "composite_score",
    "compose_scores",
    "detect_leak",
    # Config
    "load_config",
    "save_config",
    "build_threshold_config",
    "DEFAULT_CONFIG",
    # Sources
    "UpstreamFetchError",
    "AccessTokenCache",
    "retry_with_backoff",
    "load_payload",
    "fetch_capture_pair",
    # I/O & plots
    "save_session",
    "load_session",
    "validate_session",
    "to_dataframe",
    "export_csv",
    "plot_4b_profile",
    "plot_swing_window",
]
