"""Multi-swing aggregation and the scoring engine entry points.

:func:`score_capture` is the canonical engine: a pure function of the
kinematics table, the energy table and the threshold config that
returns one session score record. Each detected swing is scored on its
own (window, kinematics, energetics, composition) and the valid swing
records are averaged field by field. Categorical fields are recomputed
from the averaged numbers.

Soft failures never raise: short swings are skipped, a capture without
any scorable swing is retried as one whole-table swing, and if that
fails too the documented neutral record is returned with
``diagnostics.degraded`` set.
"""

import copy
import logging
import math
from typing import Dict, List, Optional, Union

import pandas as pd

from .config import build_threshold_config
from .constants import COLUMN_ALIASES, NEUTRAL_SESSION_RECORD, NUMERIC_FIELDS
from .energy import extract_energetics
from .kinematics import extract_kinematics
from .leaks import detect_leak
from .parsing import get_signal, parse_metric_csv, split_movements
from .scoring import compose_scores, finalize_labels, round_half_up
from .units import detect_fps
from .window import detect_swing_window, frame_count

logger = logging.getLogger(__name__)

# Signals that make a table scorable (time and frame markers alone do not).
_SCORING_SIGNALS = tuple(
    name for name in COLUMN_ALIASES if name not in ("time", "contact_frame", "stride_frame")
)


# ── Helpers ──────────────────────────────────────────────────────────


def _round_field(value: float, decimals: int):
    return round_half_up(value, decimals)


def _has_signal(kinematics, energy) -> bool:
    return any(
        get_signal(df, name) is not None
        for df in (kinematics, energy)
        for name in _SCORING_SIGNALS
    )


def _empty_diagnostics() -> dict:
    return {
        "swing_count": 0,
        "skipped_swings": 0,
        "window_confidence": [],
        "window_method": [],
        "used_whole_table": False,
        "degraded": False,
        "warnings": [],
    }


def _as_frame(df) -> pd.DataFrame:
    return pd.DataFrame() if df is None else df


def neutral_session_record(warnings: Optional[List[str]] = None) -> dict:
    """Fresh copy of the neutral record returned when nothing could be scored."""
    record = copy.deepcopy(NEUTRAL_SESSION_RECORD)
    diagnostics = _empty_diagnostics()
    diagnostics["degraded"] = True
    diagnostics["warnings"] = list(warnings or [])
    record["diagnostics"] = diagnostics
    return record


# ── Swing ────────────────────────────────────────────────────────────


def score_swing(
    kinematics: Optional[pd.DataFrame],
    energy: Optional[pd.DataFrame],
    config: Optional[dict] = None,
    movement_id: Optional[str] = None,
) -> Optional[dict]:
    """Score one swing.

    Parameters
    ----------
    kinematics, energy : pd.DataFrame or None
        Per-swing tables (either may be missing or empty).
    config : dict, optional
        Engine config; merged onto the defaults.
    movement_id : str, optional
        Swing identifier carried into the record.

    Returns
    -------
    dict or None
        Swing score record, or None when the swing has fewer than
        ``session.min_frames`` frames or no recognised signal.
    """
    cfg = build_threshold_config(config)
    kinematics, energy = _as_frame(kinematics), _as_frame(energy)

    n = frame_count(kinematics, energy)
    if n < cfg["session"]["min_frames"]:
        logger.warning(f"Skipping swing {movement_id}: {n} frames < {cfg['session']['min_frames']}")
        return None
    if not _has_signal(kinematics, energy):
        logger.warning(f"Skipping swing {movement_id}: no recognised signal columns")
        return None

    times = get_signal(kinematics, "time")
    if times is None:
        times = get_signal(energy, "time")
    fps = detect_fps(times, fallback=cfg["units"]["fps_fallback"])

    window = detect_swing_window(kinematics, energy, cfg["window"])
    kin = extract_kinematics(kinematics, window, fps, cfg)
    ener = extract_energetics(energy, window, cfg, kinematics=kinematics)
    metrics = {**kin, **ener}
    scores = compose_scores(metrics, cfg)

    warnings = []
    if window["confidence"] == "low":
        warnings.append("swing window from fixed-ratio fallback")
    if not (kin["has_pelvis"] and kin["has_torso"]):
        warnings.append("rotation columns missing")
    if not ener["has_bat"]:
        warnings.append("no bat energy signal; bat and ball scores estimated")
    if kin["consistency_cv"] is None:
        warnings.append("consistency unavailable; brain score neutral")

    record = {"movement_id": movement_id, "fps": fps, "frame_count": n, "window": window}
    for field, decimals in NUMERIC_FIELDS.items():
        value = scores[field] if field in scores else metrics[field]
        record[field] = _round_field(value, decimals)
    record.update({
        "grade": scores["grade"],
        "weakest_link": scores["weakest_link"],
        "consistency_grade": scores["consistency_grade"],
        "has_bat": ener["has_bat"],
        "legs_peak_frame": ener["legs_peak_frame"],
        "arms_peak_frame": ener["arms_peak_frame"],
        "warnings": warnings,
    })
    logger.debug(
        f"Swing {movement_id}: composite={record['composite_score']} "
        f"({record['grade']}), window={window['method']}"
    )
    return record


# ── Session ──────────────────────────────────────────────────────────


def aggregate_swings(records: List[dict], config: Optional[dict] = None) -> dict:
    """Average swing records into one session record.

    Each numeric field is the arithmetic mean of that field over the
    swings, rounded to the field's output precision. ``composite_score``,
    ``grade``, ``weakest_link`` and ``consistency_grade`` are recomputed
    from the averaged category scores, so the session record obeys the
    same composite formula as a swing record. The leak type is
    classified over all swings.

    Raises
    ------
    ValueError
        If *records* is empty.
    """
    if not records:
        raise ValueError("No swing records to aggregate")

    session = {}
    for field, decimals in NUMERIC_FIELDS.items():
        mean = math.fsum(r[field] for r in records) / len(records)
        session[field] = _round_field(mean, decimals)
    finalize_labels(session)
    session["leak"] = detect_leak(records)

    warnings = []
    for r in records:
        for w in r.get("warnings", []):
            if w not in warnings:
                warnings.append(w)

    diagnostics = _empty_diagnostics()
    diagnostics.update({
        "swing_count": len(records),
        "window_confidence": [r["window"]["confidence"] for r in records],
        "window_method": [r["window"]["method"] for r in records],
        "warnings": warnings,
    })
    session["diagnostics"] = diagnostics
    return session


def _pair_swings(kinematics: pd.DataFrame, energy: pd.DataFrame) -> Dict[Optional[str], tuple]:
    kin_swings = split_movements(kinematics)
    energy_swings = split_movements(energy)

    ids = [k for k in kin_swings if k is not None]
    ids += [k for k in energy_swings if k is not None and k not in ids]
    if not ids:
        return {None: (kin_swings.get(None), energy_swings.get(None))}

    for label, swings in (("kinematics", kin_swings), ("energy", energy_swings)):
        if None in swings:
            logger.warning(f"{label} table has no movement id column; used only for whole-table scoring")
    return {mid: (kin_swings.get(mid), energy_swings.get(mid)) for mid in ids}


def score_capture(
    kinematics: Optional[pd.DataFrame],
    energy: Optional[pd.DataFrame],
    config: Optional[dict] = None,
) -> dict:
    """Score a capture session from its kinematics and energy tables.

    Parameters
    ----------
    kinematics : pd.DataFrame or None
        Parsed inverse-kinematics table (see
        :func:`~fourb.parsing.parse_metric_csv`).
    energy : pd.DataFrame or None
        Parsed momentum/energy table.
    config : dict, optional
        Threshold config; partial dicts are merged onto the defaults.

    Returns
    -------
    dict
        Session score record with a ``diagnostics`` block.

    Raises
    ------
    ValueError
        If the config is invalid, or nothing could be scored and
        ``session.fail_soft`` is False.
    """
    cfg = build_threshold_config(config)
    kinematics, energy = _as_frame(kinematics), _as_frame(energy)

    pairs = _pair_swings(kinematics, energy)
    records, skipped = [], 0
    for movement_id, (kin, ener) in pairs.items():
        record = score_swing(kin, ener, cfg, movement_id=movement_id)
        if record is None:
            skipped += 1
        else:
            records.append(record)

    used_whole_table = False
    if not records and list(pairs) != [None]:
        logger.warning("No swing could be scored; retrying with the whole table as one swing")
        record = score_swing(kinematics, energy, cfg)
        if record is not None:
            records.append(record)
            used_whole_table = True

    if not records:
        message = f"No scorable swing in capture ({skipped} skipped)"
        if not cfg["session"]["fail_soft"]:
            raise ValueError(message)
        logger.warning(f"{message}; returning neutral default")
        neutral = neutral_session_record(warnings=[message])
        neutral["diagnostics"]["skipped_swings"] = skipped
        return neutral

    session = aggregate_swings(records, cfg)
    session["diagnostics"]["skipped_swings"] = skipped
    session["diagnostics"]["used_whole_table"] = used_whole_table
    session["swings"] = records
    logger.info(
        f"Scored {len(records)} swing(s), skipped {skipped}: "
        f"composite={session['composite_score']} ({session['grade']})"
    )
    return session


def score_capture_csv(
    kinematics_text: Union[str, bytes],
    energy_text: Union[str, bytes],
    config: Optional[dict] = None,
) -> dict:
    """Parse two CSV payloads and score them with :func:`score_capture`."""
    cfg = build_threshold_config(config)
    max_chars = cfg["parse"]["max_chars"]
    kinematics = parse_metric_csv(kinematics_text, label="kinematics", max_chars=max_chars)
    energy = parse_metric_csv(energy_text, label="energy", max_chars=max_chars)
    return score_capture(kinematics, energy, cfg)
