"""Engine configuration management.

Supports JSON and YAML config files so thresholds can be swapped for
backtesting without code changes. Configuration is merged against
``DEFAULT_CONFIG`` so partial overrides work seamlessly.

Functions
---------
load_config
    Load engine config from a JSON or YAML file.
save_config
    Save engine config to a JSON or YAML file.
build_threshold_config
    Merge overrides onto the defaults and validate the result.

Attributes
----------
DEFAULT_CONFIG : dict
    Default configuration values for all engine stages.
"""

import copy
import json
import logging
import math
from pathlib import Path
from typing import Optional, Union

import yaml

from .constants import THRESHOLD_METRICS

logger = logging.getLogger(__name__)


DEFAULT_CONFIG = {
    "parse": {
        "max_chars": 2_000_000,
    },
    "units": {
        "fps_fallback": 240.0,
        "radians_peak_threshold": 8.0,
    },
    "window": {
        "detectors": ["explicit", "bat_ke_peak", "total_ke_peak"],
        "min_peak_fraction": 0.20,
        "contact_ratio": 0.80,
        "stride_ratio": 0.25,
    },
    "kinematics": {
        "max_joint_velocity": 3000.0,
        "max_stretch_rate": 5000.0,
        "consistency_min_velocity": 10.0,
    },
    "energy": {
        "min_denominator": 0.01,
        "min_bat_ke": 1.0,
    },
    "session": {
        "min_frames": 10,
        "fail_soft": True,
    },
    "fallback": {
        "bat_from_body": 0.90,
        "ball_from_bat": 0.85,
    },
    "thresholds": {
        "pelvis_velocity": {"min": 400.0, "max": 900.0, "invert": False},
        "torso_velocity": {"min": 500.0, "max": 1000.0, "invert": False},
        "x_factor": {"min": 20.0, "max": 55.0, "invert": False},
        "stretch_rate": {"min": 400.0, "max": 1200.0, "invert": False},
        "legs_ke": {"min": 100.0, "max": 500.0, "invert": False},
        "bat_ke": {"min": 100.0, "max": 600.0, "invert": False},
        "transfer_efficiency": {"min": 25.0, "max": 65.0, "invert": False},
        "consistency_cv": {"min": 2.0, "max": 28.0, "invert": True},
    },
}


def load_config(path: Union[str, Path]) -> dict:
    """Load engine config from a JSON or YAML file.

    The loaded configuration is merged against ``DEFAULT_CONFIG``
    and validated with :func:`build_threshold_config`.

    Parameters
    ----------
    path : str or Path
        Path to config file (``.json`` or ``.yaml``/``.yml``).

    Returns
    -------
    dict
        Merged configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If the config file does not exist.
    ValueError
        If the file content is not a dict or fails validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    suffix = path.suffix.lower()

    with open(path) as f:
        if suffix in (".yaml", ".yml"):
            cfg = yaml.safe_load(f)
        else:
            cfg = json.load(f)

    if not isinstance(cfg, dict):
        raise ValueError("Config must be a dict")

    merged = build_threshold_config(cfg)
    logger.info(f"Loaded config from {path}")
    return merged


def save_config(config: dict, path: Union[str, Path]) -> str:
    """Save engine config to a JSON or YAML file.

    Parameters
    ----------
    config : dict
        Configuration dictionary.
    path : str or Path
        Output file path (``.json`` or ``.yaml``/``.yml``).

    Returns
    -------
    str
        Path to the saved file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    suffix = path.suffix.lower()

    with open(path, "w") as f:
        if suffix in (".yaml", ".yml"):
            yaml.dump(config, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(config, f, indent=2, ensure_ascii=False)

    logger.info(f"Saved config to {path}")
    return str(path)


def build_threshold_config(config: Optional[dict] = None, **metric_overrides) -> dict:
    """Build and validate a complete engine config.

    Parameters
    ----------
    config : dict, optional
        Partial configuration merged onto ``DEFAULT_CONFIG``.
    **metric_overrides
        Per-metric threshold overrides, e.g.
        ``pelvis_velocity={"min": 350, "max": 850}``. Applied after
        *config*.

    Returns
    -------
    dict
        Full configuration (a fresh copy; defaults are never mutated).

    Raises
    ------
    ValueError
        If a threshold or ratio is invalid, or an unknown threshold
        metric is given.
    """
    cfg = _deep_merge(copy.deepcopy(DEFAULT_CONFIG), config or {})
    if metric_overrides:
        cfg = _deep_merge(cfg, {"thresholds": metric_overrides})

    for name, threshold in cfg["thresholds"].items():
        if name not in THRESHOLD_METRICS:
            raise ValueError(f"Unknown threshold metric: {name!r}")
        cfg["thresholds"][name] = _validate_threshold(name, threshold)

    window = cfg["window"]
    for key in ("contact_ratio", "stride_ratio", "min_peak_fraction"):
        value = float(window[key])
        if not (0.0 < value < 1.0):
            raise ValueError(f"window.{key} must be in (0, 1)")
        window[key] = value
    if isinstance(window["detectors"], str):
        window["detectors"] = [window["detectors"]]
    window["detectors"] = list(window["detectors"])

    for key in ("bat_from_body", "ball_from_bat"):
        value = float(cfg["fallback"][key])
        if value <= 0:
            raise ValueError(f"fallback.{key} must be > 0")
        cfg["fallback"][key] = value

    if int(cfg["session"]["min_frames"]) < 2:
        raise ValueError("session.min_frames must be >= 2")
    if float(cfg["units"]["fps_fallback"]) <= 0:
        raise ValueError("units.fps_fallback must be > 0")

    return cfg


def _validate_threshold(name: str, threshold: dict) -> dict:
    """Coerce and check one ``{min, max, invert}`` threshold."""
    if not isinstance(threshold, dict):
        raise ValueError(f"Threshold {name!r} must be a dict with min/max")
    try:
        lo = float(threshold["min"])
        hi = float(threshold["max"])
    except (KeyError, TypeError, ValueError):
        raise ValueError(f"Threshold {name!r} needs numeric 'min' and 'max'")
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise ValueError(f"Threshold {name!r} bounds must be finite")
    if lo >= hi:
        raise ValueError(f"Threshold {name!r} needs min < max (use 'invert' for lower-is-better)")
    return {"min": lo, "max": hi, "invert": bool(threshold.get("invert", False))}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    result = base.copy()
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result
