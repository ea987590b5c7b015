"""Session record JSON format.

The session record is what callers persist after a capture is scored.
It is a flat dict of category scores, supporting metrics and labels,
with a nested ``leak`` block and a ``diagnostics`` block.

Functions
---------
save_session
    Save a session record to JSON with numpy type conversion.
load_session
    Load and validate a session record JSON file.
validate_session
    Check that a dict has the required session fields.
"""

import json
from pathlib import Path
from typing import Any, Union

import numpy as np

from .constants import CATEGORIES, NUMERIC_FIELDS, SCORE_FIELDS, SCORE_MAX, SCORE_MIN

REQUIRED_FIELDS = tuple(NUMERIC_FIELDS) + ("grade", "weakest_link", "consistency_grade")


def _convert_numpy(obj: Any) -> Any:
    """Recursively convert numpy types to Python types for JSON serialization."""
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, dict):
        return {k: _convert_numpy(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_convert_numpy(v) for v in obj]
    if isinstance(obj, np.bool_):
        return bool(obj)
    return obj


def validate_session(record: dict) -> None:
    """Raise ValueError if *record* is not a usable session record."""
    if not isinstance(record, dict):
        raise ValueError("Session record must be a dict")
    missing = [f for f in REQUIRED_FIELDS if f not in record]
    if missing:
        raise ValueError(f"Session record missing fields: {', '.join(missing)}")
    for field in SCORE_FIELDS:
        if not (SCORE_MIN <= record[field] <= SCORE_MAX):
            raise ValueError(f"{field}={record[field]} outside [{SCORE_MIN}, {SCORE_MAX}]")
    if record["weakest_link"] not in CATEGORIES:
        raise ValueError(f"Unknown weakest_link: {record['weakest_link']!r}")


def save_session(record: dict, path: Union[str, Path], indent: int = 2) -> str:
    """Save a session record to a JSON file.

    Parameters
    ----------
    record : dict
        Session record from :func:`~fourb.session.score_capture`.
    path : str or Path
        Output file path. Parent directories are created if needed.
    indent : int, optional
        JSON indentation level (default 2).

    Returns
    -------
    str
        Path to the saved file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(_convert_numpy(record), f, indent=indent, ensure_ascii=False)
    return str(path)


def load_session(path: Union[str, Path]) -> dict:
    """Load and validate a session record JSON file.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the content is not a valid session record.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(path) as f:
        record = json.load(f)

    validate_session(record)
    return record
