"""Export session records to tabular formats.

Functions
---------
to_dataframe
    Convert a session record to pandas DataFrame(s).
export_csv
    Write the summary and per-swing tables to CSV files.
"""

import logging
from pathlib import Path

import pandas as pd

from .constants import NUMERIC_FIELDS

logger = logging.getLogger(__name__)

_LABEL_FIELDS = ("grade", "weakest_link", "consistency_grade")

_SWING_COLUMNS = (
    ["movement_id", "frame_count", "fps", "stride_frame", "contact_frame",
     "window_confidence", "window_method"]
    + list(NUMERIC_FIELDS)
    + list(_LABEL_FIELDS)
)


def to_dataframe(record: dict, what: str = "summary") -> "pd.DataFrame | dict":
    """Convert a session record to pandas DataFrame(s).

    Parameters
    ----------
    record : dict
        Session record from :func:`~fourb.session.score_capture`.
    what : str, optional
        What to convert:
        - ``"summary"`` : one row with the session scores and metrics.
        - ``"swings"`` : one row per scored swing.
        - ``"all"`` : dict of both DataFrames.

    Returns
    -------
    pd.DataFrame or dict of pd.DataFrame

    Raises
    ------
    ValueError
        If *what* is not one of the recognized values.
    """
    valid_whats = ("summary", "swings", "all")
    if what not in valid_whats:
        raise ValueError(f"what must be one of {valid_whats}, got {what!r}")

    def _summary_df():
        row = {k: record.get(k) for k in list(NUMERIC_FIELDS) + list(_LABEL_FIELDS)}
        leak = record.get("leak") or {}
        row["leak_type"] = leak.get("type")
        diag = record.get("diagnostics") or {}
        row["swing_count"] = diag.get("swing_count")
        row["skipped_swings"] = diag.get("skipped_swings")
        row["degraded"] = diag.get("degraded")
        return pd.DataFrame([row])

    def _swings_df():
        rows = []
        for swing in record.get("swings", []):
            window = swing.get("window", {})
            row = {
                "movement_id": swing.get("movement_id"),
                "frame_count": swing.get("frame_count"),
                "fps": swing.get("fps"),
                "stride_frame": window.get("stride_frame"),
                "contact_frame": window.get("contact_frame"),
                "window_confidence": window.get("confidence"),
                "window_method": window.get("method"),
            }
            for key in list(NUMERIC_FIELDS) + list(_LABEL_FIELDS):
                row[key] = swing.get(key)
            rows.append(row)
        return pd.DataFrame(rows) if rows else pd.DataFrame(columns=_SWING_COLUMNS)

    if what == "summary":
        return _summary_df()
    elif what == "swings":
        return _swings_df()
    else:  # "all"
        return {"summary": _summary_df(), "swings": _swings_df()}


def export_csv(record: dict, output_dir: str, prefix: str = "") -> list:
    """Export a session record to CSV files.

    Writes ``{prefix}summary.csv`` and, when the record carries
    per-swing records, ``{prefix}swings.csv``.

    Returns
    -------
    list of str
        Paths of the files written.
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    tables = to_dataframe(record, "all")

    written = []
    path = out / f"{prefix}summary.csv"
    tables["summary"].to_csv(path, index=False)
    written.append(str(path))

    if not tables["swings"].empty:
        path = out / f"{prefix}swings.csv"
        tables["swings"].to_csv(path, index=False)
        written.append(str(path))

    logger.info(f"Exported {len(written)} CSV files to {out}")
    return written
