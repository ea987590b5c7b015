"""CSV column parsing for capture exports.

Turns raw delimited-text payloads (inverse-kinematics and
momentum/energy exports) into pandas DataFrames with lower-cased
headers and float columns, then partitions rows by movement id so each
swing is processed on its own.

Parsing never raises on bad cells: non-numeric or empty values are
coerced to ``0.0`` and the count is logged.

Functions
---------
cap_payload
    Decode (and gunzip) a payload and cap it at a full line.
parse_metric_csv
    Parse one payload into a float DataFrame.
split_movements
    Partition a table into per-swing tables.
find_column
    Case-insensitive, partial-name tolerant column lookup.
get_signal
    Fetch a named signal as a numpy array.
"""

import gzip
import io
import logging
from typing import Dict, Iterable, Optional, Union

import numpy as np
import pandas as pd

from .constants import (
    COLUMN_ALIASES,
    MIN_PARTIAL_ALIAS_LENGTH,
    MISSING_MOVEMENT_IDS,
    MOVEMENT_ID_COLUMNS,
)

logger = logging.getLogger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"

DEFAULT_MAX_CHARS = 2_000_000


# ── Payload handling ─────────────────────────────────────────────────


def cap_payload(payload: Union[str, bytes], max_chars: Optional[int] = DEFAULT_MAX_CHARS) -> str:
    """Decode a payload and cap its size at the last complete line.

    Parameters
    ----------
    payload : str or bytes
        Raw CSV text. Bytes starting with the gzip magic number are
        decompressed first.
    max_chars : int or None
        Maximum number of characters kept. ``None`` disables the cap.

    Returns
    -------
    str
        Decoded, possibly truncated text.
    """
    if isinstance(payload, (bytes, bytearray)):
        data = bytes(payload)
        if data[:2] == _GZIP_MAGIC:
            data = gzip.decompress(data)
            logger.debug(f"Decompressed gzip payload to {len(data)} bytes")
        text = data.decode("utf-8", errors="replace")
    else:
        text = payload or ""

    if max_chars is not None and len(text) > max_chars:
        last_newline = text.rfind("\n", 0, max_chars)
        cut = last_newline if last_newline > 0 else max_chars
        text = text[:cut]
        logger.warning(f"Capped payload at {len(text)} chars (max: {max_chars})")
    return text


def _clean_header(name) -> str:
    return str(name).strip().strip('"').strip("'").strip().lower()


def parse_metric_csv(
    payload: Union[str, bytes],
    label: str = "csv",
    max_chars: Optional[int] = DEFAULT_MAX_CHARS,
) -> pd.DataFrame:
    """Parse one capture export into a DataFrame of floats.

    Headers are lower-cased and stripped of quotes. Every data column
    is converted to float; cells that are empty or non-numeric become
    ``0.0``. A movement-id column, when present, is kept as strings.
    A trailing delimiter on every row is ignored; rows with more fields
    than the rows before them are skipped and counted in the log.

    Parameters
    ----------
    payload : str or bytes
        CSV payload.
    label : str
        Name used in log messages (e.g. ``"ik"`` or ``"me"``).
    max_chars : int or None
        Size cap forwarded to :func:`cap_payload`.

    Returns
    -------
    pd.DataFrame
        One row per captured frame. Empty when the payload has no
        header or no rows.
    """
    text = cap_payload(payload, max_chars)
    if not text.strip():
        logger.warning(f"[{label}] empty payload")
        return pd.DataFrame()

    try:
        raw = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            index_col=False,
            on_bad_lines="skip",
        )
    except pd.errors.EmptyDataError:
        logger.warning(f"[{label}] payload has no columns")
        return pd.DataFrame()

    n_lines = sum(1 for line in text.splitlines() if line.strip()) - 1
    n_skipped = max(n_lines - len(raw), 0)
    if n_skipped:
        logger.warning(f"[{label}] {n_skipped} rows with too many fields skipped")

    raw.columns = [_clean_header(c) for c in raw.columns]
    duplicated = raw.columns.duplicated()
    if duplicated.any():
        logger.warning(f"[{label}] dropped duplicate columns: {list(raw.columns[duplicated])}")
        raw = raw.loc[:, ~duplicated]
    id_col = _movement_id_column(raw.columns)

    table = {}
    n_bad = 0
    for col in raw.columns:
        cells = raw[col].fillna("").astype(str).str.strip().str.strip('"').str.strip("'")
        if col == id_col:
            table[col] = cells.str.strip()
            continue
        values = pd.to_numeric(cells, errors="coerce").replace([np.inf, -np.inf], np.nan)
        bad = int(values.isna().sum())
        if bad:
            n_bad += bad
            logger.debug(f"[{label}] column {col!r}: {bad} malformed cells coerced to 0.0")
        table[col] = values.fillna(0.0).astype(float)

    df = pd.DataFrame(table, columns=list(raw.columns))
    if n_bad:
        logger.warning(f"[{label}] {n_bad} malformed cells coerced to 0.0")
    logger.debug(f"[{label}] parsed {len(df)} rows x {len(df.columns)} columns")
    return df


# ── Movement partitioning ────────────────────────────────────────────


def _movement_id_column(columns: Iterable[str]) -> Optional[str]:
    cols = list(columns)
    for name in MOVEMENT_ID_COLUMNS:
        if name in cols:
            return name
    return None


def movement_id_column(df: pd.DataFrame) -> Optional[str]:
    """Return the movement-id column name of *df*, or None."""
    return _movement_id_column(df.columns)


def split_movements(df: pd.DataFrame) -> Dict[Optional[str], pd.DataFrame]:
    """Partition a table into independent per-swing tables.

    Rows keep their original order inside each swing, and swings are
    returned in order of first appearance. Rows with an empty or
    ``n/a`` movement id are dropped.

    Parameters
    ----------
    df : pd.DataFrame
        Output of :func:`parse_metric_csv`.

    Returns
    -------
    dict
        ``{movement_id: DataFrame}``. A table without a movement-id
        column is returned whole under the key ``None``. An empty
        table yields an empty dict.
    """
    if df is None or df.empty:
        return {}

    id_col = movement_id_column(df)
    if id_col is None:
        return {None: df.reset_index(drop=True)}

    ids = df[id_col].astype(str).str.strip()
    missing = ids.str.lower().isin(MISSING_MOVEMENT_IDS)
    if missing.any():
        logger.warning(f"Dropped {int(missing.sum())} rows without a movement id")
    kept = df.loc[~missing]

    swings = {}
    for movement_id, group in kept.groupby(ids[~missing], sort=False):
        swings[str(movement_id)] = group.reset_index(drop=True)
    return swings


# ── Column lookup ────────────────────────────────────────────────────


def find_column(columns, aliases: Iterable[str]) -> Optional[str]:
    """Find the first column matching any alias.

    Exact names win over partial matches. Partial matching tries
    prefix matches before substring matches, and skips aliases
    shorter than three characters. A substring match must start and
    end on an underscore boundary, so ``torso_ke`` matches
    ``upper_torso_ke`` but not ``lowertorso_ke``.

    Parameters
    ----------
    columns : iterable of str or pd.DataFrame
        Candidate column names (already lower-cased).
    aliases : iterable of str
        Ordered alias names.

    Returns
    -------
    str or None
    """
    if isinstance(columns, pd.DataFrame):
        columns = columns.columns
    cols = [str(c) for c in columns]
    aliases = [a.lower() for a in aliases]

    for alias in aliases:
        if alias in cols:
            return alias

    partial = [a for a in aliases if len(a) >= MIN_PARTIAL_ALIAS_LENGTH]
    for alias in partial:
        for col in cols:
            if col.startswith(alias):
                return col
    for alias in partial:
        for col in cols:
            if f"_{alias}_" in f"_{col}_":
                return col
    return None


def get_signal(df: pd.DataFrame, signal: str) -> Optional[np.ndarray]:
    """Return the named signal from *df* as a float array.

    Parameters
    ----------
    df : pd.DataFrame
        Parsed capture table.
    signal : str
        Key of :data:`~fourb.constants.COLUMN_ALIASES`.

    Returns
    -------
    np.ndarray or None
        None when no column matches.
    """
    if df is None or df.empty:
        return None
    col = find_column(df.columns, COLUMN_ALIASES[signal])
    if col is None:
        return None
    return df[col].to_numpy(dtype=float)
