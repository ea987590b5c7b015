"""Caller-side capture loading.

Everything the engine needs from the outside world: reading capture
payloads from disk or over HTTP(S), fetching the kinematics and energy
exports of one session concurrently, polling an upstream that is still
processing with exponential backoff, and caching a short-lived vendor
access token.

Fetch failures raise :class:`UpstreamFetchError`, the only hard error
of the scoring flow.
"""

import logging
import threading
import time
import urllib.error
import urllib.request
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
DEFAULT_MAX_BYTES = 50_000_000


class UpstreamFetchError(RuntimeError):
    """A capture payload could not be retrieved."""


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def load_payload(
    source: Union[str, Path],
    timeout: float = DEFAULT_TIMEOUT,
    max_bytes: Optional[int] = DEFAULT_MAX_BYTES,
) -> bytes:
    """Read a capture payload from a local path or an http(s) URL.

    Parameters
    ----------
    source : str or Path
        File path or URL.
    timeout : float
        Network timeout in seconds.
    max_bytes : int or None
        Read at most this many bytes. ``None`` reads everything.

    Returns
    -------
    bytes
        Raw payload (possibly gzip-compressed; see
        :func:`~fourb.parsing.cap_payload`).

    Raises
    ------
    UpstreamFetchError
        If the file is missing or the request fails.
    """
    source = str(source)
    limit = -1 if max_bytes is None else max_bytes
    if _is_url(source):
        try:
            with urllib.request.urlopen(source, timeout=timeout) as resp:
                data = resp.read(limit)
        except (urllib.error.URLError, OSError) as e:
            raise UpstreamFetchError(f"Failed to fetch {source}: {e}") from e
    else:
        path = Path(source)
        try:
            with open(path, "rb") as f:
                data = f.read(limit)
        except OSError as e:
            raise UpstreamFetchError(f"Failed to read {path}: {e}") from e
    logger.info(f"Loaded {len(data)} bytes from {source}")
    return data


def fetch_capture_pair(
    kinematics_source: Union[str, Path],
    energy_source: Union[str, Path],
    loader: Callable = load_payload,
) -> Tuple[bytes, bytes]:
    """Fetch the kinematics and energy payloads concurrently.

    Both fetches run on a two-worker thread pool and are joined before
    returning; the first failure is re-raised.

    Returns
    -------
    tuple of bytes
        ``(kinematics_payload, energy_payload)``.
    """
    with ThreadPoolExecutor(max_workers=2) as pool:
        kin_future = pool.submit(loader, kinematics_source)
        energy_future = pool.submit(loader, energy_source)
        return kin_future.result(), energy_future.result()


def retry_with_backoff(
    fn: Callable,
    max_attempts: int = 5,
    base_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    retry_on: tuple = (UpstreamFetchError,),
):
    """Call *fn* until it succeeds, doubling the delay after each failure.

    Parameters
    ----------
    fn : callable
        Zero-argument callable.
    max_attempts : int
        Total number of calls before giving up.
    base_delay : float
        Delay before the second attempt; attempt *k* waits
        ``base_delay * 2**(k-1)`` seconds.
    sleep : callable
        Sleep function (injectable for tests).
    retry_on : tuple of exception types
        Exceptions that trigger a retry. Others propagate at once.

    Returns
    -------
    object
        The first successful return value of *fn*.

    Raises
    ------
    ValueError
        If *max_attempts* < 1.
    Exception
        The last error once attempts are exhausted.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    for attempt in range(1, max_attempts + 1):
        try:
            return fn()
        except retry_on as e:
            if attempt == max_attempts:
                logger.error(f"Giving up after {attempt} attempts: {e}")
                raise
            delay = base_delay * 2 ** (attempt - 1)
            logger.warning(f"Attempt {attempt}/{max_attempts} failed ({e}); retrying in {delay:.1f}s")
            sleep(delay)


class AccessTokenCache:
    """Short-lived access token with explicit refresh and expiry.

    Parameters
    ----------
    fetch_token : callable
        Returns ``(token, expires_in_seconds)``.
    clock : callable
        Monotonic clock in seconds.
    margin : float
        A token is refreshed this many seconds before it expires.
    """

    def __init__(
        self,
        fetch_token: Callable[[], Tuple[str, float]],
        clock: Callable[[], float] = time.monotonic,
        margin: float = 60.0,
    ):
        self._fetch_token = fetch_token
        self._clock = clock
        self.margin = margin
        self._token: Optional[str] = None
        self._expires_at = 0.0
        self._lock = threading.Lock()

    @property
    def valid(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at - self.margin

    def get(self) -> str:
        """Return the cached token, refreshing it when stale."""
        with self._lock:
            if not self.valid:
                self._refresh_locked()
            return self._token

    def refresh(self) -> str:
        """Fetch a new token unconditionally."""
        with self._lock:
            return self._refresh_locked()

    def expire(self):
        """Drop the cached token (e.g. after a 401 from upstream)."""
        with self._lock:
            self._token = None
            self._expires_at = 0.0

    def _refresh_locked(self) -> str:
        token, expires_in = self._fetch_token()
        self._token = token
        self._expires_at = self._clock() + float(expires_in)
        logger.debug(f"Access token refreshed, valid for {float(expires_in):.0f}s")
        return token
