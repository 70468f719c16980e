"""Rate-limit retry for repository host requests.

GitHub-style hosts signal throttling with HTTP 429, or with HTTP 403 and
either ``X-RateLimit-Remaining: 0`` or a "rate limit" message. Such calls are
retried up to MAX_RETRIES times with backoff 1s, 2s, 4s (longer when the host
sends ``Retry-After``). Every other error propagates on the first attempt.
"""

import time
import logging
from typing import Callable, Optional, TypeVar

from .errors import APIAccessError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 3

RATE_LIMIT_MARKERS = (
    'too many requests',
    'rate limit exceeded',
    'secondary rate limit',
    'rate limited',
)


def retry_on_rate_limit(func: Callable[..., T], *args, **kwargs) -> T:
    """Call func, retrying while the host reports a rate limit.

    Raises:
        APIAccessError: If the limit persists after MAX_RETRIES retries

    Example:
        >>> head = retry_on_rate_limit(api.get_ref, "main")
    """
    attempt = 0
    while True:
        try:
            return func(*args, **kwargs)
        except Exception as e:
            if not _is_rate_limit_error(e):
                raise
            if attempt >= MAX_RETRIES:
                logger.error(f"Rate limit persisted after {MAX_RETRIES} retries, giving up")
                raise APIAccessError(
                    f"Repository API failure (after {MAX_RETRIES} retries)",
                    status_code=429
                ) from e

            wait_time = max(2 ** attempt, _retry_after(e) or 0)
            attempt += 1
            logger.info(f"Rate limited by host; waiting {wait_time}s (retry {attempt}/{MAX_RETRIES})")
            time.sleep(wait_time)


def _status_code(exception: Exception) -> Optional[int]:
    status = getattr(exception, 'status_code', None)
    if status is None:
        status = getattr(getattr(exception, 'response', None), 'status_code', None)
    return status


def _headers(exception: Exception):
    return getattr(getattr(exception, 'response', None), 'headers', None) or {}


def _retry_after(exception: Exception) -> Optional[int]:
    """Seconds requested by a ``Retry-After`` header, if any."""
    value = str(_headers(exception).get('Retry-After', '')).strip()
    return int(value) if value.isdigit() else None


def _is_rate_limit_error(exception: Exception) -> bool:
    """True for 429s, exhausted-quota 403s and rate limit messages.

    Messages are only consulted when there is no status code or for a 403.
    """
    status = _status_code(exception)
    if status == 429:
        return True
    if status == 403 and str(_headers(exception).get('X-RateLimit-Remaining', '')) == '0':
        return True
    if status is not None and status != 403:
        return False

    message = str(exception).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)
