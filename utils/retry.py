"""
Retry with exponential backoff + jitter, and error classification.

Every outbound fetch goes through `with_retry`, which returns a RetryOutcome
instead of raising, so callers branch on the error category.
"""

import asyncio
import enum
import logging
import random
from dataclasses import dataclass
from typing import Any

from config.settings import RetryConfig, FAST_RETRY_PROFILE

logger = logging.getLogger(__name__)


class ErrorCategory(str, enum.Enum):
    PERMANENT = "PERMANENT"   # never retried (404, comments off, private, ...)
    BLOCKED = "BLOCKED"       # 403 / 429 / captcha, retried like TRANSIENT
    TRANSIENT = "TRANSIENT"   # 5xx, timeouts, resets, anything unrecognized


class FetchError(Exception):
    """A request that came back with an unusable status or body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


_PERMANENT_PHRASES = (
    "comments disabled",
    "comments are turned off",
    "comments have been disabled",
    "private video",
    "video unavailable",
    "age-restricted",
    "age restricted",
)
_BLOCKED_PHRASES = (
    "captcha",
    "bot detected",
    "unusual traffic",
)
_TRANSIENT_PHRASES = (
    "timeout",
    "timed out",
    "econnreset",
    "connection reset",
)


def classify_error(status_code: int | None, message: str | None = None) -> ErrorCategory:
    """Classify a failure; first matching rule wins, unknown -> TRANSIENT."""
    lower = (message or "").lower()

    if status_code == 404 or any(p in lower for p in _PERMANENT_PHRASES):
        return ErrorCategory.PERMANENT

    if status_code in (403, 429) or any(p in lower for p in _BLOCKED_PHRASES):
        return ErrorCategory.BLOCKED

    if (status_code is not None and 500 <= status_code < 600) or any(
        p in lower for p in _TRANSIENT_PHRASES
    ):
        return ErrorCategory.TRANSIENT

    return ErrorCategory.TRANSIENT


def should_retry(category: ErrorCategory) -> bool:
    return category != ErrorCategory.PERMANENT


def calculate_backoff_delay(attempt: int, config: RetryConfig | None = None, rng=random.random) -> float:
    """Delay in seconds before retry number `attempt` (0-indexed)."""
    cfg = config or FAST_RETRY_PROFILE
    capped = min(cfg.max_delay, cfg.base_delay * (2 ** attempt))
    low = 1 - cfg.jitter / 2
    high = 1 + cfg.jitter / 2
    return capped * (low + rng() * (high - low))


def get_timeout_actionable_message(message: str) -> str:
    """Turn a raw network error into a message an operator can act on."""
    lower = (message or "").lower()

    if "timeout" in lower or "timed out" in lower:
        return (
            "Request timed out - the video may have many comments. "
            "Try setting a lower max_comments limit or retry later"
        )
    if "econnreset" in lower or "connection reset" in lower:
        return "Connection was reset - this may be a temporary network issue. Please retry"
    if "enotfound" in lower or "getaddrinfo" in lower or "name resolution" in lower:
        return "Network error - unable to reach YouTube. Check your internet connection and retry"
    if "socket" in lower or "network" in lower:
        return "Network error occurred - please check your connection and retry"
    return f"Network error: {message} - please retry"


@dataclass(frozen=True)
class RetryOutcome:
    """Either a value or a classified failure."""
    success: bool
    value: Any = None
    error: str | None = None
    category: ErrorCategory | None = None
    status_code: int | None = None
    attempts: int = 0

    @classmethod
    def ok(cls, value, attempts: int = 1) -> "RetryOutcome":
        return cls(success=True, value=value, attempts=attempts)

    @classmethod
    def fail(cls, error: str, category: ErrorCategory, attempts: int,
             status_code: int | None = None) -> "RetryOutcome":
        return cls(
            success=False, error=error, category=category,
            attempts=attempts, status_code=status_code,
        )


def _describe(exc: BaseException) -> str:
    msg = str(exc).strip()
    if isinstance(exc, asyncio.TimeoutError) and not msg:
        return "Request timeout"
    return msg or exc.__class__.__name__


async def with_retry(
    operation,
    config: RetryConfig | None = None,
    sleep=asyncio.sleep,
    rng=random.random,
    on_retry=None,
) -> RetryOutcome:
    """Await `operation()` with retries; never raises.

    Args:
        operation: zero-arg callable returning an awaitable
        config: RetryConfig (defaults to the fast profile)
        sleep: async sleep used for backoff
        rng: uniform [0, 1) source for jitter
        on_retry: optional callback(attempt, category, delay, error)
    """
    cfg = config or FAST_RETRY_PROFILE
    last_error = "Unknown error"
    last_status = None
    last_category = ErrorCategory.TRANSIENT

    for attempt in range(cfg.max_retries + 1):
        try:
            value = await operation()
            return RetryOutcome.ok(value, attempts=attempt + 1)
        except Exception as e:
            last_error = _describe(e)
            last_status = getattr(e, "status_code", None)
            last_category = classify_error(last_status, last_error)

        if not should_retry(last_category):
            return RetryOutcome.fail(last_error, last_category, attempt + 1, last_status)

        if attempt < cfg.max_retries:
            delay = calculate_backoff_delay(attempt, cfg, rng)
            logger.debug(
                "Attempt %d failed (%s: %s), retrying in %.2fs",
                attempt + 1, last_category.value, last_error, delay,
            )
            if on_retry:
                try:
                    on_retry(attempt + 1, last_category, delay, last_error)
                except Exception:
                    pass
            await sleep(delay)

    return RetryOutcome.fail(last_error, last_category, cfg.max_retries + 1, last_status)
