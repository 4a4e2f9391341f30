"""
Extraction settings: retry profiles and per-video limits.

Retry tuning is a single value handed to the scraper, so a slow/safe profile
can be swapped for a fast one without touching call sites.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryConfig:
    base_delay: float = 0.2     # seconds, first backoff step
    max_delay: float = 1.0      # seconds, cap before jitter
    max_retries: int = 1        # retries after the first attempt
    jitter: float = 0.5         # 0.5 -> delay * U[0.75, 1.25]


SAFE_RETRY_PROFILE = RetryConfig(base_delay=1.0, max_delay=30.0, max_retries=3, jitter=0.5)
FAST_RETRY_PROFILE = RetryConfig(base_delay=0.2, max_delay=1.0, max_retries=1, jitter=0.5)

RETRY_PROFILES = {
    "safe": SAFE_RETRY_PROFILE,
    "fast": FAST_RETRY_PROFILE,
}

DEFAULT_RETRY_PROFILE = "fast"
RETRY_PROFILE_ENV_VAR = "YT_COMMENTS_RETRY_PROFILE"


def get_retry_profile(name: str | None = None) -> RetryConfig:
    """Look up a retry profile by name; unknown names raise ValueError."""
    key = (name or DEFAULT_RETRY_PROFILE).strip().lower()
    if key not in RETRY_PROFILES:
        raise ValueError(
            f"Unknown retry profile '{name}'. Expected one of: {', '.join(sorted(RETRY_PROFILES))}"
        )
    return RETRY_PROFILES[key]


def retry_profile_from_env(environ=None) -> RetryConfig:
    """Pick the retry profile named by YT_COMMENTS_RETRY_PROFILE (default: fast)."""
    env = os.environ if environ is None else environ
    return get_retry_profile(env.get(RETRY_PROFILE_ENV_VAR) or DEFAULT_RETRY_PROFILE)


@dataclass(frozen=True)
class ExtractionConfig:
    max_comments: int = 0               # 0 = unlimited
    include_replies: bool = True
    request_timeout: float = 30.0       # seconds, per HTTP request
    total_timeout: float = 600.0        # seconds, whole video
    first_batch_timeout: float = 60.0   # seconds, until the first non-empty page
    empty_page_limit: int = 3           # consecutive empty pages before giving up
    large_volume_threshold: int = 100_000

    @property
    def effective_max_comments(self) -> int | None:
        return self.max_comments if self.max_comments and self.max_comments > 0 else None
