"""Tests for error classification, backoff and the retry wrapper."""

import asyncio

import pytest


# ═══════════════════════════════════════════════════════════════════
# Tests for utils/retry.py
# ═══════════════════════════════════════════════════════════════════


class TestClassifyError:
    @pytest.mark.parametrize("status, message, expected", [
        (404, None, "PERMANENT"),
        (None, "Comments disabled for this video", "PERMANENT"),
        (None, "Comments are turned off", "PERMANENT"),
        (None, "This is a private video", "PERMANENT"),
        (None, "Video unavailable", "PERMANENT"),
        (None, "This video is age-restricted", "PERMANENT"),
        (403, None, "BLOCKED"),
        (429, None, "BLOCKED"),
        (None, "Captcha detected", "BLOCKED"),
        (None, "Bot detected", "BLOCKED"),
        (500, None, "TRANSIENT"),
        (502, None, "TRANSIENT"),
        (503, None, "TRANSIENT"),
        (504, None, "TRANSIENT"),
        (None, "Request timeout", "TRANSIENT"),
        (None, "read ECONNRESET", "TRANSIENT"),
        (None, "unexpected", "TRANSIENT"),
        (400, None, "TRANSIENT"),
    ])
    def test_table(self, status, message, expected):
        from utils.retry import classify_error

        assert classify_error(status, message).value == expected

    def test_permanent_message_beats_blocked_status(self):
        from utils.retry import ErrorCategory, classify_error

        assert classify_error(429, "video unavailable") == ErrorCategory.PERMANENT

    def test_blocked_message_beats_server_error(self):
        from utils.retry import ErrorCategory, classify_error

        assert classify_error(503, "captcha required") == ErrorCategory.BLOCKED

    def test_should_retry(self):
        from utils.retry import ErrorCategory, should_retry

        assert not should_retry(ErrorCategory.PERMANENT)
        assert should_retry(ErrorCategory.BLOCKED)
        assert should_retry(ErrorCategory.TRANSIENT)


class TestBackoff:
    def test_exponential_without_jitter(self):
        from config.settings import RetryConfig
        from utils.retry import calculate_backoff_delay

        cfg = RetryConfig(base_delay=0.2, max_delay=10.0, max_retries=5, jitter=0.0)
        assert calculate_backoff_delay(0, cfg) == pytest.approx(0.2)
        assert calculate_backoff_delay(1, cfg) == pytest.approx(0.4)
        assert calculate_backoff_delay(3, cfg) == pytest.approx(1.6)

    def test_capped(self):
        from config.settings import RetryConfig
        from utils.retry import calculate_backoff_delay

        cfg = RetryConfig(base_delay=1.0, max_delay=3.0, max_retries=5, jitter=0.0)
        assert calculate_backoff_delay(10, cfg) == pytest.approx(3.0)

    def test_jitter_bounds(self):
        from config.settings import RetryConfig
        from utils.retry import calculate_backoff_delay

        cfg = RetryConfig(base_delay=1.0, max_delay=1.0, max_retries=1, jitter=0.5)
        assert calculate_backoff_delay(0, cfg, rng=lambda: 0.0) == pytest.approx(0.75)
        assert calculate_backoff_delay(0, cfg, rng=lambda: 0.5) == pytest.approx(1.0)
        assert calculate_backoff_delay(0, cfg, rng=lambda: 0.999999) == pytest.approx(1.25, abs=1e-5)


class TestTimeoutMessage:
    def test_messages(self):
        from utils.retry import get_timeout_actionable_message

        assert "timed out" in get_timeout_actionable_message("Request timeout")
        assert "reset" in get_timeout_actionable_message("ECONNRESET")
        assert "unable to reach" in get_timeout_actionable_message("getaddrinfo ENOTFOUND")
        assert get_timeout_actionable_message("weird").startswith("Network error: weird")


def _failing(errors, value="ok"):
    """Operation that raises each error in turn, then returns `value`."""
    calls = {"n": 0}

    async def op():
        calls["n"] += 1
        if errors:
            raise errors.pop(0)
        return value

    return op, calls


class TestWithRetry:
    def _run(self, op, cfg, delays=None):
        from utils.retry import with_retry

        async def fake_sleep(d):
            if delays is not None:
                delays.append(d)

        return asyncio.run(with_retry(op, cfg, sleep=fake_sleep, rng=lambda: 0.5))

    def test_success_first_try(self):
        from config.settings import FAST_RETRY_PROFILE

        op, calls = _failing([])
        outcome = self._run(op, FAST_RETRY_PROFILE)
        assert outcome.success
        assert outcome.value == "ok"
        assert outcome.attempts == 1
        assert calls["n"] == 1

    def test_transient_then_success(self):
        from config.settings import FAST_RETRY_PROFILE
        from utils.retry import FetchError

        delays = []
        op, calls = _failing([FetchError("InnerTube API error: 503", 503)])
        outcome = self._run(op, FAST_RETRY_PROFILE, delays)
        assert outcome.success
        assert outcome.attempts == 2
        assert delays == [pytest.approx(0.2)]

    def test_permanent_is_not_retried(self):
        from config.settings import SAFE_RETRY_PROFILE
        from utils.retry import ErrorCategory, FetchError

        delays = []
        op, calls = _failing([FetchError("Failed to fetch video page: 404", 404)])
        outcome = self._run(op, SAFE_RETRY_PROFILE, delays)
        assert not outcome.success
        assert outcome.category == ErrorCategory.PERMANENT
        assert outcome.status_code == 404
        assert outcome.attempts == 1
        assert delays == []

    def test_blocked_exhausts_budget(self):
        from config.settings import SAFE_RETRY_PROFILE
        from utils.retry import ErrorCategory, FetchError

        delays = []
        errors = [FetchError("Rate limited", 429) for _ in range(10)]
        op, calls = _failing(errors)
        outcome = self._run(op, SAFE_RETRY_PROFILE, delays)
        assert not outcome.success
        assert outcome.category == ErrorCategory.BLOCKED
        assert outcome.attempts == SAFE_RETRY_PROFILE.max_retries + 1
        assert calls["n"] == 4
        assert delays == [pytest.approx(1.0), pytest.approx(2.0), pytest.approx(4.0)]

    def test_unknown_exception_is_transient(self):
        from config.settings import FAST_RETRY_PROFILE
        from utils.retry import ErrorCategory

        op, calls = _failing([RuntimeError("unexpected"), RuntimeError("unexpected")])
        outcome = self._run(op, FAST_RETRY_PROFILE)
        assert not outcome.success
        assert outcome.category == ErrorCategory.TRANSIENT
        assert outcome.error == "unexpected"
        assert calls["n"] == 2

    def test_bare_timeout_gets_a_message(self):
        from config.settings import RetryConfig
        from utils.retry import ErrorCategory

        op, calls = _failing([asyncio.TimeoutError()])
        outcome = self._run(op, RetryConfig(max_retries=0))
        assert outcome.error == "Request timeout"
        assert outcome.category == ErrorCategory.TRANSIENT

    def test_profiles_swap_without_call_site_changes(self):
        from config.settings import FAST_RETRY_PROFILE, SAFE_RETRY_PROFILE
        from utils.retry import FetchError

        for cfg in (FAST_RETRY_PROFILE, SAFE_RETRY_PROFILE):
            op, calls = _failing([FetchError("boom", 500) for _ in range(10)])
            outcome = self._run(op, cfg)
            assert calls["n"] == cfg.max_retries + 1
            assert outcome.attempts == cfg.max_retries + 1
