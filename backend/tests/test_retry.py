"""
Signal Scope — Retry Decorator Tests
"""

import httpx
import pytest

from signalscope.utils.retry import RetryPolicy, compute_delay, with_retry


class TestWithRetry:
    """Backoff retry on transient failures."""

    def test_success_first_try(self):
        calls = []

        @with_retry(max_attempts=3, sleep=lambda _d: None)
        def succeed():
            calls.append(1)
            return "ok"

        assert succeed() == "ok"
        assert len(calls) == 1

    def test_retries_then_succeeds(self):
        calls = []
        delays = []

        @with_retry(max_attempts=3, base_delay=0.5, jitter=False, sleep=delays.append)
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("refused")
            return "done"

        assert flaky() == "done"
        assert len(calls) == 3
        assert delays == [0.5, 1.0]

    def test_exhausted_reraises(self):
        @with_retry(max_attempts=2, sleep=lambda _d: None)
        def always_fail():
            raise TimeoutError("slow")

        with pytest.raises(TimeoutError):
            always_fail()

    def test_non_retryable_raised_immediately(self):
        calls = []

        @with_retry(max_attempts=5, sleep=lambda _d: None)
        def bad_input():
            calls.append(1)
            raise ValueError("nope")

        with pytest.raises(ValueError):
            bad_input()
        assert len(calls) == 1

    def test_httpx_transport_errors_retried(self):
        calls = []

        @with_retry(max_attempts=2, sleep=lambda _d: None)
        def fetch():
            calls.append(1)
            raise httpx.ReadTimeout("timed out")

        with pytest.raises(httpx.ReadTimeout):
            fetch()
        assert len(calls) == 2

    def test_custom_retryable(self):
        calls = []

        @with_retry(max_attempts=2, retryable_exceptions=(KeyError,), sleep=lambda _d: None)
        def lookup():
            calls.append(1)
            raise KeyError("x")

        with pytest.raises(KeyError):
            lookup()
        assert len(calls) == 2

    def test_preserves_name(self):
        @with_retry()
        def named_function():
            pass

        assert named_function.__name__ == "named_function"

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            with_retry(max_attempts=0)


class TestRetryPolicy:
    """Policy object used by the download client."""

    def test_delays_one_fewer_than_attempts(self):
        policy = RetryPolicy(max_attempts=4, base_delay=1.0, jitter=False)
        assert list(policy.delays()) == [1.0, 2.0, 4.0]

    def test_single_attempt_never_sleeps(self):
        slept = []
        policy = RetryPolicy(max_attempts=1, sleep=slept.append)

        def fail():
            raise ConnectionError("down")

        with pytest.raises(ConnectionError):
            policy.call(fail)
        assert slept == []

    def test_call_passes_arguments(self):
        policy = RetryPolicy(sleep=lambda _d: None)
        assert policy.call(lambda a, b=0: a + b, 2, b=3) == 5

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestComputeDelay:
    """Exponential backoff arithmetic."""

    def test_exponential(self):
        assert compute_delay(1, 1.0, 30.0, 2.0, False) == 1.0
        assert compute_delay(3, 1.0, 30.0, 2.0, False) == 4.0

    def test_capped(self):
        assert compute_delay(10, 1.0, 5.0, 2.0, False) == 5.0

    def test_jitter_bounds(self):
        for _ in range(50):
            assert 0.5 <= compute_delay(1, 1.0, 30.0, 2.0, True) <= 1.5
