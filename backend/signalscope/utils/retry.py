"""
Signal Scope — Retry Policy

Exponential backoff with jitter for the Alpha Vantage download. Only
transport-level failures (refused connection, timeout, dropped socket)
are retried. An HTTP error status or the throttling notice is a real
answer from the server and goes straight back to the caller.
"""

from __future__ import annotations

import functools
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Type

import httpx
import structlog

log = structlog.get_logger(__name__)

DEFAULT_RETRYABLE: tuple[Type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
    httpx.TransportError,
)


def compute_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    backoff_factor: float,
    jitter: bool,
) -> float:
    """Seconds to wait after failed ``attempt`` (1-based), capped at ``max_delay``."""
    delay = base_delay * (backoff_factor ** (attempt - 1))
    if jitter:
        delay *= random.uniform(0.5, 1.5)
    return min(delay, max_delay)


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try a call and how long to wait in between."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0
    jitter: bool = True
    retry_on: tuple[Type[Exception], ...] = DEFAULT_RETRYABLE
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    def delays(self) -> Iterator[float]:
        """Wait before each retry; one fewer value than ``max_attempts``."""
        for attempt in range(1, self.max_attempts):
            yield compute_delay(attempt, self.base_delay, self.max_delay, self.backoff_factor, self.jitter)

    def call(self, func: Callable, *args: Any, **kwargs: Any) -> Any:
        """Run ``func`` until it succeeds or the attempts run out.

        The last retryable exception is re-raised unchanged.
        """
        name = getattr(func, "__qualname__", repr(func))
        waits = self.delays()
        attempt = 0
        while True:
            attempt += 1
            try:
                return func(*args, **kwargs)
            except self.retry_on as exc:
                delay = next(waits, None)
                if delay is None:
                    log.error("retry.exhausted", func=name, attempts=attempt, error=str(exc))
                    raise
                log.warning(
                    "retry.attempt",
                    func=name,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    delay=round(delay, 2),
                    error=str(exc),
                )
                self.sleep(delay)


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: tuple[Type[Exception], ...] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable:
    """Decorator form of ``RetryPolicy``.

    Usage::

        @with_retry(max_attempts=3, base_delay=1.0)
        def fetch(params: dict) -> httpx.Response:
            ...
    """
    policy = RetryPolicy(
        max_attempts=max_attempts,
        base_delay=base_delay,
        max_delay=max_delay,
        backoff_factor=backoff_factor,
        jitter=jitter,
        retry_on=retryable_exceptions or DEFAULT_RETRYABLE,
        sleep=sleep,
    )

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return policy.call(func, *args, **kwargs)

        return wrapper

    return decorator
