# Shared utilities: retry/backoff
from signalscope.utils.retry import RetryPolicy, compute_delay, with_retry

__all__ = [
    "RetryPolicy",
    "compute_delay",
    "with_retry",
]
