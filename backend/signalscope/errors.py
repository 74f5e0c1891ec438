"""
Signal Scope — Exception Types

The indicator engines never raise on bad data (NaN propagates instead).
These exceptions belong to the adapters around them: reading CSV input
and downloading it from Alpha Vantage.
"""

from __future__ import annotations


class SignalScopeError(Exception):
    """Base class for all Signal Scope errors."""

    status_code: int = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class CSVFormatError(SignalScopeError):
    """CSV input is unreadable or lacks a required column."""

    status_code = 422


class BarSourceNotFound(SignalScopeError):
    """No CSV file exists for the requested ticker."""

    status_code = 404


class DownloadError(SignalScopeError):
    """Upstream data provider returned an error."""

    status_code = 502


class RateLimitError(DownloadError):
    """Alpha Vantage answered with its throttling notice instead of data."""

    status_code = 429
