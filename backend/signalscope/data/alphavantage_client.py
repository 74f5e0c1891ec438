"""
Signal Scope — Alpha Vantage Client

Downloads a symbol's full daily series as CSV and keeps the newest rows.
Free API key: https://www.alphavantage.co/support/#api-key

Alpha Vantage answers throttled requests with HTTP 200 and a text notice
instead of data, so the body is inspected before it is accepted.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Callable, Optional, Union

import httpx
import structlog

from signalscope.config import get_settings
from signalscope.data.csv_loader import ticker_csv_path
from signalscope.errors import DownloadError, RateLimitError
from signalscope.utils.retry import with_retry

log = structlog.get_logger(__name__)

_BASE_URL = "https://www.alphavantage.co/query"
_RATE_LIMIT_MARKER = "Thank you for using"


def trim_rows(csv_text: str, rows: int) -> str:
    """Keep the header and the first ``rows`` data lines.

    Alpha Vantage returns the latest bar first, so this keeps the newest
    ``rows`` sessions.
    """
    lines = csv_text.strip().splitlines()
    if not lines:
        return ""
    header, data = lines[0], lines[1:]
    return "\n".join([header, *data[:max(rows, 0)]])


class AlphaVantageClient:
    """TIME_SERIES_DAILY CSV downloader."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.alphavantage_api_key
        self._timeout = timeout if timeout is not None else settings.download_timeout
        self._transport = transport
        self._get = with_retry(max_attempts=max_attempts, base_delay=base_delay, sleep=sleep)(self._get_once)

    @property
    def _is_configured(self) -> bool:
        return bool(self._api_key)

    def fetch_daily_csv(self, symbol: str) -> str:
        """Fetch the full daily series for ``symbol`` as CSV text.

        Raises:
            DownloadError: Missing API key, HTTP failure, or an error payload.
            RateLimitError: Alpha Vantage throttled the request.
        """
        if not self._is_configured:
            raise DownloadError("Alpha Vantage API key not configured (ALPHAVANTAGE_API_KEY)")

        symbol = symbol.strip().upper()
        params = {
            "function": "TIME_SERIES_DAILY",
            "symbol": symbol,
            "datatype": "csv",
            "outputsize": "full",
            "apikey": self._api_key,
        }

        try:
            resp = self._get(params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise DownloadError(f"HTTP Error {exc.response.status_code} for {symbol}") from exc
        except httpx.TransportError as exc:
            raise DownloadError(f"Alpha Vantage unreachable for {symbol}: {exc}") from exc

        body = resp.text
        if _RATE_LIMIT_MARKER in body:
            log.warning("download.rate_limited", symbol=symbol)
            raise RateLimitError("API rate limit reached. Try again later.")
        if body.lstrip().startswith("{"):
            raise DownloadError(self._error_detail(body, symbol))

        log.info("download.fetched", symbol=symbol, bytes=len(body))
        return body

    def save_daily_csv(
        self,
        symbol: str,
        data_dir: Union[str, Path, None] = None,
        rows: Optional[int] = None,
    ) -> Path:
        """Download, trim to the newest ``rows`` sessions and write ``<SYMBOL>.csv``."""
        settings = get_settings()
        data_dir = Path(data_dir) if data_dir is not None else settings.data_path
        rows = rows if rows is not None else settings.download_rows

        csv_text = trim_rows(self.fetch_daily_csv(symbol), rows)
        path = ticker_csv_path(data_dir, symbol)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(csv_text + "\n", encoding="utf-8")

        log.info("download.saved", symbol=symbol.upper(), rows=rows, path=str(path))
        return path

    def _get_once(self, params: dict) -> httpx.Response:
        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            return client.get(_BASE_URL, params=params)

    @staticmethod
    def _error_detail(body: str, symbol: str) -> str:
        try:
            payload = json.loads(body)
        except ValueError:
            return f"Unexpected response for {symbol}"
        message = payload.get("Error Message") or payload.get("Information") or payload.get("Note")
        return f"Alpha Vantage error for {symbol}: {message or 'unknown error'}"
