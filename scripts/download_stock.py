#!/usr/bin/env python3
"""
Signal Scope — Daily Series Downloader

Fetches a symbol's daily OHLCV history from Alpha Vantage as CSV, keeps the
newest rows, and writes ``<data_dir>/<SYMBOL>.csv`` for the API to analyze.
Requires ALPHAVANTAGE_API_KEY in the environment or .env.

Usage:
    python -m scripts.download_stock
    python -m scripts.download_stock QQQ --rows 250 --data-dir data
"""

from __future__ import annotations

import argparse
import sys

import structlog

log = structlog.get_logger("download_stock")

DEFAULT_SYMBOL = "TQQQ"


def download(symbol: str, rows: int | None = None, data_dir: str | None = None) -> bool:
    """Download one symbol. Returns True when the CSV was written."""
    from signalscope.data.alphavantage_client import AlphaVantageClient
    from signalscope.errors import DownloadError

    try:
        path = AlphaVantageClient().save_daily_csv(symbol, data_dir=data_dir, rows=rows)
    except DownloadError as exc:
        log.error("download.failed", symbol=symbol, error=exc.detail)
        return False

    log.info("download.complete", symbol=symbol, path=str(path))
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Download a daily bar CSV from Alpha Vantage")
    parser.add_argument(
        "symbol", nargs="?", default=DEFAULT_SYMBOL,
        help=f"Ticker symbol (default: {DEFAULT_SYMBOL})",
    )
    parser.add_argument(
        "--rows", type=int, default=None,
        help="Newest rows to keep (default: DOWNLOAD_ROWS setting, 500)",
    )
    parser.add_argument(
        "--data-dir", default=None,
        help="Output directory (default: DATA_DIR setting)",
    )
    args = parser.parse_args(argv)

    ok = download(args.symbol.upper(), rows=args.rows, data_dir=args.data_dir)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
