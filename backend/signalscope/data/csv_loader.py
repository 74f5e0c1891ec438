"""
Signal Scope — CSV Bar Loader

Reads daily bar CSVs in the Alpha Vantage layout
(``timestamp,open,high,low,close,volume``, newest row first) into
ascending ``Bar`` records for the analysis engine.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Union

import pandas as pd
import structlog

from signalscope.errors import BarSourceNotFound, CSVFormatError
from signalscope.models import Bar

log = structlog.get_logger(__name__)

REQUIRED_COLUMNS = ("timestamp", "close")
NUMERIC_COLUMNS = ("close", "high", "low", "volume")


def load_bars_from_text(text: str) -> list[Bar]:
    """Parse CSV text into bars ordered ascending by timestamp.

    Header names are trimmed. Rows missing ``timestamp`` or ``close`` are
    dropped; other unparseable numbers become NaN. Duplicate timestamps
    keep their first occurrence in file order.

    Raises:
        CSVFormatError: The text is not CSV or lacks a required column.
    """
    if not text or not text.strip():
        raise CSVFormatError("CSV input is empty")

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            skip_blank_lines=True,
            skipinitialspace=True,
            keep_default_na=False,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise CSVFormatError(f"Unreadable CSV: {exc}") from exc

    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise CSVFormatError(f"CSV is missing required column(s): {', '.join(missing)}")

    total = len(df)
    df["timestamp"] = df["timestamp"].fillna("").str.strip()
    df["close"] = df["close"].fillna("").str.strip()
    df = df[(df["timestamp"] != "") & (df["close"] != "")].copy()

    for col in NUMERIC_COLUMNS:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")

    df = df.drop_duplicates(subset="timestamp", keep="first")
    df = df.sort_values("timestamp", kind="mergesort")

    bars = [
        Bar(
            timestamp=row["timestamp"],
            close=row["close"],
            high=row.get("high"),
            low=row.get("low"),
            volume=row.get("volume"),
        )
        for row in df.to_dict(orient="records")
    ]

    log.info(
        "csv.loaded",
        rows=total,
        bars=len(bars),
        dropped=total - len(bars),
        first=bars[0].timestamp if bars else None,
        last=bars[-1].timestamp if bars else None,
    )
    return bars


def load_bars_from_path(path: Union[str, Path]) -> list[Bar]:
    """Read a CSV file from disk and parse it with ``load_bars_from_text``.

    Raises:
        BarSourceNotFound: The file does not exist.
        CSVFormatError: The content is not a usable bar CSV.
    """
    path = Path(path)
    if not path.is_file():
        raise BarSourceNotFound(f"No bar data at {path}")
    return load_bars_from_text(path.read_text(encoding="utf-8-sig"))


def ticker_csv_path(data_dir: Union[str, Path], ticker: str) -> Path:
    """Location of a ticker's CSV inside the data directory."""
    return Path(data_dir) / f"{ticker.strip().upper()}.csv"
