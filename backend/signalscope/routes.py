"""
Signal Scope — API Routes

REST endpoints over the analysis pipeline. A ticker's CSV is read from the
configured data directory on every request, or the client uploads its own
CSV; either way the full pipeline reruns from scratch.
"""

from __future__ import annotations

import math
import time as _time
from typing import Any, Optional

from fastapi import APIRouter, File, Query, UploadFile
from fastapi.responses import HTMLResponse

import structlog

from signalscope import __version__
from signalscope.config import get_settings
from signalscope.data.csv_loader import load_bars_from_path, load_bars_from_text, ticker_csv_path
from signalscope.engines.analysis_engine import AnalysisEngine
from signalscope.engines.chart_engine import ChartEngine
from signalscope.errors import CSVFormatError
from signalscope.models import AnalysisResult, Bar, SignalParams

log = structlog.get_logger(__name__)

health_router = APIRouter()
analysis_router = APIRouter()

START_TIME: float = _time.monotonic()
TICKER_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9.\-]{0,9}$"
_chart_engine = ChartEngine()


def _sanitize_floats(obj: Any) -> Any:
    """Replace NaN/Inf float values with None for JSON compliance.

    Malformed CSV values travel through the indicators as NaN, which the
    JSON encoder rejects.
    """
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return None
        return obj
    if isinstance(obj, dict):
        return {k: _sanitize_floats(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize_floats(v) for v in obj]
    return obj


def _build_engine(
    warmup: Optional[int],
    divergence_lookback: Optional[int],
    divergence_mode: Optional[str],
) -> AnalysisEngine:
    """Engine from settings, with optional per-request detector overrides."""
    settings = get_settings()
    overrides = {
        key: value
        for key, value in (
            ("warmup", warmup),
            ("divergence_lookback", divergence_lookback),
            ("divergence_mode", divergence_mode),
        )
        if value is not None
    }
    params = settings.signal_params()
    if overrides:
        params = SignalParams.model_validate({**params.model_dump(), **overrides})
    return AnalysisEngine(macd_engine=settings.macd_engine(), params=params)


def _analysis_payload(result: AnalysisResult, ticker: str) -> dict:
    signals = result.signals
    return _sanitize_floats({
        "ticker": ticker,
        "summary": result.summary(),
        "params": result.params.model_dump(),
        "series": {
            "timestamps": list(result.timestamps),
            "close": list(result.closes),
            "volume": list(result.volumes),
            "dif": list(result.macd.dif),
            "dea": list(result.macd.dea),
            "macd": list(result.macd.macd),
        },
        "zones": [z.model_dump() for z in result.zones],
        "signals": {
            "crossovers": [s.model_dump(mode="json") for s in signals.crossovers],
            "confirmations": [s.model_dump(mode="json") for s in signals.confirmations],
            "divergences": [s.model_dump(mode="json") for s in signals.divergences],
        },
    })


def _ticker_bars(ticker: str) -> list[Bar]:
    settings = get_settings()
    return load_bars_from_path(ticker_csv_path(settings.data_dir, ticker))


async def _upload_bars(file: UploadFile) -> list[Bar]:
    limit = get_settings().max_upload_bytes
    raw = await file.read(limit + 1)
    if len(raw) > limit:
        raise CSVFormatError(f"Upload exceeds {limit} bytes: {file.filename}")
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CSVFormatError(f"Uploaded file is not UTF-8 text: {file.filename}") from exc
    log.info("upload.received", filename=file.filename, bytes=len(raw))
    return load_bars_from_text(text)


# ──────────────────────────────────────────────
# Health
# ──────────────────────────────────────────────


@health_router.get("/health")
async def health_check():
    """Liveness check with version and uptime."""
    return {
        "status": "ok",
        "version": __version__,
        "uptime_seconds": round(_time.monotonic() - START_TIME, 1),
    }


# ──────────────────────────────────────────────
# Analysis
# ──────────────────────────────────────────────


@analysis_router.get("/analysis")
async def get_analysis(
    ticker: Optional[str] = Query(None, pattern=TICKER_PATTERN, description="Ticker whose CSV to analyze"),
    warmup: Optional[int] = Query(None, ge=0, le=500, description="First scanned bar index"),
    divergence_lookback: Optional[int] = Query(None, ge=1, le=100),
    divergence_mode: Optional[str] = Query(None, pattern="^(lookback|extrema)$"),
):
    """MACD series, consolidation zones and signals for a stored ticker CSV."""
    ticker = (ticker or get_settings().default_ticker).upper()
    engine = _build_engine(warmup, divergence_lookback, divergence_mode)
    result = engine.analyze(_ticker_bars(ticker))
    return _analysis_payload(result, ticker)


@analysis_router.post("/analysis/upload")
async def upload_analysis(
    file: UploadFile = File(..., description="CSV with timestamp and close columns"),
    warmup: Optional[int] = Query(None, ge=0, le=500),
    divergence_lookback: Optional[int] = Query(None, ge=1, le=100),
    divergence_mode: Optional[str] = Query(None, pattern="^(lookback|extrema)$"),
):
    """Same as ``GET /analysis`` for a user-supplied CSV."""
    engine = _build_engine(warmup, divergence_lookback, divergence_mode)
    result = engine.analyze(await _upload_bars(file))
    return _analysis_payload(result, file.filename or "upload")


# ──────────────────────────────────────────────
# Charts
# ──────────────────────────────────────────────


@analysis_router.get("/chart", response_class=HTMLResponse)
async def get_chart(
    ticker: Optional[str] = Query(None, pattern=TICKER_PATTERN),
    show_zones: bool = Query(True),
    warmup: Optional[int] = Query(None, ge=0, le=500),
    divergence_lookback: Optional[int] = Query(None, ge=1, le=100),
    divergence_mode: Optional[str] = Query(None, pattern="^(lookback|extrema)$"),
):
    """Interactive Plotly chart for a stored ticker CSV."""
    ticker = (ticker or get_settings().default_ticker).upper()
    engine = _build_engine(warmup, divergence_lookback, divergence_mode)
    result = engine.analyze(_ticker_bars(ticker))
    fig = _chart_engine.signal_chart(result, ticker=ticker, show_zones=show_zones)
    return HTMLResponse(_chart_engine.to_html(fig))


@analysis_router.post("/chart/upload", response_class=HTMLResponse)
async def upload_chart(
    file: UploadFile = File(...),
    show_zones: bool = Query(True),
    warmup: Optional[int] = Query(None, ge=0, le=500),
    divergence_lookback: Optional[int] = Query(None, ge=1, le=100),
    divergence_mode: Optional[str] = Query(None, pattern="^(lookback|extrema)$"),
):
    """Interactive Plotly chart for a user-supplied CSV."""
    engine = _build_engine(warmup, divergence_lookback, divergence_mode)
    result = engine.analyze(await _upload_bars(file))
    fig = _chart_engine.signal_chart(result, ticker=file.filename or "", show_zones=show_zones)
    return HTMLResponse(_chart_engine.to_html(fig))
