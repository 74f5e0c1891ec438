"""
Signal Scope — Analysis Engine

One-shot pipeline over a single bar series:

    bars → order by timestamp → MACD → consolidation zones → signals

Every call recomputes from scratch; nothing is cached between series.
"""

from __future__ import annotations

import time
from typing import Any, Iterable, Mapping, Optional, Sequence

import structlog

from signalscope.engines.macd_engine import MACDEngine
from signalscope.engines.signal_engine import SignalEngine
from signalscope.engines.zone_engine import ZoneEngine
from signalscope.models import AnalysisResult, Bar, SignalParams

log = structlog.get_logger(__name__)


def bars_from_records(records: Iterable[Mapping[str, Any]]) -> list[Bar]:
    """Build bars from loose mappings (e.g. CSV dict rows).

    Keys are whitespace-trimmed. Rows without a ``timestamp`` or ``close``
    value are dropped; other malformed numbers become NaN.
    """
    bars: list[Bar] = []
    for record in records:
        row = {str(k).strip(): v for k, v in record.items()}
        timestamp = row.get("timestamp")
        close = row.get("close")
        if timestamp is None or close is None or str(timestamp).strip() == "" or str(close).strip() == "":
            continue
        bars.append(Bar(
            timestamp=timestamp,
            close=close,
            high=row.get("high"),
            low=row.get("low"),
            volume=row.get("volume"),
        ))
    return bars


class AnalysisEngine:
    """Run MACD, zone and signal detection over one instrument's bars.

    Usage:
        engine = AnalysisEngine()
        result = engine.analyze(bars)
        result.signals.crossovers
    """

    def __init__(
        self,
        macd_engine: Optional[MACDEngine] = None,
        params: Optional[SignalParams] = None,
    ):
        self.macd_engine = macd_engine or MACDEngine()
        self.params = params or SignalParams()
        self.signal_engine = SignalEngine(self.params)
        self.zone_engine = ZoneEngine()

    @classmethod
    def from_settings(cls, settings=None) -> "AnalysisEngine":
        if settings is None:
            from signalscope.config import get_settings
            settings = get_settings()
        return cls(macd_engine=settings.macd_engine(), params=settings.signal_params())

    def analyze(self, bars: Sequence[Bar]) -> AnalysisResult:
        """Compute indicator series, zones and signals for ordered bars.

        Bars are re-sorted ascending by timestamp; the sort is stable, so an
        already ordered series is left untouched.
        """
        start = time.perf_counter()
        ordered = sorted(bars, key=lambda b: b.timestamp)

        timestamps = tuple(b.timestamp for b in ordered)
        closes = tuple(b.close for b in ordered)
        volumes = tuple(b.volume for b in ordered)

        macd = self.macd_engine.compute(closes)
        zones = self.zone_engine.detect(ordered)
        signals = self.signal_engine.detect(closes, macd, timestamps)

        result = AnalysisResult(
            timestamps=timestamps,
            closes=closes,
            volumes=volumes,
            macd=macd,
            zones=tuple(zones),
            signals=signals,
            params=self.params,
        )

        log.info(
            "analysis.complete",
            bars=len(ordered),
            zones=len(zones),
            signals=len(signals),
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result

    def analyze_records(self, records: Iterable[Mapping[str, Any]]) -> AnalysisResult:
        return self.analyze(bars_from_records(records))
