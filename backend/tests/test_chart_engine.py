"""
Signal Scope — Chart Engine Tests

Figure structure only: trace names, marker groups, zone boxes and
divergence labels.
"""

import plotly.graph_objects as go

from signalscope.engines.analysis_engine import AnalysisEngine
from signalscope.engines.chart_engine import DIVERGENCE_LABELS, SIGNAL_STYLES, ChartEngine
from signalscope.models import (
    AnalysisResult,
    Bar,
    ConsolidationZone,
    MACDSeries,
    Signal,
    SignalKind,
    SignalSet,
)


def _signal(index: int, kind: SignalKind, price: float = 10.0) -> Signal:
    return Signal(index=index, timestamp=f"2024-01-{index + 1:02d}", price=price, kind=kind)


def _result() -> AnalysisResult:
    n = 6
    return AnalysisResult(
        timestamps=tuple(f"2024-01-{i + 1:02d}" for i in range(n)),
        closes=(10.0, 10.5, 10.2, 10.8, 11.0, 10.6),
        volumes=(100.0,) * n,
        macd=MACDSeries(
            dif=(0.0, 0.1, 0.0, 0.2, 0.3, 0.1),
            dea=(0.0, 0.02, 0.02, 0.05, 0.1, 0.1),
            macd=(0.0, 0.16, -0.04, 0.3, 0.4, 0.0),
        ),
        zones=(
            ConsolidationZone(start_index=0, end_index=2, high=10.4, low=10.1),
            ConsolidationZone(start_index=1, end_index=3, high=10.6, low=10.3),
        ),
        signals=SignalSet(
            crossovers=(_signal(1, SignalKind.GOLD_CROSS), _signal(5, SignalKind.DEAD_CROSS)),
            divergences=(_signal(4, SignalKind.BEARISH_DIVERGENCE, 11.0),),
        ),
    )


def _divergence_labels(fig: go.Figure) -> list[str]:
    texts = {text for text, _ in DIVERGENCE_LABELS.values()}
    return [a.text for a in fig.layout.annotations if a.text in texts]


class TestSignalChart:
    """Three-panel signal chart."""

    def test_base_traces(self):
        fig = ChartEngine().signal_chart(_result(), ticker="TQQQ")
        names = [t.name for t in fig.data]
        assert names[0] == "TQQQ Close Price"
        for expected in ("Volume", "MACD DIF", "MACD DEA", "MACD Histogram"):
            assert expected in names

    def test_marker_trace_per_present_kind(self):
        fig = ChartEngine().signal_chart(_result())
        names = {t.name for t in fig.data}
        assert SIGNAL_STYLES[SignalKind.GOLD_CROSS].label in names
        assert SIGNAL_STYLES[SignalKind.DEAD_CROSS].label in names
        assert SIGNAL_STYLES[SignalKind.BEARISH_DIVERGENCE].label in names
        assert SIGNAL_STYLES[SignalKind.THIRD_BUY_CONFIRMED].label not in names

    def test_markers_at_signal_bars(self):
        fig = ChartEngine().signal_chart(_result())
        buys = next(t for t in fig.data if t.name == "Buy Signals")
        assert list(buys.x) == ["2024-01-02"]
        assert list(buys.y) == [10.0]

    def test_zone_boxes(self):
        fig = ChartEngine().signal_chart(_result())
        assert len(fig.layout.shapes) == 2
        first = fig.layout.shapes[0]
        assert (first.y0, first.y1) == (10.1, 10.4)
        assert (first.x0, first.x1) == ("2024-01-01", "2024-01-03")

    def test_zones_hidden(self):
        fig = ChartEngine().signal_chart(_result(), show_zones=False)
        assert len(fig.layout.shapes) == 0

    def test_divergence_labels(self):
        fig = ChartEngine().signal_chart(_result())
        assert _divergence_labels(fig) == ["⬇ top div"]

    def test_title(self):
        fig = ChartEngine().signal_chart(_result(), ticker="QQQ")
        assert "QQQ Close Prices with MACD + Trade Points" in fig.layout.title.text

    def test_empty_result(self):
        fig = ChartEngine().signal_chart(AnalysisResult(), ticker="TQQQ")
        assert len(fig.data) == 0
        assert fig.layout.annotations[0].text == "No data available for TQQQ"

    def test_from_pipeline(self):
        closes = [10.0] * 10 + [11.0, 12.0, 13.0, 14.0, 15.0]
        bars = [
            Bar(timestamp=f"2024-01-{i + 1:02d}", close=c, high=c + 1, low=c - 1, volume=1000)
            for i, c in enumerate(closes)
        ]
        result = AnalysisEngine().analyze(bars)
        fig = ChartEngine().signal_chart(result, ticker="TQQQ")
        assert "Buy Signals" in [t.name for t in fig.data]
        assert len(fig.layout.shapes) == len(result.zones) > 0

    def test_to_html(self):
        engine = ChartEngine()
        html = engine.to_html(engine.signal_chart(_result(), ticker="TQQQ"))
        assert isinstance(html, str)
        assert "plotly" in html.lower()
