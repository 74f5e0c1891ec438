"""
Signal Scope — Chart Engine

Maps an ``AnalysisResult`` onto an interactive Plotly figure: close price
with signal markers and consolidation boxes, volume, and the MACD panel.

Colors follow the TradingView dark palette so signal markers read the
same way traders are used to: green for bullish, red for bearish.
"""

from __future__ import annotations

from typing import NamedTuple

import plotly.graph_objects as go
from plotly.subplots import make_subplots

from signalscope.models import AnalysisResult, SignalKind


# ──────────────────────────────────────────────
# TradingView Color Constants
# ──────────────────────────────────────────────

TV_BG = "#131722"
TV_GRID = "#363c4e"
TV_TEXT = "#d1d4dc"
TV_TEXT_DIM = "#787b86"
TV_BULLISH = "#26a69a"
TV_BEARISH = "#ef5350"
TV_PRICE = "#2196f3"
TV_VOLUME = "rgba(150, 150, 150, 0.3)"
TV_DIF = "#ff9800"
TV_DEA = "#ab47bc"
TV_ZONE_FILL = "rgba(33, 150, 243, 0.08)"
TV_ZONE_LINE = "rgba(33, 150, 243, 0.35)"


class MarkerStyle(NamedTuple):
    label: str
    color: str
    size: int
    symbol: str


SIGNAL_STYLES: dict[SignalKind, MarkerStyle] = {
    SignalKind.GOLD_CROSS: MarkerStyle("Buy Signals", "#00c853", 9, "triangle-up"),
    SignalKind.DEAD_CROSS: MarkerStyle("Sell Signals", TV_BEARISH, 9, "triangle-down"),
    SignalKind.THIRD_BUY_CONFIRMED: MarkerStyle("Third Buy Confirmed", "#c6ff00", 11, "star"),
    SignalKind.THIRD_SELL_CONFIRMED: MarkerStyle("Third Sell Confirmed", "#ff6d00", 11, "star"),
    SignalKind.BULLISH_DIVERGENCE: MarkerStyle("Bullish Divergence", "#00e5ff", 10, "circle-open"),
    SignalKind.BEARISH_DIVERGENCE: MarkerStyle("Bearish Divergence", "#e040fb", 10, "circle-open"),
}

DIVERGENCE_LABELS = {
    SignalKind.BULLISH_DIVERGENCE: ("⬆ bottom div", TV_BULLISH),
    SignalKind.BEARISH_DIVERGENCE: ("⬇ top div", TV_BEARISH),
}


class ChartEngine:
    """Render analysis results as TradingView-style Plotly charts."""

    def signal_chart(
        self,
        result: AnalysisResult,
        ticker: str = "",
        show_zones: bool = True,
        height: int = 900,
        width: int = 1600,
    ) -> go.Figure:
        """Price + volume + MACD chart with every signal overlaid.

        Args:
            result: Output of ``AnalysisEngine.analyze``.
            ticker: Symbol for the title.
            show_zones: Draw consolidation boxes on the price panel.
            height: Chart height in pixels.
            width: Chart width in pixels.

        Returns:
            Plotly Figure object.
        """
        if not result.bar_count:
            return self._empty_chart(ticker)

        fig = make_subplots(
            rows=3,
            cols=1,
            shared_xaxes=True,
            vertical_spacing=0.03,
            row_heights=[0.6, 0.15, 0.25],
            subplot_titles=["", "Volume", "MACD"],
        )

        dates = list(result.timestamps)
        closes = list(result.closes)

        # ── Close Price ──
        fig.add_trace(
            go.Scatter(
                x=dates, y=closes, mode="lines",
                line=dict(color=TV_PRICE, width=1.5),
                name=f"{ticker} Close Price" if ticker else "Close Price",
            ),
            row=1, col=1,
        )

        # ── Signal Markers ──
        for kind, style in SIGNAL_STYLES.items():
            signals = result.signals.by_kind(kind)
            if not signals:
                continue
            fig.add_trace(
                go.Scatter(
                    x=[s.timestamp for s in signals],
                    y=[s.price for s in signals],
                    mode="markers",
                    marker=dict(color=style.color, size=style.size, symbol=style.symbol),
                    name=style.label,
                    text=[s.description for s in signals],
                    hovertemplate="%{x}<br>%{y:.2f}<br>%{text}<extra>" + style.label + "</extra>",
                ),
                row=1, col=1,
            )

        # ── Divergence Labels ──
        for signal in result.signals.divergences:
            text, color = DIVERGENCE_LABELS[signal.kind]
            fig.add_annotation(
                x=signal.timestamp, y=signal.price,
                text=text, showarrow=False, yshift=14,
                font=dict(size=10, color=color),
                row=1, col=1,
            )

        # ── Consolidation Zones ──
        if show_zones:
            for zone in result.zones:
                fig.add_shape(
                    type="rect",
                    x0=dates[zone.start_index], x1=dates[zone.end_index],
                    y0=zone.low, y1=zone.high,
                    fillcolor=TV_ZONE_FILL,
                    line=dict(color=TV_ZONE_LINE, width=1),
                    layer="below",
                    row=1, col=1,
                )

        # ── Volume ──
        fig.add_trace(
            go.Bar(
                x=dates, y=list(result.volumes),
                marker_color=TV_VOLUME,
                name="Volume",
                showlegend=False,
            ),
            row=2, col=1,
        )

        # ── MACD Panel ──
        macd = result.macd
        fig.add_trace(
            go.Scatter(
                x=dates, y=list(macd.dif), mode="lines",
                line=dict(color=TV_DIF, width=1),
                name="MACD DIF",
            ),
            row=3, col=1,
        )
        fig.add_trace(
            go.Scatter(
                x=dates, y=list(macd.dea), mode="lines",
                line=dict(color=TV_DEA, width=1),
                name="MACD DEA",
            ),
            row=3, col=1,
        )
        hist_colors = [TV_BULLISH if h >= 0 else TV_BEARISH for h in macd.macd]
        fig.add_trace(
            go.Bar(
                x=dates, y=list(macd.macd),
                marker_color=hist_colors,
                name="MACD Histogram",
                showlegend=False,
            ),
            row=3, col=1,
        )

        title = f"{ticker} Close Prices with MACD + Trade Points" if ticker else "Close Prices with MACD + Trade Points"
        self._apply_tv_theme(fig, title, rows=3, height=height, width=width)
        return fig

    def to_html(self, fig: go.Figure) -> str:
        """Figure as an HTML fragment; plotly.js is pulled from the CDN."""
        return fig.to_html(
            include_plotlyjs="cdn",
            full_html=False,
            config={"displayModeBar": True, "scrollZoom": True},
        )

    # ──────────────────────────────────────────
    # Private Helpers
    # ──────────────────────────────────────────

    def _apply_tv_theme(self, fig: go.Figure, title: str, rows: int, height: int, width: int):
        fig.update_layout(
            _TV_LAYOUT,
            title=dict(text=f"<b>{title}</b>", x=0.5, xanchor="center", font=dict(size=18, color=TV_TEXT)),
            height=height,
            width=width,
        )
        fig.update_yaxes(_TV_AXIS)
        fig.update_xaxes(_TV_AXIS, showgrid=True)
        # Slider on the MACD panel pans all three rows through shared_xaxes
        fig.update_xaxes(rangeslider=dict(visible=True, thickness=0.05), row=rows, col=1)

    def _empty_chart(self, ticker: str) -> go.Figure:
        message = f"No data available for {ticker}" if ticker else "No data available"
        fig = go.Figure(layout=dict(paper_bgcolor=TV_BG, plot_bgcolor=TV_BG, height=400, width=800))
        fig.add_annotation(
            text=message, xref="paper", yref="paper", x=0.5, y=0.5,
            showarrow=False, font=dict(size=18, color=TV_TEXT_DIM),
        )
        return fig


_TV_AXIS = dict(
    gridcolor=TV_GRID,
    gridwidth=0.5,
    zerolinecolor=TV_GRID,
    tickfont=dict(color=TV_TEXT_DIM, size=10),
)

_TV_LAYOUT = dict(
    template="plotly_dark",
    paper_bgcolor=TV_BG,
    plot_bgcolor=TV_BG,
    font=dict(color=TV_TEXT, family="Inter, system-ui, sans-serif", size=11),
    margin=dict(l=60, r=30, t=60, b=30),
    hovermode="x unified",
    dragmode="pan",
    legend=dict(
        bgcolor="rgba(30, 34, 45, 0.8)",
        bordercolor=TV_GRID,
        font=dict(size=10, color=TV_TEXT_DIM),
        orientation="h",
        yanchor="bottom", y=1.02,
        xanchor="right", x=1,
    ),
)
