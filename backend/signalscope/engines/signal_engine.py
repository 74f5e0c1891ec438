"""
Signal Scope — Signal Detection Engine

Scans aligned close / DIF / DEA / histogram series and emits discrete
signals on three independent channels:

  - crossover:     DIF crossing DEA (gold cross up, dead cross down)
  - confirmation:  third buy / third sell, layered on a crossover
  - divergence:    price and momentum moving apart (bearish wins a tie)

A bar may fire on every channel at once; nothing is deduplicated across
channels. Comparisons against NaN are False, so malformed bars simply
produce no signal.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

from signalscope.models import (
    MACDSeries,
    Signal,
    SignalKind,
    SignalParams,
    SignalSet,
)


# Bars of history each channel reads behind the current index
_CROSS_HISTORY = 1
_CONFIRMATION_HISTORY = 4


class SignalEngine:
    """Pure signal detector over aligned indicator series.

    Usage:
        engine = SignalEngine(SignalParams(warmup=10))
        signals = engine.detect(closes, macd_series, timestamps)
    """

    def __init__(self, params: Optional[SignalParams] = None):
        self.params = params or SignalParams()

    def detect(
        self,
        closes: Sequence[float],
        macd: MACDSeries,
        timestamps: Optional[Sequence[str]] = None,
    ) -> SignalSet:
        return self.detect_series(closes, macd.dif, macd.dea, macd.macd, timestamps)

    def detect_series(
        self,
        closes: Sequence[float],
        dif: Sequence[float],
        dea: Sequence[float],
        hist: Sequence[float],
        timestamps: Optional[Sequence[str]] = None,
    ) -> SignalSet:
        """Run every channel over the series and collect index-ordered lists.

        Args:
            closes: Close prices.
            dif: MACD line (short EMA minus long EMA).
            dea: Signal line (EMA of DIF).
            hist: Histogram, ``(dif - dea) * 2``.
            timestamps: Bar labels; defaults to the index as a string.

        Returns:
            SignalSet with crossovers, confirmations and divergences.
        """
        n = min(len(closes), len(dif), len(dea), len(hist))
        if timestamps is None:
            timestamps = [str(i) for i in range(n)]

        crossovers: list[Signal] = []
        confirmations: list[Signal] = []
        divergences: list[Signal] = []

        def emit(bucket: list[Signal], i: int, kind: SignalKind) -> None:
            bucket.append(Signal(
                index=i,
                timestamp=str(timestamps[i]),
                price=closes[i],
                kind=kind,
                description=kind.description,
            ))

        lookback = self.params.divergence_lookback

        for i in range(self.params.warmup, n):
            gold = dead = False
            if i >= _CROSS_HISTORY:
                gold = self.is_gold_cross(dif, dea, i)
                dead = self.is_dead_cross(dif, dea, i)
                if gold:
                    emit(crossovers, i, SignalKind.GOLD_CROSS)
                if dead:
                    emit(crossovers, i, SignalKind.DEAD_CROSS)

            if i >= _CONFIRMATION_HISTORY:
                if gold and self.is_third_buy(closes, hist, i):
                    emit(confirmations, i, SignalKind.THIRD_BUY_CONFIRMED)
                if dead and self.is_third_sell(dif, dea, hist, i):
                    emit(confirmations, i, SignalKind.THIRD_SELL_CONFIRMED)

            if i >= lookback:
                kind = self.divergence_at(closes, dif, hist, i)
                if kind is not None:
                    emit(divergences, i, kind)

        return SignalSet(
            crossovers=tuple(crossovers),
            confirmations=tuple(confirmations),
            divergences=tuple(divergences),
        )

    # ──────────────────────────────────────────────
    # Crossovers
    # ──────────────────────────────────────────────

    def is_gold_cross(self, dif: Sequence[float], dea: Sequence[float], i: int) -> bool:
        """DIF moves from below DEA at ``i-1`` to above it at ``i``."""
        before = dif[i - 1] < dea[i - 1]
        if self.params.cross_from_touch:
            before = before or dif[i - 1] == dea[i - 1]
        return before and dif[i] > dea[i]

    def is_dead_cross(self, dif: Sequence[float], dea: Sequence[float], i: int) -> bool:
        """DIF moves from above DEA at ``i-1`` to below it at ``i``."""
        before = dif[i - 1] > dea[i - 1]
        if self.params.cross_from_touch:
            before = before or dif[i - 1] == dea[i - 1]
        return before and dif[i] < dea[i]

    # ──────────────────────────────────────────────
    # Confirmations
    # ──────────────────────────────────────────────

    @staticmethod
    def is_third_buy(closes: Sequence[float], hist: Sequence[float], i: int) -> bool:
        """Higher closes every other bar and a histogram turning up.

        Only meaningful on a gold-cross bar; the caller checks that.
        """
        rising_closes = closes[i] > closes[i - 2] > closes[i - 4]
        turning_up = hist[i - 2] < hist[i - 1] < hist[i]
        return rising_closes and turning_up

    @staticmethod
    def is_third_sell(
        dif: Sequence[float],
        dea: Sequence[float],
        hist: Sequence[float],
        i: int,
    ) -> bool:
        """Histogram peaked above zero and is rolling over into the cross.

        Only meaningful on a dead-cross bar; the caller checks that.
        """
        was_bullish = hist[i - 1] > 0 and dif[i - 1] > dea[i - 1]
        peak_turning = hist[i - 2] > hist[i - 1] > hist[i] and hist[i - 2] > 0
        return was_bullish and peak_turning

    # ──────────────────────────────────────────────
    # Divergence
    # ──────────────────────────────────────────────

    def divergence_at(
        self,
        closes: Sequence[float],
        dif: Sequence[float],
        hist: Sequence[float],
        i: int,
    ) -> Optional[SignalKind]:
        """Return the divergence kind at ``i``, bearish taking precedence."""
        lookback = self.params.divergence_lookback
        if self.params.divergence_mode == "extrema":
            start = i - lookback
            high_ref = (
                _window_extreme(closes, start, i, max),
                _window_extreme(dif, start, i, max),
                _window_extreme(hist, start, i, max),
            )
            low_ref = (
                _window_extreme(closes, start, i, min),
                _window_extreme(dif, start, i, min),
                _window_extreme(hist, start, i, min),
            )
        else:
            j = i - lookback
            high_ref = low_ref = (closes[j], dif[j], hist[j])

        if closes[i] > high_ref[0] and dif[i] < high_ref[1] and hist[i] < high_ref[2]:
            return SignalKind.BEARISH_DIVERGENCE
        if closes[i] < low_ref[0] and dif[i] > low_ref[1] and hist[i] > low_ref[2]:
            return SignalKind.BULLISH_DIVERGENCE
        return None


def _window_extreme(values: Sequence[float], start: int, end: int, pick) -> float:
    """``pick`` (min or max) over ``values[start:end]``; NaN if any value is NaN."""
    window = values[start:end]
    if any(math.isnan(v) for v in window):
        return math.nan
    return pick(window)
