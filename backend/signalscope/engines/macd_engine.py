"""
Signal Scope — MACD Engine

Exponential smoothing and the MACD oscillator (DIF, DEA, histogram) over a
dense close-price series. Pure Python on lists: NaN inputs propagate
through every stage instead of being skipped, which is what suppresses
signals downstream when a bar is malformed.
"""

from __future__ import annotations

from typing import Sequence

from signalscope.models import MACDSeries


def ema(data: Sequence[float], period: int) -> list[float]:
    """Exponential Moving Average seeded with the first value.

    ``result[0] = data[0]`` and every following value moves toward the
    new sample by ``k = 2 / (period + 1)``. Unlike an SMA-seeded EMA there
    is no warm-up gap: the output is always the same length as the input.

    >>> ema([1.0, 2.0, 3.0], 1)
    [1.0, 2.0, 3.0]
    """
    if period < 1:
        raise ValueError(f"EMA period must be >= 1, got {period}")

    result: list[float] = []
    if not data:
        return result

    k = 2 / (period + 1)
    prev = float(data[0])
    result.append(prev)
    for value in data[1:]:
        # prev + k*(x - prev) == x*k + prev*(1 - k); this form keeps flat input exactly flat
        prev = prev + k * (float(value) - prev)
        result.append(prev)
    return result


class MACDEngine:
    """MACD calculator with configurable periods.

    Usage:
        engine = MACDEngine()
        series = engine.compute([b.close for b in bars])
    """

    def __init__(
        self,
        short_period: int = 12,
        long_period: int = 26,
        signal_period: int = 9,
    ):
        for name, value in (
            ("short_period", short_period),
            ("long_period", long_period),
            ("signal_period", signal_period),
        ):
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")
        if short_period >= long_period:
            raise ValueError(
                f"short_period ({short_period}) must be less than long_period ({long_period})"
            )
        self.short_period = short_period
        self.long_period = long_period
        self.signal_period = signal_period

    def compute(self, closes: Sequence[float]) -> MACDSeries:
        """Compute DIF, DEA and the ×2 histogram for a close series.

        Inputs shorter than ``long_period`` are still computed; the early
        values are valid arithmetic, just not meaningful to trade on.
        """
        short_ema = ema(closes, self.short_period)
        long_ema = ema(closes, self.long_period)
        dif = [s - l for s, l in zip(short_ema, long_ema)]
        dea = ema(dif, self.signal_period)
        histogram = [(d - e) * 2 for d, e in zip(dif, dea)]
        return MACDSeries(dif=tuple(dif), dea=tuple(dea), macd=tuple(histogram))

    def __repr__(self) -> str:
        return f"MACDEngine({self.short_period}, {self.long_period}, {self.signal_period})"
