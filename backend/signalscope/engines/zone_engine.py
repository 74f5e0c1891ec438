"""
Signal Scope — Consolidation Zone Engine

Finds "central zones": three consecutive bars whose high/low ranges
overlap. The overlap band is the lowest high over the highest low.
"""

from __future__ import annotations

import math
from typing import Sequence

from signalscope.models import Bar, ConsolidationZone


class ZoneEngine:
    """Sliding 3-bar overlap detector.

    Zones are reported per window; overlapping or adjacent windows are not
    merged, so a long congestion produces one zone per bar after the second.
    """

    window: int = 3

    def detect(self, bars: Sequence[Bar]) -> list[ConsolidationZone]:
        return self.detect_from_ranges(
            [b.high for b in bars],
            [b.low for b in bars],
        )

    def detect_from_ranges(
        self,
        highs: Sequence[float],
        lows: Sequence[float],
    ) -> list[ConsolidationZone]:
        """Detect zones from aligned high/low series.

        A window containing a NaN high or low never forms a zone. It is
        skipped explicitly since ``min``/``max`` over NaN depend on order.
        """
        zones: list[ConsolidationZone] = []
        n = min(len(highs), len(lows))
        for i in range(self.window - 1, n):
            window_highs = highs[i - self.window + 1: i + 1]
            window_lows = lows[i - self.window + 1: i + 1]
            if any(math.isnan(v) for v in (*window_highs, *window_lows)):
                continue

            high_min = min(window_highs)
            low_max = max(window_lows)
            if high_min > low_max:
                zones.append(ConsolidationZone(
                    start_index=i - self.window + 1,
                    end_index=i,
                    high=high_min,
                    low=low_max,
                ))
        return zones
