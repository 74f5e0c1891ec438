"""
Signal Scope — Pydantic Models

All I/O schemas for the engine and its adapters. The loader produces
``Bar`` records, engines return these models, routes serialize them.
Every model is frozen: results are rebuilt per input series, never mutated.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


NAN = float("nan")


def coerce_float(value: Any) -> float:
    """Parse a number or numeric string; anything unparseable becomes NaN.

    Malformed values are not rejected here. They flow through the
    indicator chain as NaN and suppress signals where they land.
    """
    if value is None:
        return NAN
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return NAN
    try:
        return float(text)
    except ValueError:
        return NAN


# ──────────────────────────────────────────────
# Enums
# ──────────────────────────────────────────────

class SignalChannel(str, Enum):
    """Independent signal channels; one bar may fire on each."""
    CROSSOVER = "crossover"
    CONFIRMATION = "confirmation"
    DIVERGENCE = "divergence"


class SignalKind(str, Enum):
    """Discrete signal types emitted by the detector."""
    GOLD_CROSS = "gold_cross"
    DEAD_CROSS = "dead_cross"
    THIRD_BUY_CONFIRMED = "third_buy_confirmed"
    THIRD_SELL_CONFIRMED = "third_sell_confirmed"
    BULLISH_DIVERGENCE = "bullish_divergence"
    BEARISH_DIVERGENCE = "bearish_divergence"

    @property
    def channel(self) -> SignalChannel:
        return SIGNAL_CHANNELS[self]

    @property
    def description(self) -> str:
        return SIGNAL_DESCRIPTIONS[self]


SIGNAL_CHANNELS: dict[SignalKind, SignalChannel] = {
    SignalKind.GOLD_CROSS: SignalChannel.CROSSOVER,
    SignalKind.DEAD_CROSS: SignalChannel.CROSSOVER,
    SignalKind.THIRD_BUY_CONFIRMED: SignalChannel.CONFIRMATION,
    SignalKind.THIRD_SELL_CONFIRMED: SignalChannel.CONFIRMATION,
    SignalKind.BULLISH_DIVERGENCE: SignalChannel.DIVERGENCE,
    SignalKind.BEARISH_DIVERGENCE: SignalChannel.DIVERGENCE,
}

# Tooltip text shown next to each marker.
SIGNAL_DESCRIPTIONS: dict[SignalKind, str] = {
    SignalKind.GOLD_CROSS: "MACD gold cross: DIF crossed above DEA",
    SignalKind.DEAD_CROSS: "MACD dead cross: DIF crossed below DEA",
    SignalKind.THIRD_BUY_CONFIRMED: "Third buy confirmed (relaxed): gold cross on rising closes and a turning histogram",
    SignalKind.THIRD_SELL_CONFIRMED: "Third sell confirmed (enhanced): dead cross after a positive histogram peak",
    SignalKind.BULLISH_DIVERGENCE: "Bottom divergence: lower close while DIF and MACD rise",
    SignalKind.BEARISH_DIVERGENCE: "Top divergence: higher close while DIF and MACD fall",
}


# ──────────────────────────────────────────────
# Market Data Models
# ──────────────────────────────────────────────

class Bar(BaseModel):
    """Single daily bar. Only ``timestamp`` and ``close`` are required."""
    model_config = ConfigDict(frozen=True)

    timestamp: str
    close: float
    high: float = NAN
    low: float = NAN
    volume: float = NAN

    @field_validator("timestamp", mode="before")
    @classmethod
    def normalize_timestamp(cls, v):
        text = "" if v is None else str(v).strip()
        if not text:
            raise ValueError("timestamp is required")
        return text

    @field_validator("close", mode="before")
    @classmethod
    def parse_close(cls, v):
        # Present but unparseable is NaN; absent is not a bar
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("close is required")
        return coerce_float(v)

    @field_validator("high", "low", "volume", mode="before")
    @classmethod
    def parse_number(cls, v):
        return coerce_float(v)


# ──────────────────────────────────────────────
# Indicator & Signal Models
# ──────────────────────────────────────────────

class MACDSeries(BaseModel):
    """DIF, DEA and histogram, each aligned 1:1 with the input bars."""
    model_config = ConfigDict(frozen=True)

    dif: tuple[float, ...] = ()
    dea: tuple[float, ...] = ()
    macd: tuple[float, ...] = ()

    def __len__(self) -> int:
        return len(self.dif)


class Signal(BaseModel):
    """A single detected event at a bar index."""
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    timestamp: str
    price: float
    kind: SignalKind
    description: str = ""

    @property
    def channel(self) -> SignalChannel:
        return self.kind.channel


class SignalSet(BaseModel):
    """Detector output, one index-ordered list per channel."""
    model_config = ConfigDict(frozen=True)

    crossovers: tuple[Signal, ...] = ()
    confirmations: tuple[Signal, ...] = ()
    divergences: tuple[Signal, ...] = ()

    def all(self) -> list[Signal]:
        """Every signal, ordered by index then channel."""
        order = {SignalChannel.CROSSOVER: 0, SignalChannel.CONFIRMATION: 1, SignalChannel.DIVERGENCE: 2}
        merged = [*self.crossovers, *self.confirmations, *self.divergences]
        return sorted(merged, key=lambda s: (s.index, order[s.channel]))

    def by_kind(self, kind: SignalKind) -> list[Signal]:
        return [s for s in self.all() if s.kind == kind]

    def counts(self) -> dict[str, int]:
        return {kind.value: len(self.by_kind(kind)) for kind in SignalKind}

    def __len__(self) -> int:
        return len(self.crossovers) + len(self.confirmations) + len(self.divergences)


class ConsolidationZone(BaseModel):
    """Overlapping price band of three consecutive bars."""
    model_config = ConfigDict(frozen=True)

    start_index: int = Field(ge=0)
    end_index: int = Field(ge=0)
    high: float
    low: float


class SignalParams(BaseModel):
    """Detector tunables. Defaults follow the canonical chart variant."""
    model_config = ConfigDict(frozen=True)

    warmup: int = Field(default=10, ge=0)
    divergence_lookback: int = Field(default=5, ge=1)
    divergence_mode: Literal["lookback", "extrema"] = "lookback"
    cross_from_touch: bool = True


class AnalysisResult(BaseModel):
    """Everything derived from one bar series."""
    model_config = ConfigDict(frozen=True)

    timestamps: tuple[str, ...] = ()
    closes: tuple[float, ...] = ()
    volumes: tuple[float, ...] = ()
    macd: MACDSeries = MACDSeries()
    zones: tuple[ConsolidationZone, ...] = ()
    signals: SignalSet = SignalSet()
    params: SignalParams = SignalParams()

    @property
    def bar_count(self) -> int:
        return len(self.timestamps)

    def summary(self) -> dict:
        return {
            "bars": self.bar_count,
            "zones": len(self.zones),
            "signals": self.signals.counts(),
            "first": self.timestamps[0] if self.timestamps else None,
            "last": self.timestamps[-1] if self.timestamps else None,
        }
