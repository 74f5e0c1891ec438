"""Signal Scope — MACD signal annotation for daily price charts."""

__version__ = "1.0.0"
