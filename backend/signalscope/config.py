"""
Signal Scope — Configuration Management

Pydantic Settings: loads from .env, validates all configuration at startup.
Indicator periods and detector thresholds live here so the canonical
parameterisation is explicit instead of hard-coded in the engines.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from signalscope.models import SignalParams


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Core ──
    app_env: str = "development"
    app_debug: bool = True

    # ── Bar data ──
    data_dir: str = "data"
    default_ticker: str = "TQQQ"

    # ── Alpha Vantage ──
    alphavantage_api_key: str = ""
    download_rows: int = 500  # newest rows kept by the downloader
    download_timeout: float = 30.0

    # ── Uploads ──
    max_upload_bytes: int = 2_000_000  # larger CSV uploads are rejected

    # ── MACD ──
    macd_short_period: int = 12
    macd_long_period: int = 26
    macd_signal_period: int = 9

    # ── Signal detector ──
    signal_warmup: int = 10
    divergence_lookback: int = 5
    divergence_mode: Literal["lookback", "extrema"] = "lookback"
    cross_from_touch: bool = True

    # ── CORS ──
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    def signal_params(self) -> SignalParams:
        return SignalParams(
            warmup=self.signal_warmup,
            divergence_lookback=self.divergence_lookback,
            divergence_mode=self.divergence_mode,
            cross_from_touch=self.cross_from_touch,
        )

    def macd_engine(self):
        from signalscope.engines.macd_engine import MACDEngine

        return MACDEngine(
            short_period=self.macd_short_period,
            long_period=self.macd_long_period,
            signal_period=self.macd_signal_period,
        )


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — created once, reused everywhere."""
    return Settings()
