"""
Signal Scope — FastAPI Application Entry Point

Serves the analysis pipeline over HTTP: JSON for the computed series and
signals, HTML for the rendered chart.

Run:
    uvicorn signalscope.main:app --reload
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware

from signalscope import __version__
from signalscope.config import get_settings
from signalscope.error_handlers import register_error_handlers
from signalscope.middleware.request_logger import REQUEST_ID_HEADER, RequestLoggerMiddleware
from signalscope.routes import analysis_router, health_router

log = structlog.get_logger("signalscope.startup")


def _validate_config(settings) -> None:
    """Warn about settings that disable features at startup."""
    if not settings.data_path.is_dir():
        log.warning(
            "config.missing_data_dir",
            data_dir=settings.data_dir,
            impact="GET /v1/api/analysis will 404 until CSVs are downloaded",
        )
    if not settings.alphavantage_api_key:
        log.warning(
            "config.missing_key",
            key="alphavantage_api_key",
            impact="scripts/download_stock.py cannot fetch new data",
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the effective configuration once at startup."""
    settings = get_settings()
    log.info(
        "startup",
        env=settings.app_env,
        data_dir=settings.data_dir,
        default_ticker=settings.default_ticker,
        macd=(settings.macd_short_period, settings.macd_long_period, settings.macd_signal_period),
        params=settings.signal_params().model_dump(),
    )
    _validate_config(settings)

    yield

    log.info("shutdown")


def _install_middleware(app: FastAPI, settings) -> None:
    # Starlette runs the last-added middleware first: gzip wraps logging wraps CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestLoggerMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=1000)


def create_app() -> FastAPI:
    """Build the API; settings are read once here and per request in routes."""
    settings = get_settings()

    app = FastAPI(
        title="Signal Scope",
        description="""# Signal Scope API

MACD signal annotation for a single instrument's daily bars.

## Features
- **MACD** — DIF, DEA and histogram series
- **Signals** — gold/dead crosses, third buy/sell confirmations, divergence
- **Consolidation zones** — overlapping 3-bar ranges
- **Charts** — interactive Plotly HTML with every signal overlaid
""",
        version=__version__,
        debug=settings.app_debug,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "Health", "description": "Service liveness"},
            {"name": "Analysis", "description": "MACD series, zones, signals and charts"},
        ],
    )

    register_error_handlers(app)
    _install_middleware(app, settings)

    app.include_router(health_router, tags=["Health"])
    app.include_router(analysis_router, prefix="/v1/api", tags=["Analysis"])

    return app


app = create_app()
