# Engines: MACD, consolidation zones, signal detection, analysis pipeline, charts
from signalscope.engines.analysis_engine import AnalysisEngine, bars_from_records
from signalscope.engines.chart_engine import ChartEngine
from signalscope.engines.macd_engine import MACDEngine, ema
from signalscope.engines.signal_engine import SignalEngine
from signalscope.engines.zone_engine import ZoneEngine

__all__ = [
    "AnalysisEngine",
    "ChartEngine",
    "MACDEngine",
    "SignalEngine",
    "ZoneEngine",
    "bars_from_records",
    "ema",
]
