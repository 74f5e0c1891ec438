# Data adapters: CSV bar loading, Alpha Vantage download
from signalscope.data.csv_loader import load_bars_from_path, load_bars_from_text, ticker_csv_path

__all__ = ["load_bars_from_path", "load_bars_from_text", "ticker_csv_path"]
