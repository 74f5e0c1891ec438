"""
Signal Scope — CSV Loader Tests

Alpha Vantage layout (newest first), header trimming, dropped and
malformed rows.
"""

import math

import pytest

from signalscope.data.csv_loader import (
    load_bars_from_path,
    load_bars_from_text,
    ticker_csv_path,
)
from signalscope.errors import BarSourceNotFound, CSVFormatError

ALPHA_VANTAGE_CSV = """timestamp,open,high,low,close,volume
2024-01-05,50.10,51.00,49.50,50.80,1000
2024-01-04,49.00,50.20,48.70,50.00,1100
2024-01-03,48.50,49.30,48.10,49.10,900
2024-01-02,48.00,48.90,47.60,48.40,1200
"""


class TestLoadBarsFromText:
    """CSV text → ascending Bars."""

    def test_alpha_vantage_layout(self):
        bars = load_bars_from_text(ALPHA_VANTAGE_CSV)
        assert [b.timestamp for b in bars] == ["2024-01-02", "2024-01-03", "2024-01-04", "2024-01-05"]
        first = bars[0]
        assert first.close == 48.40
        assert first.high == 48.90
        assert first.low == 47.60
        assert first.volume == 1200

    def test_minimal_columns(self):
        bars = load_bars_from_text("timestamp,close\n2024-01-02,10\n2024-01-03,11\n")
        assert [b.close for b in bars] == [10.0, 11.0]
        assert math.isnan(bars[0].high)
        assert math.isnan(bars[0].volume)

    def test_header_whitespace_trimmed(self):
        bars = load_bars_from_text(" timestamp , close ,volume\n2024-01-02, 10.5 ,300\n")
        assert bars[0].timestamp == "2024-01-02"
        assert bars[0].close == 10.5
        assert bars[0].volume == 300

    def test_rows_missing_required_fields_dropped(self):
        text = "timestamp,close,volume\n2024-01-02,10,5\n2024-01-03,,6\n,12,7\n2024-01-05,13,8\n"
        bars = load_bars_from_text(text)
        assert [b.timestamp for b in bars] == ["2024-01-02", "2024-01-05"]

    def test_malformed_number_becomes_nan(self):
        text = "timestamp,close,volume\n2024-01-02,abc,5\n2024-01-03,11,n/a\n"
        bars = load_bars_from_text(text)
        assert len(bars) == 2
        assert math.isnan(bars[0].close)
        assert math.isnan(bars[1].volume)
        assert bars[1].close == 11.0

    def test_duplicate_timestamps_keep_first(self):
        text = "timestamp,close\n2024-01-03,12\n2024-01-02,10\n2024-01-03,99\n"
        bars = load_bars_from_text(text)
        assert [(b.timestamp, b.close) for b in bars] == [("2024-01-02", 10.0), ("2024-01-03", 12.0)]

    def test_blank_lines_ignored(self):
        bars = load_bars_from_text("timestamp,close\n\n2024-01-02,10\n\n2024-01-03,11\n")
        assert len(bars) == 2

    def test_missing_required_column(self):
        with pytest.raises(CSVFormatError, match="close"):
            load_bars_from_text("timestamp,open\n2024-01-02,10\n")

    def test_empty_input(self):
        with pytest.raises(CSVFormatError):
            load_bars_from_text("   \n")

    def test_header_only(self):
        assert load_bars_from_text("timestamp,close\n") == []

    def test_error_status_code(self):
        assert CSVFormatError("x").status_code == 422


class TestLoadBarsFromPath:
    """File-backed loading."""

    def test_reads_file(self, tmp_path):
        path = tmp_path / "TQQQ.csv"
        path.write_text(ALPHA_VANTAGE_CSV, encoding="utf-8")
        bars = load_bars_from_path(path)
        assert len(bars) == 4

    def test_utf8_bom_tolerated(self, tmp_path):
        path = tmp_path / "BOM.csv"
        path.write_text("\ufefftimestamp,close\n2024-01-02,10\n", encoding="utf-8")
        assert load_bars_from_path(path)[0].close == 10.0

    def test_missing_file(self, tmp_path):
        with pytest.raises(BarSourceNotFound) as exc_info:
            load_bars_from_path(tmp_path / "NOPE.csv")
        assert exc_info.value.status_code == 404

    def test_ticker_csv_path(self, tmp_path):
        assert ticker_csv_path(tmp_path, " tqqq ") == tmp_path / "TQQQ.csv"
        assert ticker_csv_path(str(tmp_path), "QQQ").name == "QQQ.csv"
