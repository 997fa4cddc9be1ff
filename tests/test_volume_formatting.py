"""Tests for volume_tracker.formatting and volume_tracker.symbols."""

from __future__ import annotations

from datetime import datetime

import pytest

from volume_tracker.formatting import (
    PLACEHOLDER,
    format_alert_time,
    format_countdown,
    format_percent,
    format_price,
    format_times,
    format_volume,
    safe_to_fixed,
)
from volume_tracker.symbols import DEFAULT_CHART_BASE_URL, chart_url, to_trade_pair


class TestSafeToFixed:
    @pytest.mark.parametrize("value,digits,expected", [
        (1.50, 2, "1.5"),
        (100, 2, "100"),
        (0, 2, "0"),
        (100.5, 2, "100.5"),
        (0.123456789, 8, "0.12345679"),
        (2.6, 0, "3"),
    ])
    def test_values(self, value, digits, expected) -> None:
        assert safe_to_fixed(value, digits) == expected

    @pytest.mark.parametrize("value", [None, "abc", float("nan"), float("inf"), True])
    def test_unavailable(self, value) -> None:
        assert safe_to_fixed(value) == PLACEHOLDER


class TestFormatters:
    @pytest.mark.parametrize("value,expected", [
        (999, "999"),
        (1_500, "1.5K"),
        (2_250_000, "2.25M"),
        (3_000_000_000, "3B"),
    ])
    def test_volume(self, value, expected) -> None:
        assert format_volume(value) == expected

    def test_price_keeps_small_decimals(self) -> None:
        assert format_price(0.00001234) == "0.00001234"
        assert format_price(60_000) == "60000"

    def test_percent_signed(self) -> None:
        assert format_percent(1.2) == "+1.2%"
        assert format_percent(-0.5) == "-0.5%"
        assert format_percent(0) == "+0%"
        assert format_percent(None) == PLACEHOLDER

    def test_times(self) -> None:
        assert format_times(3.0) == "3x"
        assert format_times(2.5) == "2.5x"

    @pytest.mark.parametrize("seconds,expected", [(180, "3:00"), (135, "2:15"), (9, "0:09"), (-5, "0:00")])
    def test_countdown(self, seconds, expected) -> None:
        assert format_countdown(seconds) == expected

    def test_alert_time_local(self) -> None:
        ts = 1_700_000_000_000
        assert format_alert_time(ts) == datetime.fromtimestamp(ts / 1000).strftime("%H:%M:%S")
        assert format_alert_time(None) == PLACEHOLDER


class TestSymbols:
    @pytest.mark.parametrize("symbol,expected", [
        ("BTCUSDT", "BTC_USDT"),
        ("BTC/USDT", "BTC_USDT"),
        ("BTC-USDT", "BTC_USDT"),
        ("BTC_USDT", "BTC_USDT"),
        ("USDT", "USDT"),
        ("ETHBTC", "ETHBTC"),
    ])
    def test_to_trade_pair(self, symbol, expected) -> None:
        assert to_trade_pair(symbol) == expected

    def test_chart_url(self) -> None:
        assert chart_url("BTCUSDT") == f"{DEFAULT_CHART_BASE_URL}/BTC_USDT?type=spot"

    def test_chart_url_custom_base(self) -> None:
        assert chart_url("ETH/USDT", "https://x.test/trade/") == "https://x.test/trade/ETH_USDT?type=spot"

    def test_chart_url_empty_symbol(self) -> None:
        assert chart_url("") == DEFAULT_CHART_BASE_URL
