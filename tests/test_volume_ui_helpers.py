"""Tests for volume_ui_helpers.py — pure row builders and labels."""

from __future__ import annotations

from volume_tracker.common_types import AlertEvent, AssetSnapshot, ChangeSet, TotalVolume
from volume_tracker.formatting import PLACEHOLDER, format_alert_time
from volume_tracker.projection import SORT_ASC, SORT_DESC, SortSpec
from volume_ui_helpers import (
    STATUS_BADGES,
    direction_icon,
    display_base,
    display_name,
    history_rows,
    sort_caption,
    table_rows,
)

BASE = "https://chart.test/trade"


def _snap(**kw) -> AssetSnapshot:
    defaults = dict(
        symbol="BTCUSDT",
        base_asset="BTC",
        full_name="Bitcoin",
        current_price=60_000.0,
        current_volume=50_000.0,
        market_cap=1_000_000.0,
        changes=ChangeSet(price_percent=1.2, volume_percent=300.0),
    )
    defaults.update(kw)
    return AssetSnapshot(**defaults)


class TestLabels:
    def test_direction_icon(self) -> None:
        assert direction_icon(0.0) == "🟢"
        assert direction_icon(-0.1) == "🔴"

    def test_display_name_fallbacks(self) -> None:
        assert display_name(_snap()) == "Bitcoin"
        assert display_name(_snap(full_name=None)) == "BTC"
        assert display_name(_snap(full_name=None, base_asset="")) == PLACEHOLDER

    def test_display_base_falls_back_to_symbol(self) -> None:
        assert display_base(_snap(base_asset="")) == "BTCUSDT"

    def test_sort_caption(self) -> None:
        assert sort_caption(None) == "Newest update first"
        assert sort_caption(SortSpec("volume", SORT_DESC)) == "Volume ▼"
        assert sort_caption(SortSpec("price_change", SORT_ASC)) == "Price % ▲"

    def test_status_badges_cover_feed_states(self) -> None:
        assert set(STATUS_BADGES) == {"connected", "disconnected", "error"}


class TestTableRows:
    def test_row_contents(self) -> None:
        (row,) = table_rows([("BTCUSDT", _snap())], chart_base_url=BASE)
        assert row["Coin"] == "BTC"
        assert row["Name"] == "Bitcoin"
        assert row["Price"] == "60000"
        assert row["Price %"] == "🟢 +1.2%"
        assert row["Volume"] == "50K"
        assert row["Volume x"] == "3x"
        assert row["Vol/MCap"] == "5%"
        assert row["Chart"] == f"{BASE}/BTC_USDT?type=spot"

    def test_missing_market_cap(self) -> None:
        (row,) = table_rows([("BTCUSDT", _snap(market_cap=0.0))])
        assert row["Vol/MCap"] == PLACEHOLDER

    def test_preserves_order(self) -> None:
        rows = table_rows([("B", _snap(symbol="B", base_asset="")), ("A", _snap(symbol="A", base_asset=""))])
        assert [r["Coin"] for r in rows] == ["B", "A"]


class TestHistoryRows:
    def test_row_contents(self) -> None:
        snap = _snap(total_volume=TotalVolume(value=75_000.0, start_time=0, end_time=540_000))
        ts = 1_700_000_000_000
        (row,) = history_rows([AlertEvent(snap, ts)], chart_base_url=BASE)
        assert row["Time"] == format_alert_time(ts)
        assert row["Spike"] == "+3x"
        assert row["Market cap"] == "1M"
        assert row["Avg volume"] == "25K"
        assert row["Vol/Avg"] == "2x"
        assert row["Chart"] == f"{BASE}/BTC_USDT?type=spot"

    def test_unavailable_metrics(self) -> None:
        (row,) = history_rows([AlertEvent(_snap(market_cap=0.0), 1)])
        assert row["Market cap"] == PLACEHOLDER
        assert row["Vol/MCap"] == PLACEHOLDER
        assert row["Avg volume"] == PLACEHOLDER
        assert row["Vol/Avg"] == PLACEHOLDER
