"""Tests for volume_tracker.normalize — payload validation and repair."""

from __future__ import annotations

import pytest

from volume_tracker.errors import InvalidEvent
from volume_tracker.normalize import extract_payload, normalize


class TestNormalizeRejects:
    @pytest.mark.parametrize("raw", [None, 42, "BTCUSDT", ["BTCUSDT"]])
    def test_non_object_rejected(self, raw) -> None:
        with pytest.raises(InvalidEvent) as exc_info:
            normalize(raw)
        assert exc_info.value.reason == "not_object"

    @pytest.mark.parametrize("symbol", [None, "", "   ", 123])
    def test_missing_or_bad_symbol_rejected(self, symbol) -> None:
        with pytest.raises(InvalidEvent) as exc_info:
            normalize({"symbol": symbol, "currentPrice": 1.0})
        assert exc_info.value.reason == "missing_symbol"

    def test_no_symbol_key(self) -> None:
        with pytest.raises(InvalidEvent):
            normalize({"currentPrice": 1.0})


class TestNormalizeDefaults:
    def test_minimal_payload(self) -> None:
        snap = normalize({"symbol": "ETHUSDT"}, now=1234)
        assert snap.symbol == "ETHUSDT"
        assert snap.current_price == 0.0
        assert snap.current_volume == 0.0
        assert snap.market_cap == 0.0
        assert snap.total_volume is None
        assert snap.changes.price_percent == 0.0
        assert snap.changes.volume_percent == 0.0
        assert snap.timestamp == 1234

    def test_null_numbers_default_to_zero(self) -> None:
        snap = normalize({"symbol": "X", "currentPrice": None, "currentVolume": None})
        assert snap.current_price == 0.0
        assert snap.current_volume == 0.0

    def test_garbage_numbers_default_to_zero(self) -> None:
        snap = normalize({"symbol": "X", "currentPrice": "abc", "currentVolume": float("nan")})
        assert snap.current_price == 0.0
        assert snap.current_volume == 0.0

    def test_numeric_strings_parsed(self) -> None:
        snap = normalize({"symbol": "X", "currentPrice": "1.5", "currentVolume": "2000"})
        assert snap.current_price == 1.5
        assert snap.current_volume == 2000.0

    def test_partial_changes_repaired_field_by_field(self) -> None:
        snap = normalize({"symbol": "X", "changes": {"price": {"percent": 4.2}}})
        assert snap.changes.price_percent == 4.2
        assert snap.changes.volume_percent == 0.0

    def test_null_percent_repaired(self) -> None:
        snap = normalize({
            "symbol": "X",
            "changes": {"price": {"percent": None}, "volume": {"percent": 250}},
        })
        assert snap.changes.price_percent == 0.0
        assert snap.changes.volume_percent == 250.0

    def test_changes_not_a_dict(self) -> None:
        snap = normalize({"symbol": "X", "changes": "broken"})
        assert snap.changes.price_percent == 0.0
        assert snap.changes.volume_percent == 0.0

    def test_timestamp_kept_when_present(self) -> None:
        snap = normalize({"symbol": "X", "timestamp": 999}, now=5000)
        assert snap.timestamp == 999

    def test_optional_strings(self) -> None:
        snap = normalize({
            "symbol": "BTCUSDT",
            "baseAsset": "BTC",
            "fullName": "Bitcoin",
            "logoUrl": "",
        })
        assert snap.base_asset == "BTC"
        assert snap.full_name == "Bitcoin"
        assert snap.logo_url is None

    def test_total_volume_parsed(self) -> None:
        snap = normalize({
            "symbol": "X",
            "totalVolume": {"value": 900, "startTime": 0, "endTime": 540_000},
        })
        assert snap.total_volume is not None
        assert snap.total_volume.value == 900
        assert snap.total_volume.span_ms == 540_000

    def test_incomplete_total_volume_dropped(self) -> None:
        snap = normalize({"symbol": "X", "totalVolume": {"value": 900}})
        assert snap.total_volume is None

    def test_does_not_mutate_input(self) -> None:
        raw = {"symbol": "X", "changes": {"price": {}}}
        normalize(raw)
        assert raw == {"symbol": "X", "changes": {"price": {}}}


class TestExtractPayload:
    def test_volume_alert_strips_type(self) -> None:
        payload = extract_payload({"type": "volume_alert", "symbol": "BTCUSDT", "currentVolume": 1})
        assert payload == {"symbol": "BTCUSDT", "currentVolume": 1}

    def test_connection_ignored(self) -> None:
        assert extract_payload({"type": "connection", "message": "hello"}) is None

    def test_unknown_type_ignored(self) -> None:
        assert extract_payload({"type": "heartbeat"}) is None
        assert extract_payload({"symbol": "BTCUSDT"}) is None

    def test_non_object_ignored(self) -> None:
        assert extract_payload([1, 2]) is None
        assert extract_payload("volume_alert") is None
