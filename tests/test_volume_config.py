"""Tests for volume_tracker.config — env overrides, validation, runtime setters."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from volume_tracker.config import (
    TrackerConfig,
    set_alert_threshold,
    set_min_volume,
    toggle_direction,
    validate_config,
)
from volume_tracker.errors import ConfigError, VolumeTrackerError


class TestEnvOverrides:
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = TrackerConfig()
        assert cfg.min_volume == 10_000.0
        assert cfg.alert_threshold_times == 2.5
        assert cfg.cooldown_ms == 60_000
        assert cfg.expiry_ms == 180_000
        assert cfg.sweep_interval_ms == 30_000
        assert cfg.history_capacity == 100
        assert cfg.show_increase and cfg.show_decrease
        assert cfg.clear_on_connect is True

    def test_env_read_at_instantiation(self) -> None:
        env = {
            "VOLUME_FEED_URL": "ws://feed.example:9000",
            "VOLUME_MIN_VOLUME": "25000",
            "VOLUME_ALERT_THRESHOLD": "4",
            "VOLUME_SHOW_DECREASE": "false",
            "VOLUME_HISTORY_CAPACITY": "20",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = TrackerConfig()
        assert cfg.feed_url == "ws://feed.example:9000"
        assert cfg.min_volume == 25_000.0
        assert cfg.alert_threshold_times == 4.0
        assert cfg.show_decrease is False
        assert cfg.history_capacity == 20

    def test_unparseable_falls_back(self) -> None:
        with patch.dict(os.environ, {"VOLUME_MIN_VOLUME": "lots", "VOLUME_EXPIRY_MS": "1.5"}, clear=True):
            cfg = TrackerConfig()
        assert cfg.min_volume == 10_000.0
        assert cfg.expiry_ms == 180_000

    def test_sweep_interval_seconds(self) -> None:
        assert TrackerConfig(sweep_interval_ms=1_500).sweep_interval_s == 1.5


class TestValidateConfig:
    def test_clean(self) -> None:
        assert validate_config(TrackerConfig(min_volume=0, alert_threshold_times=0)) == []

    def test_collects_issues(self) -> None:
        cfg = TrackerConfig(min_volume=-1, expiry_ms=0, show_increase=False, show_decrease=False)
        issues = validate_config(cfg)
        assert len(issues) == 3
        assert any("min_volume" in i for i in issues)
        assert any("expiry_ms" in i for i in issues)

    def test_strict_raises(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            validate_config(TrackerConfig(history_capacity=0), strict=True)
        assert "history_capacity" in str(exc_info.value)
        assert isinstance(exc_info.value, VolumeTrackerError)


class TestRuntimeSetters:
    def test_toggle_one_direction_off(self) -> None:
        cfg = toggle_direction(TrackerConfig(), decrease=False)
        assert cfg.show_increase is True
        assert cfg.show_decrease is False

    def test_both_off_rejected(self) -> None:
        cfg = TrackerConfig(show_increase=True, show_decrease=False)
        assert toggle_direction(cfg, increase=False) is cfg

    def test_re_enable(self) -> None:
        cfg = TrackerConfig(show_increase=True, show_decrease=False)
        new = toggle_direction(cfg, decrease=True)
        assert new.show_increase and new.show_decrease

    def test_set_min_volume(self) -> None:
        cfg = TrackerConfig()
        assert set_min_volume(cfg, 0).min_volume == 0
        assert set_min_volume(cfg, -5) is cfg

    def test_set_alert_threshold(self) -> None:
        cfg = TrackerConfig()
        assert set_alert_threshold(cfg, 3.5).alert_threshold_times == 3.5
        assert set_alert_threshold(cfg, -1) is cfg
