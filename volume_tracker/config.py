"""Configuration for the volume tracker engine and its feed.

All tunables can be overridden via environment variables.  Values are
read when ``TrackerConfig()`` is instantiated, so callers may set env
vars programmatically before creating one.  The engine reads
``min_volume`` and ``alert_threshold_times`` on every message, so a new
config pushed with ``engine.update_config()`` takes effect immediately.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace

from .errors import ConfigError

logger = logging.getLogger(__name__)


def _env_float(key: str, default: float) -> float:
    """Read an env var as float, returning *default* on parse failure."""
    try:
        return float(os.getenv(key, str(default)))
    except (ValueError, TypeError):
        return default


def _env_int(key: str, default: int) -> int:
    """Read an env var as int, returning *default* on parse failure."""
    try:
        return int(os.getenv(key, str(default)))
    except (ValueError, TypeError):
        return default


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class TrackerConfig:
    """Engine + feed configuration – one instance per engine."""

    # ── Feed ────────────────────────────────────────────────────
    feed_url: str = field(default_factory=lambda: os.getenv("VOLUME_FEED_URL", "ws://localhost:9090"))

    # ── Filters / alert policy (user-tunable at runtime) ────────
    min_volume: float = field(default_factory=lambda: _env_float("VOLUME_MIN_VOLUME", 10000.0))
    alert_threshold_times: float = field(default_factory=lambda: _env_float("VOLUME_ALERT_THRESHOLD", 2.5))
    show_increase: bool = field(default_factory=lambda: _env_bool("VOLUME_SHOW_INCREASE", True))
    show_decrease: bool = field(default_factory=lambda: _env_bool("VOLUME_SHOW_DECREASE", True))

    # When set, updates below ``min_volume`` never become alerts.
    # When unset, ``min_volume`` only gates the display projections.
    gate_alerts_by_min_volume: bool = field(
        default_factory=lambda: _env_bool("VOLUME_GATE_ALERTS_BY_MIN_VOLUME", True),
    )

    # ── Windows (epoch ms) ──────────────────────────────────────
    cooldown_ms: int = field(default_factory=lambda: _env_int("VOLUME_ALERT_COOLDOWN_MS", 60_000))
    expiry_ms: int = field(default_factory=lambda: _env_int("VOLUME_EXPIRY_MS", 180_000))
    sweep_interval_ms: int = field(default_factory=lambda: _env_int("VOLUME_SWEEP_INTERVAL_MS", 30_000))

    # ── Capacity ────────────────────────────────────────────────
    history_capacity: int = field(default_factory=lambda: _env_int("VOLUME_HISTORY_CAPACITY", 100))

    # ── Connection lifecycle ────────────────────────────────────
    clear_on_connect: bool = field(default_factory=lambda: _env_bool("VOLUME_CLEAR_ON_CONNECT", True))

    # ── Chart links ─────────────────────────────────────────────
    chart_base_url: str = field(default_factory=lambda: os.getenv(
        "VOLUME_CHART_BASE_URL",
        "https://www.binance.com/vi/trade",
    ))

    @property
    def sweep_interval_s(self) -> float:
        return self.sweep_interval_ms / 1000.0


def validate_config(cfg: TrackerConfig, *, strict: bool = False) -> list[str]:
    """Sanity-check a ``TrackerConfig``.

    Returns a list of issue messages (empty = all ok).  With
    ``strict=True`` the first batch of issues is raised as ``ConfigError``.
    """
    issues: list[str] = []

    if cfg.min_volume < 0:
        issues.append(f"min_volume must be >= 0 (got {cfg.min_volume})")
    if cfg.alert_threshold_times < 0:
        issues.append(f"alert_threshold_times must be >= 0 (got {cfg.alert_threshold_times})")
    if not (cfg.show_increase or cfg.show_decrease):
        issues.append("show_increase and show_decrease cannot both be off")
    for name in ("expiry_ms", "sweep_interval_ms", "history_capacity"):
        val = getattr(cfg, name)
        if val <= 0:
            issues.append(f"{name} must be > 0 (got {val})")
    if cfg.cooldown_ms < 0:
        issues.append(f"cooldown_ms must be >= 0 (got {cfg.cooldown_ms})")

    if issues:
        for msg in issues:
            logger.warning("Config issue: %s", msg)
        if strict:
            raise ConfigError("; ".join(issues))
    return issues


def toggle_direction(
    cfg: TrackerConfig,
    *,
    increase: bool | None = None,
    decrease: bool | None = None,
) -> TrackerConfig:
    """Return *cfg* with the price-direction flags changed.

    A change that would leave both flags off is rejected and the
    original *cfg* is returned unchanged.
    """
    new_increase = cfg.show_increase if increase is None else increase
    new_decrease = cfg.show_decrease if decrease is None else decrease
    if not (new_increase or new_decrease):
        logger.debug("Rejected direction toggle: at least one direction must stay visible")
        return cfg
    return replace(cfg, show_increase=new_increase, show_decrease=new_decrease)


def set_min_volume(cfg: TrackerConfig, value: float) -> TrackerConfig:
    """Return *cfg* with a new ``min_volume``; negative values are ignored."""
    if value < 0:
        return cfg
    return replace(cfg, min_volume=value)


def set_alert_threshold(cfg: TrackerConfig, value: float) -> TrackerConfig:
    """Return *cfg* with a new alert multiplier; negative values are ignored."""
    if value < 0:
        return cfg
    return replace(cfg, alert_threshold_times=value)
