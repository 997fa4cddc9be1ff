"""Streaming aggregation engine: feed messages → snapshots + alerts.

Architecture
~~~~~~~~~~~~
One ``VolumeTrackerEngine`` per session owns a ``SnapshotStore``, an
``AlertHistory`` (which owns the cooldown table) and a ``TrackerConfig``.
The feed collaborator drives it from a single thread / event loop:

  1. ``ingest(message)`` unwraps the envelope, normalises the payload,
     classifies it against the *current* config, records an alert when
     due, then upserts the snapshot and opportunistically sweeps.
  2. ``sweep()`` is also called from a periodic timer; the store
     debounces it, so overlapping calls never double-sweep.
  3. Views call ``table()`` / ``history()`` on demand.  Nothing is
     cached; each read recomputes from the owned state.

All methods are synchronous and never raise for bad feed data.  The
clock is injectable (epoch ms) so tests control time without patching.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .alerts import AlertDecision, AlertHistory, classify
from .common_types import AlertEvent, AssetSnapshot
from .config import TrackerConfig, validate_config
from .errors import InvalidEvent
from .normalize import extract_payload, normalize
from .projection import DisplayFilters, SortSpec, project, project_history
from .store import SnapshotStore
from .utils import now_ms

logger = logging.getLogger(__name__)

STATUS_CONNECTED = "connected"
STATUS_DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class IngestResult:
    """What ``ingest_payload`` did with one accepted update."""

    snapshot: AssetSnapshot
    decision: AlertDecision
    alert: AlertEvent | None = None


@dataclass(frozen=True)
class TableStats:
    total: int
    shown: int

    @property
    def filtered_out(self) -> int:
        return self.total - self.shown


class VolumeTrackerEngine:
    """Owns the live per-symbol view and the alert log for one session.

    Parameters
    ----------
    config : TrackerConfig, optional
        Defaults to ``TrackerConfig()`` (env-driven).
    clock : callable, optional
        Returns epoch milliseconds; defaults to wall-clock time.
    """

    def __init__(
        self,
        config: TrackerConfig | None = None,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._config = config or TrackerConfig()
        validate_config(self._config)
        self._clock = clock
        self._store = SnapshotStore(sweep_interval_ms=self._config.sweep_interval_ms)
        self._history = AlertHistory(capacity=self._config.history_capacity)

        # Observable status (read by views)
        self.status: str = STATUS_DISCONNECTED
        self.last_update_ms: int | None = None
        self.ingested_count: int = 0
        self.dropped_count: int = 0
        self._disposed = False

    # ── Config ─────────────────────────────────────────────────

    @property
    def config(self) -> TrackerConfig:
        return self._config

    def update_config(self, config: TrackerConfig) -> None:
        """Swap in a new config; takes effect on the next message/read."""
        validate_config(config)
        if config.history_capacity != self._history.capacity:
            self._history.resize(config.history_capacity)
        self._store.sweep_interval_ms = config.sweep_interval_ms
        self._config = config

    # ── Ingestion (single writer) ──────────────────────────────

    def ingest(self, message: Any) -> IngestResult | None:
        """Handle one decoded feed message.

        Returns ``None`` for handshake / unknown / invalid messages.
        """
        payload = extract_payload(message)
        if payload is None:
            return None
        return self.ingest_payload(payload)

    def ingest_payload(self, raw: Any) -> IngestResult | None:
        """Normalise, classify and store one ``volume_alert`` payload."""
        if self._disposed:
            logger.debug("Engine disposed; dropping update")
            return None

        now = self._clock()
        self.last_update_ms = now
        try:
            snap = normalize(raw, now=now)
        except InvalidEvent as exc:
            self.dropped_count += 1
            logger.debug("Dropped invalid event (%s): %s", exc.reason, exc)
            return None

        cfg = self._config
        decision = classify(
            snap.symbol,
            snap.volume_change_percent,
            snap.current_volume,
            now,
            threshold_times=cfg.alert_threshold_times,
            min_volume=cfg.min_volume,
            cooldown_ms=cfg.cooldown_ms,
            cooldown_table=self._history.cooldown_table,
            gate_by_min_volume=cfg.gate_alerts_by_min_volume,
        )

        stored = self._store.upsert(snap, now)
        alert: AlertEvent | None = None
        if decision:
            alert = AlertEvent(snapshot=stored, alert_time=now)
            self._history.record(alert)
            logger.debug(
                "Volume alert %s %.2fx (vol=%.0f)",
                stored.symbol, stored.volume_change_times, stored.current_volume,
            )

        self.ingested_count += 1
        self._store.evict_expired(now, cfg.expiry_ms)
        return IngestResult(snapshot=stored, decision=decision, alert=alert)

    def sweep(self, *, force: bool = False) -> int:
        """Periodic eviction entry point (debounced by the store)."""
        return self._store.evict_expired(self._clock(), self._config.expiry_ms, force=force)

    # ── Connection lifecycle hooks ─────────────────────────────

    def on_connected(self) -> None:
        self.status = STATUS_CONNECTED
        if self._config.clear_on_connect:
            self._store.clear_all()
        logger.info("Feed connected (clear_on_connect=%s)", self._config.clear_on_connect)

    def on_disconnected(self, error: str = "") -> None:
        """Record the drop; existing state is kept until a reset/clear."""
        self.status = STATUS_DISCONNECTED
        if error:
            logger.warning("Feed disconnected: %s", error)
        else:
            logger.info("Feed disconnected")

    # ── User actions ───────────────────────────────────────────

    def clear_all(self) -> None:
        """Empty the snapshot table (history is kept)."""
        self._store.clear_all()
        self.last_update_ms = None

    def clear_history(self) -> None:
        """Empty the alert log and reset every cooldown."""
        self._history.clear()

    def prune_history_below_threshold(self) -> int:
        return self._history.prune_below(self._config.alert_threshold_times)

    def dispose(self) -> None:
        """Drop all state; further ingestion is ignored."""
        self._store.clear_all()
        self._history.clear()
        self._disposed = True
        self.status = STATUS_DISCONNECTED

    # ── Reads ──────────────────────────────────────────────────

    def snapshot(self, symbol: str) -> AssetSnapshot | None:
        return self._store.get(symbol)

    def entries(self) -> Iterator[tuple[str, AssetSnapshot]]:
        return self._store.entries()

    def alerts(self) -> list[AlertEvent]:
        """Full recorded history, newest first, unfiltered."""
        return list(self._history.all())

    def table(self, sort: SortSpec | None = None) -> list[tuple[str, AssetSnapshot]]:
        return project(self._store.entries(), sort, DisplayFilters.from_config(self._config))

    def history(self) -> list[AlertEvent]:
        return project_history(
            self._history.all(),
            min_volume=self._config.min_volume,
            threshold_times=self._config.alert_threshold_times,
        )

    def table_stats(self) -> TableStats:
        return TableStats(total=len(self._store), shown=len(self.table()))

    def seconds_until_next_update(self) -> int:
        """Countdown from the expiry window since the last accepted message."""
        if self.last_update_ms is None:
            return 0
        elapsed_s = (self._clock() - self.last_update_ms) // 1000
        return int(max(0, self._config.expiry_ms // 1000 - elapsed_s))

    @property
    def symbol_count(self) -> int:
        return len(self._store)

    @property
    def alert_count(self) -> int:
        return len(self._history)

    @property
    def cooldown_table(self) -> Mapping[str, int]:
        return self._history.cooldown_table
