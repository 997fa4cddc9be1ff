"""Single-writer wiring between the feed and the engine.

Two ways to drive a ``VolumeTrackerEngine``:

``pump(client, engine)``
    Synchronous.  Drains a ``VolumeFeedClient`` queue and applies status
    transitions and messages in arrival order.  Used by the Streamlit
    app on every rerun.

``run_tracker(cfg)``
    Asyncio.  One task reads the socket and ingests each message as it
    arrives; a second task fires ``engine.sweep()`` on a timer and logs
    a short summary.  Both run on one event loop, so mutation is
    interleaved, never parallel.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from .config import TrackerConfig
from .engine import VolumeTrackerEngine
from .formatting import format_percent, format_times, format_volume
from .ingest_ws import (
    EVENT_MESSAGE,
    FEED_CONNECTED,
    VolumeFeedClient,
    decode_frame,
)

logger = logging.getLogger(__name__)

_MAX_BACKOFF_S = 30.0
# idle receive timeout, bounds how long a stop request waits
_RECV_POLL_S = 1.0


@dataclass
class PumpStats:
    messages: int = 0
    alerts: int = 0
    status_changes: int = 0


def pump(client: VolumeFeedClient, engine: VolumeTrackerEngine) -> PumpStats:
    """Apply everything queued by *client* to *engine*."""
    stats = PumpStats()
    for event in client.drain():
        if event.kind == EVENT_MESSAGE:
            stats.messages += 1
            result = engine.ingest(event.data)
            if result is not None and result.alert is not None:
                stats.alerts += 1
            continue
        stats.status_changes += 1
        if event.data == FEED_CONNECTED:
            engine.on_connected()
        else:
            engine.on_disconnected(event.error)
    return stats


def log_summary(engine: VolumeTrackerEngine, top_n: int = 5) -> None:
    """Log table size and the top rows by the default ordering."""
    stats = engine.table_stats()
    logger.info(
        "Symbols: %d shown / %d tracked, alerts: %d, dropped: %d",
        stats.shown, stats.total, engine.alert_count, engine.dropped_count,
    )
    for symbol, snap in engine.table()[:top_n]:
        logger.info(
            "  %-12s vol=%-8s price %-8s volume %s",
            symbol,
            format_volume(snap.current_volume),
            format_percent(snap.price_change_percent),
            format_times(snap.volume_change_times),
        )


async def _sweep_loop(engine: VolumeTrackerEngine, interval_s: float, stop: asyncio.Event) -> None:
    while not stop.is_set():
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval_s)
        except asyncio.TimeoutError:
            pass
        if stop.is_set():
            break
        engine.sweep()
        log_summary(engine)


async def _consume(engine: VolumeTrackerEngine, url: str, stop: asyncio.Event) -> None:
    backoff = 1.0
    while not stop.is_set():
        try:
            async with websockets.connect(url, ping_interval=20, ping_timeout=20) as ws:
                logger.info("Connected to %s", url)
                engine.on_connected()
                backoff = 1.0
                while not stop.is_set():
                    try:
                        frame = await asyncio.wait_for(ws.recv(), timeout=_RECV_POLL_S)
                    except asyncio.TimeoutError:
                        continue
                    msg = decode_frame(frame)
                    if msg is not None:
                        engine.ingest(msg)
            engine.on_disconnected()
        except ConnectionClosed as exc:
            engine.on_disconnected(str(exc))
        except (OSError, WebSocketException, asyncio.TimeoutError) as exc:
            engine.on_disconnected(str(exc))

        if stop.is_set():
            break
        logger.warning("Reconnecting in %.1fs", backoff)
        try:
            await asyncio.wait_for(stop.wait(), timeout=backoff)
        except asyncio.TimeoutError:
            pass
        backoff = min(_MAX_BACKOFF_S, backoff * 1.7)


async def run_tracker(
    cfg: TrackerConfig,
    engine: VolumeTrackerEngine | None = None,
    *,
    stop: asyncio.Event | None = None,
) -> VolumeTrackerEngine:
    """Run feed consumption and periodic sweeping until *stop* is set."""
    engine = engine or VolumeTrackerEngine(cfg)
    stop = stop or asyncio.Event()
    tasks = [
        asyncio.create_task(_consume(engine, cfg.feed_url, stop), name="volume-feed"),
        asyncio.create_task(_sweep_loop(engine, cfg.sweep_interval_s, stop), name="volume-sweep"),
    ]
    try:
        await asyncio.gather(*tasks)
    finally:
        stop.set()
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
    return engine
