"""WebSocket feed collaborator for the volume tracker.

Connects to the volume feed in a **daemon thread** with its own asyncio
event loop.  Decoded JSON messages and connection-status transitions are
pushed, in arrival order, into one thread-safe ``queue.Queue`` which the
owner drains on each refresh (see ``pipeline.pump``).  The engine is
never touched from the feed thread, so the drainer stays the single
writer.

Frames that are not valid JSON are dropped here; envelope filtering
(``connection`` / ``volume_alert`` / unknown) is the engine's job.

Usage::

    client = VolumeFeedClient(cfg.feed_url)
    client.start()          # non-blocking: spawns daemon thread

    # On each Streamlit refresh:
    pump(client, engine)
"""

from __future__ import annotations

import asyncio
import json
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed

logger = logging.getLogger(__name__)

FEED_CONNECTED = "connected"
FEED_DISCONNECTED = "disconnected"
FEED_ERROR = "error"

EVENT_MESSAGE = "message"
EVENT_STATUS = "status"

_MAX_BACKOFF_S = 30.0


@dataclass(frozen=True)
class FeedEvent:
    """One queued item: a decoded message or a status transition."""

    kind: str  # EVENT_MESSAGE | EVENT_STATUS
    data: Any  # decoded JSON for messages, FEED_* for status
    error: str = ""


def decode_frame(frame: Any) -> Any | None:
    """Decode a text/bytes frame as JSON; ``None`` when undecodable."""
    if isinstance(frame, (bytes, bytearray)):
        try:
            frame = frame.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if not isinstance(frame, str):
        return None
    try:
        return json.loads(frame)
    except ValueError:
        return None


class VolumeFeedClient:
    """Best-effort WebSocket client; runs in a background daemon thread.

    Parameters
    ----------
    url : str
        Feed endpoint (``ws://`` or ``wss://``).
    auto_reconnect : bool
        Reconnect with exponential backoff after a drop.  When off, the
        client stays disconnected until ``reconnect()`` is called.
    max_queue : int
        Queue bound; the oldest item is discarded when full.
    """

    def __init__(self, url: str, *, auto_reconnect: bool = False, max_queue: int = 5000) -> None:
        self.url = url
        self.auto_reconnect = auto_reconnect
        self.queue: queue.Queue[FeedEvent] = queue.Queue(maxsize=max_queue)

        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        # Observable status (read from the owner thread)
        self.status: str = FEED_DISCONNECTED
        self.last_error: str = ""
        self.connection_count: int = 0
        self.frames_received: int = 0
        self.frames_dropped: int = 0

    # ── Public API ──────────────────────────────────────────────

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background loop (no-op while a live loop is running).

        Each loop owns its stop event.  A loop that was told to stop but
        is still blocked in a connect attempt is superseded, not awaited:
        it exits on its own and never reports status afterwards.
        """
        if self.is_alive and not self._stop_event.is_set():
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run_loop, args=(self._stop_event,), daemon=True, name="volume-feed-ws",
        )
        self._thread.start()
        logger.info("VolumeFeedClient: background thread started (%s)", self.url)

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the background thread to stop and wait briefly."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("VolumeFeedClient: previous connection still closing after %.1fs", timeout)
            else:
                logger.info("VolumeFeedClient: background thread stopped.")

    def reconnect(self, timeout: float = 5.0) -> None:
        """Close any current connection and open a new one."""
        self.stop(timeout=timeout)
        self.start()

    def drain(self) -> list[FeedEvent]:
        """Non-blocking: drain all queued events in arrival order."""
        items: list[FeedEvent] = []
        while True:
            try:
                items.append(self.queue.get_nowait())
            except queue.Empty:
                break
        return items

    # ── Internal ────────────────────────────────────────────────

    def _put(self, event: FeedEvent) -> None:
        try:
            self.queue.put_nowait(event)
        except queue.Full:
            # Drop oldest to make room
            try:
                self.queue.get_nowait()
            except queue.Empty:
                pass
            self.queue.put_nowait(event)

    def _set_status(self, status: str, error: str = "") -> None:
        self.status = status
        self.last_error = error
        self._put(FeedEvent(EVENT_STATUS, status, error))

    def _handle_frame(self, frame: Any) -> None:
        self.frames_received += 1
        msg = decode_frame(frame)
        if msg is None:
            self.frames_dropped += 1
            return
        self._put(FeedEvent(EVENT_MESSAGE, msg))

    def _run_loop(self, stop_event: threading.Event) -> None:
        """Entry point for the daemon thread."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(self._ws_loop(stop_event))
        except Exception:
            logger.exception("VolumeFeedClient: event loop crashed")
        finally:
            loop.close()

    async def _ws_loop(self, stop_event: threading.Event) -> None:
        """Connect/receive loop; reconnects with backoff when enabled."""
        backoff = 1.0
        while not stop_event.is_set():
            try:
                async with websockets.connect(self.url, ping_interval=20, ping_timeout=20) as ws:
                    if stop_event.is_set():
                        break
                    logger.info("VolumeFeedClient: connected to %s", self.url)
                    self.connection_count += 1
                    self._set_status(FEED_CONNECTED)
                    backoff = 1.0
                    while not stop_event.is_set():
                        try:
                            frame = await asyncio.wait_for(ws.recv(), timeout=1.0)
                        except asyncio.TimeoutError:
                            continue
                        self._handle_frame(frame)
                # a superseded loop stays silent
                if stop_event is self._stop_event:
                    self._set_status(FEED_DISCONNECTED)
                break
            except ConnectionClosed as exc:
                if stop_event.is_set():
                    break
                self._set_status(FEED_DISCONNECTED, str(exc))
                reason = f"closed: {exc}"
            except Exception as exc:
                if stop_event.is_set():
                    break
                self._set_status(FEED_ERROR, str(exc))
                reason = str(exc)

            if not self.auto_reconnect:
                logger.warning("VolumeFeedClient: connection lost (%s)", reason)
                break
            logger.warning("VolumeFeedClient: connection lost (%s) — reconnecting in %.1fs", reason, backoff)
            await asyncio.sleep(backoff)
            backoff = min(_MAX_BACKOFF_S, backoff * 1.7)
