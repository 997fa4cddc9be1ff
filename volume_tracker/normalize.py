"""Normalisation: raw feed payloads → ``AssetSnapshot``.

The feed is best-effort, so the normaliser is deliberately tolerant.
Only two things reject a payload: it is not a mapping, or it has no
non-empty string ``symbol``.  Everything else is repaired with a
default, field by field:

    currentPrice / currentVolume / marketCap   → 0
    changes.price.percent / changes.volume.percent → 0
    totalVolume (malformed)                    → absent
    timestamp                                  → processing time

Feed field names are camelCase (``currentPrice``, ``changes.volume``).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .common_types import AssetSnapshot, ChangeSet, TotalVolume
from .errors import InvalidEvent
from .utils import now_ms, to_epoch_ms, to_float

logger = logging.getLogger(__name__)

# Envelope discriminators understood by ``extract_payload``.
MSG_CONNECTION = "connection"
MSG_VOLUME_ALERT = "volume_alert"


def _opt_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _non_negative(value: Any) -> float:
    return max(0.0, to_float(value))


def _percent(section: Any) -> float:
    """``changes.<x>.percent`` with a 0 default for every missing level."""
    if not isinstance(section, Mapping):
        return 0.0
    return to_float(section.get("percent"))


def _total_volume(raw: Any) -> TotalVolume | None:
    if not isinstance(raw, Mapping):
        return None
    if raw.get("value") is None or raw.get("startTime") is None or raw.get("endTime") is None:
        return None
    return TotalVolume(
        value=_non_negative(raw.get("value")),
        start_time=to_epoch_ms(raw.get("startTime")),
        end_time=to_epoch_ms(raw.get("endTime")),
    )


def normalize(raw: Any, *, now: int | None = None) -> AssetSnapshot:
    """Validate and repair one update into an ``AssetSnapshot``.

    Raises ``InvalidEvent`` when *raw* is not a mapping or lacks a
    non-empty string ``symbol``.  *now* is only the placeholder timestamp
    for payloads without one; the store restamps on upsert anyway.
    """
    if not isinstance(raw, Mapping):
        raise InvalidEvent(f"payload is {type(raw).__name__}, not an object", reason="not_object")

    symbol = raw.get("symbol")
    if not isinstance(symbol, str) or not symbol.strip():
        raise InvalidEvent("payload has no symbol", reason="missing_symbol")

    changes = raw.get("changes")
    if not isinstance(changes, Mapping):
        changes = {}

    timestamp = to_epoch_ms(raw.get("timestamp"))
    if timestamp <= 0:
        timestamp = now if now is not None else now_ms()

    base_asset = raw.get("baseAsset")
    return AssetSnapshot(
        symbol=symbol.strip(),
        base_asset=base_asset if isinstance(base_asset, str) else "",
        full_name=_opt_str(raw.get("fullName")),
        logo_url=_opt_str(raw.get("logoUrl")),
        current_price=_non_negative(raw.get("currentPrice")),
        current_volume=_non_negative(raw.get("currentVolume")),
        market_cap=_non_negative(raw.get("marketCap")),
        total_volume=_total_volume(raw.get("totalVolume")),
        changes=ChangeSet(
            price_percent=_percent(changes.get("price")),
            volume_percent=_percent(changes.get("volume")),
        ),
        timestamp=timestamp,
    )


def extract_payload(msg: Any) -> dict[str, Any] | None:
    """Unpack a decoded feed message into a candidate snapshot payload.

    Returns ``None`` for the ``connection`` handshake, unknown
    discriminators and non-object messages.  For ``volume_alert`` the
    ``type`` key is stripped and the rest is returned.
    """
    if not isinstance(msg, Mapping):
        return None
    msg_type = msg.get("type")
    if msg_type == MSG_VOLUME_ALERT:
        return {k: v for k, v in msg.items() if k != "type"}
    if msg_type != MSG_CONNECTION:
        logger.debug("Ignoring feed message with type %r", msg_type)
    return None
