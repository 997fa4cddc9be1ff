"""Internal schema shared by the engine, projections and views.

Every inbound ``volume_alert`` payload is normalised into an
``AssetSnapshot`` before it reaches the store.  Snapshots are frozen so
that replacing a symbol's entry is a single reference assignment and a
reader never sees a half-written record.

All timestamps are epoch **milliseconds**.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class TotalVolume:
    """Accumulated volume over ``[start_time, end_time]`` (epoch ms)."""

    value: float
    start_time: int
    end_time: int

    @property
    def span_ms(self) -> int:
        return self.end_time - self.start_time


@dataclass(frozen=True)
class ChangeSet:
    """``changes.price.percent`` / ``changes.volume.percent``.

    ``volume_percent`` uses 100 = unchanged, so ``volume_percent / 100``
    is the multiplicative factor (300 → 3x).
    """

    price_percent: float = 0.0
    volume_percent: float = 0.0


@dataclass(frozen=True)
class AssetSnapshot:
    """Most recent known market state of one symbol."""

    symbol: str
    base_asset: str = ""
    full_name: str | None = None
    logo_url: str | None = None
    current_price: float = 0.0
    current_volume: float = 0.0
    market_cap: float = 0.0
    total_volume: TotalVolume | None = None
    changes: ChangeSet = field(default_factory=ChangeSet)
    timestamp: int = 0

    @property
    def price_change_percent(self) -> float:
        return self.changes.price_percent

    @property
    def volume_change_percent(self) -> float:
        return self.changes.volume_percent

    @property
    def volume_change_times(self) -> float:
        return self.changes.volume_percent / 100.0

    def stamped(self, now_ms: int) -> AssetSnapshot:
        """Return a copy with ``timestamp`` rewritten to *now_ms*."""
        return replace(self, timestamp=now_ms)

    def to_dict(self) -> dict[str, Any]:
        """Feed-shaped (camelCase) dict, the inverse of ``normalize()``."""
        d: dict[str, Any] = {
            "symbol": self.symbol,
            "baseAsset": self.base_asset,
            "fullName": self.full_name,
            "logoUrl": self.logo_url,
            "currentPrice": self.current_price,
            "currentVolume": self.current_volume,
            "marketCap": self.market_cap,
            "changes": {
                "price": {"percent": self.changes.price_percent},
                "volume": {"percent": self.changes.volume_percent},
            },
            "timestamp": self.timestamp,
        }
        if self.total_volume is not None:
            d["totalVolume"] = {
                "value": self.total_volume.value,
                "startTime": self.total_volume.start_time,
                "endTime": self.total_volume.end_time,
            }
        return d


@dataclass(frozen=True)
class AlertEvent:
    """A recorded volume spike: the snapshot plus the time it was recorded."""

    snapshot: AssetSnapshot
    alert_time: int

    @property
    def symbol(self) -> str:
        return self.snapshot.symbol

    @property
    def key(self) -> str:
        """Stable row key for views (a symbol may alert many times)."""
        return f"{self.snapshot.symbol}-{self.alert_time}"

    def to_dict(self) -> dict[str, Any]:
        d = self.snapshot.to_dict()
        d["alertTime"] = self.alert_time
        return d
