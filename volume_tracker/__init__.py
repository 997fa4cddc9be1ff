"""volume_tracker – streaming volume-spike aggregation for a live market feed.

Ingests ``volume_alert`` messages from a WebSocket feed, keeps the latest
snapshot per symbol with time-based expiry, records cooldown-limited
volume-spike alerts, and serves sorted / filtered projections for the
table and alert-history views.

All engine methods are synchronous.  The feed collaborator
(``ingest_ws``) or the asyncio loop in ``pipeline`` is the single writer
that drives ``VolumeTrackerEngine.ingest()``.
"""

from .common_types import AlertEvent, AssetSnapshot, TotalVolume
from .config import TrackerConfig
from .engine import VolumeTrackerEngine
from .errors import ConfigError, InvalidEvent, VolumeTrackerError

__all__: list[str] = [
    "AlertEvent",
    "AssetSnapshot",
    "ConfigError",
    "InvalidEvent",
    "TotalVolume",
    "TrackerConfig",
    "VolumeTrackerEngine",
    "VolumeTrackerError",
]
