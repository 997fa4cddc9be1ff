"""Exception hierarchy for volume_tracker.

Only structural failures are exceptions.  Missing numeric fields are
repaired with defaults in ``normalize`` and undefined ratios come back
as ``None`` from ``metrics``; neither ever raises.
"""
from __future__ import annotations


class VolumeTrackerError(Exception):
    """Base error for all volume_tracker subsystems."""
    pass


class InvalidEvent(VolumeTrackerError):
    """Inbound payload is not an object or has no usable ``symbol``."""

    def __init__(self, message: str, *, reason: str = ""):
        self.reason = reason
        super().__init__(message)


class ConfigError(VolumeTrackerError):
    """Invalid configuration value."""
    pass
