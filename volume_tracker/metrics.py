"""Derived per-snapshot metrics for the table and alert views.

All functions are pure.  Any metric whose denominator is zero, missing
or non-finite comes back as ``None`` ("unavailable"), never NaN or
infinity; the views render ``None`` as a placeholder.  Values are raw
numbers, formatting lives in ``formatting``.
"""

from __future__ import annotations

import math

from .common_types import AssetSnapshot

# Reference period the accumulated volume is rescaled to (seconds).
AVERAGE_PERIOD_S = 180.0


def _finite_or_none(value: float) -> float | None:
    return value if math.isfinite(value) else None


def price_change_percent(snap: AssetSnapshot) -> float:
    return snap.changes.price_percent


def volume_change_percent(snap: AssetSnapshot) -> float:
    return snap.changes.volume_percent


def volume_change_times(snap: AssetSnapshot) -> float:
    """Volume multiplier (``percent / 100``; 100 % means unchanged)."""
    return snap.changes.volume_percent / 100.0


def volume_to_market_cap_ratio(snap: AssetSnapshot) -> float | None:
    """``current_volume / market_cap * 100`` — a liquidity proxy."""
    if not snap.market_cap or snap.market_cap <= 0:
        return None
    return _finite_or_none(snap.current_volume / snap.market_cap * 100.0)


def average_volume(snap: AssetSnapshot) -> float | None:
    """Accumulated ``total_volume`` rescaled to one 180-second period.

    ``value / ((end - start) / 1000 / 180)``; unavailable without a
    window or when the window is empty or inverted.
    """
    tv = snap.total_volume
    if tv is None or tv.span_ms <= 0:
        return None
    periods = tv.span_ms / 1000.0 / AVERAGE_PERIOD_S
    return _finite_or_none(tv.value / periods)


def volume_ratio_to_average(snap: AssetSnapshot) -> float | None:
    """``current_volume / average_volume``; unavailable when the average is."""
    avg = average_volume(snap)
    if not avg:
        return None
    return _finite_or_none(snap.current_volume / avg)


def or_zero(value: float | None) -> float:
    """Unavailable metrics count as 0 for sorting and comparisons."""
    return 0.0 if value is None else value
