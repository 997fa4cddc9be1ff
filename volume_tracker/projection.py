"""Filtered + sorted read-side projections of the engine state.

Everything here is side-effect free and recomputed on each read.

Table projection
    Filters: ``current_volume >= min_volume`` and the price-direction
    flags (a rise needs ``show_increase``, a fall needs ``show_decrease``,
    an unchanged price always passes).  Default order is most recently
    updated first; an explicit sort key orders numerically, with
    unavailable metrics counted as 0.  Ties keep enumeration order.

History projection
    Newest first, hiding alerts that no longer meet the *current*
    minimum volume and multiplier threshold.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from . import metrics
from .common_types import AlertEvent, AssetSnapshot
from .config import TrackerConfig

SORT_ASC = "asc"
SORT_DESC = "desc"

SORT_KEYS: dict[str, Callable[[AssetSnapshot], float]] = {
    "price": lambda s: s.current_price,
    "price_change": metrics.price_change_percent,
    "volume": lambda s: s.current_volume,
    "volume_change": metrics.volume_change_percent,
    "market_cap": lambda s: s.market_cap,
    "timestamp": lambda s: float(s.timestamp),
    "volume_to_market_cap": lambda s: metrics.or_zero(metrics.volume_to_market_cap_ratio(s)),
    "average_volume": lambda s: metrics.or_zero(metrics.average_volume(s)),
    "volume_ratio": lambda s: metrics.or_zero(metrics.volume_ratio_to_average(s)),
}


@dataclass(frozen=True)
class SortSpec:
    key: str
    direction: str = SORT_DESC

    def __post_init__(self) -> None:
        if self.key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key {self.key!r} (expected one of {sorted(SORT_KEYS)})")
        if self.direction not in (SORT_ASC, SORT_DESC):
            raise ValueError(f"Unknown sort direction {self.direction!r}")


@dataclass(frozen=True)
class DisplayFilters:
    min_volume: float = 10000.0
    show_increase: bool = True
    show_decrease: bool = True

    @classmethod
    def from_config(cls, cfg: TrackerConfig) -> DisplayFilters:
        return cls(
            min_volume=cfg.min_volume,
            show_increase=cfg.show_increase,
            show_decrease=cfg.show_decrease,
        )


def next_sort(current: SortSpec | None, key: str) -> SortSpec:
    """Header-click behaviour: new key sorts descending, same key flips."""
    if current is not None and current.key == key:
        flipped = SORT_ASC if current.direction == SORT_DESC else SORT_DESC
        return SortSpec(key, flipped)
    return SortSpec(key, SORT_DESC)


def passes_filters(snap: AssetSnapshot, filters: DisplayFilters) -> bool:
    if snap.current_volume < filters.min_volume:
        return False
    change = snap.changes.price_percent
    if change > 0 and not filters.show_increase:
        return False
    if change < 0 and not filters.show_decrease:
        return False
    return True


def project(
    entries: Iterable[tuple[str, AssetSnapshot]],
    sort: SortSpec | None = None,
    filters: DisplayFilters | None = None,
) -> list[tuple[str, AssetSnapshot]]:
    """Filter and order ``(symbol, snapshot)`` pairs for the table view."""
    filters = filters or DisplayFilters()
    rows = [(sym, snap) for sym, snap in entries if passes_filters(snap, filters)]

    if sort is None:
        rows.sort(key=lambda r: r[1].timestamp, reverse=True)
        return rows

    value_of = SORT_KEYS[sort.key]
    rows.sort(key=lambda r: value_of(r[1]), reverse=sort.direction == SORT_DESC)
    return rows


def project_history(
    events: Iterable[AlertEvent],
    *,
    min_volume: float,
    threshold_times: float,
) -> list[AlertEvent]:
    """Alert-history view under the current thresholds (order preserved)."""
    return [
        e for e in events
        if e.snapshot.current_volume >= min_volume
        and e.snapshot.volume_change_times >= threshold_times
    ]
