"""Pure helper functions extracted from streamlit_volume_tracker.py.

Every function here is free of Streamlit / session-state side-effects
and can be tested in regular pytest without launching a Streamlit app.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from volume_tracker import metrics
from volume_tracker.common_types import AlertEvent, AssetSnapshot
from volume_tracker.formatting import (
    PLACEHOLDER,
    format_alert_time,
    format_percent,
    format_price,
    format_times,
    format_volume,
)
from volume_tracker.projection import SORT_ASC, SortSpec
from volume_tracker.symbols import DEFAULT_CHART_BASE_URL, chart_url

# ── Labels ──────────────────────────────────────────────────────

SORT_LABELS: dict[str, str] = {
    "price": "Price",
    "price_change": "Price %",
    "volume": "Volume",
    "volume_change": "Volume x",
    "market_cap": "Market cap",
    "volume_to_market_cap": "Vol/MCap",
    "average_volume": "Avg volume",
    "volume_ratio": "Vol/Avg",
}

STATUS_BADGES: dict[str, str] = {
    "connected": "🟢 Connected",
    "disconnected": "🔴 Disconnected",
    "error": "🟠 Error",
}


def direction_icon(value: float) -> str:
    return "🟢" if value >= 0 else "🔴"


def display_name(snap: AssetSnapshot) -> str:
    return snap.full_name or snap.base_asset or PLACEHOLDER


def display_base(snap: AssetSnapshot) -> str:
    return snap.base_asset or snap.symbol


def sort_caption(sort: SortSpec | None) -> str:
    if sort is None:
        return "Newest update first"
    arrow = "▲" if sort.direction == SORT_ASC else "▼"
    return f"{SORT_LABELS.get(sort.key, sort.key)} {arrow}"


# ── Row builders ────────────────────────────────────────────────


def table_rows(
    rows: Iterable[tuple[str, AssetSnapshot]],
    *,
    chart_base_url: str = DEFAULT_CHART_BASE_URL,
) -> list[dict[str, Any]]:
    """Volume-table rows (display strings) from a projection."""
    out: list[dict[str, Any]] = []
    for symbol, snap in rows:
        out.append({
            "Coin": display_base(snap),
            "Name": display_name(snap),
            "Price": format_price(snap.current_price),
            "Price %": f"{direction_icon(snap.price_change_percent)} {format_percent(snap.price_change_percent)}",
            "Volume": format_volume(snap.current_volume),
            "Volume x": format_times(snap.volume_change_times),
            "Vol/MCap": format_percent(metrics.volume_to_market_cap_ratio(snap)).lstrip("+"),
            "Chart": chart_url(symbol, chart_base_url),
        })
    return out


def history_rows(
    events: Iterable[AlertEvent],
    *,
    chart_base_url: str = DEFAULT_CHART_BASE_URL,
) -> list[dict[str, Any]]:
    """Alert-history rows (display strings), newest first."""
    out: list[dict[str, Any]] = []
    for ev in events:
        snap = ev.snapshot
        avg = metrics.average_volume(snap)
        out.append({
            "Time": format_alert_time(ev.alert_time),
            "Coin": display_base(snap),
            "Price": format_price(snap.current_price),
            "Price %": format_percent(snap.price_change_percent),
            "Volume": format_volume(snap.current_volume),
            "Spike": "+" + format_times(snap.volume_change_times),
            "Market cap": format_volume(snap.market_cap) if snap.market_cap else PLACEHOLDER,
            "Vol/MCap": format_percent(metrics.volume_to_market_cap_ratio(snap)).lstrip("+"),
            "Avg volume": format_volume(avg),
            "Vol/Avg": format_times(metrics.volume_ratio_to_average(snap)),
            "Chart": chart_url(ev.symbol, chart_base_url),
        })
    return out
