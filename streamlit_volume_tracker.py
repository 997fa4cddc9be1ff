"""Volume Tracker — live volume-spike dashboard.

Features:
- Live table of the latest snapshot per symbol (3-minute expiry)
- Volume-spike alert history with per-symbol cooldown
- Minimum-volume / alert-threshold / price-direction filters
- Sortable by price, volume, ratios and averages
- Chart links to the venue trade page

Run with::

    streamlit run streamlit_volume_tracker.py

Set ``VOLUME_FEED_URL`` in ``.env`` or the environment.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from pathlib import Path

import pandas as pd
import streamlit as st

# ── Path setup ──────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def _load_env_file(env_path: Path) -> None:
    """Load KEY=VALUE pairs from .env into process env."""
    if not env_path.exists():
        return
    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export "):].strip()
        key, value = line.split("=", 1)
        key = key.strip()
        if key:
            os.environ.setdefault(key, value.strip().strip('"').strip("'"))


_load_env_file(PROJECT_ROOT / ".env")

from volume_tracker.config import (  # noqa: E402
    TrackerConfig,
    set_alert_threshold,
    set_min_volume,
    toggle_direction,
)
from volume_tracker.engine import VolumeTrackerEngine  # noqa: E402
from volume_tracker.formatting import format_countdown  # noqa: E402
from volume_tracker.ingest_ws import VolumeFeedClient  # noqa: E402
from volume_tracker.pipeline import pump  # noqa: E402
from volume_tracker.projection import SORT_KEYS, SortSpec, next_sort  # noqa: E402
from volume_ui_helpers import (  # noqa: E402
    SORT_LABELS,
    STATUS_BADGES,
    history_rows,
    sort_caption,
    table_rows,
)

logger = logging.getLogger(__name__)

# ── Page config ─────────────────────────────────────────────────

st.set_page_config(
    page_title="Volume Tracker",
    page_icon="📊",
    layout="wide",
)

# ── Persistent state (survives reruns) ──────────────────────────

if "engine" not in st.session_state:
    st.session_state.engine = VolumeTrackerEngine(TrackerConfig())
if "feed" not in st.session_state:
    _client = VolumeFeedClient(st.session_state.engine.config.feed_url)
    _client.start()
    st.session_state.feed = _client
if "sort" not in st.session_state:
    st.session_state.sort = None
if "auto_refresh" not in st.session_state:
    st.session_state.auto_refresh = True

engine: VolumeTrackerEngine = st.session_state.engine
feed: VolumeFeedClient = st.session_state.feed

# Single writer: every message is applied here, on the script thread.
pump(feed, engine)
engine.sweep()

# ── Sidebar ─────────────────────────────────────────────────────

with st.sidebar:
    st.title("📊 Volume Tracker")
    st.markdown(STATUS_BADGES.get(feed.status, feed.status))
    if feed.last_error:
        st.caption(f"Last error: {feed.last_error}")

    cfg = engine.config

    min_volume = st.number_input("Minimum volume", min_value=0, value=int(cfg.min_volume), step=1000)
    threshold = st.number_input(
        "Alert threshold (x)", min_value=0.0, value=float(cfg.alert_threshold_times), step=0.1,
    )
    show_inc = st.checkbox("Show price increases", value=cfg.show_increase)
    show_dec = st.checkbox("Show price decreases", value=cfg.show_decrease)

    new_cfg = set_min_volume(cfg, float(min_volume))
    new_cfg = set_alert_threshold(new_cfg, float(threshold))
    toggled = toggle_direction(new_cfg, increase=show_inc, decrease=show_dec)
    if toggled is new_cfg and not (show_inc or show_dec):
        st.warning("At least one price direction must stay visible.")
    if toggled != cfg:
        engine.update_config(toggled)

    st.session_state.auto_refresh = st.toggle("Auto-refresh", value=st.session_state.auto_refresh)

    c1, c2 = st.columns(2)
    if c1.button("🔄 Reconnect", width="stretch"):
        feed.reconnect()
    if c2.button("🗑️ Clear all", width="stretch"):
        engine.clear_all()
        st.rerun()

    st.divider()
    st.metric("Messages", engine.ingested_count)
    st.metric("Dropped", engine.dropped_count)

# ── Main layout ─────────────────────────────────────────────────

col_table, col_alerts = st.columns([3, 1])

with col_table:
    stats = engine.table_stats()
    last = engine.last_update_ms
    if last is None:
        st.caption("No data yet")
    else:
        st.caption(
            f"Last update: {time.strftime('%H:%M:%S', time.localtime(last / 1000))} · "
            f"next update in {format_countdown(engine.seconds_until_next_update())}"
        )
    m1, m2, m3 = st.columns(3)
    m1.metric("Tracked coins", stats.total)
    m2.metric("Shown", stats.shown)
    m3.metric("Filtered out", stats.filtered_out)

    sort_choice = st.selectbox(
        "Sort by",
        ["(newest update)"] + list(SORT_KEYS),
        format_func=lambda k: SORT_LABELS.get(k, k),
    )
    if sort_choice == "(newest update)":
        st.session_state.sort = None
    elif st.session_state.sort is None or st.session_state.sort.key != sort_choice:
        st.session_state.sort = SortSpec(sort_choice)
    if st.session_state.sort is not None and st.button("⇅ Flip order"):
        st.session_state.sort = next_sort(st.session_state.sort, st.session_state.sort.key)
    st.caption(sort_caption(st.session_state.sort))

    rows = table_rows(engine.table(st.session_state.sort), chart_base_url=engine.config.chart_base_url)
    if rows:
        df = pd.DataFrame(rows)
        df.index = df.index + 1
        st.dataframe(
            df,
            width="stretch",
            height=min(800, 40 + 35 * len(df)),
            column_config={"Chart": st.column_config.LinkColumn("Chart", display_text="Open")},
        )
    else:
        st.info("Waiting for volume updates…")

with col_alerts:
    st.subheader("🔔 Alert history")
    if st.button("Clear history"):
        engine.clear_history()
        st.rerun()
    alerts = engine.history()
    st.caption(f"{len(alerts)} / {engine.alert_count} alerts at current thresholds")
    if alerts:
        st.dataframe(
            pd.DataFrame(history_rows(alerts, chart_base_url=engine.config.chart_base_url)),
            width="stretch",
            hide_index=True,
            column_config={"Chart": st.column_config.LinkColumn("Chart", display_text="Open")},
        )
    else:
        st.caption("No alerts yet.")

# ── Auto-refresh ────────────────────────────────────────────────

if st.session_state.auto_refresh:
    time.sleep(1)
    st.rerun()
