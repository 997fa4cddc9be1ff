"""Entry point: ``python -m volume_tracker.run``

Headless tracker: consumes the feed, sweeps expired symbols on a timer
and logs a short table summary after each sweep.  For the dashboard, use
``streamlit run streamlit_volume_tracker.py`` instead.

Environment variables (see ``volume_tracker.config``):
    VOLUME_FEED_URL           (default: ws://localhost:9090)
    VOLUME_MIN_VOLUME=10000
    VOLUME_ALERT_THRESHOLD=2.5
"""

from __future__ import annotations

import asyncio
import logging
import sys

from .config import TrackerConfig, validate_config
from .pipeline import run_tracker


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    cfg = TrackerConfig()
    validate_config(cfg, strict=True)
    logging.getLogger(__name__).info(
        "Feed: %s  threshold: %.2fx  min volume: %.0f",
        cfg.feed_url, cfg.alert_threshold_times, cfg.min_volume,
    )
    try:
        asyncio.run(run_tracker(cfg))
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Stopped.")


if __name__ == "__main__":
    main()
