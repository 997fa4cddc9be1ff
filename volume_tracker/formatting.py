"""Pure presentation formatters for the table and alert-history views.

Every function here is free of Streamlit side-effects.  Unavailable or
non-numeric inputs render as ``PLACEHOLDER`` instead of raising.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any

PLACEHOLDER = "--"

_TRAILING_ZEROS_RE = re.compile(r"\.?0+$")


def _as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def safe_to_fixed(value: Any, digits: int = 2) -> str:
    """Fixed-decimal rendering with trailing zeros stripped.

    ``safe_to_fixed(1.50)`` → ``"1.5"``; ``safe_to_fixed(None)`` → ``"--"``.
    """
    num = _as_number(value)
    if num is None:
        return PLACEHOLDER
    if digits <= 0:
        return f"{num:.0f}"
    return _TRAILING_ZEROS_RE.sub("", f"{num:.{digits}f}")


def format_volume(value: Any) -> str:
    """Abbreviate large numbers: 1.5K, 2.25M, 3B."""
    num = _as_number(value)
    if num is None:
        return PLACEHOLDER
    if num >= 1_000_000_000:
        return safe_to_fixed(num / 1_000_000_000, 2) + "B"
    if num >= 1_000_000:
        return safe_to_fixed(num / 1_000_000, 2) + "M"
    if num >= 1_000:
        return safe_to_fixed(num / 1_000, 2) + "K"
    return safe_to_fixed(num, 2)


def format_price(value: Any) -> str:
    return safe_to_fixed(value, 8)


def format_percent(value: Any, digits: int = 2) -> str:
    """Signed percent: ``+1.2%`` / ``-0.5%``."""
    num = _as_number(value)
    if num is None:
        return PLACEHOLDER
    sign = "+" if num >= 0 else ""
    return f"{sign}{safe_to_fixed(num, digits)}%"


def format_times(value: Any, digits: int = 2) -> str:
    """Multiplier: ``3x``, ``2.5x``."""
    num = _as_number(value)
    if num is None:
        return PLACEHOLDER
    return f"{safe_to_fixed(num, digits)}x"


def format_countdown(seconds: int | float) -> str:
    """``m:ss`` from a second count (negative clamps to ``0:00``)."""
    total = max(0, int(seconds))
    minutes, rem = divmod(total, 60)
    return f"{minutes}:{rem:02d}"


def format_alert_time(epoch_ms: Any) -> str:
    """Local ``HH:MM:SS`` for an epoch-ms timestamp."""
    num = _as_number(epoch_ms)
    if num is None:
        return PLACEHOLDER
    try:
        return datetime.fromtimestamp(num / 1000.0).strftime("%H:%M:%S")
    except (OverflowError, OSError, ValueError):
        return PLACEHOLDER
