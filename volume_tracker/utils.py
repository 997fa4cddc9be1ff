from __future__ import annotations

import math
import time
from typing import Any


def to_float(value: Any, default: float = 0.0) -> float:
    """Safely parse numeric-like values to float with default fallback.

    Returns *default* for ``None``, booleans, non-numeric strings, **and**
    non-finite values so that downstream arithmetic never silently
    propagates NaN or infinity.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        f = float(value)
    except (TypeError, ValueError):
        return default
    return f if math.isfinite(f) else default


def to_epoch_ms(value: Any, default: int = 0) -> int:
    """Parse an epoch-milliseconds value (int, float or numeric string)."""
    f = to_float(value, float("nan"))
    if math.isnan(f):
        return default
    return int(f)


def now_ms() -> int:
    """Wall-clock epoch milliseconds."""
    return int(time.time() * 1000)
