"""Volume-spike alert classification and the bounded alert history.

Classification
~~~~~~~~~~~~~~
An update becomes an alert when, in order:

  1. ``volume_percent / 100 >= threshold_times``  (300 % → 3x)
  2. ``current_volume >= min_volume``             (only when gating is on)
  3. the symbol has not alerted within ``cooldown_ms``

The cooldown is per symbol, so one noisy symbol never throttles others.
Thresholds are passed in on every call rather than captured up front.

History
~~~~~~~
``AlertHistory`` keeps recorded events newest first in a bounded deque
(oldest dropped silently at capacity) and owns the symbol → last alert
time table used for the cooldown.  Clearing the history also clears the
cooldown table, so a symbol is immediately eligible again.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .common_types import AlertEvent

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_MS = 60_000
DEFAULT_HISTORY_CAPACITY = 100

REASON_ALERT = "alert"
REASON_BELOW_THRESHOLD = "below_threshold"
REASON_BELOW_MIN_VOLUME = "below_min_volume"
REASON_COOLDOWN = "cooldown"


@dataclass(frozen=True)
class AlertDecision:
    """Outcome of ``classify``; truthy when the update is an alert."""

    alert: bool
    reason: str

    def __bool__(self) -> bool:
        return self.alert


def classify(
    symbol: str,
    volume_change_percent: float,
    current_volume: float,
    now: int,
    *,
    threshold_times: float,
    min_volume: float,
    cooldown_ms: int = DEFAULT_COOLDOWN_MS,
    cooldown_table: Mapping[str, int],
    gate_by_min_volume: bool = True,
) -> AlertDecision:
    """Decide whether this update should be recorded as an alert.

    Pure: the caller records the event (which also stamps the cooldown
    table) when the decision is truthy.
    """
    if volume_change_percent / 100.0 < threshold_times:
        return AlertDecision(False, REASON_BELOW_THRESHOLD)

    if gate_by_min_volume and current_volume < min_volume:
        return AlertDecision(False, REASON_BELOW_MIN_VOLUME)

    last_alert = cooldown_table.get(symbol)
    if last_alert is not None and now - last_alert < cooldown_ms:
        return AlertDecision(False, REASON_COOLDOWN)

    return AlertDecision(True, REASON_ALERT)


class AlertHistory:
    """Newest-first, capacity-bounded log of ``AlertEvent`` records.

    Parameters
    ----------
    capacity : int
        Maximum number of events kept; older ones fall off the end.
    """

    def __init__(self, *, capacity: int = DEFAULT_HISTORY_CAPACITY) -> None:
        self.capacity = capacity
        self._events: deque[AlertEvent] = deque(maxlen=capacity)
        # symbol → alert_time of the most recent recorded alert
        self._last_alert_ms: dict[str, int] = {}
        self.total_recorded: int = 0

    def record(self, event: AlertEvent) -> None:
        """Prepend *event* and stamp the symbol's cooldown."""
        self._events.appendleft(event)
        self._last_alert_ms[event.symbol] = event.alert_time
        self.total_recorded += 1

    def clear(self) -> None:
        """Empty the log and the cooldown table."""
        self._events.clear()
        self._last_alert_ms.clear()

    def resize(self, capacity: int) -> None:
        """Change the bound in place, keeping the newest events and cooldowns."""
        self.capacity = capacity
        # newest first, so keep the head
        self._events = deque(list(self._events)[:capacity], maxlen=capacity)

    def prune_below(self, threshold_times: float) -> int:
        """Drop alerts whose volume multiplier is under *threshold_times*.

        A symbol keeps its cooldown entry only when its newest logged
        alert meets the threshold; an older qualifying alert does not
        count.  Returns the number of events removed.
        """
        newest: dict[str, AlertEvent] = {}
        for event in self._events:
            newest.setdefault(event.symbol, event)

        kept = [e for e in self._events if e.snapshot.volume_change_times >= threshold_times]
        removed = len(self._events) - len(kept)
        self._events = deque(kept, maxlen=self.capacity)

        for sym in list(self._last_alert_ms):
            latest = newest.get(sym)
            if latest is None or latest.snapshot.volume_change_times < threshold_times:
                del self._last_alert_ms[sym]

        if removed:
            logger.info("Pruned %d alerts below %.2fx", removed, threshold_times)
        return removed

    def all(self) -> Iterator[AlertEvent]:
        """Yield events newest first; call again to re-enumerate."""
        yield from list(self._events)

    @property
    def cooldown_table(self) -> Mapping[str, int]:
        """Read-only view of symbol → last alert time."""
        return MappingProxyType(self._last_alert_ms)

    def last_alert_time(self, symbol: str) -> int | None:
        return self._last_alert_ms.get(symbol)

    def __len__(self) -> int:
        return len(self._events)
