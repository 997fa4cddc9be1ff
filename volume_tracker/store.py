"""In-memory snapshot store: latest ``AssetSnapshot`` per symbol.

Mutated only from the single ingestion path.  Each upsert replaces the
symbol's entry with one dict assignment of a frozen snapshot, so a
concurrent reader sees either the old or the new record, never a mix.

Expiry
~~~~~~
``evict_expired(now, expiry_ms)`` drops every entry whose age
``now - timestamp`` is strictly greater than ``expiry_ms``.  Sweeps are
debounced: after one runs, further calls within ``sweep_interval_ms``
are no-ops, so it is cheap to call after every message as well as from
a periodic timer.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from .common_types import AssetSnapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Symbol → latest snapshot, with debounced time-based eviction.

    Parameters
    ----------
    sweep_interval_ms : int
        Minimum spacing between two effective sweeps.
    """

    def __init__(self, *, sweep_interval_ms: int = 30_000) -> None:
        self.sweep_interval_ms = sweep_interval_ms
        self._entries: dict[str, AssetSnapshot] = {}
        # None until the first sweep so the first call always runs
        self._last_sweep_ms: int | None = None
        self.total_evicted: int = 0

    # ── Mutation ───────────────────────────────────────────────

    def upsert(self, snapshot: AssetSnapshot, now: int) -> AssetSnapshot:
        """Store *snapshot* stamped with *now*, replacing any prior entry.

        Returns the stored (restamped) snapshot.
        """
        stamped = snapshot.stamped(now)
        # Re-insert so dict order tracks recency of update
        self._entries.pop(stamped.symbol, None)
        self._entries[stamped.symbol] = stamped
        return stamped

    def evict_expired(self, now: int, expiry_ms: int, *, force: bool = False) -> int:
        """Remove entries older than *expiry_ms*; return how many went.

        Returns 0 without scanning when the previous sweep ran less than
        ``sweep_interval_ms`` ago, unless *force* is set.
        """
        if (
            not force
            and self._last_sweep_ms is not None
            and now - self._last_sweep_ms < self.sweep_interval_ms
        ):
            return 0
        self._last_sweep_ms = now

        if not self._entries:
            return 0

        stale = [
            sym for sym, snap in self._entries.items()
            if now - snap.timestamp > expiry_ms
        ]
        for sym in stale:
            del self._entries[sym]
        if stale:
            self.total_evicted += len(stale)
            logger.info("Evicted %d expired snapshots (%d remain)", len(stale), len(self._entries))
        return len(stale)

    def clear_all(self) -> None:
        self._entries.clear()

    # ── Read access ────────────────────────────────────────────

    def get(self, symbol: str) -> AssetSnapshot | None:
        return self._entries.get(symbol)

    def entries(self) -> Iterator[tuple[str, AssetSnapshot]]:
        """Lazily yield ``(symbol, snapshot)`` pairs.

        Iterates over a point-in-time copy so a caller can keep consuming
        while the store is mutated; call again to re-enumerate.
        """
        yield from list(self._entries.items())

    @property
    def last_sweep_ms(self) -> int | None:
        return self._last_sweep_ms

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._entries
