"""Process-local issuance throttle keyed by identity."""

from __future__ import annotations

import threading
from collections import OrderedDict


class RateLimiter:
    """Minimum-interval limiter backed by an in-memory timestamp map.

    Each entry maps ``identity → last issuance (ms)``.  Entries are not
    persisted and are lost on restart; the limiter only stops a single
    process from mailing the same address repeatedly.
    """

    def __init__(self, window_ms: int = 60_000) -> None:
        self._window_ms = window_ms
        # Oldest issuance first; record() moves an identity to the end
        self._last_issued: OrderedDict[str, int] = OrderedDict()
        self._lock = threading.Lock()

    def should_throttle(self, identity: str, now: int) -> bool:
        """Return ``True`` if *identity* was issued a code less than one window ago."""
        with self._lock:
            last = self._last_issued.get(identity)
        return last is not None and now - last < self._window_ms

    def record(self, identity: str, now: int) -> None:
        """Remember *now* as the last issuance for *identity*.

        Stale entries are popped from the front until the oldest one is
        still inside its window, so each call does amortized constant work
        and the map stays bounded by the identities seen in one window.
        """
        with self._lock:
            self._last_issued[identity] = now
            self._last_issued.move_to_end(identity)
            while self._last_issued:
                oldest, ts = next(iter(self._last_issued.items()))
                if now - ts < self._window_ms:
                    break
                del self._last_issued[oldest]

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_issued)
