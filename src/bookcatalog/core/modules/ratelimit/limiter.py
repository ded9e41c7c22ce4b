"""Sliding-window admission control keyed by client identity."""

import threading
from collections import deque

from bookcatalog.core.modules.ratelimit.models import RateLimitDecision


class _Window:
    """Accepted request timestamps of one client, oldest first."""

    __slots__ = ("last_seen", "lock", "removed", "timestamps")

    def __init__(self, now: float) -> None:
        self.timestamps: deque[float] = deque()
        self.lock = threading.Lock()
        self.last_seen = now
        self.removed = False

    def evict(self, cutoff: float) -> None:
        timestamps = self.timestamps
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()


class SlidingWindowLimiter:
    """Admits at most `limit` requests per client in any trailing `window` seconds.

    Exact timestamps are retained, so bursts straddling a window boundary are
    counted correctly. A request at `t` stays in the window while `now - t < window`.

    The client map lock only guards lookup and insertion. Each window has its own
    lock, and `reclaim` marks a window removed under that lock before dropping it,
    so an `admit` racing a reclamation retries on a fresh window.
    """

    def __init__(self, limit: int, window: float, grace: float = 0.0) -> None:
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        if window <= 0:
            raise ValueError(f"window must be positive, got {window}")
        self.limit = limit
        self.window = window
        self.grace = grace
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def admit(self, client_id: str, now: float) -> RateLimitDecision:
        while True:
            window = self._window_for(client_id, now)
            with window.lock:
                if not window.removed:
                    return self._admit_locked(window, now)
            self._forget(client_id, window)

    def _admit_locked(self, window: _Window, now: float) -> RateLimitDecision:
        window.evict(now - self.window)
        window.last_seen = now
        timestamps = window.timestamps
        if len(timestamps) >= self.limit:
            return RateLimitDecision(allowed=False, remaining=0, retry_after=timestamps[0] + self.window - now)
        timestamps.append(now)
        return RateLimitDecision(allowed=True, remaining=self.limit - len(timestamps))

    def reclaim(self, now: float) -> int:
        """Drop clients whose windows have been empty for longer than the grace period.

        Returns the number of clients dropped.
        """
        with self._lock:
            snapshot = list(self._windows.items())

        reclaimed = 0
        for client_id, window in snapshot:
            with window.lock:
                window.evict(now - self.window)
                if window.removed or window.timestamps or now - window.last_seen < self.window + self.grace:
                    continue
                window.removed = True
            self._forget(client_id, window)
            reclaimed += 1
        return reclaimed

    def usage(self, client_id: str, now: float) -> int:
        """Number of requests from the client currently inside the window."""
        with self._lock:
            window = self._windows.get(client_id)
        if window is None:
            return 0
        with window.lock:
            window.evict(now - self.window)
            return len(window.timestamps)

    def client_count(self) -> int:
        with self._lock:
            return len(self._windows)

    def _window_for(self, client_id: str, now: float) -> _Window:
        with self._lock:
            window = self._windows.get(client_id)
            if window is None:
                window = _Window(now)
                self._windows[client_id] = window
            return window

    def _forget(self, client_id: str, window: _Window) -> None:
        with self._lock:
            if self._windows.get(client_id) is window:
                del self._windows[client_id]
