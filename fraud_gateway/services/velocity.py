"""Per-user sliding window of recent transaction times"""

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

from fraud_gateway.domain.models import NO_RECENT_DATA, RecentActivity, VelocityCheck


class VelocityTracker:
    """
    Counts how many transactions a user made inside a look-back window.

    Timestamps are monotonic seconds from the injected clock. Users with
    no transactions inside the window are forgotten and report NoRecentData.
    """

    def __init__(
        self,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = 1000,
    ):
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._sweep_every = sweep_every
        self._records_since_sweep = 0

    def __len__(self) -> int:
        """Number of users with transactions still inside the window"""
        with self._lock:
            return len(self._events)

    def _evict(self, user_id: str, now: float) -> Deque[float] | None:
        events = self._events.get(user_id)
        if events is None:
            return None

        cutoff = now - self.window_seconds
        while events and events[0] <= cutoff:
            events.popleft()

        if not events:
            del self._events[user_id]
            return None
        return events

    def peek(self, user_id: str) -> VelocityCheck:
        """Report recent activity without recording a new transaction"""
        with self._lock:
            events = self._evict(user_id, self._clock())
            if events is None:
                return NO_RECENT_DATA
            return RecentActivity(count=len(events), window_seconds=self.window_seconds)

    def record(self, user_id: str) -> None:
        """Record a committed transaction for the user"""
        with self._lock:
            now = self._clock()
            events = self._evict(user_id, now)
            if events is None:
                events = self._events[user_id] = deque()
            events.append(now)

            self._records_since_sweep += 1
            if self._records_since_sweep >= self._sweep_every:
                self._sweep(now)

    def prune(self) -> None:
        """Drop every user whose transactions have all left the window"""
        with self._lock:
            self._sweep(self._clock())

    def _sweep(self, now: float) -> None:
        for user_id in list(self._events):
            self._evict(user_id, now)
        self._records_since_sweep = 0

    def reset(self, user_id: str) -> None:
        with self._lock:
            self._events.pop(user_id, None)
