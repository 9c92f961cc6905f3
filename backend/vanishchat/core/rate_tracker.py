# vanishchat/core/rate_tracker.py

import logging
import threading
from collections import deque
from datetime import datetime, timedelta

from vanishchat.core.config import ACTIVITY_WINDOW_SECONDS

logger = logging.getLogger(__name__)


class _Window:
    """Send timestamps of one sender, oldest first."""

    __slots__ = ("lock", "stamps")

    def __init__(self):
        self.lock = threading.Lock()
        self.stamps: deque[datetime] = deque()

    def prune(self, cutoff: datetime) -> None:
        while self.stamps and self.stamps[0] < cutoff:
            self.stamps.popleft()


class RateTracker:
    """
    Per-sender sliding window of recent sends, used to size message TTLs.

    Each sender's window has its own lock; the registry lock is only held to
    look up, create or drop a window, so two senders never wait on each other.
    """

    def __init__(self, window_seconds: int = ACTIVITY_WINDOW_SECONDS):
        self.window = timedelta(seconds=window_seconds)
        self._windows: dict[str, _Window] = {}
        self._registry_lock = threading.Lock()

    def record_and_count(self, identity: str, now: datetime) -> int:
        """
        Record a send by ``identity`` at ``now`` and return how many earlier
        sends are still inside the window. The send being recorded is not
        part of the count.
        """
        while True:
            with self._registry_lock:
                window = self._windows.setdefault(identity, _Window())
            with window.lock:
                # The janitor may have dropped this window between the two locks
                if self._windows.get(identity) is not window:
                    continue
                window.prune(now - self.window)
                count = len(window.stamps)
                window.stamps.append(now)
                return count

    def recent_count(self, identity: str, now: datetime) -> int:
        window = self._windows.get(identity)
        if window is None:
            return 0
        cutoff = now - self.window
        with window.lock:
            return sum(1 for stamp in window.stamps if stamp >= cutoff)

    def sweep(self, now: datetime) -> int:
        """Prune every window and drop the ones left empty. Returns how many were dropped."""
        cutoff = now - self.window
        with self._registry_lock:
            items = list(self._windows.items())
        dropped = 0
        for identity, window in items:
            with window.lock:
                window.prune(cutoff)
                if window.stamps:
                    continue
                with self._registry_lock:
                    if self._windows.get(identity) is window:
                        del self._windows[identity]
                        dropped += 1
        if dropped:
            logger.debug("Dropped %d idle activity windows", dropped)
        return dropped

    def __len__(self) -> int:
        return len(self._windows)
