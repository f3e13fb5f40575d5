"""
Once-only admission set shared by all branches of a crawl.
"""
from __future__ import annotations

import threading
from typing import List, Set


class VisitedTracker:
    """Thread-safe set of crawl targets admitted during one run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._seen: Set[str] = set()

    def try_admit(self, url: str) -> bool:
        """Insert ``url`` if absent; True only for the caller that inserted it."""
        with self._lock:
            if url in self._seen:
                return False
            self._seen.add(url)
            return True

    def snapshot(self) -> List[str]:
        """Sorted copy of every admitted URL."""
        with self._lock:
            return sorted(self._seen)

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
