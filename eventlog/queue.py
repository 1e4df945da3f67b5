"""Bounded FIFO queue with non-blocking admission."""

from __future__ import annotations

import collections
import threading
from typing import Callable, Deque, Generic, Optional, TypeVar

T = TypeVar("T")

# Placed behind the last real item by close(); get() returns it to signal shutdown.
SENTINEL = object()


class BoundedQueue(Generic[T]):
    """Thread-safe queue refusing new entries when full."""

    def __init__(
        self,
        capacity: int,
        *,
        on_drop: Callable[[T], None] | None = None,
    ) -> None:
        """Initialize the queue with a given capacity."""

        if capacity <= 0:
            raise ValueError("Queue capacity must be positive")

        self._capacity = capacity
        self._items: Deque[object] = collections.deque()
        self._lock = threading.RLock()
        self._not_empty = threading.Condition(self._lock)
        self._dropped = 0
        self._closed = False
        self._on_drop = on_drop

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def dropped(self) -> int:
        """Get the number of refused items."""

        with self._lock:
            return self._dropped

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def size(self) -> int:
        """Get the number of queued items, the sentinel excluded."""

        with self._lock:
            return sum(1 for item in self._items if item is not SENTINEL)

    def try_put(self, item: T) -> bool:
        """Append an item unless the queue is full or closed."""

        with self._lock:
            if self._closed or len(self._items) >= self._capacity:
                self._dropped += 1
                refused = True
            else:
                self._items.append(item)
                self._not_empty.notify()
                refused = False

        if refused and self._on_drop is not None:
            self._on_drop(item)

        return not refused

    def close(self) -> None:
        """Queue the shutdown sentinel; it is never refused."""

        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._items.append(SENTINEL)
            self._not_empty.notify_all()

    def get(self, timeout: Optional[float] = None) -> object:
        """Take the next item, blocking while the queue is empty.

        Returns ``SENTINEL`` once the queue was closed and drained, or ``None``
        when ``timeout`` expires first.
        """

        with self._lock:
            if not self._not_empty.wait_for(lambda: bool(self._items), timeout):
                return None

            item = self._items.popleft()
            if item is SENTINEL:
                # keep it visible for any other consumer
                self._items.appendleft(SENTINEL)
            return item
