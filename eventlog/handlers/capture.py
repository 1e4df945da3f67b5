"""In-memory handler collecting events, mostly for tests."""

from __future__ import annotations

import threading
from typing import List, Optional

from ..event import Event


class CaptureHandler:
    """Keep every received event in arrival order."""

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._lock = threading.Lock()

    def event(self, log_event: Event) -> None:
        with self._lock:
            self._events.append(log_event)

    def events(self) -> List[Event]:
        """Return a copy of the captured events."""

        with self._lock:
            return list(self._events)

    def last(self) -> Optional[Event]:
        with self._lock:
            if not self._events:
                return None
            return self._events[-1]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
