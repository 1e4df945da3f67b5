"""Handler relaying events that pass a chain of predicates.

A ``FilterHandler`` sits in front of another handler. Filters are plain
callables taking the event and returning True to let it through; every
filter has to agree. The builder methods return the handler itself so rules
can be chained::

    FilterHandler(writer).min_level(Level.INFO).dedup()
"""

from __future__ import annotations

import threading
from typing import Callable, List, Optional

from ..event import Event, new_event
from ..levels import Level
from .base import Handler

FilterFunc = Callable[[Event], bool]

DEDUP_MESSAGE = "duplicates of last log event suppressed"


class FilterHandler:
    def __init__(self, next_handler: Handler, *filters: FilterFunc) -> None:
        self.next_handler = next_handler
        self._filters: List[FilterFunc] = list(filters)

    def event(self, log_event: Event) -> None:
        for check in list(self._filters):
            if not check(log_event):
                return
        self.next_handler.event(log_event)

    def filter(self, *filters: FilterFunc) -> "FilterHandler":
        """Append filter functions."""

        self._filters.extend(filters)
        return self

    def min_level(self, level: Level | int | str) -> "FilterHandler":
        """Reject events less severe than ``level``."""

        threshold = Level.parse(level)
        return self.filter(lambda log_event: log_event.level <= threshold)

    def max_level(self, level: Level | int | str) -> "FilterHandler":
        """Reject events more severe than ``level``."""

        threshold = Level.parse(level)
        return self.filter(lambda log_event: log_event.level >= threshold)

    def dedup(self) -> "FilterHandler":
        """Suppress consecutive events with the same message and fields.

        When a different event follows a run of suppressed duplicates, a
        summary event carrying the suppressed ``count`` is relayed first.
        """

        return self.filter(_Dedup(self))


class _Dedup:
    def __init__(self, owner: FilterHandler) -> None:
        self._owner = owner
        self._lock = threading.Lock()
        self._last: Optional[Event] = None
        self._last_duplicate: Optional[Event] = None
        self._count = 0

    def __call__(self, log_event: Event) -> bool:
        with self._lock:
            last = self._last
            if (
                last is not None
                and last.message == log_event.message
                and dict(last.flat_fields) == dict(log_event.flat_fields)
            ):
                self._count += 1
                self._last_duplicate = log_event
                return False

            self._last = log_event
            count, duplicate = self._count, self._last_duplicate
            self._count, self._last_duplicate = 0, None

        if count and duplicate is not None:
            summary = new_event(
                duplicate.id, duplicate.level, DEDUP_MESSAGE, {"count": count}
            )
            self._owner.next_handler.event(summary)
        return True
