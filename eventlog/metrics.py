"""In-process metrics for the event logger runtime."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict


@dataclass
class RuntimeMetrics:
    """Runtime metrics for the event logger."""

    events_total: int = 0 # The total number of submitted events
    processed_total: int = 0 # The total number of handler invocations
    dropped_total: int = 0 # The total number of per-handler drops
    dropped_handlers: Dict[str, int] | None = None # Drops keyed by handler name
    handler_errors: Dict[str, int] | None = None # Handler failures keyed by handler name

    def as_dict(self) -> dict[str, object]:
        """Return the metrics as a dictionary."""

        return {
            "events_total": self.events_total,
            "processed_total": self.processed_total,
            "dropped_total": self.dropped_total,
            "dropped_handlers": dict(self.dropped_handlers or {}),
            "handler_errors": dict(self.handler_errors or {}),
        }


_LOCK = threading.RLock()
_METRICS = RuntimeMetrics(dropped_handlers={}, handler_errors={})


def record_event() -> None:
    """Record a submitted event."""

    with _LOCK:
        _METRICS.events_total += 1


def record_processed() -> None:
    """Record one event handed to a handler."""

    with _LOCK:
        _METRICS.processed_total += 1


def record_drop(handler: str) -> None:
    """Record an event dropped for a handler whose queue was full."""

    with _LOCK:
        _METRICS.dropped_total += 1
        handlers = _METRICS.dropped_handlers or {}
        handlers[handler] = handlers.get(handler, 0) + 1
        _METRICS.dropped_handlers = handlers


def record_handler_error(handler: str) -> None:
    """Record a failure raised by a handler."""

    with _LOCK:
        errors = _METRICS.handler_errors or {}
        errors[handler] = errors.get(handler, 0) + 1
        _METRICS.handler_errors = errors


def reset_metrics() -> None:
    """Reset the metrics."""

    with _LOCK:
        _METRICS.events_total = 0
        _METRICS.processed_total = 0
        _METRICS.dropped_total = 0
        _METRICS.dropped_handlers = {}
        _METRICS.handler_errors = {}


def get_metrics() -> RuntimeMetrics:
    """Get a snapshot of the metrics."""

    with _LOCK:
        return RuntimeMetrics(**_METRICS.as_dict())
