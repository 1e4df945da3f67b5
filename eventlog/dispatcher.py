"""Per-handler delivery pipelines."""

from __future__ import annotations

import enum
import sys
import threading
from typing import Callable, Optional

from .event import Event
from .handlers.base import Handler
from .levels import Level
from .metrics import record_handler_error, record_processed
from .queue import SENTINEL, BoundedQueue

ErrorCallback = Callable[[str, Event, Exception], None]


class PipelineState(enum.Enum):
    ACTIVE = "active"
    DRAINING = "draining"
    STOPPED = "stopped"


class HandlerPipeline:
    """Queue, worker thread and progress counters for one registered handler.

    ``last_sent`` is the id of the newest event accepted into the queue and
    ``last_processed`` the id of the newest event the handler returned from.
    Both are guarded by ``_progress`` so ``sync()`` can wait on them.
    """

    def __init__(
        self,
        name: str,
        handler: Handler,
        *,
        min_level: Level = Level.DEBUG,
        max_level: Level = Level.EMERGENCY,
        queue_size: int = 100,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Initialize the pipeline; the worker starts with ``start()``."""

        self.name = name # The name the handler is registered under
        self.handler = handler # The destination
        self.min_level = Level.parse(min_level) # Least severe level accepted
        self.max_level = Level.parse(max_level) # Most severe level accepted
        self._queue: BoundedQueue[Event] = BoundedQueue(queue_size)
        self._on_error = on_error
        self._progress = threading.Condition(threading.Lock())
        self._last_sent = 0
        self._last_processed = 0
        self._state = PipelineState.ACTIVE
        self._finished = threading.Event()
        self._thread = threading.Thread(
            target=self._worker,
            name=f"eventlog-handler-{name}",
            daemon=True,
        )

    @property
    def state(self) -> PipelineState:
        with self._progress:
            return self._state

    @property
    def last_sent(self) -> int:
        with self._progress:
            return self._last_sent

    @property
    def last_processed(self) -> int:
        with self._progress:
            return self._last_processed

    @property
    def queue(self) -> BoundedQueue[Event]:
        return self._queue

    def start(self) -> None:
        self._thread.start()

    def accepts(self, level: Level) -> bool:
        """Return True when ``level`` lies in the handler's severity band."""

        return self.max_level <= level <= self.min_level

    def offer(self, log_event: Event) -> bool:
        """Try to enqueue an event without blocking."""

        with self._progress:
            if not self._queue.try_put(log_event):
                return False
            if log_event.id > self._last_sent:
                self._last_sent = log_event.id
            return True

    def drain(self) -> None:
        """Stop accepting events; the worker exits after the backlog."""

        with self._progress:
            if self._state is PipelineState.ACTIVE:
                self._state = PipelineState.DRAINING
        self._queue.close()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker has finished."""

        return self._finished.wait(timeout)

    def sync(self, event_id: int) -> None:
        """Block until this handler processed ``event_id`` if it accepted it."""

        with self._progress:
            if self._last_sent < event_id:
                return
            self._progress.wait_for(
                lambda: self._last_processed >= event_id
                or self._state is PipelineState.STOPPED
            )

    # --------------------- internal helpers ---------------------
    def _worker(self) -> None:
        """Deliver queued events to the handler until the sentinel arrives."""

        try:
            while True:
                item = self._queue.get()
                if item is SENTINEL:
                    break

                log_event: Event = item  # type: ignore[assignment]
                self._deliver(log_event)

                with self._progress:
                    if log_event.id > self._last_processed:
                        self._last_processed = log_event.id
                    self._progress.notify_all()
        finally:
            with self._progress:
                self._state = PipelineState.STOPPED
                self._progress.notify_all()
            self._finished.set()

    def _deliver(self, log_event: Event) -> None:
        try:
            self.handler.event(log_event)
        except Exception as exc:  # handler failures never reach the caller
            record_handler_error(self.name)
            print(
                f"Handler raised an error. handler={self.name} error={exc!r}",
                file=sys.stderr,
            )
            if self._on_error is not None:
                self._report(log_event, exc)
        finally:
            record_processed()

    def _report(self, log_event: Event, exc: Exception) -> None:
        try:
            self._on_error(self.name, log_event, exc)  # type: ignore[misc]
        except Exception as callback_exc:  # the worker outlives a broken callback
            print(
                f"Error callback raised an error. handler={self.name} error={callback_exc!r}",
                file=sys.stderr,
            )
