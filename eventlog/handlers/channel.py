"""Handler handing each event over to a consumer thread."""

from __future__ import annotations

import queue
from typing import Optional

from ..event import Event


class ChannelHandler:
    """Unbuffered hand-off between the handler worker and a reader.

    ``event()`` returns only after a reader took the event with ``next()``,
    so the handler's backlog stays in the logger's queue.
    """

    def __init__(self) -> None:
        self._slot: "queue.Queue[Event]" = queue.Queue(maxsize=1)

    def event(self, log_event: Event) -> None:
        self._slot.put(log_event)
        self._slot.join()

    def next(self, timeout: Optional[float] = None) -> Optional[Event]:
        """Take the next event.

        ``timeout=0`` does not wait, ``None`` waits forever. Returns None when
        no event arrived in time.
        """

        try:
            if timeout == 0:
                log_event = self._slot.get_nowait()
            else:
                log_event = self._slot.get(timeout=timeout)
        except queue.Empty:
            return None

        self._slot.task_done()
        return log_event
