"""Handler contract shared by every destination."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover
    from ..event import Event


@runtime_checkable
class Handler(Protocol):
    """A destination for events.

    ``event`` is called from the handler's own worker thread, one event at a
    time. The event is shared with other handlers and must not be mutated.
    Failures are raised; the logger reports them and carries on.
    """

    def event(self, log_event: "Event") -> None:  # pragma: no cover - protocol
        ...
