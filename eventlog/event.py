"""Immutable log events and call-stack capture."""

from __future__ import annotations

import contextlib
import datetime as _dt
import linecache
import os
import sys
from dataclasses import dataclass, field, replace
from types import FrameType, MappingProxyType
from typing import Any, List, Mapping, Optional, Tuple

from .destructure import DEFAULT_MAX_DEPTH, destructure
from .levels import Level

STACK_MAX_DEPTH = 100

# frames from files under this directory belong to the library itself
PACKAGE_PATH = os.path.dirname(os.path.abspath(__file__)) + os.sep
CONTEXTLIB_PATH = os.path.abspath(contextlib.__file__)


@dataclass(frozen=True)
class StackFrame:
    """One entry of a captured call stack."""

    file: str
    line: int
    function: str # qualified name, e.g. "app.jobs.run"
    module: str # module name, e.g. "app.jobs"
    func: str # bare function name, e.g. "run"

    def source(self) -> Optional[str]:
        """Return the source line of the frame, or None when unreadable."""

        text = linecache.getline(self.file, self.line)
        if not text:
            return None
        return text.rstrip("\n")

    def source_context(
        self, before: int, after: int
    ) -> Optional[Tuple[List[str], str, List[str]]]:
        """Return ``(lines_before, line, lines_after)`` around the frame."""

        lines = linecache.getlines(self.file)
        if not lines or self.line < 1 or self.line > len(lines):
            return None

        before = min(before, self.line - 1)
        index = self.line - 1
        strip = [text.rstrip("\n") for text in lines]

        return (
            strip[index - before:index],
            strip[index],
            strip[index + 1:index + 1 + after],
        )


def _frame_from(frame: FrameType) -> StackFrame:
    code = frame.f_code
    module = frame.f_globals.get("__name__", "")
    func = getattr(code, "co_qualname", code.co_name)
    return StackFrame(
        file=code.co_filename,
        line=frame.f_lineno,
        function=f"{module}.{func}" if module else func,
        module=module,
        func=func,
    )


def _is_library_frame(frame: FrameType) -> bool:
    # context managers such as check_panic run through contextlib
    path = os.path.abspath(frame.f_code.co_filename)
    return path.startswith(PACKAGE_PATH) or path == CONTEXTLIB_PATH


def capture_stack(max_depth: int = STACK_MAX_DEPTH) -> Tuple[StackFrame, ...]:
    """Capture the caller's stack, innermost first, skipping library frames."""

    try:
        frame: Optional[FrameType] = sys._getframe(1)
    except ValueError:
        return ()

    while frame is not None and _is_library_frame(frame):
        frame = frame.f_back

    frames: List[StackFrame] = []
    while frame is not None and len(frames) < max_depth:
        frames.append(_frame_from(frame))
        frame = frame.f_back

    return tuple(frames)


@dataclass(frozen=True)
class Event:
    """A log event. Never mutated after construction."""

    id: int
    level: Level
    time: _dt.datetime
    message: str
    fields: Any
    flat_fields: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    stack: Tuple[StackFrame, ...] = ()

    @property
    def level_name(self) -> str:
        return self.level.label

    def with_id(self, event_id: int) -> "Event":
        """Return a copy of this event carrying another id."""

        return replace(self, id=event_id)


def new_event(
    event_id: int,
    level: Level | int | str,
    message: str,
    data: Any = None,
    capture: bool = False,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    stack_depth: int = STACK_MAX_DEPTH,
) -> Event:
    """Build an event; the payload is deep-copied and flattened right away."""

    now = _dt.datetime.now(tz=_dt.timezone.utc)

    stack: Tuple[StackFrame, ...] = ()
    if capture:
        stack = capture_stack(stack_depth)

    fields_copy, flat_fields = destructure(data, max_depth=max_depth)

    return Event(
        id=event_id,
        level=Level.parse(level),
        time=now,
        message=str(message),
        fields=fields_copy,
        flat_fields=MappingProxyType(flat_fields),
        stack=stack,
    )
