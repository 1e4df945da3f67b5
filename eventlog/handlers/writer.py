"""Handlers writing formatted lines to text streams and files."""

from __future__ import annotations

import os
import sys
import threading
from typing import IO, Any, Optional

from ..errors import HandlerConfigError
from ..event import Event
from ..formatter import (
    CONSOLE_COLOR_FORMAT,
    CONSOLE_NOCOLOR_FORMAT,
    SIMPLE_FORMAT,
    TextFormatter,
)
from ..levels import Level


def is_terminal(stream: Any) -> bool:
    """Return True when ``stream`` is attached to a TTY."""

    isatty = getattr(stream, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty())
    except (OSError, ValueError):
        return False


def _build_formatter(template: Any, color: bool) -> Any:
    if template is None:
        return TextFormatter(SIMPLE_FORMAT, color=color)
    if isinstance(template, str):
        return TextFormatter(template, color=color)
    if callable(getattr(template, "format", None)):
        return template
    raise HandlerConfigError(f"unsupported template: {template!r}")


class WriterHandler:
    """Write one formatted line per event to a text stream."""

    def __init__(
        self,
        output: IO[str],
        template: Any = None,
        *,
        color: bool = False,
    ) -> None:
        """Initialize the handler with an output stream and a template.

        ``template`` is a template string (``SIMPLE_FORMAT`` when omitted) or
        any object with a ``format(event)`` method, such as ``JsonFormatter``.
        """

        self.output = output # The stream to write to
        self.formatter = _build_formatter(template, color) # Renders each line
        self._lock = threading.Lock()

    @classmethod
    def append(
        cls,
        path: str | os.PathLike[str],
        mode: int = 0o600,
        template: Any = None,
    ) -> "WriterHandler":
        """Open ``path`` for appending, creating it with ``mode`` if missing."""

        try:
            fd = os.open(path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, mode)
        except OSError as exc:
            raise HandlerConfigError(f"cannot open log file {path}: {exc}") from exc

        stream = os.fdopen(fd, "a", encoding="utf-8")
        try:
            return cls(stream, template)
        except HandlerConfigError:
            stream.close()
            raise

    def event(self, log_event: Event) -> None:
        line = self.formatter.format(log_event)

        with self._lock:
            self.output.write(line + "\n")
            self.output.flush()

    def close(self) -> None:
        with self._lock:
            self.output.close()


class StandardStreamsHandler:
    """Send warning and more severe events to stderr, the rest to stdout.

    Streams attached to a terminal get the colored console layout.
    """

    def __init__(
        self,
        stdout: Optional[IO[str]] = None,
        stderr: Optional[IO[str]] = None,
    ) -> None:
        stdout = stdout or sys.stdout
        stderr = stderr or sys.stderr
        self.stdout_writer = self._writer_for(stdout)
        self.stderr_writer = self._writer_for(stderr)

    @staticmethod
    def _writer_for(stream: IO[str]) -> WriterHandler:
        if is_terminal(stream):
            return WriterHandler(stream, CONSOLE_COLOR_FORMAT, color=True)
        return WriterHandler(stream, CONSOLE_NOCOLOR_FORMAT)

    def event(self, log_event: Event) -> None:
        if log_event.level <= Level.WARNING:
            self.stderr_writer.event(log_event)
        else:
            self.stdout_writer.event(log_event)
