"""Bridges from text streams and the stdlib ``logging`` module."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional

from .levels import Level

if TYPE_CHECKING:  # pragma: no cover
    from .logger import Logger

OWN_LOGGER = __name__.partition(".")[0]


class LineWriter:
    """File-like writer turning each written line into one event.

    Useful to point ``print(..., file=...)`` or third-party code writing to a
    stream at the event logger.
    """

    def __init__(self, logger: "Logger", level: Level | int | str = Level.INFO) -> None:
        self._logger = logger
        self.level = Level.parse(level)
        self._buffer = ""
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        if self._closed:
            raise ValueError("write to closed LineWriter")

        with self._lock:
            self._buffer += text
            *lines, self._buffer = self._buffer.split("\n")

        for line in lines:
            self._logger.event(self.level, line.rstrip("\r"))
        return len(text)

    def writelines(self, lines) -> None:
        for line in lines:
            self.write(line)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        """Emit a trailing partial line, if any, and refuse further writes."""

        with self._lock:
            if self._closed:
                return
            self._closed = True
            rest, self._buffer = self._buffer, ""

        if rest:
            self._logger.event(self.level, rest.rstrip("\r"))

    def __enter__(self) -> "LineWriter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def level_from_stdlib(levelno: int) -> Level:
    """Map a stdlib logging level number to a severity."""

    if levelno >= logging.CRITICAL:
        return Level.CRITICAL
    if levelno >= logging.ERROR:
        return Level.ERROR
    if levelno >= logging.WARNING:
        return Level.WARNING
    if levelno >= logging.INFO:
        return Level.INFO
    return Level.DEBUG


class StdlibHandler(logging.Handler):
    """``logging.Handler`` forwarding records to an event logger.

    Without an explicit logger, records go to the process-wide default.
    Records from the package's own loggers are skipped so a failing handler
    cannot feed its diagnostics back into the pipeline.
    """

    def __init__(self, logger: Optional["Logger"] = None, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._logger = logger
        self._exception_formatter = logging.Formatter()

    def _target(self) -> "Logger":
        if self._logger is not None:
            return self._logger

        from .logger import default_logger

        return default_logger()

    def emit(self, record: logging.LogRecord) -> None:
        if record.name == OWN_LOGGER or record.name.startswith(OWN_LOGGER + "."):
            return

        try:
            fields = {"logger": record.name}
            if record.exc_info:
                fields["exc_info"] = self._exception_formatter.formatException(record.exc_info)
            elif record.exc_text:
                fields["exc_info"] = record.exc_text

            self._target().event(level_from_stdlib(record.levelno), record.getMessage(), **fields)
        except Exception:
            self.handleError(record)
