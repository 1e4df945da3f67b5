"""Event logger: fan-out of events to registered handlers.

Every registered handler owns a bounded queue and a worker thread (see
:mod:`eventlog.dispatcher`). Submitting an event never blocks on a handler:
when a handler's queue is full the event is dropped for that handler only and
a diagnostic line goes to stderr.
"""

from __future__ import annotations

import sys
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from .compat import LineWriter
from .config import LoggingSettings, get_settings
from .dispatcher import ErrorCallback, HandlerPipeline
from .errors import HandlerConfigError
from .event import Event, new_event
from .handlers.base import Handler
from .handlers.filter import FilterFunc, FilterHandler
from .handlers.gcl import GoogleCloudLoggingHandler
from .handlers.http import HttpHandler
from .handlers.syslog import SyslogHandler
from .handlers.writer import StandardStreamsHandler
from .levels import NEVER, Level
from .metrics import record_drop, record_event

# process exit used by fatal(); tests replace it
_exit: Callable[[int], Any] = sys.exit


def _resolve_payload(data: tuple, fields: Dict[str, Any]) -> Any:
    """Collapse positional data and keyword fields into one payload."""

    if not data:
        return fields or None
    if len(data) == 1 and not fields:
        return data[0]

    payload: List[Any] = list(data)
    if fields:
        payload.append(fields)
    return payload


class Logger:
    """Route events to named handlers.

    Args:
        settings: runtime settings; the process-wide settings when omitted.
        on_error: called as ``on_error(name, event, exc)`` from the worker
            thread whenever a handler raises.
    """

    def __init__(
        self,
        settings: Optional[LoggingSettings] = None,
        *,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._on_error = on_error
        self._lock = threading.RLock()
        self._pipelines: Dict[str, HandlerPipeline] = {}
        self._last_id = 0
        self._stack_min_level: int = self._settings.stack_min_level
        self._sync_mode = self._settings.sync_mode

    @property
    def settings(self) -> LoggingSettings:
        return self._settings

    # --------------------- registration ---------------------
    def add_handler(
        self,
        name: str,
        handler: Handler,
        min_level: Level | int | str = Level.DEBUG,
        max_level: Level | int | str = Level.EMERGENCY,
        queue_size: Optional[int] = None,
    ) -> None:
        """Register ``handler`` under ``name`` for events in the level band.

        ``min_level`` is the least severe level accepted, ``max_level`` the
        most severe. A handler already registered under the same name is
        replaced; it finishes its backlog before this call returns.
        """

        pipeline = HandlerPipeline(
            name,
            handler,
            min_level=Level.parse(min_level),
            max_level=Level.parse(max_level),
            queue_size=self._settings.queue_size if queue_size is None else queue_size,
            on_error=self._on_error,
        )
        pipeline.start()

        with self._lock:
            previous = self._pipelines.get(name)
            self._pipelines[name] = pipeline

        if previous is not None:
            previous.drain()
            previous.wait()

    def remove_handler(self, name: str, wait: bool = False) -> None:
        """Unregister a handler; with ``wait`` block until its backlog is done."""

        with self._lock:
            pipeline = self._pipelines.pop(name, None)

        if pipeline is None:
            return

        pipeline.drain()
        if wait:
            pipeline.wait()

    def handler_names(self) -> List[str]:
        with self._lock:
            return sorted(self._pipelines)

    # --------------------- submission ---------------------
    def event(self, level: Level | int | str, message: str, *data: Any, **fields: Any) -> int:
        """Submit an event and return its id.

        The payload is ``data[0]`` for a single positional value, the keyword
        dict for keywords only, or a list of positionals (plus the keyword
        dict) otherwise.
        """

        level = Level.parse(level)
        log_event = new_event(
            0,
            level,
            message,
            _resolve_payload(data, fields),
            level.meets(self._stack_min_level),
            max_depth=self._settings.destructure_max_depth,
            stack_depth=self._settings.stack_max_depth,
        )
        record_event()

        with self._lock:
            self._last_id += 1
            log_event = log_event.with_id(self._last_id)
            for pipeline in self._pipelines.values():
                if not pipeline.accepts(level):
                    continue
                if not pipeline.offer(log_event):
                    record_drop(pipeline.name)
                    print(
                        f"Unable to send event to handler. Buffer full. handler={pipeline.name}",
                        file=sys.stderr,
                    )

        if self._sync_mode:
            self.sync(log_event.id)

        return log_event.id

    def emergency(self, message: str, *data: Any, **fields: Any) -> int:
        """Submit an emergency event."""

        return self.event(Level.EMERGENCY, message, *data, **fields)

    def alert(self, message: str, *data: Any, **fields: Any) -> int:
        """Submit an alert event."""

        return self.event(Level.ALERT, message, *data, **fields)

    def critical(self, message: str, *data: Any, **fields: Any) -> int:
        """Submit a critical event."""

        return self.event(Level.CRITICAL, message, *data, **fields)

    def error(self, message: str, *data: Any, **fields: Any) -> int:
        """Submit an error event."""

        return self.event(Level.ERROR, message, *data, **fields)

    def warning(self, message: str, *data: Any, **fields: Any) -> int:
        """Submit a warning event."""

        return self.event(Level.WARNING, message, *data, **fields)

    def notice(self, message: str, *data: Any, **fields: Any) -> int:
        """Submit a notice event."""

        return self.event(Level.NOTICE, message, *data, **fields)

    def info(self, message: str, *data: Any, **fields: Any) -> int:
        """Submit an info event."""

        return self.event(Level.INFO, message, *data, **fields)

    def debug(self, message: str, *data: Any, **fields: Any) -> int:
        """Submit a debug event."""

        return self.event(Level.DEBUG, message, *data, **fields)

    # --------------------- completion ---------------------
    def sync(self, event_id: int) -> None:
        """Block until every handler that accepted ``event_id`` processed it."""

        if event_id <= 0:
            return

        with self._lock:
            pipelines = list(self._pipelines.values())

        for pipeline in pipelines:
            pipeline.sync(event_id)

    def stop(self) -> None:
        """Unregister every handler and wait for their backlogs."""

        with self._lock:
            pipelines = list(self._pipelines.values())
            self._pipelines.clear()

        for pipeline in pipelines:
            pipeline.drain()
        for pipeline in pipelines:
            pipeline.wait()

    def fatal(self, message: str, *data: Any, **fields: Any) -> None:
        """Log a critical event, flush every handler and exit with status 1."""

        event_id = self.critical(message, *data, **fields)
        self.sync(event_id)
        self.stop()
        _exit(1)

    @contextmanager
    def check_panic(self) -> Iterator[None]:
        """Log an exception escaping the block as ``"panic"`` and re-raise it."""

        try:
            yield
        except Exception as exc:
            event_id = self.critical("panic", error=exc)
            self.sync(event_id)
            raise

    # --------------------- runtime switches ---------------------
    def set_stack_min_level(self, level: Level | int | str | None) -> None:
        """Capture call stacks for events at least as severe as ``level``.

        ``None`` or ``NEVER`` disables capture.
        """

        if level is None or level == NEVER:
            threshold = NEVER
        else:
            threshold = int(Level.parse(level))
        with self._lock:
            self._stack_min_level = threshold

    def get_stack_min_level(self) -> int:
        with self._lock:
            return self._stack_min_level

    def set_sync(self, enabled: bool) -> None:
        """Make every event call wait for its delivery."""

        with self._lock:
            self._sync_mode = bool(enabled)

    def get_sync(self) -> bool:
        with self._lock:
            return self._sync_mode

    # --------------------- conveniences ---------------------
    def filter_handler(self, handler: Handler, *filters: FilterFunc) -> FilterHandler:
        return FilterHandler(handler, *filters)

    def new_writer(self, level: Level | int | str = Level.INFO) -> LineWriter:
        """Return a text writer emitting each written line as an event."""

        return LineWriter(self, level)

    def init_std_streams(self) -> None:
        self.add_handler("stdStreams", StandardStreamsHandler())

    def init_std_syslog(self) -> None:
        """Register a syslog handler; connection errors are raised."""

        settings = self._settings
        handler = SyslogHandler(
            network=settings.syslog_network,
            address=settings.syslog_address,
            tag=settings.syslog_tag,
        )
        self.add_handler("syslog", handler)


def _install_handler(logger: Logger, name: str) -> None:
    settings = logger.settings
    key = name.strip().lower()

    if key in ("", "none"):
        return
    if key == "stdstreams":
        logger.init_std_streams()
    elif key == "syslog":
        logger.init_std_syslog()
    elif key == "http":
        if not settings.http_url:
            raise HandlerConfigError("LOG_HTTP_URL is required for the http handler")
        logger.add_handler(
            "http",
            HttpHandler(settings.http_url, timeout=settings.http_timeout_ms / 1000.0),
        )
    elif key == "gcl":
        logger.add_handler(
            "gcl",
            GoogleCloudLoggingHandler(
                project=settings.gcl_project,
                log_name=settings.gcl_log_name,
            ),
        )
    else:
        raise HandlerConfigError(f"unknown handler name: {name!r}")


def build_logger(settings: Optional[LoggingSettings] = None) -> Logger:
    """Create a logger with the handlers named in ``settings.handlers``.

    A handler that cannot be built is reported on stderr and skipped.
    """

    logger = Logger(settings)
    for name in logger.settings.handlers:
        try:
            _install_handler(logger, name)
        except HandlerConfigError as exc:
            print(
                f"Unable to initialize handler. handler={name} error={exc}",
                file=sys.stderr,
            )
    return logger


_DEFAULT_LOCK = threading.Lock()
_DEFAULT: Optional[Logger] = None


def default_logger() -> Logger:
    """Return the process-wide logger, creating it on first use."""

    global _DEFAULT
    logger = _DEFAULT
    if logger is not None:
        return logger

    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            _DEFAULT = build_logger(get_settings())
        return _DEFAULT


def reset_default_logger() -> None:
    """Stop and forget the process-wide logger."""

    global _DEFAULT
    with _DEFAULT_LOCK:
        logger, _DEFAULT = _DEFAULT, None

    if logger is not None:
        logger.stop()


def add_handler(
    name: str,
    handler: Handler,
    min_level: Level | int | str = Level.DEBUG,
    max_level: Level | int | str = Level.EMERGENCY,
    queue_size: Optional[int] = None,
) -> None:
    default_logger().add_handler(name, handler, min_level, max_level, queue_size)


def remove_handler(name: str, wait: bool = False) -> None:
    default_logger().remove_handler(name, wait)


def event(level: Level | int | str, message: str, *data: Any, **fields: Any) -> int:
    return default_logger().event(level, message, *data, **fields)


def emergency(message: str, *data: Any, **fields: Any) -> int:
    return default_logger().event(Level.EMERGENCY, message, *data, **fields)


def alert(message: str, *data: Any, **fields: Any) -> int:
    return default_logger().event(Level.ALERT, message, *data, **fields)


def critical(message: str, *data: Any, **fields: Any) -> int:
    return default_logger().event(Level.CRITICAL, message, *data, **fields)


def error(message: str, *data: Any, **fields: Any) -> int:
    return default_logger().event(Level.ERROR, message, *data, **fields)


def warning(message: str, *data: Any, **fields: Any) -> int:
    return default_logger().event(Level.WARNING, message, *data, **fields)


def notice(message: str, *data: Any, **fields: Any) -> int:
    return default_logger().event(Level.NOTICE, message, *data, **fields)


def info(message: str, *data: Any, **fields: Any) -> int:
    return default_logger().event(Level.INFO, message, *data, **fields)


def debug(message: str, *data: Any, **fields: Any) -> int:
    return default_logger().event(Level.DEBUG, message, *data, **fields)


def fatal(message: str, *data: Any, **fields: Any) -> None:
    default_logger().fatal(message, *data, **fields)


def sync(event_id: int) -> None:
    default_logger().sync(event_id)


def stop() -> None:
    """Stop the process-wide logger if one was created."""

    with _DEFAULT_LOCK:
        logger = _DEFAULT
    if logger is not None:
        logger.stop()


def set_stack_min_level(level: Level | int | str | None) -> None:
    default_logger().set_stack_min_level(level)


def get_stack_min_level() -> int:
    return default_logger().get_stack_min_level()


def set_sync(enabled: bool) -> None:
    default_logger().set_sync(enabled)


def get_sync() -> bool:
    return default_logger().get_sync()


def new_writer(level: Level | int | str = Level.INFO) -> LineWriter:
    return default_logger().new_writer(level)


def check_panic():
    """Context manager logging an escaping exception on the default logger."""

    return default_logger().check_panic()
