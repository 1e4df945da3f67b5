"""Public API surface for the event logger."""

from __future__ import annotations

from .config import LoggingSettings, configure_settings, get_settings, load_settings
from .destructure import destructure
from .errors import EventLogError, HandlerConfigError
from .event import Event, StackFrame, new_event
from .levels import NEVER, Level
from .logger import (
    Logger,
    add_handler,
    alert,
    check_panic,
    critical,
    debug,
    default_logger,
    emergency,
    error,
    event,
    fatal,
    get_stack_min_level,
    get_sync,
    info,
    new_writer,
    notice,
    remove_handler,
    reset_default_logger,
    set_stack_min_level,
    set_sync,
    stop,
    sync,
    warning,
)

__all__ = [
    "Event",
    "EventLogError",
    "HandlerConfigError",
    "Level",
    "Logger",
    "LoggingSettings",
    "NEVER",
    "StackFrame",
    "add_handler",
    "alert",
    "check_panic",
    "configure",
    "critical",
    "debug",
    "default_logger",
    "destructure",
    "emergency",
    "error",
    "event",
    "fatal",
    "get_settings",
    "get_stack_min_level",
    "get_sync",
    "info",
    "load_settings",
    "new_event",
    "new_writer",
    "notice",
    "remove_handler",
    "reset_default_logger",
    "set_stack_min_level",
    "set_sync",
    "stop",
    "sync",
    "warning",
]


def configure(settings: LoggingSettings | None = None, **overrides) -> LoggingSettings:
    """Configure the process-wide event logger.

    Parameters
    ----------
    settings:
        Optional base settings instance. When omitted, settings are loaded from
        environment variables using :func:`load_settings`.
    **overrides:
        Keyword overrides applied on top of the provided or discovered settings.

    Returns
    -------
    LoggingSettings
        The resolved settings. The default logger is stopped and rebuilt from
        them on its next use.
    """

    resolved = configure_settings(settings, **overrides)
    reset_default_logger()
    return resolved
