"""Configuration utilities for the event logger."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, replace
from typing import Any, Mapping

from .levels import NEVER, Level


def _comma_tuple(value: str | None, *, default: tuple[str, ...]) -> tuple[str, ...]:
    """Convert a comma-separated string to a tuple."""

    if not value:
        return default

    return tuple(filter(None, (part.strip() for part in value.split(","))))


def _bool_env(value: str | None, default: bool) -> bool:
    """Convert a string to a boolean."""

    if value is None:
        return default

    return value.lower() in {"1", "true", "yes", "on"}


def _int_env(value: str | None, default: int) -> int:
    if value is None:
        return default

    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _level_env(value: str | None, default: int) -> int:
    """Convert a level name to its ordinal; ``never``/``none`` disables."""

    if not value:
        return default

    if value.strip().lower() in {"never", "none", "off"}:
        return NEVER

    try:
        return int(Level.parse(value))
    except ValueError:
        return default


@dataclass(frozen=True)
class LoggingSettings:
    """Immutable runtime configuration."""

    queue_size: int
    stack_min_level: int
    stack_max_depth: int
    destructure_max_depth: int
    sync_mode: bool
    handlers: tuple[str, ...]
    syslog_network: str
    syslog_address: str
    syslog_tag: str | None
    http_url: str | None
    http_timeout_ms: int
    gcl_project: str | None
    gcl_log_name: str

    def with_overrides(self, **kwargs: Any) -> "LoggingSettings":
        return replace(self, **kwargs)


_SETTINGS_LOCK = threading.RLock()
_SETTINGS: LoggingSettings | None = None


def load_settings(env: Mapping[str, str] | None = None) -> LoggingSettings:
    source = os.environ if env is None else env

    return LoggingSettings(
        queue_size=max(1, _int_env(source.get("LOG_QUEUE_SIZE"), 100)),
        stack_min_level=_level_env(source.get("LOG_STACK_MIN_LEVEL"), NEVER),
        stack_max_depth=max(1, _int_env(source.get("LOG_STACK_MAX_DEPTH"), 100)),
        destructure_max_depth=max(
            1, _int_env(source.get("LOG_DESTRUCTURE_MAX_DEPTH"), 32)
        ),
        sync_mode=_bool_env(source.get("LOG_SYNC"), False),
        handlers=tuple(
            name.lower()
            for name in _comma_tuple(source.get("LOG_HANDLERS"), default=("stdstreams",))
        ),
        syslog_network=source.get("LOG_SYSLOG_NETWORK", ""),
        syslog_address=source.get("LOG_SYSLOG_ADDRESS", ""),
        syslog_tag=source.get("LOG_SYSLOG_TAG"),
        http_url=source.get("LOG_HTTP_URL"),
        http_timeout_ms=_int_env(source.get("LOG_HTTP_TIMEOUT_MS"), 5000),
        gcl_project=source.get("LOG_GCL_PROJECT"),
        gcl_log_name=source.get("LOG_GCL_LOG_NAME", "eventlog"),
    )


def configure_settings(
    settings: LoggingSettings | None = None, **overrides: Any
) -> LoggingSettings:
    with _SETTINGS_LOCK:
        resolved = settings or load_settings()
        if overrides:
            resolved = resolved.with_overrides(**overrides)
        global _SETTINGS
        _SETTINGS = resolved
        return _SETTINGS


def get_settings() -> LoggingSettings:
    with _SETTINGS_LOCK:
        if _SETTINGS is None:
            return configure_settings()
        return _SETTINGS


def reset_settings() -> None:
    """Forget the configured settings so the next lookup reloads them."""

    global _SETTINGS
    with _SETTINGS_LOCK:
        _SETTINGS = None
