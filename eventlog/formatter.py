"""Text and JSON rendering of events."""

from __future__ import annotations

import base64
import json
import re
import string
from typing import Any, Dict, List, Mapping

from .errors import HandlerConfigError
from .event import Event
from .levels import Level

SCHEMA_VERSION = 1

TIME_FORMAT = "%Y-%m-%d_%H:%M:%S"

SIMPLE_FORMAT = "{message} --{fields}"
CONSOLE_COLOR_FORMAT = "{time} {level_padded} {message_padded}{fields}"
CONSOLE_NOCOLOR_FORMAT = CONSOLE_COLOR_FORMAT

PLACEHOLDERS = frozenset(
    ("time", "level", "level_padded", "message", "message_padded", "fields", "id")
)

LEVEL_PAD = -10
MESSAGE_PAD = -30

RED = "\x1b[31m"
YELLOW = "\x1b[33m"
CYAN = "\x1b[36m"
RESET = "\x1b[0m"

_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")


def to_string(value: Any) -> str:
    """Render a flattened value as plain text."""

    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if value is None:
        return "None"
    return str(value)


def _needs_quote(text: str) -> bool:
    if not text:
        return True
    return any(ch.isspace() or ch in "\"'`=" or not ch.isprintable() for ch in text)


def quote(value: Any) -> str:
    """Render ``value`` as text, quoted when it would not read as one token.

    >>> quote("plain")
    'plain'
    >>> quote("two words")
    '"two words"'
    """

    text = to_string(value)
    if _needs_quote(text):
        return json.dumps(text, ensure_ascii=False)
    return text


def pad(size: int, text: str) -> str:
    """Pad ``text`` to ``abs(size)`` visible characters.

    Negative sizes pad on the right, positive on the left. ANSI color escapes
    do not count towards the width.
    """

    visible = len(_ESCAPE_RE.sub("", text))
    fill = abs(size) - visible
    if fill <= 0:
        return text
    if size < 0:
        return text + " " * fill
    return " " * fill + text


def colorize(level: Level, text: str) -> str:
    """Wrap ``text`` in the color of ``level``."""

    if level <= Level.ERROR:
        color = RED
    elif level == Level.WARNING:
        color = YELLOW
    else:
        color = CYAN
    return f"{color}{text}{RESET}"


def format_time(log_event: Event) -> str:
    stamp = log_event.time
    return f"{stamp.strftime(TIME_FORMAT)}.{stamp.microsecond // 1000:03d}"


def _field_names(parsed) -> List[str]:
    """Collect field names, including those nested in format specs."""

    names: List[str] = []
    for _, name, spec, _ in parsed:
        if name is None:
            continue
        names.append(name)
        if spec and "{" in spec:
            names.extend(_field_names(string.Formatter().parse(spec)))
    return names


class TextFormatter:
    """Render events through a ``str.format`` style template."""

    def __init__(self, template: str = SIMPLE_FORMAT, *, color: bool = False) -> None:
        try:
            names = _field_names(string.Formatter().parse(template))
        except ValueError as exc:
            raise HandlerConfigError(f"invalid template {template!r}: {exc}") from exc

        for name in names:
            if name not in PLACEHOLDERS:
                raise HandlerConfigError(
                    f"unknown placeholder {{{name}}} in template {template!r}"
                )

        self.template = template
        self.color = color

    def format_fields(self, log_event: Event) -> str:
        parts = []
        for key in sorted(log_event.flat_fields):
            name = colorize(log_event.level, key) if self.color else key
            parts.append(f" {name}={quote(log_event.flat_fields[key])}")
        return "".join(parts)

    def format(self, log_event: Event) -> str:
        level = log_event.level_name
        if self.color:
            level = colorize(log_event.level, level)

        return self.template.format(
            time=format_time(log_event),
            level=level,
            level_padded=pad(LEVEL_PAD, level + ">"),
            message=log_event.message,
            message_padded=pad(MESSAGE_PAD, log_event.message),
            fields=self.format_fields(log_event),
            id=log_event.id,
        )


def json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(bytes(value)).decode("ascii")
    return str(value)


def _plain(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key if isinstance(key, (str, int, float, bool)) else str(key): _plain(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def to_record(log_event: Event) -> Dict[str, Any]:
    """Create the JSON-ready document for an event."""

    return {
        "schema_version": SCHEMA_VERSION,
        "id": log_event.id,
        "ts": log_event.time.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "level": log_event.level_name,
        "severity": log_event.level.name,
        "message": log_event.message,
        "fields": _plain(log_event.fields),
        "stack": [
            {"file": frame.file, "line": frame.line, "function": frame.function}
            for frame in log_event.stack
        ],
    }


def dumps(record: Mapping[str, Any]) -> str:
    return json.dumps(record, separators=(",", ":"), default=json_default)


class JsonFormatter:
    """Render events as compact one-line JSON documents."""

    def format(self, log_event: Event) -> str:
        return dumps(to_record(log_event))
