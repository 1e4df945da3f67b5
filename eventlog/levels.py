"""Severity levels, ordered from most severe (0) to least severe (7)."""

from __future__ import annotations

from enum import IntEnum
from typing import Any

# Stack threshold that no level can meet.
NEVER = -1


class Level(IntEnum):
    """The eight syslog severities."""

    EMERGENCY = 0
    ALERT = 1
    CRITICAL = 2
    ERROR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7

    # aliases
    EMERG = 0
    CRIT = 2
    ERR = 3
    WARN = 4

    @property
    def label(self) -> str:
        """Lower-case display name, e.g. ``"warning"``."""

        return self.name.lower()

    def meets(self, threshold: int) -> bool:
        """Return True when this level is at least as severe as ``threshold``."""

        return int(self) <= threshold

    @classmethod
    def parse(cls, value: Any) -> "Level":
        """Resolve a level from a Level, an int or a case-insensitive name."""

        if isinstance(value, cls):
            return value

        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)

        if isinstance(value, str):
            key = value.strip().upper()
            if key.isdigit():
                return cls(int(key))
            try:
                return cls[key]
            except KeyError:
                pass

        raise ValueError(f"unknown severity level: {value!r}")


LEVEL_NAME_WIDTH = max(len(level.label) for level in Level)
