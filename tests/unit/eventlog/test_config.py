"""Tests for environment driven settings."""

from __future__ import annotations

import eventlog
from eventlog.config import configure_settings, get_settings, load_settings
from eventlog.levels import NEVER, Level
from eventlog.logger import default_logger


def test_defaults():
    """An empty environment yields the documented defaults."""

    settings = load_settings({})

    assert settings.queue_size == 100
    assert settings.stack_min_level == NEVER
    assert settings.stack_max_depth == 100
    assert settings.destructure_max_depth == 32
    assert settings.sync_mode is False
    assert settings.handlers == ("stdstreams",)
    assert settings.syslog_network == ""
    assert settings.http_url is None
    assert settings.http_timeout_ms == 5000
    assert settings.gcl_log_name == "eventlog"


def test_values_are_parsed():
    """Environment values override the defaults."""

    settings = load_settings(
        {
            "LOG_QUEUE_SIZE": "16",
            "LOG_STACK_MIN_LEVEL": "error",
            "LOG_SYNC": "yes",
            "LOG_HANDLERS": "StdStreams, http ,",
            "LOG_HTTP_URL": "https://collector.example",
            "LOG_SYSLOG_NETWORK": "udp",
            "LOG_SYSLOG_ADDRESS": "127.0.0.1:514",
        }
    )

    assert settings.queue_size == 16
    assert settings.stack_min_level == Level.ERROR
    assert settings.sync_mode is True
    assert settings.handlers == ("stdstreams", "http")
    assert settings.http_url == "https://collector.example"
    assert settings.syslog_network == "udp"
    assert settings.syslog_address == "127.0.0.1:514"


def test_malformed_values_fall_back():
    """Unparseable numbers and levels keep their defaults."""

    settings = load_settings(
        {
            "LOG_QUEUE_SIZE": "many",
            "LOG_STACK_MIN_LEVEL": "loud",
            "LOG_HTTP_TIMEOUT_MS": "soon",
        }
    )

    assert settings.queue_size == 100
    assert settings.stack_min_level == NEVER
    assert settings.http_timeout_ms == 5000


def test_never_disables_stack_capture():
    """The never keyword maps to the disabled threshold."""

    assert load_settings({"LOG_STACK_MIN_LEVEL": "never"}).stack_min_level == NEVER


def test_configure_settings_applies_overrides(monkeypatch):
    """Overrides are layered on top of the environment."""

    monkeypatch.setenv("LOG_QUEUE_SIZE", "5")

    settings = configure_settings(sync_mode=True)

    assert settings.queue_size == 5
    assert settings.sync_mode is True
    assert get_settings() is settings


def test_package_configure_rebuilds_default_logger():
    """configure replaces the default logger with one using the new settings."""

    eventlog.configure(load_settings({"LOG_HANDLERS": "none"}), queue_size=7)
    first = default_logger()

    eventlog.configure(load_settings({"LOG_HANDLERS": "none"}), queue_size=9)
    second = default_logger()

    assert first is not second
    assert first.settings.queue_size == 7
    assert second.settings.queue_size == 9
    assert second.handler_names() == []
