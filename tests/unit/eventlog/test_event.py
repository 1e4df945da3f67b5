"""Tests for event construction and stack capture."""

from __future__ import annotations

import dataclasses

import pytest

from eventlog.event import StackFrame, capture_stack, new_event
from eventlog.levels import NEVER, Level


def test_new_event_copies_and_flattens_payload():
    """Payloads are copied and flattened when the event is built."""

    payload = {"user": {"id": 7}}
    log_event = new_event(3, Level.INFO, "login", payload)
    payload["user"]["id"] = 8

    assert log_event.id == 3
    assert log_event.level is Level.INFO
    assert log_event.level_name == "info"
    assert log_event.message == "login"
    assert log_event.fields == {"user": {"id": 7}}
    assert dict(log_event.flat_fields) == {"user.id": 7}
    assert log_event.time.tzinfo is not None
    assert log_event.stack == ()


def test_event_is_immutable():
    """Events and their flattened fields refuse mutation."""

    log_event = new_event(1, "warning", "frozen", {"k": 1})

    with pytest.raises(dataclasses.FrozenInstanceError):
        log_event.message = "changed"  # type: ignore[misc]
    with pytest.raises(TypeError):
        log_event.flat_fields["k"] = 2  # type: ignore[index]


def test_with_id_returns_copy():
    """with_id leaves the original event untouched."""

    log_event = new_event(0, Level.DEBUG, "draft")
    numbered = log_event.with_id(42)

    assert numbered.id == 42
    assert log_event.id == 0
    assert numbered.time == log_event.time


def test_stack_capture_starts_at_caller():
    """Captured stacks skip library frames and begin with the caller."""

    log_event = new_event(1, Level.ERROR, "oops", capture=True)

    assert log_event.stack
    frame = log_event.stack[0]
    assert isinstance(frame, StackFrame)
    assert frame.func == "test_stack_capture_starts_at_caller"
    assert frame.module == __name__
    assert frame.function == f"{__name__}.test_stack_capture_starts_at_caller"
    assert "new_event(" in (frame.source() or "")


def test_capture_stack_respects_depth():
    """The number of frames is capped."""

    frames = capture_stack(2)

    assert 1 <= len(frames) <= 2
    assert frames[0].func == "test_capture_stack_respects_depth"


def test_source_context_around_line():
    """source_context returns the lines surrounding the frame."""

    frame = capture_stack(1)[0]
    before, line, after = frame.source_context(1, 1)

    assert "capture_stack(1)" in line
    assert len(before) == 1
    assert len(after) == 1


def test_source_of_missing_file_is_none():
    """Frames from unreadable files have no source."""

    frame = StackFrame(file="/nonexistent/file.py", line=3, function="m.f", module="m", func="f")

    assert frame.source() is None
    assert frame.source_context(2, 2) is None


def test_level_parsing_and_thresholds():
    """Levels parse from names and numbers and compare by severity."""

    assert Level.parse("WARN") is Level.WARNING
    assert Level.parse("3") is Level.ERROR
    assert Level.parse(0) is Level.EMERGENCY
    assert Level.ERROR.meets(Level.WARNING)
    assert not Level.INFO.meets(Level.WARNING)
    assert not Level.EMERGENCY.meets(NEVER)

    with pytest.raises(ValueError):
        Level.parse("loud")
