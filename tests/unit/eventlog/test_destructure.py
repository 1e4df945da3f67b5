"""Tests for payload deep copy and flattening."""

from __future__ import annotations

import collections
import datetime as _dt
import queue
import uuid
from dataclasses import dataclass

from eventlog.destructure import ERROR_KEY, ROOT_KEY, Kind, classify, destructure


@dataclass
class Point:
    x: int
    y: int
    _hidden: int = 0


Pair = collections.namedtuple("Pair", "left right")


class Version:
    def __str__(self) -> str:
        return "v1.2"


class Code(int):
    pass


class Span:
    __slots__ = ("name", "millis", "parent", "_token")

    def __init__(self, name: str, millis: int) -> None:
        self.name = name
        self.millis = millis
        self._token = "secret"


class Timeout(Exception):
    __slots__ = ("seconds",)

    def __init__(self, message: str, seconds: int) -> None:
        super().__init__(message)
        self.seconds = seconds


class BrokenError(Exception):
    def __str__(self) -> str:
        raise RuntimeError("cannot render")


def test_nested_mapping_is_flattened_with_dotted_paths():
    """Nested mappings produce dotted keys for every terminal value."""

    copy, flat = destructure({"foo": {"bar": "baz"}, "n": 3})

    assert copy == {"foo": {"bar": "baz"}, "n": 3}
    assert flat == {"foo.bar": "baz", "n": 3}


def test_top_level_scalar_uses_root_key():
    """A bare scalar lands under the root key."""

    assert destructure(7457) == (7457, {ROOT_KEY: 7457})


def test_none_payload_has_no_fields():
    """None yields no copy and no flattened entries."""

    assert destructure(None) == (None, {})


def test_sequences_use_indices():
    """Sequence elements are keyed by position."""

    copy, flat = destructure({"items": [1, "a", (2, 3)]})

    assert copy == {"items": [1, "a", [2, 3]]}
    assert flat == {"items.0": 1, "items.1": "a", "items.2.0": 2, "items.2.1": 3}


def test_sets_are_sorted_when_possible():
    """Set members are ordered for deterministic keys."""

    copy, flat = destructure({3, 1, 2})

    assert copy == [1, 2, 3]
    assert flat == {"0": 1, "1": 2, "2": 3}


def test_non_string_mapping_keys_are_stringified_in_paths():
    """Keys keep their type in the copy but become text in paths."""

    copy, flat = destructure({1: "a"})

    assert copy == {1: "a"}
    assert flat == {"1": "a"}


def test_dataclass_public_fields_only():
    """Dataclass records expose their public fields."""

    copy, flat = destructure({"point": Point(1, 2, _hidden=9)})

    assert copy == {"point": {"x": 1, "y": 2}}
    assert flat == {"point.x": 1, "point.y": 2}


def test_named_tuple_is_a_record():
    """Named tuples are walked by field name."""

    copy, flat = destructure(Pair("l", "r"))

    assert copy == {"left": "l", "right": "r"}
    assert flat == {"left": "l", "right": "r"}


def test_exception_is_replaced_by_its_text():
    """Exceptions contribute their message rather than their internals."""

    copy, flat = destructure({"error": ValueError("bad input")})

    assert copy == {"error": "bad input"}
    assert flat == {"error": "bad input"}


def test_exception_without_message_uses_class_name():
    """An empty exception message falls back to the class name."""

    _, flat = destructure({"error": KeyboardInterrupt()})

    assert flat == {"error": "KeyboardInterrupt"}


def test_exception_with_attributes_keeps_text_under_error_key():
    """Public attributes are walked and the text stored under the error key."""

    exc = ValueError("bad input")
    exc.code = 7

    copy, flat = destructure({"err": exc})

    assert copy == {"err": {"code": 7}}
    assert flat == {"err.code": 7, f"err.{ERROR_KEY}": "bad input"}


def test_self_describing_object_uses_str():
    """Objects overriding __str__ are rendered as text."""

    copy, flat = destructure({"version": Version()})

    assert copy == {"version": "v1.2"}
    assert flat == {"version": "v1.2"}


def test_immutable_text_values_are_kept_in_copy():
    """Dates stay dates in the copy and render as text when flattened."""

    day = _dt.date(2024, 1, 2)
    copy, flat = destructure({"day": day})

    assert copy == {"day": day}
    assert flat == {"day": "2024-01-02"}


def test_uuid_stays_a_single_text_value():
    """UUIDs render as one text field even though their slots are public."""

    ident = uuid.UUID("12345678-1234-5678-1234-567812345678")
    copy, flat = destructure({"request": ident})

    assert copy == {"request": ident}
    assert flat == {"request": "12345678-1234-5678-1234-567812345678"}


def test_slotted_object_is_a_record():
    """Objects declaring __slots__ are walked by their set public slots."""

    copy, flat = destructure({"span": Span("db", 12)})

    assert classify(Span("db", 12)) is Kind.RECORD
    assert copy == {"span": {"name": "db", "millis": 12}}
    assert flat == {"span.name": "db", "span.millis": 12}


def test_slotted_exception_keeps_text_under_error_key():
    """Slot attributes of an exception are walked beside its message."""

    copy, flat = destructure({"err": Timeout("too slow", 30)})

    assert copy == {"err": {"seconds": 30}}
    assert flat == {"err.seconds": 30, f"err.{ERROR_KEY}": "too slow"}


def test_scalar_subclasses_are_normalized():
    """Named scalar types collapse to their primitive base."""

    copy, flat = destructure({"code": Code(5), "ok": True})

    assert type(copy["code"]) is int
    assert type(flat["code"]) is int
    assert flat["ok"] is True


def test_bytes_are_atomic():
    """Byte strings are terminal values, never iterated."""

    data = bytearray(b"\x00\x01")
    copy, flat = destructure({"raw": data})

    assert flat == {"raw": b"\x00\x01"}
    assert copy["raw"] == data
    assert copy["raw"] is not data


def test_channels_and_callables_become_none():
    """Queues, functions and similar handles carry no data."""

    copy, flat = destructure({"q": queue.Queue(), "f": lambda: 1, "v": 1})

    assert copy == {"q": None, "f": None, "v": 1}
    assert flat == {"v": 1}


def test_cycles_degrade_to_none():
    """A container reachable from itself is cut at the repeat."""

    payload: dict = {"name": "loop"}
    payload["self"] = payload

    copy, flat = destructure(payload)

    assert copy == {"name": "loop", "self": None}
    assert flat == {"name": "loop"}


def test_shared_references_are_not_cycles():
    """The same object appearing twice in siblings is copied twice."""

    shared = {"k": 1}
    copy, flat = destructure({"a": shared, "b": shared})

    assert copy == {"a": {"k": 1}, "b": {"k": 1}}
    assert flat == {"a.k": 1, "b.k": 1}


def test_depth_limit_truncates():
    """Nodes deeper than the limit degrade to None."""

    copy, flat = destructure({"a": {"b": {"c": 1}}}, max_depth=1)

    assert copy == {"a": {"b": None}}
    assert flat == {}


def test_copy_is_isolated_from_later_mutation():
    """Mutating the original after the walk leaves the copy untouched."""

    original = {"items": [1, 2], "meta": {"k": "v"}}
    copy, flat = destructure(original)

    original["items"].append(3)
    original["meta"]["k"] = "changed"

    assert copy == {"items": [1, 2], "meta": {"k": "v"}}
    assert flat == {"items.0": 1, "items.1": 2, "meta.k": "v"}


def test_broken_str_is_reported_not_raised():
    """A failing __str__ yields a placeholder instead of an exception."""

    copy, flat = destructure({"err": BrokenError()})

    assert copy == {"err": "<unrepresentable: RuntimeError>"}
    assert flat == {"err": "<unrepresentable: RuntimeError>"}


def test_unknown_objects_use_repr():
    """Objects without fields or text fall back to repr."""

    marker = object()
    copy, flat = destructure({"m": marker})

    assert copy == {"m": repr(marker)}
    assert flat == {"m": repr(marker)}


def test_classify_kinds():
    """Each value maps to a single structural kind."""

    assert classify(None) is Kind.OPAQUE
    assert classify(b"") is Kind.BYTES
    assert classify(1.5) is Kind.SCALAR
    assert classify(ValueError("x")) is Kind.TEXT
    assert classify({}) is Kind.MAPPING
    assert classify([]) is Kind.SEQUENCE
    assert classify(Point(1, 2)) is Kind.RECORD
    assert classify(print) is Kind.OPAQUE
    assert classify(object()) is Kind.OTHER


def test_colliding_keys_last_write_wins():
    """Keys with the same text overwrite earlier flattened entries."""

    copy, flat = destructure({1: "int", "1": "str"})

    assert copy == {1: "int", "1": "str"}
    assert flat == {"1": "str"}
