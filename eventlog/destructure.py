"""Deep copy and flatten arbitrary payloads.

``destructure(value)`` walks any Python value and returns two things:

- a fresh copy of the value built only from plain containers (``dict`` and
  ``list``) and immutable scalars, so the caller can keep mutating the original
  after the event was submitted;
- a single-level ``dict`` mapping dotted paths (``"request.headers.0"``) to the
  terminal scalar, text or bytes values.

Every node is first classified into one :class:`Kind` and the walk dispatches
on that kind only. Objects that describe themselves (exceptions and classes
overriding ``__str__``) contribute their text instead of being dissected; when
such an object also carries public attributes, the attributes are walked and
the text is stored under the reserved ``Error`` key of that node.

A bare top-level scalar is stored under :data:`ROOT_KEY`. Cyclic references and
nodes deeper than ``max_depth`` degrade to ``None`` without a flattened entry.
The walk never raises.
"""

from __future__ import annotations

import asyncio
import collections
import dataclasses
import datetime as _dt
import decimal
import fractions
import ipaddress
import pathlib
import queue
import threading
import types
import uuid
import weakref
from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any, Dict, List, Tuple

ROOT_KEY = "_"
ERROR_KEY = "Error"
DEFAULT_MAX_DEPTH = 32


class Kind(Enum):
    """Structural category of a value."""

    OPAQUE = "opaque"
    BYTES = "bytes"
    SCALAR = "scalar"
    TEXT = "text"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    RECORD = "record"
    OTHER = "other"


_SCALAR_BASES = (bool, int, float, complex, str)
_BYTES_TYPES = (bytes, bytearray, memoryview)
_SEQUENCE_TYPES = (list, tuple, collections.deque, set, frozenset, range)

_CHANNEL_TYPES = (
    queue.Queue,
    queue.SimpleQueue,
    asyncio.Queue,
    threading.Event,
    threading.Condition,
    threading.Semaphore,
    type(threading.Lock()),
    type(threading.RLock()),
    types.ModuleType,
)

# classes whose __str__ is the generic rendering, not a self description
_PLAIN_TEXT_TYPES = frozenset(
    (object, bool, int, float, complex, str, bytes, bytearray, memoryview,
     dict, list, tuple, set, frozenset, range, collections.deque,
     types.MappingProxyType)
)

# self-describing values that are immutable and safe to keep in the copy
_IMMUTABLE_TEXT_TYPES = (
    _dt.date,
    _dt.time,
    _dt.timedelta,
    _dt.tzinfo,
    decimal.Decimal,
    fractions.Fraction,
    uuid.UUID,
    Enum,
    pathlib.PurePath,
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
    ipaddress.IPv4Network,
    ipaddress.IPv6Network,
)


def _defines_text(cls: type) -> bool:
    """Return True when ``cls`` overrides ``__str__`` with its own rendering."""

    for klass in cls.__mro__:
        if "__str__" in vars(klass):
            return klass not in _PLAIN_TEXT_TYPES
    return False


def _is_named_tuple(value: Any) -> bool:
    return isinstance(value, tuple) and isinstance(getattr(value, "_fields", None), tuple)


def _slot_names(cls: type) -> List[str]:
    """Public slot names declared anywhere in the class hierarchy."""

    names: List[str] = []
    for klass in cls.__mro__:
        slots = vars(klass).get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if isinstance(name, str) and not name.startswith("_") and name not in names:
                names.append(name)
    return names


def _public_fields(value: Any) -> List[Tuple[str, Any]]:
    """Return the externally visible ``(name, value)`` pairs of a record."""

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return [
            (field.name, getattr(value, field.name))
            for field in dataclasses.fields(value)
            if not field.name.startswith("_")
        ]

    if _is_named_tuple(value):
        return [
            (name, item)
            for name, item in zip(value._fields, value)
            if not name.startswith("_")
        ]

    fields: List[Tuple[str, Any]] = []
    attributes = getattr(value, "__dict__", None)
    if isinstance(attributes, dict):
        fields.extend(
            (name, item)
            for name, item in list(attributes.items())
            if isinstance(name, str) and not name.startswith("_")
        )

    missing = object()
    for name in _slot_names(type(value)):
        item = getattr(value, name, missing)
        if item is not missing:  # unset slots are skipped
            fields.append((name, item))

    return fields


def _has_record_shape(value: Any) -> bool:
    return (
        (dataclasses.is_dataclass(value) and not isinstance(value, type))
        or _is_named_tuple(value)
        or isinstance(getattr(value, "__dict__", None), dict)
        or bool(_slot_names(type(value)))
    )


def classify(value: Any) -> Kind:
    """Classify ``value`` into the closed set of kinds the walk understands."""

    if value is None:
        return Kind.OPAQUE

    if isinstance(value, BaseException):
        return Kind.TEXT

    if isinstance(value, _BYTES_TYPES):
        return Kind.BYTES

    if isinstance(value, _SCALAR_BASES):
        if type(value) in _SCALAR_BASES or not _defines_text(type(value)):
            return Kind.SCALAR
        return Kind.TEXT

    if (
        callable(value)
        or isinstance(value, _CHANNEL_TYPES)
        or isinstance(value, Iterator)
    ):
        return Kind.OPAQUE

    if _defines_text(type(value)):
        return Kind.TEXT

    if isinstance(value, Mapping):
        return Kind.MAPPING

    if _is_named_tuple(value):
        return Kind.RECORD

    if isinstance(value, _SEQUENCE_TYPES):
        return Kind.SEQUENCE

    if _has_record_shape(value):
        return Kind.RECORD

    return Kind.OTHER


def _normalize_scalar(value: Any) -> Any:
    """Strip scalar subclasses down to their base primitive type."""

    for base in _SCALAR_BASES:
        if isinstance(value, base):
            return value if type(value) is base else base(value)
    return value


def _text_of(value: Any) -> str:
    if isinstance(value, BaseException):
        return str(value) or type(value).__name__
    return str(value)


def _path_key(path: Tuple[str, ...]) -> str:
    return ".".join(path) if path else ROOT_KEY


class _Walker:
    """Single-use depth-first walk sharing one flattened map."""

    def __init__(self, max_depth: int) -> None:
        self.flat: Dict[str, Any] = {}
        self._max_depth = max_depth
        self._active: set[int] = set()

    def visit(self, value: Any, path: Tuple[str, ...], depth: int) -> Any:
        if isinstance(value, weakref.ref):
            value = value()

        if depth > self._max_depth:
            return None

        try:
            kind = classify(value)
            return _VISITORS[kind](self, value, path, depth)
        except Exception as exc:  # a broken __str__, property or container
            text = f"<unrepresentable: {type(exc).__name__}>"
            self.flat[_path_key(path)] = text
            return text

    def _emit(self, path: Tuple[str, ...], value: Any) -> None:
        self.flat[_path_key(path)] = value

    def visit_opaque(self, value: Any, path: Tuple[str, ...], depth: int) -> Any:
        return None

    def visit_bytes(self, value: Any, path: Tuple[str, ...], depth: int) -> Any:
        frozen = bytes(value)
        self._emit(path, frozen)
        if isinstance(value, bytearray):
            return bytearray(value)
        return frozen

    def visit_scalar(self, value: Any, path: Tuple[str, ...], depth: int) -> Any:
        scalar = _normalize_scalar(value)
        self._emit(path, scalar)
        return scalar

    def visit_text(self, value: Any, path: Tuple[str, ...], depth: int) -> Any:
        text = _text_of(value)

        if isinstance(value, _SCALAR_BASES + _IMMUTABLE_TEXT_TYPES):
            self._emit(path, text)
            return value

        if _public_fields(value):
            record = self.visit_record(value, path, depth)
            self._emit(path + (ERROR_KEY,), text)
            return record

        self._emit(path, text)
        return text

    def visit_other(self, value: Any, path: Tuple[str, ...], depth: int) -> Any:
        text = repr(value)
        self._emit(path, text)
        return text

    def visit_mapping(self, value: Any, path: Tuple[str, ...], depth: int) -> Any:
        items = list(value.items())
        return self._container(
            value,
            ((key, str(key), item) for key, item in items),
            path,
            depth,
        )

    def visit_sequence(self, value: Any, path: Tuple[str, ...], depth: int) -> Any:
        items = list(value)
        if isinstance(value, (set, frozenset)):
            try:
                items.sort()
            except TypeError:
                pass  # mixed element types keep iteration order

        copied = self._container(
            value,
            ((index, str(index), item) for index, item in enumerate(items)),
            path,
            depth,
        )
        if copied is None:
            return None
        return list(copied.values())

    def visit_record(self, value: Any, path: Tuple[str, ...], depth: int) -> Any:
        fields = _public_fields(value)
        return self._container(
            value,
            ((name, name, item) for name, item in fields),
            path,
            depth,
        )

    def _container(self, value, entries, path, depth):
        marker = id(value)
        if marker in self._active:
            return None

        self._active.add(marker)
        try:
            copied: Dict[Any, Any] = {}
            for key, segment, item in entries:
                copied[key] = self.visit(item, path + (segment,), depth + 1)
            return copied
        finally:
            self._active.discard(marker)


_VISITORS = {
    Kind.OPAQUE: _Walker.visit_opaque,
    Kind.BYTES: _Walker.visit_bytes,
    Kind.SCALAR: _Walker.visit_scalar,
    Kind.TEXT: _Walker.visit_text,
    Kind.MAPPING: _Walker.visit_mapping,
    Kind.SEQUENCE: _Walker.visit_sequence,
    Kind.RECORD: _Walker.visit_record,
    Kind.OTHER: _Walker.visit_other,
}


def destructure(value: Any, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Tuple[Any, Dict[str, Any]]:
    """Return ``(copy, flat)`` for any value.

    >>> destructure({"foo": {"bar": "baz"}})
    ({'foo': {'bar': 'baz'}}, {'foo.bar': 'baz'})
    >>> destructure(7457)
    (7457, {'_': 7457})
    """

    walker = _Walker(max(0, max_depth))
    copied = walker.visit(value, (), 0)
    return copied, walker.flat
