"""Value kinds understood by the cache codecs.

This module defines the closed vocabulary shared by both codecs:

- Reserved tag strings used by the structural document format
- Lightweight domain value types (text ranges, range collections,
  parse-node and diagnostic summaries)
- Shape guards and the ``classify`` dispatch used during encoding

Domain values are recognised by shape (duck typing), not by class, so
objects from a parser or checker encode correctly without importing
these types.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, IntEnum
from typing import Any, Iterable, Iterator, Optional

# Reserved tags for the structural document format
TAG_MAP = "__Map__"
TAG_SET = "__Set__"
TAG_TEXT_RANGE = "__TextRange__"
TAG_TEXT_RANGE_COLLECTION = "__TextRangeCollection__"
TAG_PARSE_NODE = "__ParseNode__"
TAG_DIAGNOSTIC = "__Diagnostic__"
TAG_DATE = "__Date__"
TAG_REGEXP = "__RegExp__"
TAG_CIRCULAR = "__Circular__"

RESERVED_TAGS = frozenset(
    {
        TAG_MAP,
        TAG_SET,
        TAG_TEXT_RANGE,
        TAG_TEXT_RANGE_COLLECTION,
        TAG_PARSE_NODE,
        TAG_DIAGNOSTIC,
        TAG_DATE,
        TAG_REGEXP,
        TAG_CIRCULAR,
    }
)

_MISSING = object()


class ValueKind(str, Enum):
    """Kind of a value, in encoding dispatch priority order."""

    NULL = "null"
    SCALAR = "scalar"
    CALLABLE = "callable"
    TIMESTAMP = "timestamp"
    PATTERN = "pattern"
    MAPPING = "mapping"
    SET = "set"
    PARSE_NODE = "parse_node"
    RANGE_COLLECTION = "range_collection"
    TEXT_RANGE = "text_range"
    DIAGNOSTIC = "diagnostic"
    SEQUENCE = "sequence"
    RECORD = "record"


class DiagnosticCategory(IntEnum):
    """Severity category of a diagnostic."""

    ERROR = 0
    WARNING = 1
    INFORMATION = 2
    UNUSED_CODE = 3
    UNREACHABLE_CODE = 4
    DEPRECATED = 5
    TASK_ITEM = 6


@dataclass(frozen=True)
class TextRange:
    """A span of text given by start offset and length.

    Attributes:
        start: Offset of the first character.
        length: Number of characters covered.
    """

    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


class TextRangeCollection:
    """Indexable, countable sequence of text ranges.

    Ranges are expected in ascending start order, as produced by a
    tokenizer.

    Example:
        >>> ranges = TextRangeCollection([TextRange(0, 3), TextRange(4, 2)])
        >>> ranges.count
        2
        >>> ranges.get_item_at(1).start
        4
    """

    def __init__(self, items: Optional[Iterable[Any]] = None) -> None:
        self._items: list[Any] = list(items) if items is not None else []

    @property
    def count(self) -> int:
        return len(self._items)

    @property
    def start(self) -> int:
        return self._items[0].start if self._items else 0

    @property
    def end(self) -> int:
        return self._items[-1].end if self._items else 0

    @property
    def length(self) -> int:
        return self.end - self.start

    def get_item_at(self, index: int) -> Any:
        """Return the range at index, raising IndexError if out of range."""
        if index < 0 or index >= len(self._items):
            raise IndexError(f"Range index out of range: {index}")
        return self._items[index]

    def append(self, item: Any) -> None:
        self._items.append(item)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TextRangeCollection):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"TextRangeCollection({self._items!r})"


@dataclass(frozen=True)
class ParseNodeSummary:
    """Identifying fields of a parse node, as persisted in the cache.

    Only these four fields survive a round trip; children, parent links
    and other node state are never stored.
    """

    node_type: Any
    id: Any
    start: int
    length: int


@dataclass(unsafe_hash=True)
class DiagnosticSummary:
    """Category, message and range of a diagnostic.

    Rules, actions and any other diagnostic fields are dropped on encode.
    """

    category: Any
    message: Any
    range: Any = field(default=None)


def is_int(value: Any) -> bool:
    """Check for an integer that is not a bool."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_scalar(value: Any) -> bool:
    return isinstance(value, (bool, int, float, str))


def is_parse_node(value: Any) -> bool:
    return (
        hasattr(value, "node_type")
        and hasattr(value, "id")
        and is_int(getattr(value, "start", _MISSING))
        and is_int(getattr(value, "length", _MISSING))
    )


def is_range_collection(value: Any) -> bool:
    return is_int(getattr(value, "count", _MISSING)) and callable(
        getattr(value, "get_item_at", None)
    )


def is_text_range(value: Any) -> bool:
    return is_int(getattr(value, "start", _MISSING)) and is_int(
        getattr(value, "length", _MISSING)
    )


def is_diagnostic(value: Any) -> bool:
    return (
        hasattr(value, "category")
        and hasattr(value, "message")
        and hasattr(value, "range")
    )


def is_record_dict(value: Any) -> bool:
    """Check for a dict whose keys can all be written as JSON object keys."""
    return isinstance(value, dict) and all(isinstance(k, str) for k in value)


def classify(value: Any) -> ValueKind:
    """Return the kind of a value.

    Kinds are probed in ValueKind order and the first match wins. Shape
    probes read attributes, so an object whose attribute access raises
    propagates that exception to the caller.

    Args:
        value: Any Python value.

    Returns:
        The ValueKind used to pick an encoding rule.
    """
    if value is None:
        return ValueKind.NULL
    if is_scalar(value):
        return ValueKind.SCALAR
    if callable(value):
        return ValueKind.CALLABLE
    if isinstance(value, (datetime, date)):
        return ValueKind.TIMESTAMP
    if isinstance(value, re.Pattern) and isinstance(value.pattern, str):
        return ValueKind.PATTERN
    if isinstance(value, Mapping) and not is_record_dict(value):
        return ValueKind.MAPPING
    if isinstance(value, (set, frozenset)):
        return ValueKind.SET
    if isinstance(value, (dict, list, tuple)):
        # Plain containers never carry domain attributes
        return (
            ValueKind.RECORD if isinstance(value, dict) else ValueKind.SEQUENCE
        )
    if is_parse_node(value):
        return ValueKind.PARSE_NODE
    if is_range_collection(value):
        return ValueKind.RANGE_COLLECTION
    if is_text_range(value):
        return ValueKind.TEXT_RANGE
    if is_diagnostic(value):
        return ValueKind.DIAGNOSTIC
    return ValueKind.RECORD


def record_items(
    value: Any, include_private: bool = False
) -> Iterator[tuple[str, Any]]:
    """Iterate the own keys of a record value.

    For a dict these are all of its items. For any other object they are
    the instance attributes in ``__dict__`` followed by any ``__slots__``
    that are set; class attributes and properties are never included.
    Underscore-prefixed attribute names are skipped unless
    include_private is set; dict keys are never filtered.

    Args:
        value: Record value (dict or object).
        include_private: Include object attributes starting with an
            underscore.

    Yields:
        (key, value) pairs in insertion order.
    """
    if isinstance(value, dict):
        yield from value.items()
        return
    for key, item in _object_items(value):
        if not include_private and key.startswith("_"):
            continue
        yield key, item


def _object_items(value: Any) -> Iterator[tuple[str, Any]]:
    seen: set[str] = set()
    attrs = getattr(value, "__dict__", None)
    if isinstance(attrs, dict):
        for key, item in attrs.items():
            seen.add(key)
            yield key, item
    for cls in type(value).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in seen or name in ("__dict__", "__weakref__"):
                continue
            seen.add(name)
            item = getattr(value, name, _MISSING)
            if item is not _MISSING:
                yield name, item


# ============================================================================
# Scalar wrappers
# ============================================================================

_FLAG_LETTERS = (
    ("a", re.ASCII),
    ("i", re.IGNORECASE),
    ("L", re.LOCALE),
    ("m", re.MULTILINE),
    ("s", re.DOTALL),
    ("x", re.VERBOSE),
)


def pattern_flags(pattern: re.Pattern) -> str:
    """Return the inline-flag letters of a compiled pattern.

    The implicit unicode flag of str patterns is not included.
    """
    return "".join(
        letter for letter, flag in _FLAG_LETTERS if pattern.flags & flag
    )


def compile_pattern(source: str, flags: str) -> re.Pattern:
    """Compile a pattern from its source and inline-flag letters.

    Raises:
        ValueError: If flags contains an unknown letter.
    """
    lookup = dict(_FLAG_LETTERS)
    value = 0
    for letter in flags:
        if letter == "u":
            continue
        if letter not in lookup:
            raise ValueError(f"Unknown pattern flag: {letter!r}")
        value |= lookup[letter]
    return re.compile(source, value)


def timestamp_to_iso(value: date) -> str:
    return value.isoformat()


def timestamp_from_iso(text: str) -> date:
    """Parse an ISO-8601 date or datetime string.

    Strings without a time part decode to ``date``; a trailing ``Z`` is
    accepted as UTC.
    """
    if "T" not in text:
        return date.fromisoformat(text)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def freeze(value: Any, _active: Optional[set[int]] = None) -> Any:
    """Make a decoded value hashable so it can be a set member or key.

    Lists become tuples, sets become frozensets and dicts become tuples of
    (key, value) pairs, recursively. Other values are returned unchanged.

    Raises:
        ValueError: If the value contains itself.
    """
    if not isinstance(value, (list, set, dict)):
        return value
    active = _active if _active is not None else set()
    if id(value) in active:
        raise ValueError("Cannot use a cyclic value as a set member or key")
    active.add(id(value))
    try:
        if isinstance(value, list):
            return tuple(freeze(item, active) for item in value)
        if isinstance(value, set):
            return frozenset(freeze(item, active) for item in value)
        return tuple((k, freeze(v, active)) for k, v in value.items())
    finally:
        active.discard(id(value))
