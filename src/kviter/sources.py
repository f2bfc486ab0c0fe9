"""
Normalization of arbitrary sources into cursors.

Every source shape accepted by the collections falls into exactly one
`SourceKind`, resolved once by capability checks in a fixed order.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator, Mapping, Sequence
from operator import attrgetter

from kviter.cursor import Cursor, IterableCursor, MappingCursor, SequenceCursor
from kviter.errors import UnsupportedSourceError
from kviter.wtyping import SupportsCursor


class SourceKind(enum.Enum):
    CURSOR = enum.auto()
    """A ready-made cursor, used as is."""
    PRODUCER = enum.auto()
    """An object handing out a cursor through `cursor()`, e.g. another collection."""
    MAPPING = enum.auto()
    """A mapping, keyed by its own keys."""
    SEQUENCE = enum.auto()
    """A sequence, keyed by position."""
    ITERABLE = enum.auto()
    """Any other iterable, keyed by position."""


def resolve_kind(source: object) -> SourceKind:
    """Classify `source`.

    Raises:
        UnsupportedSourceError: if `source` is none of the supported shapes.

    Example:
        >>> resolve_kind({"a": 1}), resolve_kind("abc"), resolve_kind(iter([]))
        (<SourceKind.MAPPING: 3>, <SourceKind.SEQUENCE: 4>, <SourceKind.ITERABLE: 5>)
    """
    match source:
        case Cursor():
            return SourceKind.CURSOR
        case SupportsCursor():
            return SourceKind.PRODUCER
        case Mapping():
            return SourceKind.MAPPING
        case Sequence():
            return SourceKind.SEQUENCE
        case Iterable():
            return SourceKind.ITERABLE
        case _:
            raise UnsupportedSourceError(source)


def to_cursor(source: object, kind: SourceKind | None = None) -> Cursor[object, object]:
    """Wrap `source` in a cursor, classifying it first unless `kind` is given."""
    match resolve_kind(source) if kind is None else kind:
        case SourceKind.CURSOR:
            return source  # pyright: ignore[reportReturnType]
        case SourceKind.PRODUCER:
            produced = source.cursor()  # pyright: ignore[reportAttributeAccessIssue]
            if produced is source:
                raise UnsupportedSourceError(source)
            return to_cursor(produced)
        case SourceKind.MAPPING:
            return MappingCursor(source)  # pyright: ignore[reportArgumentType]
        case SourceKind.SEQUENCE:
            return SequenceCursor(source)  # pyright: ignore[reportArgumentType]
        case SourceKind.ITERABLE:
            return IterableCursor(source)  # pyright: ignore[reportArgumentType]


def iter_values(source: object) -> Iterator[object]:
    """Values of any source, in order, keys dropped."""
    return map(attrgetter("value"), to_cursor(source))
