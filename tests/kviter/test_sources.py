import pytest

from kviter.chain import EagerCollection
from kviter.cursor import IterableCursor, MappingCursor, SequenceCursor
from kviter.errors import KvIterError, UnsupportedSourceError
from kviter.pair import Pair
from kviter.sources import SourceKind, iter_values, resolve_kind, to_cursor


class Producer:
    def __init__(self, *values: int) -> None:
        self.values = values

    def cursor(self):
        return SequenceCursor(self.values)


class SelfProducer:
    def cursor(self):
        return self


@pytest.mark.parametrize(
    ("source", "kind"),
    [
        ({"a": 1}, SourceKind.MAPPING),
        ([1, 2], SourceKind.SEQUENCE),
        ("ab", SourceKind.SEQUENCE),
        (range(2), SourceKind.SEQUENCE),
        ({1, 2}, SourceKind.ITERABLE),
        (iter([1]), SourceKind.ITERABLE),
        (SequenceCursor([]), SourceKind.CURSOR),
        (Producer(1), SourceKind.PRODUCER),
        (EagerCollection([1]), SourceKind.PRODUCER),
    ],
)
def test_resolve_kind(source: object, kind: SourceKind):
    assert resolve_kind(source) is kind


def test_resolve_kind_rejects_non_iterables():
    with pytest.raises(UnsupportedSourceError, match="int"):
        _ = resolve_kind(42)


def test_unsupported_source_error_hierarchy():
    with pytest.raises(TypeError):
        _ = to_cursor(object())
    with pytest.raises(KvIterError):
        _ = to_cursor(object())


def test_to_cursor_builds_matching_cursors():
    assert isinstance(to_cursor({"a": 1}), MappingCursor)
    assert isinstance(to_cursor([1]), SequenceCursor)
    assert isinstance(to_cursor(frozenset()), IterableCursor)


def test_to_cursor_uses_a_given_kind():
    assert isinstance(to_cursor([1, 2], SourceKind.ITERABLE), IterableCursor)
    assert isinstance(to_cursor([1, 2], SourceKind.SEQUENCE), SequenceCursor)


def test_to_cursor_returns_cursors_unchanged():
    cursor = SequenceCursor([1])
    assert to_cursor(cursor) is cursor


def test_to_cursor_asks_producers():
    assert list(to_cursor(Producer(4, 5))) == [Pair(0, 4), Pair(1, 5)]


def test_to_cursor_rejects_producer_returning_itself():
    with pytest.raises(UnsupportedSourceError):
        _ = to_cursor(SelfProducer())


def test_iter_values():
    assert list(iter_values({"a": 1, "b": 2})) == [1, 2]
    assert list(iter_values(EagerCollection([3, 4]))) == [3, 4]
