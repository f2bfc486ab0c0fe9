from collections import deque
from collections.abc import Iterable
from typing import Any

import pytest

from kviter.cursor import IterableCursor, MappingCursor, PairsCursor, SequenceCursor
from kviter.pair import Pair


def consume(iterable: Iterable[Any]):
    _ = deque(iterable, maxlen=0)


def counting(values: Iterable[int], pulled: list[int]):
    for value in values:
        pulled.append(value)
        yield value


def test_nothing_is_pulled_on_construction():
    pulled: list[int] = []
    cursor = IterableCursor(counting([1, 2, 3], pulled))
    assert pulled == []

    assert cursor.valid()
    assert pulled == [1]


def test_valid_does_not_move_the_cursor():
    pulled: list[int] = []
    cursor = IterableCursor(counting([1, 2, 3], pulled))
    for _ in range(5):
        assert cursor.valid()
    assert pulled == [1]
    assert list(cursor) == [Pair(0, 1), Pair(1, 2), Pair(2, 3)]


def test_current_and_key():
    cursor = SequenceCursor(["x", "y"])
    assert cursor.key() == 0
    assert cursor.current() == "x"
    cursor.advance()
    assert cursor.key() == 1
    assert cursor.current() == "y"


def test_advance_does_not_pull_ahead():
    pulled: list[int] = []
    cursor = IterableCursor(counting([1, 2, 3], pulled))
    assert cursor.current() == 1
    cursor.advance()
    assert pulled == [1]
    assert cursor.current() == 2
    assert pulled == [1, 2]


def test_advance_before_first_read_skips_first_pair():
    cursor = SequenceCursor([1, 2, 3])
    cursor.advance()
    assert cursor.current() == 2


def test_exhausted_cursor_reports_none():
    cursor = SequenceCursor([1])
    consume(cursor)
    assert not cursor.valid()
    assert cursor.current() is None
    assert cursor.key() is None
    cursor.advance()
    assert not cursor.valid()
    with pytest.raises(StopIteration):
        _ = next(cursor)


def test_sequence_cursor_restart():
    cursor = SequenceCursor((10, 20))
    assert cursor.restartable
    assert cursor.size() == 2
    assert list(cursor) == [Pair(0, 10), Pair(1, 20)]
    assert list(cursor) == []
    cursor.restart()
    assert list(cursor) == [Pair(0, 10), Pair(1, 20)]


def test_mapping_cursor():
    cursor = MappingCursor({"a": 1, "b": 2})
    assert cursor.restartable
    assert cursor.size() == 2
    assert list(cursor) == [Pair("a", 1), Pair("b", 2)]
    cursor.restart()
    assert cursor.key() == "a"


def test_iterable_cursor_over_reiterable_source_restarts():
    cursor = IterableCursor(range(3))
    assert cursor.restartable
    assert cursor.size() == 3
    consume(cursor)
    cursor.restart()
    assert list(cursor) == [Pair(0, 0), Pair(1, 1), Pair(2, 2)]


def test_iterable_cursor_over_generator_is_one_shot():
    cursor = IterableCursor(x for x in "ab")
    assert not cursor.restartable
    assert cursor.size() is None
    assert list(cursor) == [Pair(0, "a"), Pair(1, "b")]
    cursor.restart()
    assert list(cursor) == []


def test_restart_of_one_shot_cursor_keeps_remaining_state():
    cursor = IterableCursor(iter([1, 2, 3]))
    assert next(cursor) == Pair(0, 1)
    cursor.restart()
    assert list(cursor) == [Pair(1, 2), Pair(2, 3)]


def test_pairs_cursor_keeps_duplicate_keys():
    cursor = PairsCursor([("k", 1), ("k", 2), ("j", 3)])
    assert list(cursor) == [Pair("k", 1), Pair("k", 2), Pair("j", 3)]
    cursor.restart()
    assert cursor.current() == 1
