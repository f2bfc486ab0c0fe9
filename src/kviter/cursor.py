"""
Cursors: forward-only producers of (key, value) pairs.

A cursor positions itself lazily. Nothing is pulled from the underlying source
until the cursor is first read through `valid`, `current`, `key` or `next()`.
`advance` only releases the current pair; the following one is pulled when it
is read. Consumers therefore never cause more upstream work than they read.
"""

from __future__ import annotations

import abc
import itertools as it
import logging
import typing as tp
from collections.abc import Iterable, Iterator, Mapping, Sequence, Sized

from kviter.defaults import Default, Exhausted, Unavailable
from kviter.pair import Pair

logger = logging.getLogger(__name__)

type Fetched[K, V] = Pair[K, V] | tp.Literal[Default.Exhausted]


class Cursor[K, V](Iterator[Pair[K, V]]):
    """Mutable iteration state over an ordered sequence of pairs.

    Subclasses implement `fetch`, which pulls the next pair from the source or
    returns `Exhausted`. Restart-capable subclasses also override `restartable`
    and `_reset`.

    Example:
        >>> cursor = SequenceCursor(["a", "b"])
        >>> cursor.valid(), cursor.key(), cursor.current()
        (True, 0, 'a')
        >>> cursor.advance(); cursor.current()
        'b'
        >>> cursor.advance(); cursor.valid()
        False
        >>> cursor.restart(); list(cursor)
        [Pair(key=0, value='a'), Pair(key=1, value='b')]
    """

    def __init__(self) -> None:
        self._pair: Fetched[K, V] | tp.Literal[Default.Unavailable] = Unavailable

    @abc.abstractmethod
    def fetch(self) -> Fetched[K, V]:
        """Pull the next pair from the source, or return `Exhausted`."""

    @property
    def restartable(self) -> bool:
        return False

    def size(self) -> int | None:
        """Total number of pairs if the source knows it without traversal."""
        return None

    def _reset(self) -> None:
        pass

    def _position(self) -> Fetched[K, V]:
        if self._pair is Unavailable:
            self._pair = self.fetch()
        return self._pair

    def valid(self) -> bool:
        return self._position() is not Exhausted

    def current(self) -> V | None:
        """Value of the current pair, None once exhausted."""
        pair = self._position()
        return None if pair is Exhausted else pair.value

    def key(self) -> K | None:
        """Key of the current pair, None once exhausted."""
        pair = self._position()
        return None if pair is Exhausted else pair.key

    def advance(self) -> None:
        if self._position() is not Exhausted:
            self._pair = Unavailable

    def restart(self) -> None:
        """Rewind to the first pair.

        One-shot sources cannot be rewound; for them this is a no-op and the
        cursor keeps whatever state remains.
        """
        if not self.restartable:
            logger.debug("%s is not restartable, restart ignored", type(self).__name__)
            return
        self._reset()
        self._pair = Unavailable

    @tp.override
    def __next__(self) -> Pair[K, V]:
        pair = self._position()
        if pair is Exhausted:
            raise StopIteration
        self._pair = Unavailable
        return pair


class SequenceCursor[V](Cursor[int, V]):
    """Positionally keyed cursor over a sequence."""

    def __init__(self, sequence: Sequence[V]) -> None:
        super().__init__()
        self.sequence = sequence
        self._index = 0

    @tp.override
    def fetch(self) -> Fetched[int, V]:
        if self._index >= len(self.sequence):
            return Exhausted
        pair = Pair(self._index, self.sequence[self._index])
        self._index += 1
        return pair

    @property
    @tp.override
    def restartable(self) -> bool:
        return True

    @tp.override
    def size(self) -> int:
        return len(self.sequence)

    @tp.override
    def _reset(self) -> None:
        self._index = 0


class MappingCursor[K, V](Cursor[K, V]):
    """Cursor over the items of a mapping, keyed by the mapping's keys."""

    def __init__(self, mapping: Mapping[K, V]) -> None:
        super().__init__()
        self.mapping = mapping
        self._items = iter(mapping.items())

    @tp.override
    def fetch(self) -> Fetched[K, V]:
        for key, value in self._items:
            return Pair(key, value)
        return Exhausted

    @property
    @tp.override
    def restartable(self) -> bool:
        return True

    @tp.override
    def size(self) -> int:
        return len(self.mapping)

    @tp.override
    def _reset(self) -> None:
        self._items = iter(self.mapping.items())


class IterableCursor[V](Cursor[int, V]):
    """Positionally keyed cursor over any iterable of values.

    Re-iterable sources (sets, ranges, views, ...) can be restarted by asking
    them for a fresh iterator. Iterators and generators are one-shot.
    """

    def __init__(self, iterable: Iterable[V]) -> None:
        super().__init__()
        self.iterable = iterable
        self._iter: Iterator[V] = iter(iterable)
        self._counter = it.count()

    @tp.override
    def fetch(self) -> Fetched[int, V]:
        for value in self._iter:
            return Pair(next(self._counter), value)
        return Exhausted

    @property
    @tp.override
    def restartable(self) -> bool:
        return not isinstance(self.iterable, Iterator)

    @tp.override
    def size(self) -> int | None:
        if self.restartable and isinstance(self.iterable, Sized):
            return len(self.iterable)
        return None

    @tp.override
    def _reset(self) -> None:
        self._iter = iter(self.iterable)
        self._counter = it.count()


class PairsCursor[K, V](IterableCursor[tuple[K, V]]):
    """Cursor over an iterable of ready-made (key, value) 2-tuples.

    Example:
        >>> list(PairsCursor([("a", 1), ("a", 2)]))
        [Pair(key='a', value=1), Pair(key='a', value=2)]
    """

    @tp.override
    def fetch(self) -> Fetched[K, V]:  # pyright: ignore[reportIncompatibleMethodOverride]
        for key, value in self._iter:
            return Pair(key, value)
        return Exhausted
