# pyright: reportImportCycles=false
from __future__ import annotations

import logging
import typing as tp
from collections.abc import Callable, Iterable, Iterator
from functools import reduce, wraps
from operator import attrgetter, lt

from kviter import stages
from kviter._helpers import check_non_negative, consume
from kviter.cursor import Cursor, PairsCursor
from kviter.defaults import Default, NotFound
from kviter.errors import EmptyCollectionError, UnsupportedSourceError
from kviter.minmax import fold_max, fold_min
from kviter.pair import Pair
from kviter.sources import resolve_kind, to_cursor
from kviter.wtyping import Folder, KeyedMapper, LessThan, Predicate

logger = logging.getLogger(__name__)


class MethodKind:
    @staticmethod
    def stage[**P](
        factory: Callable[tp.Concatenate[Cursor[tp.Any, tp.Any], P], Cursor[tp.Any, tp.Any]],
    ) -> Callable[tp.Concatenate[LazyPipeline[tp.Any, tp.Any], P], LazyPipeline[tp.Any, tp.Any]]:
        @wraps(factory, assigned=("__doc__",), updated=())
        def inner(
            self: LazyPipeline[tp.Any, tp.Any], *args: P.args, **kwargs: P.kwargs
        ) -> LazyPipeline[tp.Any, tp.Any]:
            return self._derive(factory(self._cursor, *args, **kwargs))

        return inner


class LazyPipeline[K, V](Iterator[Pair[K, V]]):
    """
    Single-pass pipeline over the (key, value) pairs of a cursor, providing method chaining.

    Transformations are lazy: they wrap the cursor in a new stage and return a
    new pipeline, which takes over the cursor. Terminal operations pull the
    pairs through every stage once. A pipeline is not safe to consume from two
    places at the same time: reading moves the shared cursor.

    Args:
        cursor: the cursor to read pairs from

    Example:
        >>> from kviter.cursor import IterableCursor
        >>> pipeline = LazyPipeline(IterableCursor(iter([1, 2, 3])))
        >>> pipeline.map(lambda x: x * 10).to_dict()
        {0: 10, 1: 20, 2: 30}
        >>> pipeline.to_list()
        []
    """

    def __init__(self, cursor: Cursor[K, V]) -> None:
        if not isinstance(cursor, Cursor):
            raise UnsupportedSourceError(cursor)
        self._cursor = cursor

    def cursor(self) -> Cursor[K, V]:
        return self._cursor

    def _derive[K2, V2](self, cursor: Cursor[K2, V2]) -> LazyPipeline[K2, V2]:
        return type(self)(cursor)  # pyright: ignore[reportReturnType]

    def _mapped[R](self, func: KeyedMapper[K, V, R] | None) -> Iterator[V | R]:
        for key, value in self:
            yield value if func is None else func(value, key)

    def _values(self) -> Iterator[V]:
        return map(attrgetter("value"), self)

    # -- enumeration --------------------------------------------------------

    @property
    def restartable(self) -> bool:
        return False

    def restart(self) -> None:
        """Does nothing: a lazy pipeline is read once."""

    def valid(self) -> bool:
        return self._cursor.valid()

    def current(self) -> V | None:
        return self._cursor.current()

    def key(self) -> K | None:
        return self._cursor.key()

    def advance(self) -> None:
        self._cursor.advance()

    @tp.override
    def __iter__(self) -> Iterator[Pair[K, V]]:
        self.restart()
        return self

    @tp.override
    def __next__(self) -> Pair[K, V]:
        return next(self._cursor)

    @tp.override
    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(cursor={self._cursor!r})"

    # -- transformations ----------------------------------------------------

    map = MethodKind.stage(stages.MapStage)
    """see stages.MapStage"""
    map_with_keys = MethodKind.stage(stages.MapWithKeysStage)
    """see stages.MapWithKeysStage"""
    map_keys = MethodKind.stage(stages.MapKeysStage)
    """see stages.MapKeysStage"""
    flat_map = MethodKind.stage(stages.FlatMapStage)
    """see stages.FlatMapStage"""
    reindex = MethodKind.stage(stages.ReindexStage)
    """see stages.ReindexStage"""
    filter = MethodKind.stage(stages.FilterStage)
    """see stages.FilterStage"""
    to_pairs = MethodKind.stage(stages.ToPairsStage)
    """see stages.ToPairsStage"""
    from_pairs = MethodKind.stage(stages.FromPairsStage)
    """see stages.FromPairsStage"""
    take_while = MethodKind.stage(stages.TakeWhileStage)
    """see stages.TakeWhileStage"""
    drop_while = MethodKind.stage(stages.DropWhileStage)
    """see stages.DropWhileStage"""
    keys = MethodKind.stage(stages.KeysStage)
    """see stages.KeysStage"""
    values = MethodKind.stage(stages.ValuesStage)
    """see stages.ValuesStage"""
    flip = MethodKind.stage(stages.FlipStage)
    """see stages.FlipStage"""

    def reductions[A](self, func: Folder[K, V, A], start: A | None = None) -> LazyPipeline[int, A]:
        """
        Intermediate accumulators of a left fold, keyed by position.

        Args:
            func: called as `func(accumulator, value, key)`, returns the new accumulator.
            start: initial accumulator, not emitted itself (default: None).

        Returns:
            LazyPipeline: as many accumulators as there are pairs.

        Example:
            >>> from kviter.chain import EagerCollection
            >>> EagerCollection([1, 2, 3]).reductions(lambda acc, v, k: acc + v, 0).to_list()
            [1, 3, 6]
        """
        return self._derive(stages.ReductionsStage(self._cursor, func, start))

    def merge(self, *collections: object) -> LazyPipeline[tp.Any, tp.Any]:
        """
        Pairs of self, followed by the pairs of each collection in order.

        Keys are neither renumbered nor deduplicated. A collection may be
        anything `EagerCollection` accepts.

        Example:
            >>> from kviter.chain import EagerCollection
            >>> EagerCollection([1, 2]).merge([3], {"a": 4}).to_pairs().to_list()
            [Pair(key=0, value=1), Pair(key=1, value=2), Pair(key=0, value=3), Pair(key='a', value=4)]
        """
        upstreams = [self._cursor, *map(to_cursor, collections)]
        return self._derive(stages.ChainStage(upstreams))

    def slice(self, start: int, length: int | None = None) -> LazyPipeline[K, V]:
        """
        Skip `start` pairs, then keep at most `length` of them.

        Args:
            start: number of pairs to skip. A negative start gives an empty pipeline.
            length (optional): maximum number of pairs to keep, unbounded if None.

        Raises:
            ValueError: if `length` is negative.

        Example:
            >>> from kviter.chain import EagerCollection
            >>> EagerCollection("abcdef").slice(1, 3).to_dict()
            {1: 'b', 2: 'c', 3: 'd'}
            >>> EagerCollection("abcdef").slice(4).to_list()
            ['e', 'f']
        """
        return self._derive(stages.SliceStage(self._cursor, start, length))

    def take(self, n: int) -> LazyPipeline[K, V]:
        """First `n` pairs."""
        check_non_negative("n", n)
        return self.slice(0, n)

    def drop(self, n: int) -> LazyPipeline[K, V]:
        """Everything but the first `n` pairs."""
        check_non_negative("n", n)
        return self.slice(n)

    def flatten(self, levels: int | None = None) -> LazyPipeline[int, tp.Any]:
        """
        Expand nested collections into a flat sequence of values.

        Strings and bytes are not expanded. Keys are replaced by positions.

        Args:
            levels (optional): how many levels of nesting to expand, all if None.

        Raises:
            ValueError: if `levels` is negative.

        Example:
            >>> from kviter.chain import EagerCollection
            >>> EagerCollection([1, [2, [3, [4]]], "ab"]).flatten().to_list()
            [1, 2, 3, 4, 'ab']
            >>> EagerCollection([1, [2, [3, [4]]]]).flatten(1).to_list()
            [1, 2, [3, [4]]]
        """
        return self._derive(stages.FlattenStage(self._cursor, levels))

    def chunk(
        self, size: int, preserve_keys: bool = False
    ) -> LazyPipeline[int, list[V] | dict[K, V]]:
        """
        Group consecutive pairs into chunks of `size`.

        Each chunk is built eagerly, the chunks themselves lazily. Without
        `preserve_keys` a chunk is a list of values, with it a dict.

        Raises:
            ValueError: if `size` is not positive.

        Example:
            >>> from kviter.chain import EagerCollection
            >>> EagerCollection([1, 2, 3, 4, 5]).chunk(2).to_list()
            [[1, 2], [3, 4], [5]]
            >>> EagerCollection({"a": 1, "b": 2, "c": 3}).chunk(2, preserve_keys=True).to_list()
            [{'a': 1, 'b': 2}, {'c': 3}]
        """
        return self._derive(stages.ChunkStage(self._cursor, size, preserve_keys))

    def chunk_with_keys(self, size: int) -> LazyPipeline[int, dict[K, V]]:
        """Same as `chunk(size, preserve_keys=True)`."""
        return self.chunk(size, preserve_keys=True)  # pyright: ignore[reportReturnType]

    # -- terminal operations ------------------------------------------------

    def apply(self, func: Callable[[V], object]) -> None:
        """Call `func` on every value, for its side effects.

        Example:
            >>> from kviter.chain import EagerCollection
            >>> EagerCollection([1, 2]).apply(print)
            1
            2
        """
        consume(map(func, self._values()))

    def reduce[A](self, func: Folder[K, V, A], start: A | None = None) -> A | None:
        """Left fold with `func(accumulator, value, key)`, starting from `start`."""
        return reduce(lambda acc, pair: func(acc, pair.value, pair.key), self, start)  # pyright: ignore[reportArgumentType]

    def any(self, predicate: Predicate[V] | None = None) -> bool:
        """
        Check if any value satisfies the predicate (is truthy, without one).

        Stops at the first match. If self is empty, return False.
        """
        if predicate is None:
            return any(self._values())
        return any(map(predicate, self._values()))

    def all(self, predicate: Predicate[V] | None = None) -> bool:
        """
        Check if all values satisfy the predicate (are truthy, without one).

        Stops at the first failure. If self is empty, return True.
        """
        if predicate is None:
            return all(self._values())
        return all(map(predicate, self._values()))

    @tp.overload
    def search(self, predicate: Predicate[V]) -> V | tp.Literal[Default.NotFound]: ...
    @tp.overload
    def search[TDefault](self, predicate: Predicate[V], default: TDefault) -> V | TDefault: ...
    def search[TDefault](
        self, predicate: Predicate[V], default: TDefault = NotFound
    ) -> V | TDefault:
        """
        Return the first value satisfying the predicate, or default.

        Args:
            predicate: called with each value until it returns something truthy.
            default (optional): returned when nothing matches.
                default: Default.NotFound

        Example:
            >>> from kviter.chain import EagerCollection
            >>> EagerCollection([1, 4, 9]).search(lambda x: x > 3)
            4
            >>> EagerCollection([1, 4, 9]).search(lambda x: x > 10)
            <Default.NotFound: 2>
        """
        return next(filter(predicate, self._values()), default)

    def count(self) -> int:
        """Number of pairs, from the source's own size when it has one."""
        if (size := self._cursor.size()) is not None:
            return size
        logger.debug("%s has no native size, counting by traversal", type(self._cursor).__name__)
        return sum(1 for _ in self)

    def is_empty(self) -> bool:
        """Whether there is no pair left. Never drops a pair: at most the next one is fetched."""
        return not self._cursor.valid()

    def to_list(self) -> list[V]:
        """All values, keys discarded."""
        return list(self._values())

    def to_dict(self) -> dict[K, V]:
        """All pairs as a dict. When a key repeats, the later value wins."""
        return {pair.key: pair.value for pair in self}

    def first(self) -> V:
        """
        Return the first value.

        Raises:
            EmptyCollectionError: if there is no pair.

        Example:
            >>> from kviter.chain import EagerCollection
            >>> EagerCollection([]).first()
            Traceback (most recent call last):
                ...
            kviter.errors.EmptyCollectionError: Cannot determine first item. Collection is empty
        """
        self.restart()
        if not self._cursor.valid():
            raise EmptyCollectionError
        return tp.cast(V, self._cursor.current())

    def first_or[TDefault](self, default: TDefault = None) -> V | TDefault:
        """Return the first value, or `default` if there is none."""
        self.restart()
        if not self._cursor.valid():
            return default
        return tp.cast(V, self._cursor.current())

    def avg(self, func: KeyedMapper[K, V, float] | None = None, default: float = 0.0) -> float:
        """
        Arithmetic mean of the values, or of `func(value, key)` if given.

        Returns `default` when there is no pair.

        Example:
            >>> from kviter.chain import EagerCollection
            >>> EagerCollection([1, 2, 3, 4]).avg()
            2.5
            >>> EagerCollection({"a": 1, "b": 2}).avg(lambda v, k: v * 10)
            15.0
        """
        total, count = 0.0, 0
        for value in self._mapped(func):
            total += value  # pyright: ignore[reportOperatorIssue]
            count += 1
        if count == 0:
            return default
        return total / count

    def sum(self, func: KeyedMapper[K, V, float] | None = None) -> float:
        """Sum of the values, or of `func(value, key)` if given. 0.0 when empty."""
        return sum(self._mapped(func), start=0.0)  # pyright: ignore[reportCallIssue, reportArgumentType]

    def max[R](
        self, func: KeyedMapper[K, V, R] | None = None, *, lt: LessThan[tp.Any] = lt
    ) -> V | R | None:
        """
        Largest of the values, or of `func(value, key)` if given.

        Args:
            func (optional): mapping applied to each value and key before comparing.
            lt (optional): strict ordering used for comparisons (default: operator.lt).

        Returns:
            the largest value, None when there is no pair.

        Example:
            >>> from kviter.chain import EagerCollection
            >>> EagerCollection([5, 3, 8, 1]).max()
            8
            >>> EagerCollection(["bb", "a", "ccc"]).max(lambda v, k: len(v))
            3
        """
        return fold_max(self._mapped(func), lt)

    def min[R](
        self, func: KeyedMapper[K, V, R] | None = None, *, lt: LessThan[tp.Any] = lt
    ) -> V | R | None:
        """
        Smallest of the values, or of `func(value, key)` if given.

        Values that are (or map to) None are skipped. Returns None when
        there is no pair.
        """
        return fold_min(self._mapped(func), lt)


@tp.final
class EagerCollection[K, V](LazyPipeline[K, V]):
    """
    Restartable collection over any source of pairs.

    Accepts a mapping (keyed by its keys), a sequence or any other iterable
    (keyed by position), a Cursor, or anything with a `cursor()` method such as
    another pipeline. Terminal operations and `for` loops start over from the
    first pair whenever the source can be rewound. Iterators and generators
    cannot: for them `restart` does nothing and `restartable` is False.

    Args:
        source: where the pairs come from (default: empty)

    Example:
        >>> numbers = EagerCollection({"a": 1, "b": 2})
        >>> numbers.sum()
        3.0
        >>> [(key, value) for key, value in numbers]
        [('a', 1), ('b', 2)]
        >>> [(key, value) for key, value in numbers]
        [('a', 1), ('b', 2)]
    """

    def __init__(self, source: object = ()) -> None:
        kind = resolve_kind(source)
        logger.debug("building collection from %s source %s", kind.name, type(source).__name__)
        super().__init__(to_cursor(source, kind))  # pyright: ignore[reportArgumentType]

    @classmethod
    def from_items[K2, V2](cls, items: Iterable[tuple[K2, V2]]) -> EagerCollection[K2, V2]:
        """
        Build a collection from (key, value) 2-tuples, keeping duplicate keys.

        Example:
            >>> EagerCollection.from_items([("x", 1), ("x", 2)]).keys().to_list()
            ['x', 'x']
        """
        return cls(PairsCursor(items))  # pyright: ignore[reportReturnType]

    @property
    @tp.override
    def restartable(self) -> bool:
        return self._cursor.restartable

    @tp.override
    def restart(self) -> None:
        self._cursor.restart()

    @tp.override
    def count(self) -> int:
        total = super().count()
        self.restart()
        return total

    @tp.override
    def is_empty(self) -> bool:
        if (size := self._cursor.size()) is not None:
            return size == 0
        self.restart()
        return super().is_empty()


