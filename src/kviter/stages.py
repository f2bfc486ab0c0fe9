"""
The sequence engine: cursor stages composed over upstream cursors.

Each stage pulls from its upstream exactly once per pair it needs and keeps
its own progress as plain attributes, so a stage pauses between pulls and
resumes where it left off. A stage is restartable iff its upstream is;
restarting resets the stage's own state.

Several stages may read the same upstream, e.g. `s.take(2).merge(s.drop(2))`.
A stage therefore rewinds a restartable upstream on its first pull after
creation or restart, and always reads it from the first pair.
"""

from __future__ import annotations

import itertools as it
import typing as tp
from collections.abc import Callable, Iterator, Sequence

from kviter._helpers import check_non_negative, is_nested
from kviter.cursor import Cursor, Fetched
from kviter.defaults import Exhausted
from kviter.pair import Pair
from kviter.sources import iter_values, to_cursor
from kviter.wtyping import Folder, KeyedMapper, Predicate

type AnyCursor = Cursor[tp.Any, tp.Any]


class Stage[K, V](Cursor[K, V]):
    preserves_length: tp.ClassVar[bool] = False
    """Whether the stage emits exactly one pair per upstream pair."""

    def __init__(self, upstream: AnyCursor) -> None:
        super().__init__()
        self.upstream = upstream
        self._started = False

    @property
    @tp.override
    def restartable(self) -> bool:
        return self.upstream.restartable

    @tp.override
    def size(self) -> int | None:
        return self.upstream.size() if self.preserves_length else None

    @tp.override
    def _reset(self) -> None:
        self._started = False

    def pull(self) -> Fetched[tp.Any, tp.Any]:
        if not self._started:
            self._started = True
            if self.upstream.restartable:
                self.upstream.restart()
        return next(self.upstream, Exhausted)


class PositionalStage[V](Stage[int, V]):
    """Stage that re-keys its output 0, 1, 2, ..."""

    def __init__(self, upstream: AnyCursor) -> None:
        super().__init__(upstream)
        self._counter = it.count()

    def emit(self, value: V) -> Pair[int, V]:
        return Pair(next(self._counter), value)

    @tp.override
    def _reset(self) -> None:
        super()._reset()
        self._counter = it.count()


class MapStage(Stage[tp.Any, tp.Any]):
    """Replace each value with `func(value)`; keys are left as-is."""

    preserves_length = True

    def __init__(self, upstream: AnyCursor, func: Callable[[tp.Any], tp.Any]) -> None:
        super().__init__(upstream)
        self.func = func

    @tp.override
    def fetch(self) -> Fetched[tp.Any, tp.Any]:
        if (pair := self.pull()) is Exhausted:
            return Exhausted
        return Pair(pair.key, self.func(pair.value))


class MapWithKeysStage(Stage[tp.Any, tp.Any]):
    """Replace each value with `func(value, key)`; keys are left as-is."""

    preserves_length = True

    def __init__(self, upstream: AnyCursor, func: KeyedMapper[tp.Any, tp.Any, tp.Any]) -> None:
        super().__init__(upstream)
        self.func = func

    @tp.override
    def fetch(self) -> Fetched[tp.Any, tp.Any]:
        if (pair := self.pull()) is Exhausted:
            return Exhausted
        return Pair(pair.key, self.func(pair.value, pair.key))


class MapKeysStage(Stage[tp.Any, tp.Any]):
    """Replace each key with `func(key)`; values are left as-is."""

    preserves_length = True

    def __init__(self, upstream: AnyCursor, func: Callable[[tp.Any], tp.Any]) -> None:
        super().__init__(upstream)
        self.func = func

    @tp.override
    def fetch(self) -> Fetched[tp.Any, tp.Any]:
        if (pair := self.pull()) is Exhausted:
            return Exhausted
        return Pair(self.func(pair.key), pair.value)


class ReindexStage(Stage[tp.Any, tp.Any]):
    """Key each value by `func(value)`. The old key is not looked at."""

    preserves_length = True

    def __init__(self, upstream: AnyCursor, func: Callable[[tp.Any], tp.Any]) -> None:
        super().__init__(upstream)
        self.func = func

    @tp.override
    def fetch(self) -> Fetched[tp.Any, tp.Any]:
        if (pair := self.pull()) is Exhausted:
            return Exhausted
        return Pair(self.func(pair.value), pair.value)


class FlipStage(Stage[tp.Any, tp.Any]):
    """Swap keys and values."""

    preserves_length = True

    @tp.override
    def fetch(self) -> Fetched[tp.Any, tp.Any]:
        if (pair := self.pull()) is Exhausted:
            return Exhausted
        return pair.flipped()


class FromPairsStage(Stage[tp.Any, tp.Any]):
    """Unpack each value, a (key, value) 2-sequence, into a pair."""

    preserves_length = True

    @tp.override
    def fetch(self) -> Fetched[tp.Any, tp.Any]:
        if (pair := self.pull()) is Exhausted:
            return Exhausted
        key, value = pair.value
        return Pair(key, value)


class ToPairsStage(PositionalStage[Pair[tp.Any, tp.Any]]):
    """Turn each pair into a value `Pair(key, value)`, keyed by position."""

    preserves_length = True

    @tp.override
    def fetch(self) -> Fetched[int, Pair[tp.Any, tp.Any]]:
        if (pair := self.pull()) is Exhausted:
            return Exhausted
        return self.emit(pair)


class KeysStage(PositionalStage[tp.Any]):
    """Emit the keys as values, keyed by position."""

    preserves_length = True

    @tp.override
    def fetch(self) -> Fetched[int, tp.Any]:
        if (pair := self.pull()) is Exhausted:
            return Exhausted
        return self.emit(pair.key)


class ValuesStage(PositionalStage[tp.Any]):
    """Emit the values, keyed by position."""

    preserves_length = True

    @tp.override
    def fetch(self) -> Fetched[int, tp.Any]:
        if (pair := self.pull()) is Exhausted:
            return Exhausted
        return self.emit(pair.value)


class ReductionsStage(PositionalStage[tp.Any]):
    """Emit every intermediate accumulator of a left fold, keyed by position.

    The accumulator starts at `start` and is updated with
    `func(accumulator, value, key)`. The start value itself is not emitted.
    """

    preserves_length = True

    def __init__(
        self, upstream: AnyCursor, func: Folder[tp.Any, tp.Any, tp.Any], start: object = None
    ) -> None:
        super().__init__(upstream)
        self.func = func
        self.start = start
        self._accumulator = start

    @tp.override
    def fetch(self) -> Fetched[int, tp.Any]:
        if (pair := self.pull()) is Exhausted:
            return Exhausted
        self._accumulator = self.func(self._accumulator, pair.value, pair.key)
        return self.emit(self._accumulator)

    @tp.override
    def _reset(self) -> None:
        super()._reset()
        self._accumulator = self.start


class FilterStage(Stage[tp.Any, tp.Any]):
    """Keep pairs whose value satisfies the predicate (truthy values if None)."""

    def __init__(self, upstream: AnyCursor, predicate: Predicate[tp.Any] | None) -> None:
        super().__init__(upstream)
        self.predicate = bool if predicate is None else predicate

    @tp.override
    def fetch(self) -> Fetched[tp.Any, tp.Any]:
        while (pair := self.pull()) is not Exhausted:
            if self.predicate(pair.value):
                return pair
        return Exhausted


class TakeWhileStage(Stage[tp.Any, tp.Any]):
    """Emit pairs until the predicate fails for the first time."""

    def __init__(self, upstream: AnyCursor, predicate: Predicate[tp.Any]) -> None:
        super().__init__(upstream)
        self.predicate = predicate
        self._done = False

    @tp.override
    def fetch(self) -> Fetched[tp.Any, tp.Any]:
        if self._done:
            return Exhausted
        pair = self.pull()
        if pair is Exhausted or not self.predicate(pair.value):
            self._done = True
            return Exhausted
        return pair

    @tp.override
    def _reset(self) -> None:
        super()._reset()
        self._done = False


class DropWhileStage(Stage[tp.Any, tp.Any]):
    """Skip pairs until the predicate fails for the first time, then emit the rest."""

    def __init__(self, upstream: AnyCursor, predicate: Predicate[tp.Any]) -> None:
        super().__init__(upstream)
        self.predicate = predicate
        self._dropping = True

    @tp.override
    def fetch(self) -> Fetched[tp.Any, tp.Any]:
        while (pair := self.pull()) is not Exhausted:
            if not self._dropping:
                return pair
            if not self.predicate(pair.value):
                self._dropping = False
                return pair
        return Exhausted

    @tp.override
    def _reset(self) -> None:
        super()._reset()
        self._dropping = True


class SliceStage(Stage[tp.Any, tp.Any]):
    """Skip `start` pairs, then emit up to `length` pairs (unbounded if None).

    A negative `start` emits nothing. Once `length` pairs were emitted the
    upstream is not pulled again.
    """

    def __init__(self, upstream: AnyCursor, start: int, length: int | None = None) -> None:
        check_non_negative("length", length)
        super().__init__(upstream)
        self.start = start
        self.length = length
        self._skipped = 0
        self._emitted = 0

    @tp.override
    def fetch(self) -> Fetched[tp.Any, tp.Any]:
        if self.start < 0 or (self.length is not None and self._emitted >= self.length):
            return Exhausted
        while self._skipped < self.start:
            if self.pull() is Exhausted:
                return Exhausted
            self._skipped += 1
        if (pair := self.pull()) is Exhausted:
            return Exhausted
        self._emitted += 1
        return pair

    @tp.override
    def size(self) -> int | None:
        total = self.upstream.size()
        if total is None:
            return None
        if self.start < 0:
            return 0
        remaining = max(total - self.start, 0)
        return remaining if self.length is None else min(remaining, self.length)

    @tp.override
    def _reset(self) -> None:
        super()._reset()
        self._skipped = 0
        self._emitted = 0


class ChainStage(Cursor[tp.Any, tp.Any]):
    """Emit the pairs of each upstream in turn; keys are left as-is.

    A restartable upstream is rewound right before it is first read, so the
    same upstream may appear more than once.
    """

    def __init__(self, upstreams: Sequence[AnyCursor]) -> None:
        super().__init__()
        self.upstreams = tuple(upstreams)
        self._index = 0
        self._entered = -1

    @tp.override
    def fetch(self) -> Fetched[tp.Any, tp.Any]:
        while self._index < len(self.upstreams):
            upstream = self.upstreams[self._index]
            if self._entered < self._index:
                self._entered = self._index
                if upstream.restartable:
                    upstream.restart()
            if (pair := next(upstream, Exhausted)) is not Exhausted:
                return pair
            self._index += 1
        return Exhausted

    @property
    @tp.override
    def restartable(self) -> bool:
        return all(upstream.restartable for upstream in self.upstreams)

    @tp.override
    def size(self) -> int | None:
        sizes = [upstream.size() for upstream in self.upstreams]
        return None if None in sizes else sum(tp.cast(list[int], sizes))

    @tp.override
    def _reset(self) -> None:
        self._index = 0
        self._entered = -1


class FlatMapStage(Stage[tp.Any, tp.Any]):
    """Replace each pair with the pairs of the source `func(value)` returns.

    Inner keys are used as emitted by the inner source.
    """

    def __init__(self, upstream: AnyCursor, func: Callable[[tp.Any], object]) -> None:
        super().__init__(upstream)
        self.func = func
        self._inner: AnyCursor | None = None

    @tp.override
    def fetch(self) -> Fetched[tp.Any, tp.Any]:
        while True:
            if self._inner is not None:
                if (pair := next(self._inner, Exhausted)) is not Exhausted:
                    return pair
                self._inner = None
            if (outer := self.pull()) is Exhausted:
                return Exhausted
            self._inner = to_cursor(self.func(outer.value))

    @tp.override
    def _reset(self) -> None:
        super()._reset()
        self._inner = None


class FlattenStage(PositionalStage[tp.Any]):
    """Expand nested values, up to `levels` deep (unbounded if None), keyed by position."""

    def __init__(self, upstream: AnyCursor, levels: int | None = None) -> None:
        check_non_negative("levels", levels)
        super().__init__(upstream)
        self.levels = levels
        self._stack: list[Iterator[object]] = []

    def _expandable(self, value: object, depth: int) -> bool:
        return (self.levels is None or depth < self.levels) and is_nested(value)

    @tp.override
    def fetch(self) -> Fetched[int, tp.Any]:
        while True:
            if self._stack:
                value = next(self._stack[-1], Exhausted)
                if value is Exhausted:
                    _ = self._stack.pop()
                    continue
                depth = len(self._stack)
            else:
                if (pair := self.pull()) is Exhausted:
                    return Exhausted
                value, depth = pair.value, 0
            if self._expandable(value, depth):
                self._stack.append(iter_values(value))
                continue
            return self.emit(value)

    @tp.override
    def _reset(self) -> None:
        super()._reset()
        self._stack.clear()


class ChunkStage(PositionalStage[list[tp.Any] | dict[tp.Any, tp.Any]]):
    """Group consecutive pairs into lists of `size` values, or dicts when keys are kept.

    Each group is materialized eagerly; the last one may be shorter.
    """

    def __init__(self, upstream: AnyCursor, size: int, preserve_keys: bool = False) -> None:
        if size <= 0:
            raise ValueError(f"Chunk size must be positive, got {size!r}")
        super().__init__(upstream)
        self.chunk_size = size
        self.preserve_keys = preserve_keys

    @tp.override
    def fetch(self) -> Fetched[int, list[tp.Any] | dict[tp.Any, tp.Any]]:
        group: list[Pair[tp.Any, tp.Any]] = []
        while len(group) < self.chunk_size and (pair := self.pull()) is not Exhausted:
            group.append(pair)
        if not group:
            return Exhausted
        if self.preserve_keys:
            return self.emit(dict(group))
        return self.emit([pair.value for pair in group])

    @tp.override
    def size(self) -> int | None:
        total = self.upstream.size()
        return None if total is None else -(-total // self.chunk_size)
