from __future__ import annotations

import typing as tp
from collections.abc import Callable

if tp.TYPE_CHECKING:
    from kviter.cursor import Cursor


@tp.runtime_checkable
class SupportsCursor[K, V](tp.Protocol):
    """Anything that can hand out a cursor over its pairs (an indirect source)."""

    def cursor(self) -> Cursor[K, V]: ...


type Predicate[T] = Callable[[T], object]
type LessThan[T] = Callable[[T, T], bool]
type KeyedMapper[K, V, R] = Callable[[V, K], R]
type Folder[K, V, A] = Callable[[A, V, K], A]
