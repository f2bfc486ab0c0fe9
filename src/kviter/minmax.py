from collections.abc import Iterable
from operator import lt

from kviter.wtyping import LessThan


def fold_max[T](values: Iterable[T | None], less: LessThan[T] = lt) -> T | None:
    """Largest value by `less`, folding from None.

    None is only replaced, never skipped: a None after the first real value
    is handed to `less` like any other value.

    Example:
        >>> fold_max([5, 3, 8, 1]), fold_max([])
        (8, None)
    """
    result: T | None = None
    for item in values:
        if result is None or less(result, item):  # pyright: ignore[reportArgumentType]
            result = item
    return result


def fold_min[T](values: Iterable[T | None], less: LessThan[T] = lt) -> T | None:
    """Smallest value by `less`, folding from None and skipping None values.

    Example:
        >>> fold_min([5, None, 3, 8]), fold_min([None])
        (3, None)
    """
    result: T | None = None
    for item in values:
        if item is None:
            continue
        if result is None or less(item, result):
            result = item
    return result
