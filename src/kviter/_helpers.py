from collections import deque
from collections.abc import Iterable

from kviter.defaults import ATOMIC_ITERABLES
from kviter.wtyping import SupportsCursor

consume = deque[object](maxlen=0).extend


def is_nested(obj: object) -> bool:
    """Whether `obj` holds values that flattening should expand.

    Example:
        >>> is_nested([1, 2]), is_nested({"a": 1}), is_nested("ab"), is_nested(3)
        (True, True, False, False)
    """
    if isinstance(obj, ATOMIC_ITERABLES):
        return False
    return isinstance(obj, (Iterable, SupportsCursor))


def check_non_negative(name: str, value: int | None) -> None:
    if value is not None and value < 0:
        raise ValueError(f"{name} must be non-negative, got {value!r}")
