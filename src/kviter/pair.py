from __future__ import annotations

import typing as tp


class Pair[K, V](tp.NamedTuple):
    """A single (key, value) unit of iteration.

    Example:
        >>> pair = Pair("a", 1)
        >>> pair
        Pair(key='a', value=1)
        >>> key, value = pair
        >>> key, value
        ('a', 1)
        >>> pair.flipped()
        Pair(key=1, value='a')
    """

    key: K
    value: V

    def flipped(self) -> Pair[V, K]:
        return Pair(self.value, self.key)
