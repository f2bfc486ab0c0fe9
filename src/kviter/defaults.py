import enum
import typing as tp


class Default(enum.Enum):
    """Sentinel values used as defaults."""

    Exhausted = enum.auto()
    NotFound = enum.auto()
    Unavailable = enum.auto()


# TODO: Replace with enum.global_enum if ever supported in pyright
Exhausted: tp.Literal[Default.Exhausted] = Default.Exhausted
NotFound: tp.Literal[Default.NotFound] = Default.NotFound
Unavailable: tp.Literal[Default.Unavailable] = Default.Unavailable

# strings and bytes are iterable, but never treated as nested collections
ATOMIC_ITERABLES: tuple[type, ...] = (str, bytes, bytearray)
