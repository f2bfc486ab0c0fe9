class KvIterError(Exception):
    """Base class for all exceptions raised by kviter."""

    pass


class EmptyCollectionError(KvIterError, IndexError):
    """Raised when an element is requested from a collection with no pairs."""

    def __init__(self, message: str = "Cannot determine first item. Collection is empty"):
        super().__init__(message)


class UnsupportedSourceError(KvIterError, TypeError):
    """Raised when a value cannot be turned into a cursor."""

    def __init__(self, source: object):
        self.source = source
        super().__init__(
            f"Cannot build a collection from {type(source).__name__!r}: "
            "expected a mapping, an iterable, a Cursor or an object with a cursor() method"
        )
