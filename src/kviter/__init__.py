import logging

from kviter.chain import EagerCollection, LazyPipeline
from kviter.cursor import Cursor, IterableCursor, MappingCursor, PairsCursor, SequenceCursor
from kviter.defaults import Default, Exhausted, NotFound
from kviter.errors import EmptyCollectionError, KvIterError, UnsupportedSourceError
from kviter.pair import Pair
from kviter.sources import SourceKind, to_cursor

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Cursor",
    "Default",
    "EagerCollection",
    "EmptyCollectionError",
    "Exhausted",
    "IterableCursor",
    "KvIterError",
    "LazyPipeline",
    "MappingCursor",
    "NotFound",
    "Pair",
    "PairsCursor",
    "SequenceCursor",
    "SourceKind",
    "UnsupportedSourceError",
    "to_cursor",
]
