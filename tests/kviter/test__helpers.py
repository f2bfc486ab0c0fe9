from collections import OrderedDict

import pytest

from kviter._helpers import check_non_negative, consume, is_nested
from kviter.chain import EagerCollection
from kviter.cursor import SequenceCursor


@pytest.mark.parametrize(
    "obj",
    [[], (1,), {"a": 1}, OrderedDict(), {1}, range(3), iter([]), SequenceCursor([]), EagerCollection()],
)
def test_is_nested_true(obj: object):
    assert is_nested(obj)


@pytest.mark.parametrize("obj", ["abc", b"abc", bytearray(b"a"), 1, 1.5, None, object()])
def test_is_nested_false(obj: object):
    assert not is_nested(obj)


def test_consume():
    it = iter(range(5))
    consume(it)
    assert next(it, None) is None


def test_check_non_negative():
    check_non_negative("n", 0)
    check_non_negative("n", None)
    with pytest.raises(ValueError, match="n must be non-negative, got -1"):
        check_non_negative("n", -1)
