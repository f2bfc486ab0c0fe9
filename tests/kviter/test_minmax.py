import pytest

from kviter.minmax import fold_max, fold_min


def test_fold_max():
    assert fold_max([5, 3, 8, 1]) == 8
    assert fold_max([]) is None
    assert fold_max(["b", "a", "c"], lambda a, b: a > b) == "a"


def test_fold_max_does_not_skip_none():
    assert fold_max([None, 2]) == 2
    with pytest.raises(TypeError):
        _ = fold_max([2, None])


def test_fold_min():
    assert fold_min([5, 3, 8, 1]) == 1
    assert fold_min([]) is None
    assert fold_min([3, None, 1, None]) == 1
    assert fold_min([None, None]) is None
    assert fold_min(["b", "a", "c"], lambda a, b: a > b) == "c"
