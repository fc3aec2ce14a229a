import pytest

from columnstore.common import StrLocation
from columnstore.match import (
    MAX_BATCH,
    match_eq,
    match_gt,
    match_lt,
    match_str_contains,
    match_str_eq,
    match_str_gt,
    match_str_lt,
)


def _bits(mask):
    return {i for i in range(MAX_BATCH) if mask >> i & 1}


def _mask_of(positions):
    return sum(1 << i for i in positions)


def test_eq_small_batch():
    assert match_eq([1, 2, 1], 1) == 0b101


@pytest.mark.parametrize("positions", [set(), {0}, {63}, {0, 17, 40, 63}])
def test_eq_full_batch_positions(positions):
    values = [7 if i in positions else 3 for i in range(64)]
    assert match_eq(values, 7) == _mask_of(positions)


def test_full_batch_all_equal_sets_every_bit():
    assert match_eq([5] * 64, 5) == (1 << 64) - 1


def test_lt_gt_eq_partition_integers():
    values = list(range(-32, 32))
    eq = match_eq(values, 3)
    lt = match_lt(values, 3)
    gt = match_gt(values, 3)
    assert eq & lt == 0
    assert eq & gt == 0
    assert lt & gt == 0
    assert eq | lt | gt == (1 << 64) - 1
    assert _bits(lt) == {i for i, v in enumerate(values) if v < 3}


def test_floats_and_nan():
    nan = float("nan")
    values = [1.5, nan, 2.5, -1.0]
    assert _bits(match_lt(values, 2.0)) == {0, 3}
    assert _bits(match_gt(values, 2.0)) == {2}
    assert 1 not in _bits(match_eq(values, nan))


def test_empty_batch_gives_empty_mask():
    assert match_eq([], 1) == 0
    assert match_str_eq([], "a") == 0


def test_batch_larger_than_64_rejected():
    with pytest.raises(ValueError):
        match_eq([0] * 65, 0)
    with pytest.raises(ValueError):
        match_str_eq(["a"] * 65, "a")


def test_str_eq_case_sensitivity():
    strings = ["foo", "FOO", "fo", "food"]
    assert _bits(match_str_eq(strings, "foo", True)) == {0}
    assert _bits(match_str_eq(strings, "foo", False)) == {0, 1}


def test_str_eq_accepts_bytes():
    assert _bits(match_str_eq([b"abc", "abc", "abd"], b"abc")) == {0, 1}


def test_str_lt_gt_ordering():
    strings = ["apple", "banana", "cherry", "banana"]
    assert _bits(match_str_lt(strings, "banana")) == {0}
    assert _bits(match_str_gt(strings, "banana")) == {2}
    eq = match_str_eq(strings, "banana")
    assert eq | match_str_lt(strings, "banana") | match_str_gt(strings, "banana") == _mask_of(range(4))


def test_str_ordering_case_insensitive():
    strings = ["Apple", "banana", "CHERRY"]
    assert _bits(match_str_lt(strings, "BANANA", False)) == {0}
    assert _bits(match_str_gt(strings, "BANANA", False)) == {2}
    # uppercase sorts before lowercase byte-wise
    assert _bits(match_str_gt(strings, "BANANA", True)) == {1}


def test_case_insensitive_is_superset():
    strings = ["Hello", "hello", "HELLO", "world"]
    sensitive = match_str_eq(strings, "hello", True)
    insensitive = match_str_eq(strings, "hello", False)
    assert sensitive & insensitive == sensitive
    assert _bits(insensitive) == {0, 1, 2}


@pytest.mark.parametrize(
    "location, expected",
    [
        (StrLocation.START, {0, 3}),
        (StrLocation.END, {1, 3}),
        (StrLocation.ANY, {0, 1, 2, 3}),
    ],
)
def test_str_contains_locations(location, expected):
    strings = ["abxx", "xxab", "xabx", "ab", "a"]
    assert _bits(match_str_contains(strings, "ab", True, location)) == expected


def test_str_contains_case_insensitive():
    strings = ["FooBar", "foobar", "BAR"]
    assert _bits(match_str_contains(strings, "bar", True, StrLocation.END)) == {1}
    assert _bits(match_str_contains(strings, "bar", False, StrLocation.END)) == {0, 1, 2}
    assert _bits(match_str_contains(strings, "FOO", False, StrLocation.START)) == {0, 1}


def test_str_contains_empty_needle_matches_all():
    strings = ["", "a", "bc"]
    for location in StrLocation:
        assert _bits(match_str_contains(strings, "", True, location)) == {0, 1, 2}


def test_str_contains_invalid_location():
    with pytest.raises(ValueError):
        match_str_contains(["a"], "a", True, 42)


def test_str_rejects_non_string():
    with pytest.raises(TypeError):
        match_str_eq([1, 2], "1")