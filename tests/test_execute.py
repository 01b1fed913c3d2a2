from collections import Counter

import pytest
from hypothesis import given
from hypothesis import strategies as st

from joinexec.attribute import DataType
from joinexec.execute import (
    LEVEL2_CACHE_SIZE,
    MAX_BUCKETS,
    bucket_count,
    hash_join,
    key_hash,
    project,
)


def multiset(rows):
    return Counter(tuple(r) for r in rows)


def test_key_hash_empty_string_is_fnv_offset():
    assert key_hash("", DataType.VARCHAR) == 14695981039346656037


def test_key_hash_known_fnv1a_value():
    assert key_hash("a", DataType.VARCHAR) == 0xAF63DC4C8601EC8C


def test_key_hash_zero_int_is_zero():
    assert key_hash(0, DataType.INT32) == 0


@given(st.integers(min_value=-(2**31), max_value=2**31 - 1))
def test_int_hash_same_for_both_widths(value):
    h = key_hash(value, DataType.INT32)
    assert h == key_hash(value, DataType.INT64)
    assert 0 <= h < 2**64


@given(st.text())
def test_string_hash_is_64_bit_and_deterministic(text):
    h = key_hash(text, DataType.VARCHAR)
    assert 0 <= h < 2**64
    assert h == key_hash(text, DataType.VARCHAR)


def test_float_hash_depends_on_bits():
    assert key_hash(1.5, DataType.FP64) == key_hash(1.5, DataType.FP64)
    assert key_hash(0.0, DataType.FP64) == 0
    assert key_hash(-0.0, DataType.FP64) != key_hash(0.0, DataType.FP64)


@given(st.integers(min_value=0, max_value=10**8), st.sampled_from(list(DataType)))
def test_bucket_count_is_bounded_power_of_two(size, data_type):
    n = bucket_count(size, data_type)
    assert 1 <= n <= MAX_BUCKETS
    assert n & (n - 1) == 0
    assert bucket_count(size + 1000, data_type) >= n


def test_bucket_count_limits():
    assert bucket_count(0, DataType.INT32) == 1
    assert bucket_count(LEVEL2_CACHE_SIZE * 1000, DataType.VARCHAR) == MAX_BUCKETS


def test_join_on_ints():
    left = [[1, "a"], [2, "b"], [2, "c"], [None, "d"]]
    right = [[2, 10.5], [3, 11.5], [None, 12.5]]
    outs = [(1, DataType.VARCHAR), (3, DataType.FP64)]
    for build_left in (True, False):
        result = hash_join(left, right, build_left, 0, 0, DataType.INT32, outs)
        assert multiset(result) == multiset([["b", 10.5], ["c", 10.5]])


def test_join_on_strings_and_output_order():
    left = [["x", 1], ["y", 2]]
    right = [[7, "y"], [8, "y"], [9, "z"]]
    outs = [(2, DataType.INT32), (0, DataType.VARCHAR), (1, DataType.INT32)]
    result = hash_join(left, right, False, 0, 1, DataType.VARCHAR, outs)
    assert multiset(result) == multiset([[7, "y", 2], [8, "y", 2]])


def test_join_ignores_keys_of_wrong_type():
    left = [["1"], [1], [True]]
    right = [[1]]
    result = hash_join(left, right, True, 0, 0, DataType.INT64, [(0, DataType.INT64)])
    assert result == [[1]]


def test_join_nan_never_matches():
    nan = float("nan")
    left = [[nan], [2.0]]
    right = [[nan], [2.0]]
    result = hash_join(left, right, True, 0, 0, DataType.FP64, [(0, DataType.FP64)])
    assert result == [[2.0]]


def test_join_with_empty_side_is_empty():
    rows = [[1]]
    assert hash_join([], rows, True, 0, 0, DataType.INT32, [(0, DataType.INT32)]) == []
    assert hash_join(rows, [], False, 0, 0, DataType.INT32, [(0, DataType.INT32)]) == []


def test_join_many_buckets_keeps_every_match():
    size = 20000
    left = [[f"k{i}", i] for i in range(size)]
    right = [[i, f"k{i}"] for i in range(size)]
    assert bucket_count(size, DataType.VARCHAR) > 1
    result = hash_join(
        left, right, True, 0, 1, DataType.VARCHAR, [(1, DataType.INT32), (2, DataType.INT32)]
    )
    assert len(result) == size
    assert all(a == b for a, b in result)


@given(
    st.lists(st.one_of(st.none(), st.integers(0, 5)), max_size=20),
    st.lists(st.one_of(st.none(), st.integers(0, 5)), max_size=20),
)
def test_join_is_symmetric_in_build_side(left_keys, right_keys):
    left = [[k, i] for i, k in enumerate(left_keys)]
    right = [[k, i] for i, k in enumerate(right_keys)]
    outs = [(0, DataType.INT32), (2, DataType.INT32), (1, DataType.INT32), (3, DataType.INT32)]
    a = hash_join(left, right, True, 0, 0, DataType.INT32, outs)
    b = hash_join(left, right, False, 0, 0, DataType.INT32, outs)
    assert multiset(a) == multiset(b)
    for lk, rk, li, ri in a:
        assert lk == rk and lk is not None
        assert left[li][0] == lk and right[ri][0] == rk


def test_project_selects_and_reorders():
    rows = [[1, "a", 2.0], [3, None, 4.0]]
    outs = [(2, DataType.FP64), (0, DataType.INT32)]
    assert project(rows, outs) == [[2.0, 1], [4.0, 3]]


@pytest.mark.parametrize("rows", [[], [[1, 2]]])
def test_project_preserves_row_count(rows):
    assert len(project(rows, [(0, DataType.INT32)])) == len(rows)