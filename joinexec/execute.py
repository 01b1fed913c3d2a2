"""Hash join and projection over row-oriented intermediate results."""

from __future__ import annotations

import math
import struct
from typing import Any, Callable, Sequence

from joinexec.attribute import DataType

Row = list[Any]
OutputAttrs = Sequence[tuple[int, DataType]]

LEVEL2_CACHE_SIZE = 524288
MAX_BUCKETS = 128

_MASK64 = (1 << 64) - 1
_FNV_OFFSET = 14695981039346656037
_FNV_PRIME = 1099511628211

# Size of one hash-table entry: the key plus a 32-bit row index.
_BYTES_PER_ENTRY = {
    DataType.INT32: 4 + 4,
    DataType.INT64: 8 + 4,
    DataType.FP64: 8 + 4,
    DataType.VARCHAR: 32 + 4,
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_KEY_MATCHES: dict[DataType, Callable[[Any], bool]] = {
    DataType.INT32: _is_int,
    DataType.INT64: _is_int,
    DataType.FP64: lambda v: isinstance(v, float),
    DataType.VARCHAR: lambda v: isinstance(v, str),
}


def _fmix64(k: int) -> int:
    k &= _MASK64
    k ^= k >> 33
    k = (k * 0xFF51AFD7ED558CCD) & _MASK64
    k ^= k >> 33
    k = (k * 0xC4CEB9FE1A85EC53) & _MASK64
    k ^= k >> 33
    return k


def key_hash(key: Any, data_type: DataType) -> int:
    """64-bit hash of a join key of the given type."""
    if data_type in (DataType.INT32, DataType.INT64):
        return _fmix64(key)
    if data_type is DataType.FP64:
        (bits,) = struct.unpack("<Q", struct.pack("<d", float(key)))
        return _fmix64(bits)
    h = _FNV_OFFSET
    for byte in key.encode("utf-8"):
        # Bytes above 0x7f are sign-extended, as for a signed char.
        h ^= byte if byte < 0x80 else (byte | 0xFFFFFFFFFFFFFF00)
        h = (h * _FNV_PRIME) & _MASK64
    return h


def bucket_count(build_size: int, data_type: DataType) -> int:
    """Number of partitions so that each fits in the L2 cache (a power of two, 1..128)."""
    approx = math.ceil(build_size * _BYTES_PER_ENTRY[data_type] / LEVEL2_CACHE_SIZE)
    approx = min(max(approx, 1), MAX_BUCKETS)
    count = 1
    while count < approx:
        count <<= 1
    return count


def _partition(
    rows: Sequence[Row], col: int, data_type: DataType, mask: int
) -> list[list[tuple[Any, int]]]:
    matches = _KEY_MATCHES[data_type]
    buckets: list[list[tuple[Any, int]]] = [[] for _ in range(mask + 1)]
    for idx, row in enumerate(rows):
        key = row[col]
        if matches(key):
            buckets[key_hash(key, data_type) & mask].append((key, idx))
    return buckets


def hash_join(
    left: Sequence[Row],
    right: Sequence[Row],
    build_left: bool,
    left_attr: int,
    right_attr: int,
    key_type: DataType,
    outs: OutputAttrs,
) -> list[Row]:
    """Equi-join ``left`` and ``right`` on ``left_attr == right_attr``.

    Rows whose key is NULL or not of ``key_type`` never match. Each output
    row takes, for every ``(index, type)`` in ``outs``, column ``index`` of
    the concatenation of the left and the right row.
    """
    if not left or not right:
        return []

    if build_left:
        build_rows, probe_rows, build_col, probe_col = left, right, left_attr, right_attr
    else:
        build_rows, probe_rows, build_col, probe_col = right, left, right_attr, left_attr
    left_width = len(left[0])

    mask = bucket_count(len(build_rows), key_type) - 1
    build_buckets = _partition(build_rows, build_col, key_type, mask)
    probe_buckets = _partition(probe_rows, probe_col, key_type, mask)

    result: list[Row] = []
    for build_part, probe_part in zip(build_buckets, probe_buckets):
        if not build_part or not probe_part:
            continue
        table: dict[Any, list[int]] = {}
        for key, idx in build_part:
            table.setdefault(key, []).append(idx)
        for key, probe_idx in probe_part:
            if key != key:  # NaN equals nothing
                continue
            for build_idx in table.get(key, ()):
                l_idx, r_idx = (build_idx, probe_idx) if build_left else (probe_idx, build_idx)
                lrow, rrow = left[l_idx], right[r_idx]
                result.append(
                    [lrow[c] if c < left_width else rrow[c - left_width] for c, _ in outs]
                )
    return result


def project(rows: Sequence[Row], output_attrs: OutputAttrs) -> list[Row]:
    """Keep, in order, the columns named by ``output_attrs`` from every row."""
    return [[row[c] for c, _ in output_attrs] for row in rows]