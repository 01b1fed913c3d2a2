"""Columnar storage with a validity bitmap and bitmap-producing filters."""

from __future__ import annotations

import operator
from dataclasses import dataclass, field
from typing import Any, Callable

from joinexec.attribute import DataType
from joinexec.statement import like_match

_INT_LIMITS = {
    DataType.INT32: (-(1 << 31), (1 << 31) - 1),
    DataType.INT64: (-(1 << 63), (1 << 63) - 1),
}


class _NullableColumn:
    """Values plus a packed validity bitmap: bit ``i % 8`` of byte ``i // 8``."""

    type: DataType

    def __init__(self) -> None:
        self.data: list[Any] = []
        self.bitmap = bytearray()

    def __len__(self) -> int:
        return len(self.data)

    def _append(self, value: Any, not_null: bool) -> None:
        idx = len(self.data)
        self.data.append(value)
        byte_idx, bit_idx = divmod(idx, 8)
        if byte_idx == len(self.bitmap):
            self.bitmap.append(1 if not_null else 0)
        elif not_null:
            self.bitmap[byte_idx] |= 1 << bit_idx
        else:
            self.bitmap[byte_idx] &= ~(1 << bit_idx) & 0xFF

    def _check_index(self, idx: int) -> None:
        if not 0 <= idx < len(self.data):
            raise IndexError(f"row {idx} out of range for column of {len(self.data)} rows")

    def is_not_null(self, idx: int) -> bool:
        """Return whether row ``idx`` holds a value."""
        self._check_index(idx)
        return bool(self.bitmap[idx >> 3] & (1 << (idx & 7)))

    def get(self, idx: int) -> Any:
        """Return the stored value of row ``idx`` (a default value for NULL rows)."""
        self._check_index(idx)
        return self.data[idx]

    def _filter(self, predicate: Callable[[Any], bool]) -> bytes:
        out = bytearray(len(self.bitmap))
        bitmap = self.bitmap
        for i, value in enumerate(self.data):
            byte_idx, mask = i >> 3, 1 << (i & 7)
            if bitmap[byte_idx] & mask and predicate(value):
                out[byte_idx] |= mask
        return bytes(out)

    def _compare(self, op: Callable[[Any, Any], bool], rhs: Any) -> bytes:
        return self._filter(lambda value: op(value, rhs))

    def less(self, rhs: Any) -> bytes:
        """Bitmap of non-NULL rows whose value is less than ``rhs``."""
        return self._compare(operator.lt, rhs)

    def greater(self, rhs: Any) -> bytes:
        """Bitmap of non-NULL rows whose value is greater than ``rhs``."""
        return self._compare(operator.gt, rhs)

    def less_equal(self, rhs: Any) -> bytes:
        """Bitmap of non-NULL rows whose value is at most ``rhs``."""
        return self._compare(operator.le, rhs)

    def greater_equal(self, rhs: Any) -> bytes:
        """Bitmap of non-NULL rows whose value is at least ``rhs``."""
        return self._compare(operator.ge, rhs)

    def equal(self, rhs: Any) -> bytes:
        """Bitmap of non-NULL rows whose value equals ``rhs``."""
        return self._compare(operator.eq, rhs)

    def not_equal(self, rhs: Any) -> bytes:
        """Bitmap of non-NULL rows whose value differs from ``rhs``."""
        return self._compare(operator.ne, rhs)


class InnerColumn(_NullableColumn):
    """A numeric column of type INT32, INT64 or FP64."""

    def __init__(self, data_type: DataType) -> None:
        if data_type is DataType.VARCHAR:
            raise ValueError("VARCHAR data needs a VarcharColumn")
        super().__init__()
        self.type = data_type

    def __len__(self) -> int:
        return len(self.data)

    def _convert(self, value: Any) -> int | float:
        if isinstance(value, bool):
            raise TypeError(f"{self.type} column cannot hold {value!r}")
        if self.type is DataType.FP64:
            if not isinstance(value, (int, float)):
                raise TypeError(f"{self.type} column cannot hold {value!r}")
            return float(value)
        if not isinstance(value, int):
            raise TypeError(f"{self.type} column cannot hold {value!r}")
        low, high = _INT_LIMITS[self.type]
        if not low <= value <= high:
            raise OverflowError(f"{value} does not fit in {self.type}")
        return value

    def push_back(self, value: int | float) -> None:
        """Append a non-NULL value."""
        self._append(self._convert(value), True)

    def push_back_null(self) -> None:
        """Append a NULL row."""
        self._append(0.0 if self.type is DataType.FP64 else 0, False)

    def is_not_null(self, idx: int) -> bool:
        return super().is_not_null(idx)

    def get(self, idx: int) -> int | float:
        return super().get(idx)

    def less(self, rhs: int | float) -> bytes:
        return super().less(rhs)

    def greater(self, rhs: int | float) -> bytes:
        return super().greater(rhs)

    def less_equal(self, rhs: int | float) -> bytes:
        return super().less_equal(rhs)

    def greater_equal(self, rhs: int | float) -> bytes:
        return super().greater_equal(rhs)

    def equal(self, rhs: int | float) -> bytes:
        return super().equal(rhs)

    def not_equal(self, rhs: int | float) -> bytes:
        return super().not_equal(rhs)


class VarcharColumn(_NullableColumn):
    """A text column; NULL rows read back as the empty string."""

    def __init__(self) -> None:
        super().__init__()
        self.type = DataType.VARCHAR

    def __len__(self) -> int:
        return len(self.data)

    def push_back(self, value: str) -> None:
        """Append a non-NULL string."""
        if not isinstance(value, str):
            raise TypeError(f"VARCHAR column cannot hold {value!r}")
        self._append(value, True)

    def push_back_null(self) -> None:
        """Append a NULL row."""
        self._append("", False)

    def is_not_null(self, idx: int) -> bool:
        return super().is_not_null(idx)

    def get(self, idx: int) -> str:
        return super().get(idx)

    def less(self, rhs: str) -> bytes:
        return super().less(rhs)

    def greater(self, rhs: str) -> bytes:
        return super().greater(rhs)

    def less_equal(self, rhs: str) -> bytes:
        return super().less_equal(rhs)

    def greater_equal(self, rhs: str) -> bytes:
        return super().greater_equal(rhs)

    def equal(self, rhs: str) -> bytes:
        return super().equal(rhs)

    def not_equal(self, rhs: str) -> bytes:
        return super().not_equal(rhs)

    def like(self, rhs: str) -> bytes:
        """Bitmap of non-NULL rows matching the SQL ``LIKE`` pattern ``rhs``."""
        return self._filter(lambda value: like_match(value, rhs))

    def not_like(self, rhs: str) -> bytes:
        """Bitmap of non-NULL rows not matching the SQL ``LIKE`` pattern ``rhs``."""
        return self._filter(lambda value: not like_match(value, rhs))


@dataclass
class InnerTable:
    """A columnar table: a row count and its columns."""

    rows: int = 0
    columns: list[InnerColumn | VarcharColumn] = field(default_factory=list)