"""Filter predicates evaluated on single records or on whole columns."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, Sequence, Union

from joinexec.attribute import DataType

Literal = Union[None, int, float, str]

_INT32_RANGE = 1 << 32
_INT32_HALF = 1 << 31


class Op(Enum):
    """Comparison operator of a :class:`Comparison`."""

    EQ = "="
    NEQ = "<>"
    LT = "<"
    GT = ">"
    LEQ = "<="
    GEQ = ">="
    LIKE = "LIKE"
    NOT_LIKE = "NOT LIKE"
    IS_NULL = "IS NULL"
    IS_NOT_NULL = "IS NOT NULL"


class LogicalOp(Enum):
    """Connective of a :class:`LogicalOperation`."""

    AND = "AND"
    OR = "OR"
    NOT = "NOT"


_COLUMN_METHODS = {
    Op.EQ: "equal",
    Op.NEQ: "not_equal",
    Op.LT: "less",
    Op.GT: "greater",
    Op.LEQ: "less_equal",
    Op.GEQ: "greater_equal",
    Op.LIKE: "like",
    Op.NOT_LIKE: "not_like",
}

_ORDERING = {
    Op.EQ: lambda a, b: a == b,
    Op.NEQ: lambda a, b: a != b,
    Op.LT: lambda a, b: a < b,
    Op.GT: lambda a, b: a > b,
    Op.LEQ: lambda a, b: a <= b,
    Op.GEQ: lambda a, b: a >= b,
}


@lru_cache(maxsize=256)
def _like_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.DOTALL)


def like_match(value: str, pattern: str) -> bool:
    """SQL ``LIKE``: ``%`` matches any run of characters, ``_`` exactly one."""
    return _like_regex(pattern).fullmatch(value) is not None


def bitmap_not(bitmap: bytes) -> bytes:
    """Invert every bit of a packed bitmap."""
    return bytes(~b & 0xFF for b in bitmap)


def _check_sizes(lhs: bytes, rhs: bytes) -> None:
    if len(lhs) != len(rhs):
        raise ValueError(f"bitmap sizes differ: {len(lhs)} and {len(rhs)}")


def bitmap_and(lhs: bytes, rhs: bytes) -> bytes:
    """Bitwise AND of two packed bitmaps of equal size."""
    _check_sizes(lhs, rhs)
    return bytes(a & b for a, b in zip(lhs, rhs))


def bitmap_or(lhs: bytes, rhs: bytes) -> bytes:
    """Bitwise OR of two packed bitmaps of equal size."""
    _check_sizes(lhs, rhs)
    return bytes(a | b for a, b in zip(lhs, rhs))


def _numeric(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _wrap_int32(value: int) -> int:
    return (value + _INT32_HALF) % _INT32_RANGE - _INT32_HALF


class Statement(ABC):
    """A predicate over one table.

    ``eval_record`` tests one row, given as a sequence of values where
    ``None`` is SQL NULL. ``eval_columns`` tests every row of a columnar
    table at once and returns a packed bitmap, bit ``i % 8`` of byte
    ``i // 8`` set for each matching row ``i``. Columns passed to it carry
    a ``type`` (:class:`DataType`), a packed validity ``bitmap`` and the
    comparison methods ``equal``, ``not_equal``, ``less``, ``greater``,
    ``less_equal``, ``greater_equal`` and, for text, ``like`` and
    ``not_like``.
    """

    @abstractmethod
    def eval_record(self, record: Sequence[Any]) -> bool:
        """Return whether the record satisfies the predicate."""

    @abstractmethod
    def eval_columns(self, columns: Sequence[Any]) -> bytes:
        """Return the bitmap of rows of ``columns`` that satisfy the predicate."""


@dataclass
class Comparison(Statement):
    """Compares column ``column`` with a literal ``value``."""

    column: int
    op: Op
    value: Literal = None

    def eval_columns(self, columns: Sequence[Any]) -> bytes:
        col = columns[self.column]
        if self.op is Op.IS_NULL:
            return bitmap_not(bytes(col.bitmap))
        if self.op is Op.IS_NOT_NULL:
            return bytes(col.bitmap)
        if self.op in (Op.LIKE, Op.NOT_LIKE) and col.type is not DataType.VARCHAR:
            raise ValueError(f"{self.op.value} needs a VARCHAR column, got {col.type}")
        return getattr(col, _COLUMN_METHODS[self.op])(self._typed_value(col.type))

    def _typed_value(self, data_type: DataType) -> Literal:
        value = self.value
        if data_type in (DataType.INT32, DataType.INT64):
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{data_type} column compared with {value!r}")
            return _wrap_int32(value) if data_type is DataType.INT32 else value
        if data_type is DataType.FP64:
            if not isinstance(value, float):
                raise TypeError(f"{data_type} column compared with {value!r}")
            return value
        if not isinstance(value, str):
            raise TypeError(f"{data_type} column compared with {value!r}")
        return value

    def eval_record(self, record: Sequence[Any]) -> bool:
        data = record[self.column]
        if self.op is Op.IS_NULL:
            return data is None
        if self.op is Op.IS_NOT_NULL:
            return data is not None

        if self.op in (Op.LIKE, Op.NOT_LIKE):
            if not isinstance(data, str) or not isinstance(self.value, str):
                return False
            matched = like_match(data, self.value)
            return matched if self.op is Op.LIKE else not matched

        compare = _ORDERING[self.op]
        record_num = _numeric(data)
        comp_num = _numeric(self.value)
        if record_num is not None and comp_num is not None:
            return compare(record_num, comp_num)
        if isinstance(data, str) and isinstance(self.value, str):
            return compare(data, self.value)
        return False


@dataclass
class LogicalOperation(Statement):
    """Combines child predicates with AND, OR or NOT."""

    op_type: LogicalOp
    children: list[Statement] = field(default_factory=list)

    @staticmethod
    def make_and(left: Statement, right: Statement) -> LogicalOperation:
        """Conjunction of two predicates."""
        return LogicalOperation(LogicalOp.AND, [left, right])

    @staticmethod
    def make_or(left: Statement, right: Statement) -> LogicalOperation:
        """Disjunction of two predicates."""
        return LogicalOperation(LogicalOp.OR, [left, right])

    @staticmethod
    def make_not(child: Statement) -> LogicalOperation:
        """Negation of a predicate."""
        return LogicalOperation(LogicalOp.NOT, [child])

    def eval_columns(self, columns: Sequence[Any]) -> bytes:
        if self.op_type is LogicalOp.AND:
            return bitmap_and(
                self.children[0].eval_columns(columns),
                self.children[1].eval_columns(columns),
            )
        if self.op_type is LogicalOp.OR:
            return bitmap_or(
                self.children[0].eval_columns(columns),
                self.children[1].eval_columns(columns),
            )
        return bitmap_not(self.children[0].eval_columns(columns))

    def eval_record(self, record: Sequence[Any]) -> bool:
        if self.op_type is LogicalOp.AND:
            return all(child.eval_record(record) for child in self.children)
        if self.op_type is LogicalOp.OR:
            return any(child.eval_record(record) for child in self.children)
        if len(self.children) != 1:
            return False
        return not self.children[0].eval_record(record)