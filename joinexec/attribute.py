"""Column data types and named attributes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DataType(Enum):
    """Physical type of a column."""

    INT32 = 0
    INT64 = 1
    FP64 = 2
    VARCHAR = 3

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Attribute:
    """A named, typed column of a table schema."""

    type: DataType
    name: str