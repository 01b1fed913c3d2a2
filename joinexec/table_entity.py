"""Identity of one occurrence of a table within a query."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class TableEntity:
    """A table name plus the index of its occurrence in the FROM clause.

    Entities order by table name first, then by occurrence index.
    """

    table: str
    id: int

    def __str__(self) -> str:
        return f"({self.table}, {self.id})"