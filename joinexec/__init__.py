"""In-memory query execution parts: typed columns, predicates, CSV parsing and hash joins."""

__version__ = "0.1.0"
__all__ = [
    "attribute",
    "common",
    "table_entity",
    "csv_parser",
    "statement",
    "execute",
    "inner_column",
]