"""Incremental CSV parser that reports fields through a callback."""

from __future__ import annotations

from typing import Callable

FieldCallback = Callable[[int, int, str], None]


class CSVError(ValueError):
    """Base class for malformed CSV input."""


class NoTrailingCommaError(CSVError):
    """A record did not end with the expected trailing comma."""


class InconsistentColumnsError(CSVError):
    """A record has a different number of columns than the first one."""


class QuoteNotClosedError(CSVError):
    """The input ended inside a quoted field."""


class CSVParser:
    """Streaming CSV parser.

    Feed text with :meth:`execute` in chunks of any size, then call
    :meth:`finish`. Every field is passed to ``on_field(col, row, text)``.
    A field may be quoted with ``"``; inside quotes, ``escape`` followed by
    ``"`` or by itself stands for that character. With the default escape
    ``"``, a doubled quote stands for one quote. Records end with ``\\n``,
    ``\\r`` or ``\\r\\n``. With ``has_trailing_comma`` every record must end
    with a field separator, which does not start a new field.
    """

    def __init__(
        self,
        on_field: FieldCallback,
        comma: str = ",",
        escape: str = '"',
        has_trailing_comma: bool = False,
    ) -> None:
        if len(comma) != 1 or len(escape) != 1:
            raise ValueError("comma and escape must be single characters")
        self._on_field = on_field
        self.comma = comma
        self.escape = escape
        self.has_trailing_comma = has_trailing_comma

        self._field: list[str] = []
        self._col = 0
        self._row = 0
        self._num_cols = 0
        self._quoted = False
        self._escaping = False
        self._newlining = False
        self._after_first_row = False
        self._after_field_sep = False
        self._after_record_sep = False

    def _emit_field(self) -> None:
        self._on_field(self._col, self._row, "".join(self._field))
        self._field.clear()

    def _end_record(self) -> None:
        if self.has_trailing_comma:
            if not self._after_field_sep:
                raise NoTrailingCommaError(
                    f"record {self._row} does not end with a trailing comma"
                )
            columns = self._col
        else:
            columns = self._col + 1

        if not self._after_first_row:
            self._after_first_row = True
            self._num_cols = columns
        elif columns != self._num_cols:
            raise InconsistentColumnsError(
                f"record {self._row} has {columns} columns, expected {self._num_cols}"
            )

        if not self.has_trailing_comma:
            self._emit_field()
        self._col = 0
        self._row += 1

    def _resume_escape(self, first: str) -> int:
        """Finish an escape split across chunks; return characters consumed."""
        consumed = 0
        if self.escape == '"':
            if first == '"':
                self._field.append('"')
                consumed = 1
            else:
                self._quoted = False
        elif first == '"' or first == self.escape:
            self._field.append(first)
            consumed = 1
        else:
            self._field.append(self.escape)
        self._escaping = False
        return consumed

    def execute(self, buffer: str) -> None:
        """Consume the next chunk of input."""
        n = len(buffer)
        i = 0
        if self._escaping and n:
            i = self._resume_escape(buffer[0])
        if self._newlining:
            if n and buffer[0] == "\n":
                i += 1
            self._end_record()
            self._after_record_sep = True
            self._newlining = False

        comma = self.comma
        escape = self.escape
        while i < n:
            c = buffer[i]
            after_field = False
            after_record = False
            if c == comma:
                if self._quoted:
                    self._field.append(c)
                else:
                    self._emit_field()
                    self._col += 1
                    after_field = True
            elif c == "\n" or c == "\r":
                if self._quoted:
                    self._field.append(c)
                else:
                    if c == "\r":
                        if i + 1 == n:
                            self._newlining = True
                            return
                        if buffer[i + 1] == "\n":
                            i += 1
                    self._end_record()
                    after_record = True
            elif c == '"':
                if escape == '"':
                    if not self._quoted:
                        self._quoted = True
                    else:
                        if i + 1 == n:
                            self._escaping = True
                            return
                        if buffer[i + 1] == '"':
                            i += 1
                            self._field.append(c)
                        else:
                            self._quoted = False
                else:
                    self._quoted = not self._quoted
            elif c == escape:
                if self._quoted:
                    if i + 1 == n:
                        self._escaping = True
                        return
                    following = buffer[i + 1]
                    if following == '"' or following == escape:
                        self._field.append(following)
                        i += 1
                    else:
                        self._field.append(escape)
                else:
                    self._field.append(c)
            else:
                self._field.append(c)
            self._after_field_sep = after_field
            self._after_record_sep = after_record
            i += 1

    def finish(self) -> None:
        """Signal the end of input, flushing a final unterminated record."""
        if self._quoted:
            raise QuoteNotClosedError("input ended inside a quoted field")
        if self._newlining:
            self.execute("")
        elif not self._after_record_sep:
            self.execute("\n")