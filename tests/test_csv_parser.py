import pytest
from hypothesis import given
from hypothesis import strategies as st

from joinexec.csv_parser import (
    CSVError,
    CSVParser,
    InconsistentColumnsError,
    NoTrailingCommaError,
    QuoteNotClosedError,
)


def parse(chunks, **options):
    fields = []
    parser = CSVParser(lambda col, row, text: fields.append((row, col, text)), **options)
    for chunk in chunks:
        parser.execute(chunk)
    parser.finish()
    rows = []
    for row, col, text in fields:
        while len(rows) <= row:
            rows.append([])
        assert col == len(rows[row])
        rows[row].append(text)
    return rows


def test_simple_records():
    assert parse(["a,b\nc,d\n"]) == [["a", "b"], ["c", "d"]]


def test_final_record_without_newline_is_flushed():
    assert parse(["a,b\nc,d"]) == [["a", "b"], ["c", "d"]]


def test_empty_fields():
    assert parse([",x,\n,,\n"]) == [["", "x", ""], ["", "", ""]]


def test_quoted_field_keeps_separators():
    assert parse(['"a,b","c\nd"\n']) == [["a,b", "c\nd"]]


def test_doubled_quote_inside_quotes():
    assert parse(['"he said ""hi"""\n']) == [['he said "hi"']]


def test_crlf_and_cr_line_endings():
    assert parse(["a\r\nb\rc\n"]) == [["a"], ["b"], ["c"]]


def test_crlf_split_across_chunks():
    assert parse(["a\r", "\nb\r", "\n"]) == [["a"], ["b"]]


def test_cr_at_end_of_input():
    assert parse(["a,b\r"]) == [["a", "b"]]


def test_doubled_quote_split_across_chunks():
    assert parse(['"x"', '"y"\n']) == [['x"y']]


def test_backslash_escape_inside_quotes():
    rows = parse(['"a\\"b","c\\\\d"\n'], escape="\\")
    assert rows == [['a"b', "c\\d"]]


def test_backslash_before_other_char_is_kept():
    assert parse(['"a\\nb"\n'], escape="\\") == [["a\\nb"]]


def test_backslash_outside_quotes_is_literal():
    assert parse(["x\\y,z\n"], escape="\\") == [["x\\y", "z"]]


def test_backslash_escape_split_across_chunks():
    assert parse(['"a\\', '"b"\n'], escape="\\") == [['a"b']]


def test_custom_separator():
    assert parse(["a|b,c\n"], comma="|") == [["a", "b,c"]]


def test_trailing_comma_mode():
    rows = parse(["a,b,\nc,d,\n"], has_trailing_comma=True)
    assert rows == [["a", "b"], ["c", "d"]]


def test_trailing_comma_missing_raises():
    parser = CSVParser(lambda *_: None, has_trailing_comma=True)
    with pytest.raises(NoTrailingCommaError):
        parser.execute("a,b\n")


def test_inconsistent_columns_raises():
    parser = CSVParser(lambda *_: None)
    with pytest.raises(InconsistentColumnsError):
        parser.execute("a,b\nc\n")


def test_inconsistent_columns_in_trailing_comma_mode():
    parser = CSVParser(lambda *_: None, has_trailing_comma=True)
    with pytest.raises(InconsistentColumnsError):
        parser.execute("a,b,\nc,\n")


def test_unclosed_quote_raises_on_finish():
    parser = CSVParser(lambda *_: None)
    parser.execute('"abc')
    with pytest.raises(QuoteNotClosedError):
        parser.finish()


def test_missing_trailing_comma_caught_as_csv_error():
    parser = CSVParser(lambda *_: None, has_trailing_comma=True)
    with pytest.raises(CSVError) as info:
        parser.execute("a,b\n")
    assert isinstance(info.value, NoTrailingCommaError)


def test_inconsistent_columns_caught_as_csv_error():
    parser = CSVParser(lambda *_: None)
    with pytest.raises(CSVError) as info:
        parser.execute("a,b\nc\n")
    assert isinstance(info.value, InconsistentColumnsError)


def test_unclosed_quote_caught_as_value_error():
    parser = CSVParser(lambda *_: None)
    parser.execute('"abc')
    with pytest.raises(ValueError) as info:
        parser.finish()
    assert isinstance(info.value, QuoteNotClosedError)


def test_rejects_multi_character_separator():
    with pytest.raises(ValueError):
        CSVParser(lambda *_: None, comma=",,")


SAMPLE = 'id,"na,me",note\r\n1,"say ""hi""",x\n2,,"multi\nline"\r3,plain,""\n'
SAMPLE_ROWS = [
    ["id", "na,me", "note"],
    ["1", 'say "hi"', "x"],
    ["2", "", "multi\nline"],
    ["3", "plain", ""],
]


def test_sample_parses_whole():
    assert parse([SAMPLE]) == SAMPLE_ROWS


@given(st.lists(st.integers(min_value=0, max_value=len(SAMPLE)), max_size=6))
def test_chunking_does_not_change_result(cuts):
    points = sorted(set(cuts))
    bounds = [0, *points, len(SAMPLE)]
    chunks = [SAMPLE[a:b] for a, b in zip(bounds, bounds[1:])]
    assert parse(chunks) == SAMPLE_ROWS


@given(
    st.lists(
        st.lists(st.text(alphabet='ab,"\n\r ', max_size=6), min_size=3, max_size=3),
        min_size=1,
        max_size=5,
    )
)
def test_quoted_round_trip(rows):
    text = "".join(
        ",".join('"' + field.replace('"', '""') + '"' for field in row) + "\n"
        for row in rows
    )
    assert parse([text]) == rows