"""Test splitting of single lines into fields."""
import pytest

from csvimporter.csv import ImporterConfig, ParseError, RowParseError, Tokenizer
from csvimporter.csv.abc import HeaderParseError
from csvimporter.csv.tokenizer import make_record

LINES = [
    ("a,b,c", ["a", "b", "c"]),
    ('a,"b,c",d', ["a", "b,c", "d"]),
    ('"he said ""hi"""', ['he said "hi"']),
    ('a,"",b', ["a", "", "b"]),
    ("", [""]),
    ("a,,", ["a", "", ""]),
    (",", ["", ""]),
    # Unterminated quote extends to the end of the line
    ('a,"b,c', ["a", "b,c"]),
    # Quotes in the middle of a field only toggle the quoted state
    ('a"b,c"d,e', ["ab,cd", "e"]),
    (" a , b ,c ", ["a", "b", "c"]),
    ('" padded "', ["padded"]),
]


@pytest.mark.parametrize("line,expected", LINES)
def test_parse_line(line, expected):
    assert Tokenizer().parse_line(line) == expected


def test_no_trim():
    tok = Tokenizer(trim=False)
    assert tok(" a , b ") == [" a ", " b "]
    assert tok('" q ",x') == [" q ", "x"]


@pytest.mark.parametrize("delimiter", [";", "\t", "|"])
def test_delimiters(delimiter):
    tok = Tokenizer(delimiter=delimiter)
    line = delimiter.join(["a", f'"b{delimiter}c"', "d,e"])
    assert tok(line) == ["a", f"b{delimiter}c", "d,e"]


def test_from_config():
    config = ImporterConfig(delimiter=";", trim_fields=False, field_size_limit=10)
    assert Tokenizer.from_config(config) == Tokenizer(";", False, 10)


def test_field_size_limit():
    tok = Tokenizer(field_size_limit=3)
    assert tok("abc,def") == ["abc", "def"]

    with pytest.raises(RowParseError):
        tok("abcd,e")

    with pytest.raises(HeaderParseError):
        tok.parse_header("abcd,e")


def test_make_record_pads():
    errors = []
    record = make_record(["a", "b", "c"], ["1"], row=4, errors=errors)
    assert record == {"a": "1", "b": "", "c": ""}
    assert [(e.row, e.field) for e in errors] == [(4, "b"), (4, "c")]
    assert all(isinstance(e, ParseError) for e in errors)


def test_make_record_surplus_and_raw():
    assert make_record(["a"], ["1", "2"]) == {"a": "1"}
    assert make_record(None, ["1", "2"]) == ["1", "2"]
    assert make_record([], ["1"]) == {}


def test_make_record_duplicate_headers():
    errors = []
    assert make_record(["a", "a"], ["x"], row=1, errors=errors) == {"a": "x"}
    assert errors == []

    assert make_record(["a", "b", "a"], ["1"], row=2, errors=errors) == {"a": "1", "b": ""}
    assert [(e.row, e.field) for e in errors] == [(2, "b")]

    assert make_record(["a", "a"], ["x", "y"]) == {"a": "y"}
