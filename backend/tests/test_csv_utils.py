"""Tests for CSV export/import helpers."""
from sylvia.utils.csv_utils import parse_csv, to_csv


def test_to_csv_header_from_first_row_and_none_as_empty():
    text = to_csv([{"title": "Dune", "rating": 5}, {"title": "Emma", "rating": None}])
    assert text == "title,rating\nDune,5\nEmma,"


def test_to_csv_quotes_commas_and_quotes():
    text = to_csv([{"title": 'He said "hi", then left'}])
    assert text == 'title\n"He said ""hi"", then left"'


def test_to_csv_empty():
    assert to_csv([]) == ""


def test_to_csv_explicit_headers():
    assert to_csv([{"a": 1, "b": 2}], headers=["b"]) == "b\n2"


def test_round_trip_with_quoted_fields():
    rows = [
        {"title": "War, and Peace", "authors": 'Leo "the Great" Tolstoy', "pages": "1225"},
        {"title": "Plain", "authors": "", "pages": ""},
    ]
    assert parse_csv(to_csv(rows)) == rows


def test_round_trip_stringifies_numbers_and_nulls():
    rows = [{"title": "Dune", "rating": 5, "note": None}]
    assert parse_csv(to_csv(rows)) == [{"title": "Dune", "rating": "5", "note": ""}]


def test_parse_csv_crlf_blank_rows_trim_and_padding():
    text = " Title , Author \r\n\r\nDune , Frank Herbert\r\nEmma\r\n"
    assert parse_csv(text) == [
        {"Title": "Dune", "Author": "Frank Herbert"},
        {"Title": "Emma", "Author": ""},
    ]


def test_parse_csv_empty():
    assert parse_csv("") == []
    assert parse_csv("\n\n") == []
