import pytest

from securesheets_cli.formatting import format_age, parse_pairs


def test_format_age_buckets() -> None:
    assert format_age(None) == "-"
    assert format_age(42) == "42s"
    assert format_age(125) == "2m05s"
    assert format_age(3600 + 7 * 60) == "1h07m"


def test_parse_pairs_keeps_equals_in_value() -> None:
    assert parse_pairs(["q=a=b", "sheet=Sheet2"]) == {"q": "a=b", "sheet": "Sheet2"}


def test_parse_pairs_later_key_wins() -> None:
    assert parse_pairs(["x=1", "x=2"]) == {"x": "2"}


def test_parse_pairs_rejects_missing_separator() -> None:
    with pytest.raises(ValueError):
        parse_pairs(["nope"])
