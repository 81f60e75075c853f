import pytest

from validation import (
    ValidationError, is_blank, parse_number, validate_advance, validate_date, validate_farmer
)


@pytest.mark.parametrize("raw, expected", [
    ("5.5", 5.5),
    (" 4 ", 4.0),
    ("", 0.0),
    (None, 0.0),
    (3, 3.0),
    (2.5, 2.5),
])
def test_parse_number(raw, expected):
    assert parse_number(raw, "Milk") == expected


@pytest.mark.parametrize("raw", ["abc", "-0.5", -1])
def test_parse_number_rejects(raw):
    with pytest.raises(ValidationError):
        parse_number(raw, "Milk")


def test_is_blank():
    assert is_blank(None)
    assert is_blank("   ")
    assert not is_blank("0")
    assert not is_blank(0)


def test_validate_farmer_cleans_input():
    assert validate_farmer("3", "  Sita Devi ", "16.5") == (3, "Sita Devi", 16.5)


def test_validate_farmer_requires_name():
    with pytest.raises(ValidationError, match="name is required"):
        validate_farmer(1, "   ", 16.0)


@pytest.mark.parametrize("number", [0, -2, "x", None])
def test_validate_farmer_number(number):
    with pytest.raises(ValidationError):
        validate_farmer(number, "Sita", 16.0)


def test_validate_advance():
    assert validate_advance("f1", "2081-01-20", "500") == ("2081-01-20", 500.0)
    assert validate_advance("f1", "2081-1-5", "500") == ("2081-01-05", 500.0)


def test_validate_advance_requires_farmer():
    with pytest.raises(ValidationError, match="select a farmer"):
        validate_advance(None, "2081-01-20", "500")


@pytest.mark.parametrize("amount", ["", "0", "-5", "five"])
def test_validate_advance_amount(amount):
    with pytest.raises(ValidationError, match="valid amount"):
        validate_advance("f1", "2081-01-20", amount)


def test_validate_advance_date():
    with pytest.raises(ValidationError, match="valid date"):
        validate_advance("f1", "20/01/2081", "500")


def test_validate_date():
    assert validate_date("2081-01-20") == "2081-01-20"
    assert validate_date("2081-1-20") == "2081-01-20"
    assert validate_date(" 2081-01-5 ") == "2081-01-05"
    with pytest.raises(ValidationError):
        validate_date("")
