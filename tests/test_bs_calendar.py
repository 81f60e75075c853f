import pytest

import bs_calendar
from bs_calendar import (
    BSCalendar, format_display, format_nepali, is_valid_date_string, month_name, normalise
)


def test_today_is_configured_date(monkeypatch):
    monkeypatch.setattr(bs_calendar.config, "TODAY", "2081-1-20")

    assert BSCalendar().today() == "2081-01-20"
    assert BSCalendar(today="2080-12-05").today() == "2080-12-05"


def test_range_within_month(calendar):
    assert calendar.range_inclusive("2081-01-16", "2081-01-19") == [
        "2081-01-16", "2081-01-17", "2081-01-18", "2081-01-19"
    ]


def test_single_day_range(calendar):
    assert calendar.range_inclusive("2081-01-20", "2081-01-20") == ["2081-01-20"]


def test_range_across_month_runs_first_month_to_day_32(calendar):
    assert calendar.range_inclusive("2081-01-30", "2081-02-02") == [
        "2081-01-30", "2081-01-31", "2081-01-32", "2081-02-01", "2081-02-02"
    ]


def test_range_covers_whole_months_in_between(calendar):
    dates = calendar.range_inclusive("2081-01-31", "2081-03-01")

    assert dates[:2] == ["2081-01-31", "2081-01-32"]
    assert dates[2] == "2081-02-01"
    assert dates[33] == "2081-02-32"
    assert dates[-1] == "2081-03-01"
    assert len(dates) == 2 + 32 + 1


def test_range_across_year_end(calendar):
    assert calendar.range_inclusive("2080-12-32", "2081-01-01") == ["2080-12-32", "2081-01-01"]


def test_range_is_sorted_and_unique(calendar):
    dates = calendar.range_inclusive("2080-11-20", "2081-02-10")

    assert dates == sorted(dates)
    assert len(dates) == len(set(dates))


def test_reversed_range_is_empty(calendar):
    assert calendar.range_inclusive("2081-01-21", "2081-01-20") == []


def test_range_accepts_unpadded_dates(calendar):
    assert calendar.range_inclusive("2081-1-9", "2081-1-10") == ["2081-01-09", "2081-01-10"]


def test_range_rejects_garbage(calendar):
    with pytest.raises(ValueError):
        calendar.range_inclusive("20 Baishakh", "2081-01-20")


def test_month_names():
    assert month_name(1) == "Baishakh"
    assert month_name(12) == "Chaitra"
    assert month_name(1, nepali=True) == "बैशाख"
    assert BSCalendar(today="2081-01-01").month_name(10, nepali=True) == "माघ"


@pytest.mark.parametrize("month", [0, 13])
def test_month_name_out_of_range(month):
    with pytest.raises(ValueError):
        month_name(month)


def test_display_formats():
    assert format_display("2081-01-20") == "2081 Baishakh 20"
    assert format_nepali("2081-02-05") == "2081 जेठ 5"
    assert normalise("2081-1-5") == "2081-01-05"


@pytest.mark.parametrize("value, expected", [
    ("2081-01-20", True),
    ("2081-1-2", True),
    ("2081-12-32", True),
    ("2081-13-01", False),
    ("2081-00-10", False),
    ("2081-01-33", False),
    ("2081-01-00", False),
    ("", False),
    ("yesterday", False),
    (None, False),
])
def test_is_valid_date_string(value, expected):
    assert is_valid_date_string(value) is expected
