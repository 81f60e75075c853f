import pytest

from billing import build_statements
from daily_entry import save_daily_row
from models import MORNING, EVENING
from validation import ValidationError


def test_saves_both_shifts(db, make_farmer):
    farmer = make_farmer()

    assert save_daily_row(db, farmer, "2081-01-20", "5.0", "4.2", "4", "4.5")

    logs = {log.shift: log for log in db.list_logs_by_date("2081-01-20")}
    assert (logs[MORNING].milk, logs[MORNING].fat) == (5.0, 4.2)
    assert (logs[EVENING].milk, logs[EVENING].fat) == (4.0, 4.5)
    assert logs[MORNING].farmer_no == farmer.farmer_no


def test_blank_shift_is_not_written(db, make_farmer):
    farmer = make_farmer()

    assert save_daily_row(db, farmer, "2081-01-20", morning_milk="5.0", morning_fat="4.2",
                          evening_milk="", evening_fat="  ")

    assert [log.shift for log in db.list_logs_by_date("2081-01-20")] == [MORNING]


def test_missing_fat_counts_as_zero(db, make_farmer):
    farmer = make_farmer()

    assert save_daily_row(db, farmer, "2081-01-20", morning_milk="5.0")

    [log] = db.list_logs_by_date("2081-01-20")
    assert log.fat == 0.0


def test_advance_is_recorded_and_balance_updated(db, make_farmer):
    farmer = make_farmer()

    assert save_daily_row(db, farmer, "2081-01-20", advance="250")

    assert db.list_logs() == []
    [advance] = db.list_advances_by_farmer(farmer.id)
    assert advance.amount == 250.0
    assert advance.date == "2081-01-20"
    assert db.get_farmer(farmer.id).advance_balance == 250.0


def test_zero_advance_is_skipped(db, make_farmer):
    farmer = make_farmer()

    assert save_daily_row(db, farmer, "2081-01-20", "5", "4", advance="0")

    assert db.list_advances() == []


def test_resaving_row_overwrites(db, make_farmer):
    farmer = make_farmer()
    save_daily_row(db, farmer, "2081-01-20", "5.0", "4.2")
    save_daily_row(db, farmer, "2081-01-20", "6.0", "4.0")

    [log] = db.list_logs_by_date("2081-01-20")
    assert (log.milk, log.fat) == (6.0, 4.0)


@pytest.mark.parametrize("fields", [
    {"morning_milk": "abc"},
    {"evening_fat": "-1"},
    {"advance": "lots"},
])
def test_invalid_input_writes_nothing(db, make_farmer, fields):
    farmer = make_farmer()
    values = {"morning_milk": "5", "morning_fat": "4", "evening_milk": "4", "evening_fat": "4.5",
              "advance": "100"}
    values.update(fields)

    with pytest.raises(ValidationError):
        save_daily_row(db, farmer, "2081-01-20", **values)

    assert db.list_logs() == []
    assert db.list_advances() == []


def test_unpadded_date_is_billed(db, make_farmer, calendar):
    farmer = make_farmer()

    assert save_daily_row(db, farmer, "2081-1-20", "5", "4.2", "", "", advance="100")

    [log] = db.list_logs_by_date("2081-01-20")
    assert log.date == "2081-01-20"
    assert db.list_advances()[0].date == "2081-01-20"

    [statement] = build_statements([db.get_farmer(farmer.id)], db.list_logs(),
                                   "2081-01-20", "2081-01-20", calendar)
    assert statement.total_fat_units == 21.0
    assert statement.total_amount == 336.0


def test_invalid_date_writes_nothing(db, make_farmer):
    farmer = make_farmer()

    with pytest.raises(ValidationError):
        save_daily_row(db, farmer, "2081-14-01", "5", "4")

    assert db.list_logs() == []


def test_store_failure_reported(db, make_farmer, monkeypatch):
    farmer = make_farmer()
    monkeypatch.setattr(db, "upsert_log", lambda log: None)

    assert save_daily_row(db, farmer, "2081-01-20", "5", "4", advance="100") is False
    # the advance write is independent of the failed log
    assert len(db.list_advances()) == 1
