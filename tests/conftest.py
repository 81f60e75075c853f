import pytest

from bs_calendar import BSCalendar
from database import DairyDatabase
from models import Farmer


@pytest.fixture
def db(tmp_path):
    return DairyDatabase(str(tmp_path / "dairy_test.db"))


@pytest.fixture
def calendar():
    return BSCalendar(today="2081-01-20")


@pytest.fixture
def make_farmer(db):
    """Insert a farmer and return the stored record."""

    def _make(farmer_no=1, name="Ram Bahadur", fixed_rate=16.0):
        farmer = db.add_farmer(Farmer(farmer_no=farmer_no, name=name, fixed_rate=fixed_rate))
        assert farmer is not None
        return farmer

    return _make
