"""Fat-unit billing: daily entries, per-farmer statements and advance balances.

Everything here is pure. Inputs are already-fetched farmers, logs and
advances; nothing is read from or written to the database.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple

from bs_calendar import BSCalendar
from models import (
    Advance, DailyEntry, DailyLog, Farmer, FarmerStatement, MORNING, EVENING
)

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round half-up to two decimals, the way amounts are printed."""
    return float(Decimal(repr(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def calculate_fat_units(morning_milk: float, morning_fat: float,
                        evening_milk: float, evening_fat: float) -> float:
    """Litres times fat percentage, summed over both shifts.

    The fat value is the raw percentage (5 L at 4.2% is 21.0 units).
    """
    return round2(morning_milk * morning_fat + evening_milk * evening_fat)


def calculate_amount(fat_units: float, rate: float) -> float:
    return round2(fat_units * rate)


def _index_logs(logs: Iterable[DailyLog]) -> Dict[Tuple[str, str, str], DailyLog]:
    # A duplicate (date, farmer, shift) should not exist; the first one seen wins.
    index = {}
    for log in logs:
        index.setdefault((log.date, log.farmer_id, log.shift), log)
    return index


def build_daily_entry(date: str, morning: Optional[DailyLog],
                      evening: Optional[DailyLog], rate: float) -> DailyEntry:
    """Join a day's two shift logs into one priced row. Missing shifts are zero."""
    morning_milk = morning.milk if morning else 0.0
    morning_fat = morning.fat if morning else 0.0
    evening_milk = evening.milk if evening else 0.0
    evening_fat = evening.fat if evening else 0.0

    fat_units = calculate_fat_units(morning_milk, morning_fat, evening_milk, evening_fat)
    return DailyEntry(
        date=date,
        morning_milk=morning_milk,
        morning_fat=morning_fat,
        evening_milk=evening_milk,
        evening_fat=evening_fat,
        total_fat_units=fat_units,
        amount=calculate_amount(fat_units, rate),
    )


def build_statements(farmers: List[Farmer], logs: Iterable[DailyLog],
                     start_date: str, end_date: str,
                     calendar: Optional[BSCalendar] = None) -> List[FarmerStatement]:
    """Build one statement per farmer over ``start_date``..``end_date``.

    ``logs`` may hold every log in the system; only those matching a
    farmer and a date in range are used. Statements come back in the
    order the farmers were given, with one entry per date even when
    nothing was collected that day.

    The pending advance is reported alongside the total and is never
    subtracted from it.
    """
    calendar = calendar or BSCalendar()
    dates = calendar.range_inclusive(start_date, end_date)
    index = _index_logs(logs)

    statements = []
    for farmer in farmers:
        entries = [
            build_daily_entry(
                date,
                index.get((date, farmer.id, MORNING)),
                index.get((date, farmer.id, EVENING)),
                farmer.fixed_rate,
            )
            for date in dates
        ]
        statements.append(FarmerStatement(
            farmer=farmer,
            entries=entries,
            total_fat_units=round2(sum(e.total_fat_units for e in entries)),
            total_amount=round2(sum(e.amount for e in entries)),
            pending_advance=round2(farmer.advance_balance),
            start_date=start_date,
            end_date=end_date,
        ))
    return statements


def grand_total(statements: Iterable[FarmerStatement]) -> float:
    """Sum of statement totals across farmers."""
    return round2(sum(s.total_amount for s in statements))


def total_advance_balance(advances: Iterable[Advance]) -> float:
    """Outstanding advance for a farmer: the sum of all their advances."""
    return round2(sum(a.amount for a in advances))


def next_farmer_no(farmers: Iterable[Farmer]) -> int:
    """Suggested number for a new farmer: highest existing + 1, or 1."""
    return max((f.farmer_no for f in farmers), default=0) + 1
