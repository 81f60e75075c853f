import logging

from database import DairyDatabase
from models import Advance, DailyLog, Farmer, MORNING, EVENING
from validation import is_blank, parse_number, validate_date

logger = logging.getLogger(__name__)


def save_daily_row(db: DairyDatabase, farmer: Farmer, date: str,
                   morning_milk=None, morning_fat=None,
                   evening_milk=None, evening_fat=None, advance=None) -> bool:
    """Save one farmer's row from the daily entry sheet.

    A shift is written only if its milk or fat field was filled in. An
    advance is recorded only if a positive amount was entered. Returns
    True when every write that was attempted went through.

    Raises ValidationError before writing anything if a field is not a
    valid non-negative number.
    """
    date = validate_date(date)
    shifts = []
    for shift, milk, fat in ((MORNING, morning_milk, morning_fat),
                             (EVENING, evening_milk, evening_fat)):
        if is_blank(milk) and is_blank(fat):
            continue
        label = shift.capitalize()
        shifts.append(DailyLog(
            date=date,
            farmer_id=farmer.id,
            farmer_no=farmer.farmer_no,
            shift=shift,
            milk=parse_number(milk, f"{label} milk"),
            fat=parse_number(fat, f"{label} fat"),
        ))
    advance_amount = parse_number(advance, "Advance")

    success = True
    for log in shifts:
        if db.upsert_log(log) is None:
            success = False

    if advance_amount > 0:
        saved = db.add_advance(Advance(
            farmer_id=farmer.id,
            farmer_no=farmer.farmer_no,
            date=date,
            amount=advance_amount,
            remarks='',
        ))
        if saved is None:
            success = False

    if not success:
        logger.warning("Daily row for farmer #%s on %s only partly saved", farmer.farmer_no, date)
    return success
