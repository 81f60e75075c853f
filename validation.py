"""Checks applied to form input before anything is written."""
from typing import Optional

from bs_calendar import is_valid_date_string, normalise


class ValidationError(ValueError):
    """Raised with a message that can be shown to the user as-is."""


def parse_number(raw, field_name: str) -> float:
    """Parse a form field into a non-negative number. Blank means zero."""
    if raw is None:
        return 0.0
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip()
        if not text:
            return 0.0
        try:
            value = float(text)
        except ValueError:
            raise ValidationError(f"{field_name} must be a number")
    if value < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return value


def is_blank(raw) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def validate_farmer(farmer_no, name: str, fixed_rate) -> tuple:
    """Return (farmer_no, name, fixed_rate) cleaned up, or raise."""
    if not name or not name.strip():
        raise ValidationError("Farmer name is required")
    try:
        number = int(farmer_no)
    except (TypeError, ValueError):
        raise ValidationError("Farmer number must be a whole number")
    if number <= 0:
        raise ValidationError("Farmer number must be positive")
    rate = parse_number(fixed_rate, "Fixed rate")
    return number, name.strip(), rate


def validate_advance(farmer_id: Optional[str], date: str, amount) -> tuple:
    """Return (date, amount) with the date zero-padded, or raise."""
    if not farmer_id:
        raise ValidationError("Please select a farmer")
    date = validate_date(date)
    try:
        value = parse_number(amount, "Amount")
    except ValidationError:
        raise ValidationError("Please enter a valid amount")
    if value <= 0:
        raise ValidationError("Please enter a valid amount")
    return date, value


def validate_date(date: str) -> str:
    """Return the date in zero-padded YYYY-MM-DD form, or raise.

    Stored dates are compared as strings, so '2081-1-20' must become
    '2081-01-20' before it is saved or queried.
    """
    if not is_valid_date_string(date or ""):
        raise ValidationError("Please enter a valid date (YYYY-MM-DD)")
    return normalise(date)
