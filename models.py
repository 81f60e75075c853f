from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List

import config

MORNING = "morning"
EVENING = "evening"
SHIFTS = (MORNING, EVENING)


@dataclass
class Farmer:
    id: Optional[str] = None
    farmer_no: int = 0
    name: str = ""
    # Rs per fat-unit
    fixed_rate: float = field(default_factory=lambda: config.DEFAULT_FIXED_RATE)
    advance_balance: float = 0.0
    created_at: str = ""

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()


@dataclass
class DailyLog:
    id: Optional[str] = None
    date: str = ""  # BS date, YYYY-MM-DD
    farmer_id: str = ""
    farmer_no: int = 0
    shift: str = MORNING
    milk: float = 0.0  # litres
    fat: float = 0.0  # percentage

    def __post_init__(self):
        if self.shift not in SHIFTS:
            raise ValueError(f"Unknown shift: {self.shift!r}")


@dataclass
class Advance:
    id: Optional[str] = None
    farmer_id: str = ""
    farmer_no: int = 0
    date: str = ""
    amount: float = 0.0
    remarks: str = ""


@dataclass
class DailyEntry:
    date: str
    morning_milk: float = 0.0
    morning_fat: float = 0.0
    evening_milk: float = 0.0
    evening_fat: float = 0.0
    total_fat_units: float = 0.0
    amount: float = 0.0
    remarks: str = ""


@dataclass
class FarmerStatement:
    farmer: Farmer
    entries: List[DailyEntry] = field(default_factory=list)
    total_fat_units: float = 0.0
    total_amount: float = 0.0
    pending_advance: float = 0.0
    start_date: str = ""
    end_date: str = ""
