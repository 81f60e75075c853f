import logging
import sqlite3
import uuid
from contextlib import contextmanager
from typing import List, Optional

import billing
from bs_calendar import normalise
from models import Farmer, DailyLog, Advance

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


class DairyDatabase:
    """sqlite store for farmers, daily shift logs and advances.

    Public methods never raise on a database error: the error is logged and
    a sentinel comes back instead (None for a single record, [] for a list,
    False for an update or delete).
    """

    def __init__(self, db_path="dairy_cooperative.db"):
        """Initialize the database connection and create tables if they don't exist."""
        self.db_path = db_path
        self.conn = None
        self.cursor = None
        self.initialize_database()

    def connect(self):
        """Establish connection to the database."""
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self.cursor = self.conn.cursor()

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            self.cursor = None

    @contextmanager
    def session(self):
        """Open a connection, commit on success, roll back on error."""
        self.connect()
        try:
            yield self.cursor
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        finally:
            self.close()

    def initialize_database(self):
        """Create necessary tables if they don't exist."""
        with self.session() as cursor:
            cursor.execute('''
            CREATE TABLE IF NOT EXISTS farmers (
                id TEXT PRIMARY KEY,
                farmer_no INTEGER NOT NULL UNIQUE,
                name TEXT NOT NULL,
                fixed_rate REAL NOT NULL,
                advance_balance REAL NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            )
            ''')

            cursor.execute('''
            CREATE TABLE IF NOT EXISTS daily_logs (
                id TEXT PRIMARY KEY,
                date TEXT NOT NULL,
                farmer_id TEXT NOT NULL,
                farmer_no INTEGER NOT NULL,
                shift TEXT NOT NULL CHECK (shift IN ('morning', 'evening')),
                milk REAL NOT NULL DEFAULT 0,
                fat REAL NOT NULL DEFAULT 0,
                UNIQUE (date, farmer_id, shift)
            )
            ''')

            cursor.execute('''
            CREATE TABLE IF NOT EXISTS advances (
                id TEXT PRIMARY KEY,
                farmer_id TEXT NOT NULL,
                farmer_no INTEGER NOT NULL,
                date TEXT NOT NULL,
                amount REAL NOT NULL CHECK (amount > 0),
                remarks TEXT NOT NULL DEFAULT ''
            )
            ''')

    # Row mapping
    @staticmethod
    def _farmer_from_row(row) -> Farmer:
        return Farmer(
            id=row['id'],
            farmer_no=row['farmer_no'],
            name=row['name'],
            fixed_rate=float(row['fixed_rate']),
            advance_balance=float(row['advance_balance']),
            created_at=row['created_at']
        )

    @staticmethod
    def _log_from_row(row) -> DailyLog:
        return DailyLog(
            id=row['id'],
            date=row['date'],
            farmer_id=row['farmer_id'],
            farmer_no=row['farmer_no'],
            shift=row['shift'],
            milk=float(row['milk']),
            fat=float(row['fat'])
        )

    @staticmethod
    def _advance_from_row(row) -> Advance:
        return Advance(
            id=row['id'],
            farmer_id=row['farmer_id'],
            farmer_no=row['farmer_no'],
            date=row['date'],
            amount=float(row['amount']),
            remarks=row['remarks'] or ''
        )

    # Farmer methods
    def list_farmers(self) -> List[Farmer]:
        """Get all farmers, lowest farmer number first."""
        try:
            with self.session() as cursor:
                cursor.execute("SELECT * FROM farmers ORDER BY farmer_no")
                rows = cursor.fetchall()
        except sqlite3.Error:
            logger.exception("Error fetching farmers")
            return []
        return [self._farmer_from_row(row) for row in rows]

    def get_farmer(self, farmer_id: str) -> Optional[Farmer]:
        try:
            with self.session() as cursor:
                cursor.execute("SELECT * FROM farmers WHERE id = ?", (farmer_id,))
                row = cursor.fetchone()
        except sqlite3.Error:
            logger.exception("Error fetching farmer %s", farmer_id)
            return None
        return self._farmer_from_row(row) if row else None

    def add_farmer(self, farmer: Farmer) -> Optional[Farmer]:
        """Insert a new farmer and return it with its id set."""
        farmer_id = _new_id()
        try:
            with self.session() as cursor:
                cursor.execute(
                    """INSERT INTO farmers
                    (id, farmer_no, name, fixed_rate, advance_balance, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)""",
                    (
                        farmer_id,
                        farmer.farmer_no,
                        farmer.name,
                        farmer.fixed_rate,
                        farmer.advance_balance,
                        farmer.created_at
                    )
                )
        except sqlite3.Error:
            logger.exception("Error saving farmer #%s", farmer.farmer_no)
            return None
        logger.debug("Added farmer #%s (%s)", farmer.farmer_no, farmer_id)
        return Farmer(
            id=farmer_id,
            farmer_no=farmer.farmer_no,
            name=farmer.name,
            fixed_rate=farmer.fixed_rate,
            advance_balance=farmer.advance_balance,
            created_at=farmer.created_at
        )

    def update_farmer(self, farmer: Farmer) -> bool:
        """Update a farmer's number, name and rate.

        The advance balance is left alone; it is owned by the advance
        reconciliation.
        """
        if not farmer.id:
            return False
        try:
            with self.session() as cursor:
                cursor.execute(
                    "UPDATE farmers SET farmer_no = ?, name = ?, fixed_rate = ? WHERE id = ?",
                    (farmer.farmer_no, farmer.name, farmer.fixed_rate, farmer.id)
                )
                success = cursor.rowcount > 0
        except sqlite3.Error:
            logger.exception("Error updating farmer %s", farmer.id)
            return False
        return success

    def delete_farmer(self, farmer_id: str) -> bool:
        """Delete a farmer. Their logs and advances are left in place."""
        try:
            with self.session() as cursor:
                cursor.execute("DELETE FROM farmers WHERE id = ?", (farmer_id,))
                success = cursor.rowcount > 0
        except sqlite3.Error:
            logger.exception("Error deleting farmer %s", farmer_id)
            return False
        return success

    def next_farmer_no(self) -> int:
        """Suggested number for the next farmer (1 when unknown)."""
        return billing.next_farmer_no(self.list_farmers())

    def set_farmer_advance_balance(self, farmer_id: str, amount: float) -> bool:
        try:
            with self.session() as cursor:
                cursor.execute(
                    "UPDATE farmers SET advance_balance = ? WHERE id = ?",
                    (amount, farmer_id)
                )
                success = cursor.rowcount > 0
        except sqlite3.Error:
            logger.exception("Error updating advance balance for farmer %s", farmer_id)
            return False
        return success

    # Daily log methods
    def _query_logs(self, query: str, params: tuple, description: str) -> List[DailyLog]:
        try:
            with self.session() as cursor:
                cursor.execute(query, params)
                rows = cursor.fetchall()
        except sqlite3.Error:
            logger.exception("Error fetching %s", description)
            return []
        return [self._log_from_row(row) for row in rows]

    def list_logs(self) -> List[DailyLog]:
        """All daily logs, newest date first."""
        return self._query_logs(
            "SELECT * FROM daily_logs ORDER BY date DESC, farmer_no, shift DESC",
            (),
            "daily logs"
        )

    def list_logs_by_date(self, date: str) -> List[DailyLog]:
        return self._query_logs(
            "SELECT * FROM daily_logs WHERE date = ? ORDER BY farmer_no, shift DESC",
            (normalise(date),),
            f"logs for {date}"
        )

    def list_logs_by_farmer_and_range(self, farmer_id: str, start_date: str, end_date: str) -> List[DailyLog]:
        return self._query_logs(
            """SELECT * FROM daily_logs
            WHERE farmer_id = ? AND date >= ? AND date <= ?
            ORDER BY date, shift DESC""",
            (farmer_id, normalise(start_date), normalise(end_date)),
            f"logs for farmer {farmer_id} from {start_date} to {end_date}"
        )

    def upsert_log(self, log: DailyLog) -> Optional[DailyLog]:
        """Save a shift log, replacing any log for the same date, farmer and shift.

        Dates are stored zero-padded so string comparisons line up.
        """
        try:
            with self.session() as cursor:
                cursor.execute(
                    """INSERT INTO daily_logs
                    (id, date, farmer_id, farmer_no, shift, milk, fat)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (date, farmer_id, shift) DO UPDATE SET
                        farmer_no = excluded.farmer_no,
                        milk = excluded.milk,
                        fat = excluded.fat""",
                    (
                        _new_id(),
                        normalise(log.date),
                        log.farmer_id,
                        log.farmer_no,
                        log.shift,
                        log.milk,
                        log.fat
                    )
                )
                cursor.execute(
                    "SELECT * FROM daily_logs WHERE date = ? AND farmer_id = ? AND shift = ?",
                    (normalise(log.date), log.farmer_id, log.shift)
                )
                row = cursor.fetchone()
        except sqlite3.Error:
            logger.exception("Error saving %s log for farmer #%s on %s",
                             log.shift, log.farmer_no, log.date)
            return None
        return self._log_from_row(row)

    def delete_log(self, log_id: str) -> bool:
        try:
            with self.session() as cursor:
                cursor.execute("DELETE FROM daily_logs WHERE id = ?", (log_id,))
                success = cursor.rowcount > 0
        except sqlite3.Error:
            logger.exception("Error deleting log %s", log_id)
            return False
        return success

    # Advance methods
    def _fetch_advances(self, farmer_id: Optional[str] = None) -> List[Advance]:
        """Like list_advances, but lets sqlite errors through."""
        with self.session() as cursor:
            if farmer_id is None:
                cursor.execute("SELECT * FROM advances ORDER BY date DESC")
            else:
                cursor.execute(
                    "SELECT * FROM advances WHERE farmer_id = ? ORDER BY date DESC",
                    (farmer_id,)
                )
            rows = cursor.fetchall()
        return [self._advance_from_row(row) for row in rows]

    def list_advances(self) -> List[Advance]:
        """All advances, newest date first."""
        try:
            return self._fetch_advances()
        except sqlite3.Error:
            logger.exception("Error fetching advances")
            return []

    def list_advances_by_farmer(self, farmer_id: str) -> List[Advance]:
        try:
            return self._fetch_advances(farmer_id)
        except sqlite3.Error:
            logger.exception("Error fetching advances for farmer %s", farmer_id)
            return []

    def add_advance(self, advance: Advance) -> Optional[Advance]:
        """Record an advance and bring the farmer's balance up to date."""
        advance_id = _new_id()
        try:
            with self.session() as cursor:
                cursor.execute(
                    """INSERT INTO advances
                    (id, farmer_id, farmer_no, date, amount, remarks)
                    VALUES (?, ?, ?, ?, ?, ?)""",
                    (
                        advance_id,
                        advance.farmer_id,
                        advance.farmer_no,
                        normalise(advance.date),
                        advance.amount,
                        advance.remarks or ''
                    )
                )
        except sqlite3.Error:
            logger.exception("Error saving advance for farmer #%s", advance.farmer_no)
            return None

        self.reconcile_advance_balance(advance.farmer_id)
        return Advance(
            id=advance_id,
            farmer_id=advance.farmer_id,
            farmer_no=advance.farmer_no,
            date=normalise(advance.date),
            amount=advance.amount,
            remarks=advance.remarks or ''
        )

    def delete_advance(self, advance_id: str, farmer_id: str) -> bool:
        """Delete an advance and bring the farmer's balance up to date."""
        try:
            with self.session() as cursor:
                cursor.execute("DELETE FROM advances WHERE id = ?", (advance_id,))
                success = cursor.rowcount > 0
        except sqlite3.Error:
            logger.exception("Error deleting advance %s", advance_id)
            return False

        self.reconcile_advance_balance(farmer_id)
        return success

    def reconcile_advance_balance(self, farmer_id: str) -> Optional[float]:
        """Recompute a farmer's advance balance from their stored advances.

        Returns the new balance, or None when it could not be read or saved.
        A failure here does not undo the advance write that triggered it.
        """
        try:
            advances = self._fetch_advances(farmer_id)
        except sqlite3.Error:
            logger.exception("Error reading advances to reconcile farmer %s", farmer_id)
            return None

        balance = billing.total_advance_balance(advances)
        if not self.set_farmer_advance_balance(farmer_id, balance):
            logger.error("Advance balance for farmer %s not saved (expected %.2f)",
                         farmer_id, balance)
            return None
        logger.info("Advance balance for farmer %s is now %.2f", farmer_id, balance)
        return balance

    def reconcile_all_advance_balances(self) -> int:
        """Reconcile every farmer. Returns how many balances were saved."""
        reconciled = 0
        for farmer in self.list_farmers():
            if self.reconcile_advance_balance(farmer.id) is not None:
                reconciled += 1
        return reconciled
