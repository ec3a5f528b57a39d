"""
Subscriber Store
================

Owns the ``emails`` table and every read/write against it.

Rows are never deleted: opting out flips ``opt_out`` so the address cannot be
silently re-added through a plain create, and its history is kept. Each method
runs exactly one statement; SQLite's per-statement atomicity is the only
consistency guarantee between concurrent writers.

Confirmation time is stored as integer epoch seconds and converted to a
datetime only when rows are mapped to ``SubscriberEntry``.
"""

import sqlite3
import logging
import calendar
from datetime import datetime, timezone

from .config import Config
from .database import Database
from .errors import DuplicateKey, InvalidArgument, StoreFailure
from .models import SubscriberEntry

logger = logging.getLogger(__name__)

_COLUMNS = "id, email, confirmed_at, opt_out"

# Largest value SQLite accepts for LIMIT / OFFSET
SQLITE_MAX_INT = 2**63 - 1


def to_epoch(moment):
    """Seconds since the epoch; naive datetimes are taken as UTC"""
    if moment.tzinfo is None:
        return calendar.timegm(moment.timetuple())
    return int(moment.timestamp())


def from_epoch(seconds):
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc)


def entry_from_row(row):
    """Map an (id, email, confirmed_at, opt_out) row to a SubscriberEntry"""
    entry_id, email, confirmed_at, opt_out = row
    return SubscriberEntry(
        id=int(entry_id),
        email=email,
        confirmed_at=from_epoch(confirmed_at or 0),
        opt_out=bool(opt_out),
    )


def _require_email(email):
    if not isinstance(email, str) or not email.strip():
        raise InvalidArgument("email address is required")


class SubscriberStore:
    """
    One store handle per process, shared by both front ends.
    A fresh SQLite connection is opened for every operation so the handle can
    be used from any thread.
    """

    def __init__(self, db_path=None, table=None):
        self.db_path = db_path or Config.DB_PATH
        self.table = table or Config.EMAILS_TABLE

    def __repr__(self):
        return f"SubscriberStore({self.db_path!r})"

    def initialize(self):
        """Create the emails table; an existing table is left as it is"""
        try:
            Database.ensure_parent_dir(self.db_path)
            with Database.connect(self.db_path) as conn:
                conn.execute(f"""
                    CREATE TABLE IF NOT EXISTS {self.table} (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        email TEXT UNIQUE,
                        confirmed_at INTEGER,
                        opt_out INTEGER
                    )
                """)
            logger.info(f"Subscriber table '{self.table}' created/verified in {self.db_path}")
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error initializing subscriber table: {e}")
            raise StoreFailure(f"cannot initialize {self.db_path}: {e}") from e

    def create(self, email):
        """Insert an unconfirmed, subscribed row. A known address raises DuplicateKey."""
        _require_email(email)
        try:
            with Database.connect(self.db_path) as conn:
                conn.execute(f"""
                    INSERT INTO {self.table} (email, confirmed_at, opt_out)
                    VALUES (?, 0, 0)
                """, (email,))
        except sqlite3.IntegrityError as e:
            logger.info(f"Duplicate subscriber: {email}")
            raise DuplicateKey(f"email already exists: {email}") from e
        except sqlite3.Error as e:
            logger.error(f"Database error creating {email}: {e}")
            raise StoreFailure(str(e)) from e

    def get(self, email):
        """Point lookup by address. Returns None when no row matches."""
        try:
            with Database.connect(self.db_path) as conn:
                cursor = conn.execute(f"""
                    SELECT {_COLUMNS}
                    FROM {self.table}
                    WHERE email = ?
                """, (email,))
                row = cursor.fetchone()
            if row is None:
                return None
            return entry_from_row(row)
        except (sqlite3.Error, TypeError, ValueError, OverflowError) as e:
            logger.error(f"Error getting {email}: {e}")
            raise StoreFailure(str(e)) from e

    def update(self, entry):
        """
        Upsert by email: overwrite confirmed_at and opt_out together, or insert
        a new row carrying both when the address is unknown.
        """
        _require_email(entry.email)
        if entry.confirmed_at is None:
            raise InvalidArgument("confirmed_at is required")

        confirmed_at = to_epoch(entry.confirmed_at)
        opt_out = 1 if entry.opt_out else 0
        try:
            with Database.connect(self.db_path) as conn:
                conn.execute(f"""
                    INSERT INTO {self.table} (email, confirmed_at, opt_out)
                    VALUES (?, ?, ?)
                    ON CONFLICT(email) DO UPDATE SET
                        confirmed_at = excluded.confirmed_at,
                        opt_out = excluded.opt_out
                """, (entry.email, confirmed_at, opt_out))
        except sqlite3.Error as e:
            logger.error(f"Database error updating {entry.email}: {e}")
            raise StoreFailure(str(e)) from e

    def opt_out(self, email):
        """Mark an address as opted out. Unknown addresses are a silent no-op."""
        try:
            with Database.connect(self.db_path) as conn:
                cursor = conn.execute(f"""
                    UPDATE {self.table}
                    SET opt_out = 1
                    WHERE email = ?
                """, (email,))
                if cursor.rowcount == 0:
                    logger.debug(f"Opt-out for unknown address: {email}")
        except sqlite3.Error as e:
            logger.error(f"Database error opting out {email}: {e}")
            raise StoreFailure(str(e)) from e

    def list_page(self, page, count):
        """
        Subscribed rows ordered by id, ``count`` per page, pages counted from 1.
        Either every row of the page is returned or the call fails.
        """
        if not _positive_int(page) or not _positive_int(count):
            raise InvalidArgument("page and count fields must be > 0")
        if count > SQLITE_MAX_INT or (page - 1) * count > SQLITE_MAX_INT:
            raise InvalidArgument("page and count are too large")

        try:
            with Database.connect(self.db_path) as conn:
                cursor = conn.execute(f"""
                    SELECT {_COLUMNS}
                    FROM {self.table}
                    WHERE opt_out = 0
                    ORDER BY id ASC
                    LIMIT ? OFFSET ?
                """, (count, (page - 1) * count))
                rows = cursor.fetchall()
            return [entry_from_row(row) for row in rows]
        except (sqlite3.Error, TypeError, ValueError, OverflowError) as e:
            logger.error(f"Error reading page {page} (count {count}): {e}")
            raise StoreFailure(str(e)) from e

    def list_all(self):
        """Every row, opted out or not, ordered by id. Operational use only."""
        try:
            with Database.connect(self.db_path) as conn:
                cursor = conn.execute(f"""
                    SELECT {_COLUMNS}
                    FROM {self.table}
                    ORDER BY id ASC
                """)
                rows = cursor.fetchall()
            return [entry_from_row(row) for row in rows]
        except (sqlite3.Error, TypeError, ValueError, OverflowError) as e:
            logger.error(f"Error reading all subscribers: {e}")
            raise StoreFailure(str(e)) from e


def _positive_int(value):
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
