"""
Repository pattern for ledger persistence.

The ledger is stored as a single JSON snapshot row that is replaced on every
save. Reads return the last saved snapshot or an empty ledger.
"""

import json
import sqlite3
from datetime import datetime
from typing import Optional

from site_ledger.config.loader import RatesConfig
from site_ledger.core.ledger import Ledger
from site_ledger.logging_config import get_logger

from .db import get_connection
from .snapshot import ledger_from_snapshot, ledger_to_snapshot

logger = get_logger("storage.repository")

# Only one snapshot row is ever kept
SNAPSHOT_ROW_ID = 1

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS ledger_snapshot (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        saved_at TEXT NOT NULL,
        payload TEXT NOT NULL
    )
"""


def initialize_schema(db_path: str = "site_ledger.db") -> None:
    """Create the ledger_snapshot table if it doesn't exist.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute(_SCHEMA)
        conn.commit()
    finally:
        conn.close()


class LedgerRepository:
    """Loads and saves full ledger snapshots in SQLite."""

    def __init__(self, db_path: str = "site_ledger.db"):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def save(self, ledger: Ledger) -> None:
        """Replace the stored snapshot with this ledger.

        The write happens in one transaction, so a failed save leaves the
        previous snapshot in place.

        Args:
            ledger: Ledger to persist
        """
        payload = json.dumps(ledger_to_snapshot(ledger), ensure_ascii=False)
        conn = get_connection(self.db_path)
        try:
            conn.execute(_SCHEMA)
            conn.execute("""
                INSERT OR REPLACE INTO ledger_snapshot (id, saved_at, payload)
                VALUES (?, ?, ?)
            """, (SNAPSHOT_ROW_ID, datetime.now().isoformat(), payload))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.debug("Saved ledger snapshot with %d projects to %s", len(ledger), self.db_path)

    def load(self, rates: RatesConfig) -> Ledger:
        """Load the stored ledger, or an empty one if nothing was saved.

        Args:
            rates: Rates used to re-derive labor entries

        Returns:
            The stored ledger, or an empty Ledger
        """
        payload = self._fetch_payload()
        if payload is None:
            logger.debug("No snapshot in %s, starting with an empty ledger", self.db_path)
            return Ledger(rates=rates)

        ledger = ledger_from_snapshot(json.loads(payload), rates)
        logger.debug("Loaded ledger snapshot with %d projects from %s", len(ledger), self.db_path)
        return ledger

    def last_saved_at(self) -> Optional[datetime]:
        """Timestamp of the last save, or None if nothing was saved."""
        row = self._fetch_row("SELECT saved_at FROM ledger_snapshot WHERE id = ?")
        return datetime.fromisoformat(row[0]) if row else None

    def _fetch_payload(self) -> Optional[str]:
        row = self._fetch_row("SELECT payload FROM ledger_snapshot WHERE id = ?")
        return row[0] if row else None

    def _fetch_row(self, query: str):
        conn = get_connection(self.db_path)
        try:
            return conn.execute(query, (SNAPSHOT_ROW_ID,)).fetchone()
        except sqlite3.OperationalError as e:
            # Table not created yet
            if "no such table" in str(e).lower():
                return None
            raise
        finally:
            conn.close()
