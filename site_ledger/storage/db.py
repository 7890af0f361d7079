"""
Database connection management.

The ledger keeps a single snapshot table, so connections need no extra
pragmas; callers own commit, rollback and close.
"""

import sqlite3
from pathlib import Path


def get_connection(db_path: str = "site_ledger.db") -> sqlite3.Connection:
    """Open a connection to the ledger database file.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLite connection
    """
    return sqlite3.connect(str(Path(db_path)))
