"""
Centralized Database Configuration - SQLite
Connection helpers for the SQLite ticket store (STORE_BACKEND=sqlite)

Usage:
    from db_config import db_connection

    with db_connection('data/complaints.db') as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM tickets")
"""
import os
import sqlite3
from contextlib import contextmanager

DEFAULT_TIMEOUT = 30  # seconds


def get_db_connection(db_path: str, timeout: int = DEFAULT_TIMEOUT):
    """
    Get SQLite database connection with WAL mode and dict-like rows.

    Args:
        db_path: Path to the SQLite database file

    Returns:
        sqlite3 connection
    """
    # Ensure data directory exists
    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=timeout, check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def db_connection(db_path: str):
    """
    Context manager for safe database connections.
    Auto-commits on success, rolls back on error, always closes.
    """
    conn = get_db_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def is_lock_error(error: Exception) -> bool:
    """True for transient 'database is locked' / 'busy' errors worth retrying"""
    if not isinstance(error, sqlite3.OperationalError):
        return False
    message = str(error).lower()
    return "locked" in message or "busy" in message
