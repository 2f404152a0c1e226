"""
Ticket Database Handler
SQLite backend for the ticket repository (STORE_BACKEND=sqlite)

Same contract as the JSON store; ordering is done by the queries and lock
errors are retried with exponential backoff.
"""
import logging
import sqlite3
import time
from typing import Dict, List, Optional

from db_config import get_db_connection, is_lock_error
from .entities import Ticket, TicketComment, build_ticket, build_comment
from .ticket_store import TicketRepository

logger = logging.getLogger('ticket_db')

# Constants for retry logic
MAX_RETRIES = 5
RETRY_DELAY = 0.2

# A freshly generated ticket code may already exist; try a few new codes
MAX_ID_ATTEMPTS = 5

TICKET_COLUMNS = (
    'id', 'created_at', 'user_id', 'title', 'description', 'category',
    'priority', 'status', 'assigned_to', 'attachment_url'
)
COMMENT_COLUMNS = (
    'id', 'ticket_id', 'user_id', 'user_name', 'role', 'content',
    'created_at', 'is_internal'
)


def _ticket_from_row(row) -> Ticket:
    return {column: row[column] for column in TICKET_COLUMNS}


def _comment_from_row(row) -> TicketComment:
    comment = {column: row[column] for column in COMMENT_COLUMNS}
    comment['is_internal'] = bool(comment['is_internal'])
    return comment


class SqliteTicketStore(TicketRepository):
    """Handles all database operations for tickets and their comments"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._ensure_database_exists()

    def _ensure_database_exists(self):
        """Create tables and indexes if they don't exist"""
        conn = get_db_connection(self.db_path)
        try:
            cursor = conn.cursor()

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS tickets (
                    id TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL,
                    category TEXT NOT NULL,
                    priority TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'open',
                    assigned_to TEXT,
                    attachment_url TEXT
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS ticket_comments (
                    id TEXT PRIMARY KEY,
                    ticket_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    user_name TEXT NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    is_internal INTEGER NOT NULL DEFAULT 0,
                    FOREIGN KEY (ticket_id) REFERENCES tickets(id)
                )
            ''')

            cursor.execute('CREATE INDEX IF NOT EXISTS idx_tickets_user_id ON tickets(user_id)')
            cursor.execute('CREATE INDEX IF NOT EXISTS idx_tickets_created_at ON tickets(created_at DESC)')
            cursor.execute('CREATE INDEX IF NOT EXISTS idx_comments_ticket_id ON ticket_comments(ticket_id)')

            conn.commit()
            logger.info(f"TICKET_DB_READY | {self.db_path}")
        finally:
            conn.close()

    def _execute_with_retry(self, operation, *args, **kwargs):
        """Execute a database operation with retry logic for lock errors"""
        last_error = None
        delay = RETRY_DELAY

        for attempt in range(MAX_RETRIES):
            conn = get_db_connection(self.db_path)
            try:
                result = operation(conn, *args, **kwargs)
                conn.commit()
                return result
            except sqlite3.OperationalError as e:
                conn.rollback()
                if not is_lock_error(e):
                    raise
                last_error = e
                if attempt < MAX_RETRIES - 1:
                    logger.warning(
                        f"TICKET_DB_LOCKED | retrying in {delay:.2f}s | attempt {attempt + 1}/{MAX_RETRIES}"
                    )
                    time.sleep(delay)
                    delay *= 1.5
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()

        logger.error(f"TICKET_DB_RETRIES_EXHAUSTED | {MAX_RETRIES} attempts")
        raise last_error

    # ----------------------------------------
    # Tickets
    # ----------------------------------------

    def get_all_tickets(self) -> List[Ticket]:
        def _select(conn):
            rows = conn.execute(
                'SELECT * FROM tickets ORDER BY created_at DESC, rowid DESC'
            ).fetchall()
            return [_ticket_from_row(row) for row in rows]

        return self._execute_with_retry(_select)

    def get_tickets_by_user(self, user_id: str) -> List[Ticket]:
        def _select(conn):
            rows = conn.execute(
                'SELECT * FROM tickets WHERE user_id = ? ORDER BY created_at DESC, rowid DESC',
                (user_id,)
            ).fetchall()
            return [_ticket_from_row(row) for row in rows]

        return self._execute_with_retry(_select)

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        def _select(conn):
            row = conn.execute('SELECT * FROM tickets WHERE id = ?', (ticket_id,)).fetchone()
            return _ticket_from_row(row) if row else None

        return self._execute_with_retry(_select)

    def create_ticket(self, user_id: str, form: Dict, attachment_url: Optional[str] = None) -> Ticket:
        def _insert(conn, ticket):
            placeholders = ', '.join('?' for _ in TICKET_COLUMNS)
            conn.execute(
                f"INSERT INTO tickets ({', '.join(TICKET_COLUMNS)}) VALUES ({placeholders})",
                tuple(ticket[column] for column in TICKET_COLUMNS)
            )
            return ticket

        for attempt in range(MAX_ID_ATTEMPTS):
            ticket = build_ticket(user_id, form, attachment_url)
            try:
                self._execute_with_retry(_insert, ticket)
            except sqlite3.IntegrityError:
                logger.warning(f"TICKET_ID_COLLISION | {ticket['id']} | attempt {attempt + 1}/{MAX_ID_ATTEMPTS}")
                continue
            logger.info(f"TICKET_CREATED | {ticket['id']} | user={user_id}")
            return ticket

        raise sqlite3.IntegrityError(f"Could not allocate a unique ticket id after {MAX_ID_ATTEMPTS} attempts")

    def update_ticket_status(self, ticket_id: str, status: str) -> Optional[Ticket]:
        def _update(conn):
            cursor = conn.execute('UPDATE tickets SET status = ? WHERE id = ?', (status, ticket_id))
            if cursor.rowcount == 0:
                return None
            row = conn.execute('SELECT * FROM tickets WHERE id = ?', (ticket_id,)).fetchone()
            return _ticket_from_row(row)

        updated = self._execute_with_retry(_update)
        if updated:
            logger.info(f"TICKET_STATUS | {ticket_id} | {status}")
        return updated

    # ----------------------------------------
    # Comments
    # ----------------------------------------

    def get_comments_by_ticket_id(self, ticket_id: str) -> List[TicketComment]:
        def _select(conn):
            rows = conn.execute(
                'SELECT * FROM ticket_comments WHERE ticket_id = ? ORDER BY created_at ASC, rowid ASC',
                (ticket_id,)
            ).fetchall()
            return [_comment_from_row(row) for row in rows]

        return self._execute_with_retry(_select)

    def add_comment(self, comment: Dict) -> TicketComment:
        new_comment = build_comment(comment)

        def _insert(conn):
            placeholders = ', '.join('?' for _ in COMMENT_COLUMNS)
            values = tuple(new_comment[column] for column in COMMENT_COLUMNS[:-1])
            conn.execute(
                f"INSERT INTO ticket_comments ({', '.join(COMMENT_COLUMNS)}) VALUES ({placeholders})",
                values + (int(new_comment['is_internal']),)
            )

        self._execute_with_retry(_insert)
        logger.info(f"COMMENT_ADDED | {new_comment['ticket_id']} | {new_comment['id']}")
        return new_comment

    def get_ticket_stats(self) -> Dict[str, int]:
        def _count(conn):
            rows = conn.execute('SELECT status, COUNT(*) AS n FROM tickets GROUP BY status').fetchall()
            return {row['status']: row['n'] for row in rows}

        counts = self._execute_with_retry(_count)
        return {
            'total': sum(counts.values()),
            'open': counts.get('open', 0),
            'inProgress': counts.get('in_progress', 0),
            'resolved': counts.get('resolved', 0),
        }
