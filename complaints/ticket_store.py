"""
Ticket Store
Repository interface for tickets and comments, plus the JSON-file backend.

The JSON backend keeps both collections in memory and mirrors each of them to
its own file (a bare JSON array) after every mutation. Read and write failures
are logged and fall back to an empty collection; nothing is retried.
"""
import json
import logging
import os
import threading
from typing import Dict, List, Optional

from .entities import Ticket, TicketComment, build_ticket, build_comment, parse_timestamp

logger = logging.getLogger('ticket_store')


def sort_newest_first(tickets: List[Dict]) -> List[Dict]:
    return sorted(tickets, key=lambda t: parse_timestamp(t['created_at']), reverse=True)


def sort_oldest_first(records: List[Dict]) -> List[Dict]:
    return sorted(records, key=lambda r: parse_timestamp(r['created_at']))


class TicketRepository:
    """
    Storage contract used by TicketService.

    Implementations own the canonical collections; everything they return is a
    copy the caller may modify freely.
    """

    def get_all_tickets(self) -> List[Ticket]:
        raise NotImplementedError

    def get_tickets_by_user(self, user_id: str) -> List[Ticket]:
        raise NotImplementedError

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        raise NotImplementedError

    def create_ticket(self, user_id: str, form: Dict, attachment_url: Optional[str] = None) -> Ticket:
        raise NotImplementedError

    def update_ticket_status(self, ticket_id: str, status: str) -> Optional[Ticket]:
        raise NotImplementedError

    def get_comments_by_ticket_id(self, ticket_id: str) -> List[TicketComment]:
        raise NotImplementedError

    def add_comment(self, comment: Dict) -> TicketComment:
        raise NotImplementedError

    def get_ticket_stats(self) -> Dict[str, int]:
        """Counts by status over the whole collection, recomputed on every call"""
        tickets = self.get_all_tickets()
        return {
            'total': len(tickets),
            'open': sum(1 for t in tickets if t['status'] == 'open'),
            'inProgress': sum(1 for t in tickets if t['status'] == 'in_progress'),
            'resolved': sum(1 for t in tickets if t['status'] == 'resolved'),
        }


class JsonTicketStore(TicketRepository):
    """Tickets and comments held in memory and mirrored to two JSON files"""

    def __init__(self, tickets_path: str, comments_path: str):
        self.tickets_path = tickets_path
        self.comments_path = comments_path
        self._lock = threading.Lock()
        self._tickets: List[Ticket] = self._load(tickets_path, 'tickets')
        self._comments: List[TicketComment] = self._load(comments_path, 'comments')
        logger.info(
            f"STORE_LOADED | tickets={len(self._tickets)} | comments={len(self._comments)}"
        )

    # ----------------------------------------
    # Persistence
    # ----------------------------------------

    @staticmethod
    def _load(path: str, label: str) -> List[Dict]:
        if not os.path.exists(path):
            return []
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"STORE_LOAD_FAIL | {label} | {path} | {e}")
            return []
        if not isinstance(data, list):
            logger.error(f"STORE_LOAD_FAIL | {label} | {path} | expected a JSON array")
            return []
        return data

    @staticmethod
    def _save(path: str, records: List[Dict], label: str):
        temp_path = path + '.tmp'
        try:
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
            os.replace(temp_path, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"STORE_SAVE_FAIL | {label} | {path} | {e}")

    # ----------------------------------------
    # Tickets
    # ----------------------------------------

    def get_all_tickets(self) -> List[Ticket]:
        with self._lock:
            return sort_newest_first([dict(t) for t in self._tickets])

    def get_tickets_by_user(self, user_id: str) -> List[Ticket]:
        with self._lock:
            owned = [dict(t) for t in self._tickets if t['user_id'] == user_id]
        return sort_newest_first(owned)

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        with self._lock:
            for ticket in self._tickets:
                if ticket['id'] == ticket_id:
                    return dict(ticket)
        return None

    def create_ticket(self, user_id: str, form: Dict, attachment_url: Optional[str] = None) -> Ticket:
        ticket = build_ticket(user_id, form, attachment_url)
        with self._lock:
            self._tickets.append(ticket)
            self._save(self.tickets_path, self._tickets, 'tickets')
        logger.info(f"TICKET_CREATED | {ticket['id']} | user={user_id}")
        return dict(ticket)

    def update_ticket_status(self, ticket_id: str, status: str) -> Optional[Ticket]:
        with self._lock:
            ticket = next((t for t in self._tickets if t['id'] == ticket_id), None)
            if ticket is None:
                return None
            ticket['status'] = status
            self._save(self.tickets_path, self._tickets, 'tickets')
            updated = dict(ticket)
        logger.info(f"TICKET_STATUS | {ticket_id} | {status}")
        return updated

    # ----------------------------------------
    # Comments
    # ----------------------------------------

    def get_comments_by_ticket_id(self, ticket_id: str) -> List[TicketComment]:
        with self._lock:
            thread = [dict(c) for c in self._comments if c['ticket_id'] == ticket_id]
        return sort_oldest_first(thread)

    def add_comment(self, comment: Dict) -> TicketComment:
        new_comment = build_comment(comment)
        with self._lock:
            self._comments.append(new_comment)
            self._save(self.comments_path, self._comments, 'comments')
        logger.info(f"COMMENT_ADDED | {new_comment['ticket_id']} | {new_comment['id']}")
        return dict(new_comment)
