"""
Entity shapes for the complaint portal.

Records travel through the stores, services and routes as plain dicts; the
TypedDicts below document their keys. Helpers build new records and parse
their timestamps.
"""
import secrets
import time
from datetime import datetime
from typing import Dict, Optional, TypedDict

import pytz

from .ticket_config import (
    TICKET_ID_PREFIX, TICKET_ID_ALPHABET, TICKET_ID_LENGTH,
    DEFAULT_CATEGORY, DEFAULT_PRIORITY
)


class _ProfileBase(TypedDict):
    id: str
    email: str
    full_name: str
    role: str  # 'student' | 'admin'


class Profile(_ProfileBase, total=False):
    # Student-only details
    batch_id: Optional[str]
    admission_number: Optional[str]
    phone: Optional[str]
    domain: Optional[str]
    joining_date: Optional[str]
    avatar_url: Optional[str]


class Ticket(TypedDict):
    id: str
    created_at: str
    user_id: str
    title: str
    description: str
    category: str
    priority: str
    status: str
    assigned_to: Optional[str]
    attachment_url: Optional[str]


class TicketComment(TypedDict):
    id: str
    ticket_id: str
    user_id: str
    user_name: str  # author's name when the comment was written
    role: str       # author's role when the comment was written
    content: str
    created_at: str
    is_internal: bool


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string"""
    return datetime.now(pytz.UTC).isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC"""
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = pytz.UTC.localize(parsed)
    return parsed


def generate_ticket_id() -> str:
    """Generate a ticket code like TKT-8X29AB (uniqueness is not checked here)"""
    code = ''.join(secrets.choice(TICKET_ID_ALPHABET) for _ in range(TICKET_ID_LENGTH))
    return f"{TICKET_ID_PREFIX}{code}"


def generate_comment_id() -> str:
    """comment-<epoch ms>-<suffix>; the suffix separates comments in the same millisecond"""
    return f"comment-{int(time.time() * 1000)}-{secrets.token_hex(2)}"


def build_ticket(user_id: str, form: Dict, attachment_url: Optional[str] = None) -> Ticket:
    """
    Build a new ticket record from a submitted form.
    No validation happens here; callers validate first.
    """
    return {
        'id': generate_ticket_id(),
        'created_at': now_iso(),
        'user_id': user_id,
        'title': form.get('title', ''),
        'description': form.get('description', ''),
        'category': form.get('category') or DEFAULT_CATEGORY,
        'priority': form.get('priority') or DEFAULT_PRIORITY,
        'status': 'open',
        'assigned_to': None,
        'attachment_url': attachment_url,
    }


def build_comment(comment: Dict) -> TicketComment:
    """Stamp a comment (without id and created_at) with both"""
    return {
        'id': generate_comment_id(),
        'ticket_id': comment['ticket_id'],
        'user_id': comment['user_id'],
        'user_name': comment.get('user_name', ''),
        'role': comment.get('role', 'student'),
        'content': comment.get('content', ''),
        'created_at': now_iso(),
        'is_internal': bool(comment.get('is_internal', False)),
    }
