"""
CSV export of a ticket list for download from the admin dashboard.
"""
from datetime import datetime
from typing import Callable, Dict, List, Optional

import pytz

from .entities import parse_timestamp

CSV_HEADERS = ['ID', 'Title', 'Description', 'Status', 'Priority', 'Category', 'Created At', 'Student Name']


def quote_field(value: str) -> str:
    """Wrap in double quotes, doubling any embedded quote"""
    return '"' + (value or '').replace('"', '""') + '"'


def format_created_at(created_at: str, tz) -> str:
    return parse_timestamp(created_at).astimezone(tz).strftime('%d/%m/%Y, %H:%M:%S')


def tickets_to_csv(
    tickets: List[Dict],
    student_name: Callable[[str], Optional[str]],
    timezone: str = 'UTC'
) -> str:
    """
    Render tickets as CSV text: a header line plus one line per ticket.

    Args:
        tickets: Tickets in the order they should appear
        student_name: Maps a user_id to the owner's name (None when unknown)
        timezone: pytz zone name used for the Created At column
    """
    tz = pytz.timezone(timezone)
    lines = [','.join(CSV_HEADERS)]
    for ticket in tickets:
        row = [
            ticket['id'],
            quote_field(ticket.get('title', '')),
            quote_field(ticket.get('description', '')),
            ticket['status'],
            ticket['priority'],
            ticket['category'],
            quote_field(format_created_at(ticket['created_at'], tz)),
            quote_field(student_name(ticket['user_id']) or 'Unknown'),
        ]
        lines.append(','.join(row))
    return '\n'.join(lines)


def export_filename(today: Optional[datetime] = None) -> str:
    today = today or datetime.now(pytz.UTC)
    return f"tickets_export_{today.strftime('%Y-%m-%d')}.csv"
