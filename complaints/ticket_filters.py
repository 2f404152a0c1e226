"""
Ticket list filtering and sorting shared by the student and admin dashboards.
Every call rescans the list it is given; nothing is indexed or cached.
"""
from typing import Dict, List, Optional, Tuple

from .entities import parse_timestamp
from .ticket_config import PRIORITY_WEIGHT

SORT_KEYS = ('date', 'priority')
DEFAULT_SORT_BY = 'date'
DEFAULT_SORT_ORDER = 'desc'

# Filter value meaning "no filter"
ALL = 'all'


def _active(value: Optional[str]) -> bool:
    return bool(value) and value != ALL


def matches_query(ticket: Dict, query: Optional[str]) -> bool:
    """Case-insensitive substring match against title or description"""
    if not query:
        return True
    needle = query.lower()
    return needle in ticket.get('title', '').lower() or needle in ticket.get('description', '').lower()


def filter_tickets(
    tickets: List[Dict],
    query: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    category: Optional[str] = None
) -> List[Dict]:
    """
    Keep the tickets that satisfy every active criterion.

    Args:
        tickets: Ticket dicts in any order
        query: Free text matched against title and description
        status, priority, category: Exact values; empty or 'all' disables the filter

    Returns:
        Matching tickets, original order preserved
    """
    result = [t for t in tickets if matches_query(t, query)]
    if _active(status):
        result = [t for t in result if t['status'] == status]
    if _active(priority):
        result = [t for t in result if t['priority'] == priority]
    if _active(category):
        result = [t for t in result if t['category'] == category]
    return result


def sort_tickets(tickets: List[Dict], sort_by: str = DEFAULT_SORT_BY, order: str = DEFAULT_SORT_ORDER) -> List[Dict]:
    """Sort by created_at ('date') or priority weight ('priority'); unknown keys keep the order"""
    reverse = order != 'asc'
    if sort_by == 'date':
        return sorted(tickets, key=lambda t: parse_timestamp(t['created_at']), reverse=reverse)
    if sort_by == 'priority':
        return sorted(tickets, key=lambda t: PRIORITY_WEIGHT.get(t['priority'], 0), reverse=reverse)
    return list(tickets)


def toggle_sort(current_by: str, current_order: str, selected: str) -> Tuple[str, str]:
    """
    Next (sort_by, order) after the user picks a sort key.
    Re-selecting the active key flips the direction; a new key starts descending.
    """
    if selected == current_by:
        return current_by, 'asc' if current_order == 'desc' else 'desc'
    return selected, DEFAULT_SORT_ORDER


def apply_view(tickets: List[Dict], params: Dict) -> List[Dict]:
    """Filter then sort using request-style parameters (q, status, priority, category, sort, order)"""
    filtered = filter_tickets(
        tickets,
        query=params.get('q'),
        status=params.get('status'),
        priority=params.get('priority'),
        category=params.get('category'),
    )
    return sort_tickets(
        filtered,
        sort_by=params.get('sort') or DEFAULT_SORT_BY,
        order=params.get('order') or DEFAULT_SORT_ORDER,
    )
