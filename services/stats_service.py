"""
Stats Service
Status counts and chart-ready analytics tallies over a ticket list.
Everything is recomputed from the list it is given; counters are never cached.
"""

import logging

from complaints.ticket_config import CATEGORIES, PRIORITY_LEVELS, PRIORITY_COLORS

logger = logging.getLogger('stats_service')


class StatsService:
    """Computes ticket statistics for the dashboards."""

    @staticmethod
    def get_ticket_stats(tickets: list) -> dict:
        """
        Count tickets by status.

        Returns:
            dict with total, open, inProgress, resolved
        """
        return {
            'total': len(tickets),
            'open': sum(1 for t in tickets if t['status'] == 'open'),
            'inProgress': sum(1 for t in tickets if t['status'] == 'in_progress'),
            'resolved': sum(1 for t in tickets if t['status'] == 'resolved'),
        }

    @staticmethod
    def category_breakdown(tickets: list) -> list:
        """Tickets per category, always the four buckets in fixed order"""
        return [
            {'name': label, 'value': sum(1 for t in tickets if t['category'] == value)}
            for value, label in CATEGORIES.items()
        ]

    @staticmethod
    def priority_breakdown(tickets: list) -> list:
        """Tickets per priority (High, Medium, Low) with their chart colours"""
        return [
            {
                'name': label,
                'value': sum(1 for t in tickets if t['priority'] == value),
                'color': PRIORITY_COLORS[value],
            }
            for value, label in PRIORITY_LEVELS.items()
        ]

    @staticmethod
    def get_analytics(tickets: list) -> dict:
        analytics = {
            'by_category': StatsService.category_breakdown(tickets),
            'by_priority': StatsService.priority_breakdown(tickets),
        }
        logger.debug(f"ANALYTICS | tickets={len(tickets)}")
        return analytics
