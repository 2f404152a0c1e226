"""
Portal Services Package
Ticket workflow, profiles and statistics used by the API routes.
"""

from services.stats_service import StatsService
from services.profile_service import ProfileService
from services.ticket_service import TicketService, InvalidStatusTransition

__all__ = [
    'StatsService',
    'ProfileService',
    'TicketService', 'InvalidStatusTransition',
]
