"""
Ticket Service
The only caller of the ticket repository: form validation, ownership and role
rules, status changes and comment threads for both dashboards.
"""

import logging

from complaints.ticket_config import (
    CATEGORIES, PRIORITY_LEVELS, TICKET_STATUS, STATUS_TRANSITIONS,
    DEFAULT_CATEGORY, DEFAULT_PRIORITY, TITLE_MAX_LENGTH
)
from complaints.ticket_filters import apply_view
from services.stats_service import StatsService

logger = logging.getLogger('ticket_service')


class InvalidStatusTransition(Exception):
    """Status change rejected by the strict ticket lifecycle"""

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move ticket from {current} to {requested}")
        self.current = current
        self.requested = requested


class TicketService:
    """Handles ticket creation, listing, status changes and comments"""

    def __init__(self, repository, attachments=None, strict_transitions: bool = False):
        self.repository = repository
        self.attachments = attachments
        self.strict_transitions = strict_transitions

    # ----------------------------------------
    # Validation
    # ----------------------------------------

    @staticmethod
    def validate_ticket_form(data: dict) -> tuple:
        """
        Validate a complaint form.

        Returns:
            (is_valid, error_message, cleaned_form)
        """
        for field in ('title', 'description', 'category', 'priority'):
            if data.get(field) is not None and not isinstance(data[field], str):
                return False, f"{field.capitalize()} must be text", None

        title = (data.get('title') or '').strip()
        description = (data.get('description') or '').strip()
        category = data.get('category') or DEFAULT_CATEGORY
        priority = data.get('priority') or DEFAULT_PRIORITY

        if not title or not description:
            return False, "Please fill in all fields", None

        if len(title) > TITLE_MAX_LENGTH:
            return False, f"Title must not exceed {TITLE_MAX_LENGTH} characters", None

        if category not in CATEGORIES:
            return False, f"Invalid category: {category}", None

        if priority not in PRIORITY_LEVELS:
            return False, f"Invalid priority level: {priority}", None

        return True, "", {
            'title': title,
            'description': description,
            'category': category,
            'priority': priority,
        }

    # ----------------------------------------
    # Tickets
    # ----------------------------------------

    def visible_tickets(self, profile: dict) -> list:
        """Admins see every ticket, students only their own; newest first"""
        if profile['role'] == 'admin':
            return self.repository.get_all_tickets()
        return self.repository.get_tickets_by_user(profile['id'])

    def list_tickets(self, profile: dict, params: dict) -> list:
        return apply_view(self.visible_tickets(profile), params)

    def can_view(self, profile: dict, ticket: dict) -> bool:
        return profile['role'] == 'admin' or ticket['user_id'] == profile['id']

    def get_ticket(self, ticket_id: str):
        return self.repository.get_ticket(ticket_id)

    def create_ticket(self, user_id: str, data: dict, attachment=None) -> dict:
        """
        Validate, store the attachment (if any), then record the ticket.

        Returns:
            The created ticket, or {'error': message}
        """
        is_valid, error, form = self.validate_ticket_form(data)
        if not is_valid:
            return {'error': error}

        attachment_url = None
        if attachment is not None and attachment.filename:
            if self.attachments is None:
                return {'error': 'Attachments are not enabled'}
            stored = self.attachments.save(attachment)
            if 'error' in stored:
                return stored
            attachment_url = stored['url']

        return self.repository.create_ticket(user_id, form, attachment_url=attachment_url)

    def update_status(self, ticket_id: str, status: str):
        """
        Set a ticket's status.

        Returns:
            The updated ticket, or None when no ticket has that id

        Raises:
            ValueError: unknown status value
            InvalidStatusTransition: strict lifecycle forbids the move
        """
        if not isinstance(status, str) or status not in TICKET_STATUS:
            raise ValueError(f"Invalid status. Must be one of: {', '.join(TICKET_STATUS)}")

        if self.strict_transitions:
            ticket = self.repository.get_ticket(ticket_id)
            if ticket is None:
                return None
            current = ticket['status']
            if status != current and status not in STATUS_TRANSITIONS.get(current, set()):
                logger.warning(f"STATUS_TRANSITION_REJECTED | {ticket_id} | {current} -> {status}")
                raise InvalidStatusTransition(current, status)

        return self.repository.update_ticket_status(ticket_id, status)

    def stats_for(self, profile: dict) -> dict:
        if profile['role'] == 'admin':
            return self.repository.get_ticket_stats()
        return StatsService.get_ticket_stats(self.visible_tickets(profile))

    # ----------------------------------------
    # Comments
    # ----------------------------------------

    def comments_for(self, profile: dict, ticket_id: str) -> list:
        """Thread oldest first; internal notes are only shown to admins"""
        comments = self.repository.get_comments_by_ticket_id(ticket_id)
        if profile['role'] != 'admin':
            comments = [c for c in comments if not c.get('is_internal')]
        return comments

    def add_comment(self, profile: dict, ticket_id: str, content: str, is_internal: bool = False) -> dict:
        """
        Append a reply. Author name and role are copied from the profile as it
        is right now and never updated afterwards.

        Returns:
            The new comment, or {'error': message}
        """
        if content is not None and not isinstance(content, str):
            return {'error': 'Comment must be text'}

        content = (content or '').strip()
        if not content:
            return {'error': 'Comment cannot be empty'}

        return self.repository.add_comment({
            'ticket_id': ticket_id,
            'user_id': profile['id'],
            'user_name': profile.get('full_name', ''),
            'role': profile['role'],
            'content': content,
            'is_internal': bool(is_internal) and profile['role'] == 'admin',
        })
