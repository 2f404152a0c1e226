"""
Complaints Package - ticket entities, stores, filtering, export and the
adapters for the hosted auth/database service
"""
from .ticket_store import TicketRepository, JsonTicketStore
from .ticket_db import SqliteTicketStore
from .profile_directory import ProfileDirectory, AuthError
from .supabase_client import SupabaseClient, SupabaseError
from .attachments import AttachmentStorage

__all__ = [
    "TicketRepository", "JsonTicketStore", "SqliteTicketStore",
    "ProfileDirectory", "AuthError",
    "SupabaseClient", "SupabaseError",
    "AttachmentStorage",
]
