"""
Ticket System Configuration
Categories, priorities, statuses, roles and attachment rules
"""

# Ticket categories (value -> display label), in chart order
CATEGORIES = {
    "curriculum": "Curriculum",
    "facility": "Facility",
    "placement": "Placement",
    "other": "Other",
}

# Priority levels (value -> display label), highest first
PRIORITY_LEVELS = {
    "high": "High",
    "medium": "Medium",
    "low": "Low",
}

# Numeric ranking used only for sort ordering
PRIORITY_WEIGHT = {
    "high": 3,
    "medium": 2,
    "low": 1,
}

# Chart colours for the priority breakdown
PRIORITY_COLORS = {
    "high": "#ef4444",
    "medium": "#eab308",
    "low": "#22c55e",
}

# Ticket status options
TICKET_STATUS = {
    "open": "Open",
    "in_progress": "In Progress",
    "resolved": "Resolved",
}

# Allowed moves when STRICT_STATUS_TRANSITIONS is enabled.
# Setting the current status again is always accepted.
STATUS_TRANSITIONS = {
    "open": {"in_progress", "resolved"},
    "in_progress": {"open", "resolved"},
    "resolved": {"in_progress"},
}

# Form defaults
DEFAULT_CATEGORY = "curriculum"
DEFAULT_PRIORITY = "medium"

# Ticket code format: TKT-XXXXXX
TICKET_ID_PREFIX = "TKT-"
TICKET_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
TICKET_ID_LENGTH = 6

TITLE_MAX_LENGTH = 100

# Attachment validation
ALLOWED_FILE_TYPES = ["png", "jpg", "jpeg", "gif", "webp"]

# Profile fields a user may edit themselves
EDITABLE_PROFILE_FIELDS = {
    "full_name", "batch_id", "admission_number", "phone", "domain", "avatar_url",
}
