"""Event type definitions."""

from enum import Enum


class EventType(str, Enum):
    """All event types in the system."""

    # Account registry events
    ACCOUNTS_CHANGED = "accounts.changed"
    ACCOUNT_SELECTED = "accounts.selected"

    # File listing events
    LISTING_CHANGED = "listing.changed"
    SELECTION_CHANGED = "listing.selection_changed"

    # Broker events
    NOTIFICATIONS_CHANGED = "broker.notifications_changed"
    CONFIRMATION_CHANGED = "broker.confirmation_changed"
    PROGRESS_CHANGED = "broker.progress_changed"

    # Operation events
    TICKET_CHANGED = "operations.ticket_changed"

    # Session events
    SESSION_EXPIRED = "session.expired"
