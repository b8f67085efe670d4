"""
Event system for cloudhub.

Stateful components publish typed change events through an EventDispatcher
instance owned by the session; view code subscribes to them.
"""

from .base import (
    AccountSelectedEvent,
    AccountsChangedEvent,
    BaseEvent,
    ConfirmationChangedEvent,
    ListingChangedEvent,
    NotificationsChangedEvent,
    ProgressChangedEvent,
    SelectionChangedEvent,
    SessionExpiredEvent,
    TicketChangedEvent,
)
from .dispatcher import EventDispatcher
from .types import EventType

__all__ = [
    "AccountSelectedEvent",
    "AccountsChangedEvent",
    "BaseEvent",
    "ConfirmationChangedEvent",
    "EventDispatcher",
    "EventType",
    "ListingChangedEvent",
    "NotificationsChangedEvent",
    "ProgressChangedEvent",
    "SelectionChangedEvent",
    "SessionExpiredEvent",
    "TicketChangedEvent",
]
