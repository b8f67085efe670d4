"""Base event model for all events."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from ..api.types import Account
from ..models import (
    ConfirmationConfig,
    ListingSnapshot,
    Notification,
    OperationTicket,
    ProgressState,
)
from .types import EventType


class BaseEvent(BaseModel):
    """Base class for all events."""

    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# Account registry events
class AccountsChangedEvent(BaseEvent):
    """Fired after the account list was fetched (or failed to be)."""

    event_type: EventType = EventType.ACCOUNTS_CHANGED
    accounts: list[Account] = Field(..., description="Current account list")
    error: Optional[str] = Field(default=None, description="Last fetch error, if any")


class AccountSelectedEvent(BaseEvent):
    """Fired when the selected account changes."""

    event_type: EventType = EventType.ACCOUNT_SELECTED
    account: Optional[Account] = Field(default=None, description="Selected account")


# File listing events
class ListingChangedEvent(BaseEvent):
    """Fired whenever the listing snapshot is replaced."""

    event_type: EventType = EventType.LISTING_CHANGED
    snapshot: ListingSnapshot


class SelectionChangedEvent(BaseEvent):
    """Fired when the set of marked file ids changes."""

    event_type: EventType = EventType.SELECTION_CHANGED
    selected_ids: list[int] = Field(..., description="Marked file ids, sorted")


# Broker events
class NotificationsChangedEvent(BaseEvent):
    """Fired when a notification is added or dismissed."""

    event_type: EventType = EventType.NOTIFICATIONS_CHANGED
    notifications: list[Notification]


class ConfirmationChangedEvent(BaseEvent):
    """Fired when the confirmation slot opens or closes."""

    event_type: EventType = EventType.CONFIRMATION_CHANGED
    request: Optional[ConfirmationConfig] = Field(
        default=None, description="Open request, or None when closed"
    )


class ProgressChangedEvent(BaseEvent):
    """Fired when the global progress slot changes."""

    event_type: EventType = EventType.PROGRESS_CHANGED
    state: ProgressState


# Operation events
class TicketChangedEvent(BaseEvent):
    """Fired when an operation ticket is created, updated or discarded."""

    event_type: EventType = EventType.TICKET_CHANGED
    ticket: OperationTicket
    discarded: bool = False


# Session events
class SessionExpiredEvent(BaseEvent):
    """Fired when the server rejects our credentials."""

    event_type: EventType = EventType.SESSION_EXPIRED
    reason: str = ""
