"""Event dispatcher - dispatches typed events to registered handlers.

This is a simple event system without persistence.
Each event type has its own registration and dispatch method with proper typing.
"""

import asyncio
import inspect
from typing import Awaitable, Callable, Dict, List, TypeVar, Union

from ..logger import logger
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
from .types import EventType

# Generic type variable for event types
EventT = TypeVar("EventT", bound=BaseEvent)

# Generic handler type that can be sync or async for any event type
EventHandler = Union[Callable[[EventT], None], Callable[[EventT], Awaitable[None]]]


class EventDispatcher:
    """Dispatches events to registered handlers.

    Sync handlers run inline on the event loop, async handlers run
    concurrently. A failing handler is logged and never affects the
    publisher or the other handlers.
    """

    def __init__(self):
        self._handlers: Dict[EventType, List[Callable]] = {
            event_type: [] for event_type in EventType
        }
        # Strong references to fire-and-forget dispatches
        self._pending: set[asyncio.Task] = set()

    # Registration methods - one per event type for type safety

    def on_accounts_changed(self, handler: EventHandler[AccountsChangedEvent]) -> None:
        """Register handler for account list changes."""
        self._handlers[EventType.ACCOUNTS_CHANGED].append(handler)

    def on_account_selected(self, handler: EventHandler[AccountSelectedEvent]) -> None:
        """Register handler for account selection changes."""
        self._handlers[EventType.ACCOUNT_SELECTED].append(handler)

    def on_listing_changed(self, handler: EventHandler[ListingChangedEvent]) -> None:
        """Register handler for listing snapshot replacements."""
        self._handlers[EventType.LISTING_CHANGED].append(handler)

    def on_selection_changed(
        self, handler: EventHandler[SelectionChangedEvent]
    ) -> None:
        """Register handler for file selection changes."""
        self._handlers[EventType.SELECTION_CHANGED].append(handler)

    def on_notifications_changed(
        self, handler: EventHandler[NotificationsChangedEvent]
    ) -> None:
        """Register handler for notification stack changes."""
        self._handlers[EventType.NOTIFICATIONS_CHANGED].append(handler)

    def on_confirmation_changed(
        self, handler: EventHandler[ConfirmationChangedEvent]
    ) -> None:
        """Register handler for confirmation slot changes."""
        self._handlers[EventType.CONFIRMATION_CHANGED].append(handler)

    def on_progress_changed(self, handler: EventHandler[ProgressChangedEvent]) -> None:
        """Register handler for progress slot changes."""
        self._handlers[EventType.PROGRESS_CHANGED].append(handler)

    def on_ticket_changed(self, handler: EventHandler[TicketChangedEvent]) -> None:
        """Register handler for operation ticket changes."""
        self._handlers[EventType.TICKET_CHANGED].append(handler)

    def on_session_expired(self, handler: EventHandler[SessionExpiredEvent]) -> None:
        """Register handler for session expiry."""
        self._handlers[EventType.SESSION_EXPIRED].append(handler)

    def remove_handler(self, event_type: EventType, handler: Callable) -> bool:
        """Unregister a handler. Returns False if it was not registered."""
        try:
            self._handlers[event_type].remove(handler)
        except ValueError:
            return False
        return True

    # Awaited dispatch for state that callers read right after publishing.
    # Everything else goes through fire().

    async def dispatch_accounts_changed(self, event: AccountsChangedEvent) -> None:
        await self._dispatch_event(event)

    async def dispatch_account_selected(self, event: AccountSelectedEvent) -> None:
        await self._dispatch_event(event)

    async def dispatch_listing_changed(self, event: ListingChangedEvent) -> None:
        await self._dispatch_event(event)

    def fire(self, event: BaseEvent) -> None:
        """Dispatch without awaiting, for publishers that are not coroutines.

        Without a running loop the event is dropped (nothing can be listening).
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop, dropping event: {event.event_type}")
            return
        task = loop.create_task(self._dispatch_event(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait until every fired event has been delivered."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # Internal dispatch logic

    async def _dispatch_event(self, event: BaseEvent) -> None:
        """Dispatch event to all registered handlers.

        Args:
            event: Event to dispatch
        """
        handlers = list(self._handlers.get(event.event_type, []))

        if not handlers:
            logger.debug(f"No handlers registered for event: {event.event_type}")
            return

        tasks = []
        task_handlers = []
        for handler in handlers:
            try:
                if inspect.iscoroutinefunction(handler):
                    tasks.append(asyncio.create_task(handler(event)))
                    task_handlers.append(handler)
                else:
                    handler(event)
            except Exception as e:
                logger.error(
                    f"Handler {getattr(handler, '__name__', handler)} failed for event {event.event_type}: {e}",
                    exc_info=True,
                )

        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for handler, result in zip(task_handlers, results):
                if isinstance(result, Exception):
                    logger.error(
                        f"Handler {getattr(handler, '__name__', handler)} failed for event {event.event_type}: {result}",
                        exc_info=result,
                    )
