"""Explicit store object wiring one instance of every component together."""

from typing import Optional

from .api.client import CloudApiClient
from .api.errors import ValidationError
from .events.base import SessionExpiredEvent
from .events.dispatcher import EventDispatcher
from .logger import logger
from .models import FolderKey, NotificationKind
from .notifications.broker import NotificationBroker
from .operations.coordinator import OperationCoordinator
from .state.accounts import AccountRegistry
from .state.listing import FileListingCache, parent_path
from .state.selection import FileSelection


class CloudSession:
    """One user's view over their connected accounts.

    Everything the view layer reads hangs off this object; subscribe to
    ``events`` for change notifications.
    """

    def __init__(
        self,
        api: Optional[CloudApiClient] = None,
        dispatcher: Optional[EventDispatcher] = None,
    ):
        self.api = api or CloudApiClient()
        self.events = dispatcher or EventDispatcher()
        self.broker = NotificationBroker(self.events)
        self.listing = FileListingCache(self.api, self.events)
        self.accounts = AccountRegistry(self.api, self.listing, self.events)
        self.operations = OperationCoordinator(
            self.api, self.accounts, self.listing, self.broker, self.events
        )
        self.events.on_session_expired(self._on_session_expired)

    async def __aenter__(self) -> "CloudSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def selection(self) -> FileSelection:
        return self.listing.selection

    async def start(self) -> None:
        await self.accounts.list_accounts()

    async def close(self) -> None:
        await self.api.close()

    async def navigate(self, path: str) -> bool:
        """Show ``path`` of the selected account."""
        account = self.accounts.selected
        if account is None:
            message = "Select a cloud account first."
            self.broker.notify(message, NotificationKind.WARNING)
            raise ValidationError(message)
        return await self.listing.load(FolderKey(account_id=account.id, path=path.strip("/")))

    async def navigate_up(self) -> bool:
        key = self.listing.last_folder_key
        if key is None or not key.path:
            return False
        return await self.navigate(parent_path(key.path))

    async def search(self, query: str) -> bool:
        return await self.listing.search(query)

    async def reset(self) -> None:
        """Drop all state, as after the user's session ended."""
        self.broker.reset()
        self.operations.tickets.clear_settled()
        await self.accounts.reset()

    async def _on_session_expired(self, event: SessionExpiredEvent) -> None:
        logger.warning(f"Session expired, resetting state: {event.reason}")
        self.api.set_token(None)
        await self.reset()
