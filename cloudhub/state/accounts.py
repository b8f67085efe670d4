"""Connected accounts and the single selected account."""

from typing import Optional

from ..api.client import CloudApiClient
from ..api.errors import CloudError
from ..api.types import Account, ProviderKind
from ..config import settings
from ..events.base import AccountSelectedEvent, AccountsChangedEvent
from ..events.dispatcher import EventDispatcher
from ..logger import logger
from ..models import FolderKey
from .listing import FileListingCache


class AccountRegistry:
    """Holds the account list and the selected account.

    The list follows a stale-but-available policy: a failed refresh keeps the
    previous list and sets ``error``. Selecting an account drives the listing
    cache; there is no fallback selection after the selected account is
    disconnected.
    """

    def __init__(
        self,
        api: CloudApiClient,
        listing: FileListingCache,
        dispatcher: EventDispatcher,
        auto_select_first: Optional[bool] = None,
    ):
        self._api = api
        self._listing = listing
        self._dispatcher = dispatcher
        self._auto_select_first = (
            settings.auto_select_first_account
            if auto_select_first is None
            else auto_select_first
        )

        self._seq = 0
        self._accounts: list[Account] = []
        self._selected: Optional[Account] = None
        self._error: Optional[str] = None
        self._loaded = False

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts)

    @property
    def selected(self) -> Optional[Account]:
        return self._selected

    @property
    def error(self) -> Optional[str]:
        return self._error

    def get_account(self, account_id: int) -> Optional[Account]:
        for account in self._accounts:
            if account.id == account_id:
                return account
        return None

    async def list_accounts(self, auto_select: bool = True) -> list[Account]:
        """Fetch and replace the account list.

        Args:
            auto_select: Allow selecting the first account on the first
                successful load when nothing is selected

        Returns:
            The current list; the previous one if the fetch failed
        """
        self._seq += 1
        seq = self._seq

        try:
            accounts = await self._api.list_accounts()
        except CloudError as e:
            if seq == self._seq:
                self._error = e.message
                logger.warning(f"Failed to list accounts, keeping {len(self._accounts)} cached: [{e.kind.value}] {e.message}")
                await self._publish()
            return self.accounts

        if seq != self._seq:
            logger.debug(f"Discarding stale account list (seq {seq} < {self._seq})")
            return self.accounts

        first_load = not self._loaded
        self._loaded = True
        self._accounts = accounts
        self._error = None
        await self._publish()

        if self._selected is not None:
            fresh = self.get_account(self._selected.id)
            if fresh is None:
                logger.info(f"Selected account {self._selected.id} is gone, clearing selection")
                await self.select_account(None)
            else:
                self._selected = fresh
        elif first_load and auto_select and self._auto_select_first and accounts:
            await self.select_account(accounts[0])

        return self.accounts

    async def select_account(self, account: Optional[Account]) -> None:
        """Select ``account`` (or nothing) and reload its root listing."""
        self._selected = account
        await self._dispatcher.dispatch_account_selected(
            AccountSelectedEvent(account=account)
        )
        await self._listing.clear()
        if account is not None:
            logger.info(f"Selected account {account.id} ({account.provider_kind.display_name})")
            await self._listing.load(FolderKey(account_id=account.id, path=""))

    async def disconnect_account(self, account_id: int) -> None:
        """Disconnect an account remotely, then refresh the list.

        Raises:
            CloudError: If the remote delete fails; nothing changes locally
        """
        await self._api.disconnect_account(account_id)
        logger.info(f"Disconnected account {account_id}")

        self._accounts = [a for a in self._accounts if a.id != account_id]
        if self._selected is not None and self._selected.id == account_id:
            await self.select_account(None)
        await self.list_accounts(auto_select=False)

    def authorize_url(self, provider: ProviderKind, username: Optional[str] = None) -> str:
        return self._api.authorize_url(provider, username)

    async def reset(self) -> None:
        self._seq += 1
        self._accounts = []
        self._error = None
        self._loaded = False
        await self.select_account(None)
        await self._publish()

    async def _publish(self) -> None:
        await self._dispatcher.dispatch_accounts_changed(
            AccountsChangedEvent(accounts=self.accounts, error=self._error)
        )
