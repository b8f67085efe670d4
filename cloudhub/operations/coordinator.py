"""
Operation coordinator.

Every mutating action follows the same pattern: validate, call the remote
API, and on success reload the active listing from the server instead of
patching it locally. Failures are reported once to the broker and raised
once to the caller; nothing is retried and the listing is left as it was.
"""

from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence, TypeVar, Union

import aiofiles
from aiofiles import os as aioos

from ..api.client import CloudApiClient
from ..api.errors import DEFAULT_ERROR_MESSAGE, CloudError, ValidationError
from ..api.types import (
    FileEntry,
    PreviewResponse,
    SharePermission,
    ShareRequest,
    ShareResponse,
    StorageStats,
    UploadItem,
)
from ..events.dispatcher import EventDispatcher
from ..logger import logger
from ..models import (
    ConfirmationConfig,
    ConfirmationTone,
    FolderKey,
    TicketKind,
)
from ..notifications.broker import NotificationBroker
from ..state.accounts import AccountRegistry
from ..state.listing import FileListingCache
from .reporting import OutcomeReporter
from .tickets import TicketRegistry
from .uploads import UploadPipeline

T = TypeVar("T")


class OperationCoordinator:
    """Runs mutating operations and keeps the listing consistent afterwards."""

    def __init__(
        self,
        api: CloudApiClient,
        registry: AccountRegistry,
        listing: FileListingCache,
        broker: NotificationBroker,
        dispatcher: EventDispatcher,
        tickets: Optional[TicketRegistry] = None,
    ):
        self._api = api
        self._registry = registry
        self._listing = listing
        self._broker = broker
        self.tickets = tickets or TicketRegistry(dispatcher)
        self._reporter = OutcomeReporter(broker, self.tickets, dispatcher)
        self.uploads = UploadPipeline(api, listing, self._reporter)

    # Internal helpers

    async def _run(
        self,
        kind: TicketKind,
        target_ids: Sequence[Union[int, str]],
        call: Callable[[], Awaitable[T]],
        *,
        title: str,
        message: str,
        success_message: str,
        after: Optional[Callable[[], Awaitable[object]]] = None,
        refresh: bool = True,
    ) -> T:
        label = title.rstrip(".")
        ticket = self._reporter.start(kind, target_ids, title=title, message=message)
        try:
            result = await call()
            if after is not None:
                await after()
            elif refresh:
                await self._listing.refresh()
        except CloudError as e:
            self._reporter.fail(ticket, e, label=label)
            raise
        except Exception as e:
            # Ticket and progress slot must still settle
            logger.error(f"{label} failed unexpectedly: {e}", exc_info=True)
            self._reporter.fail(ticket, CloudError(DEFAULT_ERROR_MESSAGE), label=label)
            raise
        self._reporter.succeed(ticket, success_message)
        return result

    def _reject(self, message: str, label: str) -> ValidationError:
        error = ValidationError(message)
        self._reporter.fail(None, error, label=label)
        return error

    def _display_name(self, file_id: int) -> str:
        entry = self._listing.snapshot.find(file_id)
        return entry.file_name if entry else f"file {file_id}"

    def _source_account_id(self, source_account_id: Optional[int]) -> Optional[int]:
        if source_account_id is not None:
            return source_account_id
        selected = self._registry.selected
        return selected.id if selected else None

    # Uploads

    async def upload_one(
        self, account_id: int, item: UploadItem, path: str = ""
    ) -> FileEntry:
        return await self.uploads.upload_one(account_id, item, path)

    async def upload_many(
        self, account_id: int, items: Sequence[UploadItem], path: str = ""
    ) -> list[FileEntry]:
        return await self.uploads.upload_many(account_id, items, path)

    # Mutations

    async def rename(
        self, file_id: int, new_name: str, current_name: Optional[str] = None
    ) -> Optional[FileEntry]:
        """Rename a file. A blank or unchanged name is a no-op returning None."""
        name = (new_name or "").strip()
        if current_name is None:
            entry = self._listing.snapshot.find(file_id)
            current_name = entry.file_name if entry else None
        if not name or name == current_name:
            logger.debug(f"Rename of {file_id} skipped, name unchanged or blank: {new_name!r}")
            return None

        return await self._run(
            TicketKind.RENAME,
            [file_id],
            lambda: self._api.rename_file(file_id, name),
            title="Renaming file...",
            message=name,
            success_message=f"Renamed to {name}.",
        )

    async def delete(self, file_id: int, confirm: bool = False) -> bool:
        """Delete one file.

        Returns:
            False if the user declined the confirmation, True once deleted
        """
        name = self._display_name(file_id)
        if confirm and not await self._broker.confirm(
            ConfirmationConfig(
                title="Delete File",
                message=f"Are you sure you want to delete {name}?",
                confirm_label="Delete",
                tone=ConfirmationTone.DANGER,
            )
        ):
            return False

        await self._run(
            TicketKind.DELETE,
            [file_id],
            lambda: self._api.delete_file(file_id),
            title="Deleting file...",
            message=name,
            success_message=f"{name} deleted successfully.",
        )
        self._listing.selection.deselect(file_id)
        return True

    async def batch_delete(self, file_ids: Sequence[int], confirm: bool = False) -> bool:
        """Delete several files in one all-or-nothing remote call.

        Returns:
            False if there was nothing to delete or the user declined
        """
        ids = list(dict.fromkeys(file_ids))
        if not ids:
            return False
        if confirm and not await self._broker.confirm(
            ConfirmationConfig(
                title="Delete Selected Files",
                message=f"Are you sure you want to delete {len(ids)} selected item(s)?",
                confirm_label="Delete",
                tone=ConfirmationTone.DANGER,
            )
        ):
            return False

        await self._run(
            TicketKind.BATCH_DELETE,
            ids,
            lambda: self._api.batch_delete_files(ids),
            title=f"Deleting {len(ids)} item(s)...",
            message=f"{len(ids)} item(s)",
            success_message="Selected files deleted.",
        )
        for file_id in ids:
            self._listing.selection.deselect(file_id)
        return True

    async def copy(
        self,
        file_id: int,
        target_account_id: int,
        target_folder_id: Optional[str] = None,
        source_account_id: Optional[int] = None,
    ) -> Optional[FileEntry]:
        """Copy a file to another account; no folder means the destination root."""
        if target_account_id == self._source_account_id(source_account_id):
            raise self._reject("Choose a different account to copy to.", "Copy")

        name = self._display_name(file_id)
        return await self._run(
            TicketKind.COPY,
            [file_id],
            lambda: self._api.copy_file(file_id, target_account_id, target_folder_id),
            title="Copying file...",
            message=name,
            success_message=f"{name} copied successfully.",
        )

    async def move(
        self,
        file_id: int,
        target_account_id: int,
        new_path: str,
        source_account_id: Optional[int] = None,
    ) -> Optional[FileEntry]:
        if target_account_id == self._source_account_id(source_account_id):
            raise self._reject("Choose a different account to move to.", "Move")

        name = self._display_name(file_id)
        return await self._run(
            TicketKind.MOVE,
            [file_id],
            lambda: self._api.move_file(file_id, target_account_id, new_path),
            title="Moving file...",
            message=name,
            success_message=f"{name} moved successfully.",
        )

    async def create_folder(
        self,
        account_id: int,
        name: str,
        parent_folder_id: Optional[str] = None,
    ) -> Optional[FileEntry]:
        folder_name = (name or "").strip()
        if not folder_name:
            raise self._reject("Folder name is required.", "Create folder")

        return await self._run(
            TicketKind.CREATE_FOLDER,
            [folder_name],
            lambda: self._api.create_folder(account_id, folder_name, parent_folder_id),
            title="Creating folder...",
            message=folder_name,
            success_message=f"Folder {folder_name} created.",
        )

    async def sync(self, account_id: int) -> None:
        """Refresh an account provider-side, then reload what depends on it."""

        async def after_sync() -> None:
            await self._registry.list_accounts(auto_select=False)
            key = self._listing.requested_key
            if isinstance(key, FolderKey) and key.account_id == account_id:
                await self._listing.refresh()

        await self._run(
            TicketKind.SYNC,
            [account_id],
            lambda: self._api.sync_account(account_id),
            title="Syncing account...",
            message=f"Account {account_id}",
            success_message="Account synced.",
            after=after_sync,
        )

    async def disconnect_account(self, account_id: int, confirm: bool = False) -> bool:
        account = self._registry.get_account(account_id)
        label = account.account_email if account else f"account {account_id}"
        if confirm and not await self._broker.confirm(
            ConfirmationConfig(
                title="Disconnect Account",
                message=f"Disconnect {label}? Files stay in the cloud.",
                confirm_label="Disconnect",
                tone=ConfirmationTone.DANGER,
            )
        ):
            return False

        await self._run(
            TicketKind.DISCONNECT,
            [account_id],
            lambda: self._registry.disconnect_account(account_id),
            title="Disconnecting account...",
            message=label,
            success_message=f"{label} disconnected.",
            refresh=False,
        )
        return True

    # Reads with user feedback

    async def download(
        self,
        file_id: int,
        file_name: Optional[str] = None,
        destination: Path = Path("."),
    ) -> Path:
        """Download a file into ``destination`` (a directory or a file path).

        The saved name comes from the server's Content-Disposition header,
        falling back to ``file_name``.
        """
        entry = self._listing.snapshot.find(file_id)
        if entry is not None and entry.is_folder:
            raise self._reject("Folders cannot be downloaded.", "Download")
        file_name = file_name or (entry.file_name if entry else None)

        async def fetch_and_save() -> Path:
            result = await self._api.download_file(file_id, file_name)
            target = Path(destination)
            if await aioos.path.isdir(target):
                target = target / Path(result.file_name).name
            async with aiofiles.open(target, "wb") as f:
                await f.write(result.content)
            logger.info(f"Saved {len(result.content)} bytes of file {file_id} to {target}")
            return target

        return await self._run(
            TicketKind.DOWNLOAD,
            [file_id],
            fetch_and_save,
            title="Downloading file...",
            message=file_name or f"file {file_id}",
            success_message=f"{file_name or 'File'} downloaded.",
            refresh=False,
        )

    async def preview(self, file_id: int) -> PreviewResponse:
        entry = self._listing.snapshot.find(file_id)
        if entry is not None and entry.is_folder:
            raise self._reject("Folders cannot be previewed yet.", "Preview")
        try:
            return await self._api.preview_file(file_id)
        except CloudError as e:
            self._reporter.fail(None, e, label="Preview")
            raise

    async def storage_stats(self) -> StorageStats:
        return await self._api.storage_stats()

    async def file_details(self, file_id: int) -> FileEntry:
        try:
            return await self._api.get_file(file_id)
        except CloudError as e:
            self._reporter.fail(None, e, label="Load file details")
            raise

    # Sharing

    async def share(
        self,
        file_id: int,
        shared_with_email: Optional[str] = None,
        permission: SharePermission = SharePermission.VIEW,
        can_download: bool = True,
        can_share: bool = False,
        link_expiry: Optional[datetime] = None,
        link_password: Optional[str] = None,
    ) -> ShareResponse:
        """Share a file with someone, or create a link share when no email is given.

        The listing is not reloaded; sharing does not change file entries.
        """
        email = (shared_with_email or "").strip() or None
        if email is not None and "@" not in email:
            raise self._reject("Enter a valid email address to share with.", "Share")

        request = ShareRequest(
            file_id=file_id,
            shared_with_email=email,
            permission_type=permission,
            can_download=can_download,
            can_share=can_share,
            link_expiry=link_expiry,
            link_password=link_password or None,
        )
        name = self._display_name(file_id)
        return await self._run(
            TicketKind.SHARE,
            [file_id],
            lambda: self._api.share_file(request),
            title="Sharing file...",
            message=name,
            success_message=f"{name} shared with {email}." if email else f"Share link created for {name}.",
            refresh=False,
        )
