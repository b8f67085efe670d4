"""
Upload pipeline.

Single uploads report progress keyed by file name. Multi-file uploads send
one multipart request and report one aggregate percentage under
MULTIPLE_UPLOAD_KEY; per-file outcomes are not distinguishable, so a failed
request marks every file failed even if the server kept some of them.
"""

from typing import Sequence

from ..api.client import CloudApiClient
from ..api.errors import CloudError, ValidationError
from ..api.types import FileEntry, UploadItem
from ..logger import logger
from ..models import FolderKey, OperationTicket, TicketKind
from ..state.listing import FileListingCache
from ..utils import format_file_size
from .reporting import OutcomeReporter

MULTIPLE_UPLOAD_KEY = "multiple"


class UploadPipeline:
    def __init__(
        self,
        api: CloudApiClient,
        listing: FileListingCache,
        reporter: OutcomeReporter,
    ):
        self._api = api
        self._listing = listing
        self._reporter = reporter
        self._progress: dict[str, int] = {}

    @property
    def progress(self) -> dict[str, int]:
        """Percent sent per in-flight upload key."""
        return dict(self._progress)

    async def upload_one(
        self, account_id: int, item: UploadItem, path: str = ""
    ) -> FileEntry:
        """Upload one file, then reload the destination folder.

        Raises:
            CloudError: If the upload fails; the listing is left untouched
        """
        key = item.file_name
        ticket = self._reporter.start(
            TicketKind.UPLOAD,
            [item.file_name],
            title="Uploading file...",
            message=item.file_name,
            progress=0,
        )
        self._progress[key] = 0

        try:
            entry = await self._api.upload_file(
                account_id, item, path, on_progress=self._progress_callback(key, ticket)
            )
        except CloudError as e:
            self._reporter.fail(ticket, e, label=f"Upload of {item.file_name}")
            raise
        finally:
            self._progress.pop(key, None)

        await self._listing.load(FolderKey(account_id=account_id, path=path))
        self._reporter.succeed(
            ticket,
            f"{item.file_name} uploaded successfully.",
            f"{item.file_name} uploaded successfully! ({format_file_size(item.size)})",
        )
        return entry

    async def upload_many(
        self, account_id: int, items: Sequence[UploadItem], path: str = ""
    ) -> list[FileEntry]:
        """Upload several files in one request, then reload the destination.

        Raises:
            ValidationError: If ``items`` is empty
            CloudError: If the request fails; every item counts as failed
        """
        if not items:
            error = ValidationError("Select at least one file to upload.")
            self._reporter.fail(None, error, label="Upload")
            raise error

        names = [item.file_name for item in items]
        ticket = self._reporter.start(
            TicketKind.UPLOAD_MULTIPLE,
            names,
            title=f"Uploading {len(items)} files...",
            message=", ".join(names),
            progress=0,
        )
        self._progress[MULTIPLE_UPLOAD_KEY] = 0

        try:
            entries = await self._api.upload_files(
                account_id,
                items,
                path,
                on_progress=self._progress_callback(MULTIPLE_UPLOAD_KEY, ticket),
            )
        except CloudError as e:
            logger.warning(f"Multi-file upload failed, all {len(names)} files marked failed: {names}")
            self._reporter.fail(ticket, e, label=f"Upload of {len(names)} files")
            raise
        finally:
            self._progress.pop(MULTIPLE_UPLOAD_KEY, None)

        await self._listing.load(FolderKey(account_id=account_id, path=path))
        total_size = sum(item.size for item in items)
        self._reporter.succeed(
            ticket,
            f"{len(items)} files uploaded successfully.",
            f"{len(items)} files uploaded successfully! ({format_file_size(total_size)})",
        )
        return entries

    def _progress_callback(self, key: str, ticket: OperationTicket):
        def on_progress(percent: int) -> None:
            self._progress[key] = percent
            self._reporter.tickets.update_progress(ticket.ticket_id, percent)
            self._reporter.broker.update_progress(progress=percent)

        return on_progress
