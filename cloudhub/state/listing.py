"""
File listing cache with last-request-wins staleness protection.

Every fetch is tagged with a sequence number; a response is applied only
if no newer request was issued while it was in flight. Superseded
responses are dropped after arrival, never surfaced.
"""

from typing import Optional

from ..api.client import CloudApiClient
from ..api.errors import DEFAULT_ERROR_MESSAGE, CloudError
from ..api.types import FileEntry
from ..events.base import ListingChangedEvent
from ..events.dispatcher import EventDispatcher
from ..logger import logger
from ..models import AllFilesKey, FolderKey, ListingKey, ListingSnapshot, SearchKey
from .selection import FileSelection


def breadcrumb_segments(path: str) -> list[str]:
    """Split a folder path into its non-blank segments."""
    return [segment for segment in path.split("/") if segment.strip()]


def parent_path(path: str) -> str:
    return "/".join(breadcrumb_segments(path)[:-1])


class FileListingCache:
    """Holds the listing for exactly one key at a time.

    Only ``load``, ``search``, ``refresh``, ``load_all`` and ``clear`` may
    replace the listing. Replacement is all-or-nothing; a failed fetch keeps
    the last good entries and only sets ``error``.
    """

    def __init__(
        self,
        api: CloudApiClient,
        dispatcher: EventDispatcher,
        selection: Optional[FileSelection] = None,
    ):
        self._api = api
        self._dispatcher = dispatcher
        self.selection = selection or FileSelection(dispatcher)

        self._seq = 0
        self._key: Optional[ListingKey] = None
        self._requested_key: Optional[ListingKey] = None
        self._last_folder_key: Optional[FolderKey] = None
        self._entries: tuple[FileEntry, ...] = ()
        self._loading = False
        self._error: Optional[str] = None

    @property
    def snapshot(self) -> ListingSnapshot:
        return ListingSnapshot(
            key=self._key,
            requested_key=self._requested_key,
            entries=self._entries,
            loading=self._loading,
            error=self._error,
        )

    @property
    def entries(self) -> tuple[FileEntry, ...]:
        return self._entries

    @property
    def requested_key(self) -> Optional[ListingKey]:
        return self._requested_key

    @property
    def last_folder_key(self) -> Optional[FolderKey]:
        return self._last_folder_key

    @property
    def sequence(self) -> int:
        return self._seq

    async def load(self, key: ListingKey) -> bool:
        """Fetch the listing for ``key`` and install it if still current.

        Returns:
            True if the response was applied, False if it failed or was stale
        """
        self._seq += 1
        seq = self._seq
        self._requested_key = key
        if isinstance(key, FolderKey):
            self._last_folder_key = key
        self._loading = True
        await self._publish()

        try:
            entries = await self._fetch(key)
        except CloudError as e:
            if seq != self._seq:
                logger.debug(f"Discarding stale listing failure for {key!r} (seq {seq} < {self._seq})")
                return False
            self._loading = False
            self._error = e.message
            logger.warning(f"Failed to load listing for {key!r}: [{e.kind.value}] {e.message}")
            await self._publish()
            return False
        except Exception:
            if seq == self._seq:
                self._loading = False
                self._error = DEFAULT_ERROR_MESSAGE
                await self._publish()
            raise

        if seq != self._seq:
            logger.debug(f"Discarding stale listing response for {key!r} (seq {seq} < {self._seq})")
            return False

        self._key = key
        self._entries = tuple(entries)
        self._loading = False
        self._error = None
        self.selection.retain(entry.id for entry in self._entries)
        logger.debug(f"Listing for {key!r} applied with {len(self._entries)} entries")
        await self._publish()
        return True

    async def search(self, query: str) -> bool:
        """Show search results; a blank query goes back to the last folder."""
        query = query.strip()
        if not query:
            if self._last_folder_key is None:
                return False
            return await self.load(self._last_folder_key)
        return await self.load(SearchKey(query=query))

    async def load_all(self) -> bool:
        return await self.load(AllFilesKey())

    async def refresh(self) -> bool:
        """Reload the last-requested key, if any."""
        if self._requested_key is None:
            return False
        return await self.load(self._requested_key)

    async def clear(self) -> None:
        """Empty the listing and invalidate every in-flight fetch."""
        self._seq += 1
        self._key = None
        self._requested_key = None
        self._last_folder_key = None
        self._entries = ()
        self._loading = False
        self._error = None
        self.selection.retain(())
        await self._publish()

    async def _fetch(self, key: ListingKey) -> list[FileEntry]:
        if isinstance(key, FolderKey):
            return await self._api.list_files(key.account_id, key.path)
        if isinstance(key, SearchKey):
            return await self._api.search_files(key.query)
        return await self._api.list_all_files()

    async def _publish(self) -> None:
        await self._dispatcher.dispatch_listing_changed(
            ListingChangedEvent(snapshot=self.snapshot)
        )
