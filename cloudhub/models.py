"""Shared state models: listing keys, snapshots, notifications, progress and tickets."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .api.types import FileEntry


# Listing keys


class FolderKey(BaseModel):
    """A concrete ``(account, path)`` listing."""

    model_config = ConfigDict(frozen=True)

    account_id: int
    path: str = ""


class SearchKey(BaseModel):
    """Ad-hoc search results across all accounts."""

    model_config = ConfigDict(frozen=True)

    query: str


class AllFilesKey(BaseModel):
    """Every file of every connected account."""

    model_config = ConfigDict(frozen=True)


ListingKey = Union[FolderKey, SearchKey, AllFilesKey]


class ListingSnapshot(BaseModel):
    """Immutable view of the file listing cache."""

    model_config = ConfigDict(frozen=True)

    key: Optional[ListingKey] = None
    requested_key: Optional[ListingKey] = None
    entries: tuple[FileEntry, ...] = ()
    loading: bool = False
    error: Optional[str] = None

    @property
    def ids(self) -> set[int]:
        return {entry.id for entry in self.entries}

    def find(self, file_id: int) -> Optional[FileEntry]:
        for entry in self.entries:
            if entry.id == file_id:
                return entry
        return None


# Notifications


class NotificationKind(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    id: str
    message: str
    kind: NotificationKind = NotificationKind.INFO
    duration: float
    action_label: Optional[str] = None
    on_action: Optional[Callable[[], Any]] = Field(default=None, exclude=True)
    created_at: datetime = Field(default_factory=datetime.now)


class ConfirmationTone(str, Enum):
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


class ConfirmationConfig(BaseModel):
    """What a confirmation dialog shows and what it runs on confirm/cancel.

    ``on_confirm`` may be sync or async; the confirmation resolves only after
    it has completed.
    """

    title: str = "Confirm Action"
    message: str = ""
    confirm_label: str = "Confirm"
    cancel_label: str = "Cancel"
    tone: ConfirmationTone = ConfirmationTone.WARNING
    on_confirm: Optional[Callable[[], Any]] = Field(default=None, exclude=True)
    on_cancel: Optional[Callable[[], Any]] = Field(default=None, exclude=True)


class ProgressStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class ProgressState(BaseModel):
    model_config = ConfigDict(frozen=True)

    open: bool = False
    title: str = ""
    message: str = ""
    progress: Optional[float] = None
    status: ProgressStatus = ProgressStatus.PENDING
    closable: bool = False


# Operation tickets


class TicketKind(str, Enum):
    UPLOAD = "upload"
    UPLOAD_MULTIPLE = "upload_multiple"
    DOWNLOAD = "download"
    DELETE = "delete"
    BATCH_DELETE = "batch_delete"
    RENAME = "rename"
    MOVE = "move"
    COPY = "copy"
    SHARE = "share"
    CREATE_FOLDER = "create_folder"
    SYNC = "sync"
    DISCONNECT = "disconnect"


class TicketStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class OperationTicket(BaseModel):
    """Runtime record of one in-flight mutating operation."""

    ticket_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    kind: TicketKind
    target_ids: list[Union[int, str]] = Field(default_factory=list)
    status: TicketStatus = TicketStatus.PENDING
    progress_percent: Optional[int] = None
    message: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    ended_at: Optional[datetime] = None
