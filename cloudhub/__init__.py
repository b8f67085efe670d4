"""
cloudhub - one consistent view over several cloud-storage accounts.
"""

from .api import (
    Account,
    CloudApiClient,
    CloudError,
    ErrorKind,
    FileEntry,
    ProviderKind,
    RemoteError,
    TransportError,
    UploadItem,
    ValidationError,
)
from .events import EventDispatcher, EventType
from .models import AllFilesKey, FolderKey, ListingSnapshot, SearchKey
from .notifications import NotificationBroker, NotificationKind
from .operations import MULTIPLE_UPLOAD_KEY, OperationCoordinator
from .session import CloudSession
from .state import AccountRegistry, FileListingCache, FileSelection

__all__ = [
    "Account",
    "AccountRegistry",
    "AllFilesKey",
    "CloudApiClient",
    "CloudError",
    "CloudSession",
    "ErrorKind",
    "EventDispatcher",
    "EventType",
    "FileEntry",
    "FileListingCache",
    "FileSelection",
    "FolderKey",
    "ListingSnapshot",
    "MULTIPLE_UPLOAD_KEY",
    "NotificationBroker",
    "NotificationKind",
    "OperationCoordinator",
    "ProviderKind",
    "RemoteError",
    "SearchKey",
    "TransportError",
    "UploadItem",
    "ValidationError",
]
