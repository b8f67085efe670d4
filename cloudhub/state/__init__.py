"""
Client-side state: accounts, the file listing cache and the file selection.
"""

from ..models import AllFilesKey, FolderKey, ListingKey, ListingSnapshot, SearchKey
from .accounts import AccountRegistry
from .listing import FileListingCache, breadcrumb_segments, parent_path
from .selection import FileSelection

__all__ = [
    "AccountRegistry",
    "AllFilesKey",
    "FileListingCache",
    "FileSelection",
    "FolderKey",
    "ListingKey",
    "ListingSnapshot",
    "SearchKey",
    "breadcrumb_segments",
    "parent_path",
]
