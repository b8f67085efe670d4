"""
Remote API boundary.

One coroutine per remote call, with success payloads parsed into pydantic
models and failures normalized into tagged CloudError subclasses.
"""

from .client import CloudApiClient, ProgressCallback, filename_from_content_disposition
from .errors import (
    CloudError,
    ErrorKind,
    RemoteError,
    TransportError,
    ValidationError,
)
from .types import (
    Account,
    DownloadResult,
    FileEntry,
    PreviewMode,
    PreviewResponse,
    ProviderKind,
    SharePermission,
    ShareRequest,
    ShareResponse,
    StorageStats,
    UploadItem,
)

__all__ = [
    "CloudApiClient",
    "ProgressCallback",
    "filename_from_content_disposition",
    # Errors
    "CloudError",
    "ErrorKind",
    "RemoteError",
    "TransportError",
    "ValidationError",
    # Types
    "Account",
    "DownloadResult",
    "FileEntry",
    "PreviewMode",
    "PreviewResponse",
    "ProviderKind",
    "SharePermission",
    "ShareRequest",
    "ShareResponse",
    "StorageStats",
    "UploadItem",
]
