"""
Remote API payload models.

Wire payloads are camelCase; every model also accepts snake_case field names.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

import aiofiles
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ProviderKind(str, Enum):
    DRIVE = "GOOGLE_DRIVE"
    ONEDRIVE = "ONEDRIVE"
    DROPBOX = "DROPBOX"

    @property
    def display_name(self) -> str:
        return _PROVIDER_DISPLAY_NAMES[self]

    @property
    def oauth_segment(self) -> str:
        """Path segment used by ``/oauth2/authorize/{provider}``."""
        return _PROVIDER_OAUTH_SEGMENTS[self]


_PROVIDER_DISPLAY_NAMES = {
    ProviderKind.DRIVE: "Google Drive",
    ProviderKind.ONEDRIVE: "OneDrive",
    ProviderKind.DROPBOX: "Dropbox",
}

_PROVIDER_OAUTH_SEGMENTS = {
    ProviderKind.DRIVE: "google",
    ProviderKind.ONEDRIVE: "onedrive",
    ProviderKind.DROPBOX: "dropbox",
}


class Account(WireModel):
    id: int
    provider_kind: ProviderKind = Field(alias="providerName")
    account_email: str
    total_storage_bytes: Optional[int] = Field(default=None, alias="totalStorage")
    used_storage_bytes: Optional[int] = Field(default=None, alias="usedStorage")
    last_synced_at: Optional[datetime] = Field(default=None, alias="lastSynced")

    @property
    def storage_percentage(self) -> float:
        if not self.total_storage_bytes or self.used_storage_bytes is None:
            return 0.0
        return self.used_storage_bytes / self.total_storage_bytes * 100


class FileEntry(WireModel):
    id: int
    file_name: str
    file_size_bytes: Optional[int] = Field(default=None, alias="fileSize")
    mime_type: Optional[str] = None
    is_folder: bool = False
    modified_at: Optional[datetime] = None

    # Carried through when the server sends them
    file_path: Optional[str] = None
    parent_folder_id: Optional[str] = None
    cloud_provider: Optional[str] = None


class PreviewMode(str, Enum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    PDF = "PDF"
    EXTERNAL_LINK = "EXTERNAL_LINK"
    UNSUPPORTED = "UNSUPPORTED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


class PreviewResponse(WireModel):
    file_id: Optional[int] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    preview_available: bool = False
    preview_mode: PreviewMode = PreviewMode.UNKNOWN
    content_type: Optional[str] = None
    inline_content: Optional[str] = None
    preview_url: Optional[str] = None
    message: Optional[str] = None

    @field_validator("preview_mode", mode="before")
    @classmethod
    def _default_preview_mode(cls, value):
        return PreviewMode.UNKNOWN if value is None else value


class StorageStats(WireModel):
    total_files: int = 0
    total_folders: int = 0
    total_size: int = 0
    file_type_distribution: Dict[str, int] = Field(default_factory=dict)
    storage_by_cloud: Dict[str, int] = Field(default_factory=dict)
    most_used_provider: Optional[str] = None


class SharePermission(str, Enum):
    VIEW = "VIEW"
    EDIT = "EDIT"
    COMMENT = "COMMENT"


class ShareRequest(WireModel):
    """Body of ``POST /cloud-accounts/files/{id}/share``.

    Without ``shared_with_email`` the server issues a link share.
    """

    file_id: int
    shared_with_email: Optional[str] = None
    permission_type: SharePermission = SharePermission.VIEW
    can_download: bool = True
    can_share: bool = False
    link_expiry: Optional[datetime] = None
    link_password: Optional[str] = None


class ShareResponse(WireModel):
    id: Optional[int] = None
    share_link: Optional[str] = None
    file_name: Optional[str] = None
    shared_with_email: Optional[str] = None
    permission_type: Optional[str] = None
    can_download: Optional[bool] = None
    can_share: Optional[bool] = None
    created_at: Optional[datetime] = None
    link_expiry: Optional[datetime] = None
    has_password: Optional[bool] = None


class DownloadResult(BaseModel):
    file_name: str
    content: bytes


class UploadItem(BaseModel):
    """A single file to send in a multipart upload."""

    file_name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    async def from_path(
        cls, path: Path, content_type: str = "application/octet-stream"
    ) -> "UploadItem":
        async with aiofiles.open(path, "rb") as f:
            content = await f.read()
        return cls(file_name=Path(path).name, content=content, content_type=content_type)
