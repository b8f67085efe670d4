"""
Remote API client for the multi-cloud backend.

Every method performs exactly one remote call. Failures are converted into
CloudError subclasses here, so callers never inspect raw payload shapes.
"""

import re
from typing import Any, Callable, Literal, Optional, Sequence, TypeVar
from urllib.parse import quote, unquote

import httpx
from pydantic import TypeAdapter

from ..config import settings
from ..logger import logger
from .errors import (
    malformed_response_error,
    remote_error_from_response,
    transport_error_from_exception,
)
from .types import (
    Account,
    DownloadResult,
    FileEntry,
    PreviewResponse,
    ProviderKind,
    ShareRequest,
    ShareResponse,
    StorageStats,
    UploadItem,
)

T = TypeVar("T")

ProgressCallback = Callable[[int], None]

_account_adapter = TypeAdapter(Account)
_accounts_adapter = TypeAdapter(list[Account])
_file_adapter = TypeAdapter(FileEntry)
_files_adapter = TypeAdapter(list[FileEntry])
_preview_adapter = TypeAdapter(PreviewResponse)
_share_adapter = TypeAdapter(ShareResponse)
_stats_adapter = TypeAdapter(StorageStats)

_FILENAME_STAR_RE = re.compile(r"filename\*\s*=\s*[^']*'[^']*'([^;\n]+)", re.IGNORECASE)
_FILENAME_RE = re.compile(r"filename[^;=\n]*=((['\"]).*?\2|[^;\n]*)", re.IGNORECASE)


def filename_from_content_disposition(header: Optional[str]) -> Optional[str]:
    """Extract a file name from a Content-Disposition header value."""
    if not header:
        return None
    match = _FILENAME_STAR_RE.search(header)
    if match:
        return unquote(match.group(1).strip().strip("'\""))
    match = _FILENAME_RE.search(header)
    if match and match.group(1):
        name = match.group(1).replace('"', "").replace("'", "").strip()
        return name or None
    return None


class _ProgressStream(httpx.AsyncByteStream):
    """Wraps an encoded request body and reports the percentage sent."""

    def __init__(
        self,
        stream: httpx.AsyncByteStream,
        total: int,
        on_progress: ProgressCallback,
    ) -> None:
        self._stream = stream
        self._total = total
        self._on_progress = on_progress

    async def __aiter__(self):
        sent = 0
        async for chunk in self._stream:  # type: ignore[attr-defined]
            sent += len(chunk)
            yield chunk
            if self._total:
                self._on_progress(min(100, round(sent * 100 / self._total)))


class CloudApiClient:
    """Async client for the ``/cloud-accounts`` REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout if timeout is not None else settings.request_timeout_seconds,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        self.set_token(token)

    async def __aenter__(self) -> "CloudApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    def set_token(self, token: Optional[str]) -> None:
        """Install (or remove) the bearer token issued by the auth subsystem."""
        if token:
            self._client.headers["Authorization"] = f"Bearer {token}"
        else:
            self._client.headers.pop("Authorization", None)

    async def _send(self, request: httpx.Request) -> httpx.Response:
        try:
            response = await self._client.send(request)
        except httpx.RequestError as e:
            error = transport_error_from_exception(e)
            logger.warning(
                f"[transport] {request.method} {request.url.path}: {error.message}"
            )
            raise error from e

        if response.is_error:
            error = remote_error_from_response(response)
            logger.warning(
                f"[remote status={response.status_code}] {request.method} {request.url.path}: {error.message}"
            )
            raise error
        return response

    async def _request(
        self,
        method: Literal["GET", "POST", "PUT", "DELETE"],
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        request = self._client.build_request(method, path, **kwargs)
        return await self._send(request)

    async def _upload(
        self,
        path: str,
        files: list[tuple[str, tuple[str, bytes, str]]],
        data: dict[str, str],
        on_progress: Optional[ProgressCallback],
    ) -> httpx.Response:
        request = self._client.build_request("POST", path, files=files, data=data)
        if on_progress is not None:
            total = int(request.headers.get("Content-Length", 0))
            request.stream = _ProgressStream(request.stream, total, on_progress)  # type: ignore[arg-type]
        return await self._send(request)

    def _parse(self, response: httpx.Response, adapter: TypeAdapter[T]) -> T:
        """Decode a success body. A malformed payload becomes a RemoteError."""
        try:
            return adapter.validate_json(response.content)
        except ValueError as e:
            request = response.request
            logger.warning(
                f"[remote status={response.status_code}] {request.method} {request.url.path}: undecodable body: {e}"
            )
            raise malformed_response_error(response) from e

    def _parse_optional(
        self, response: httpx.Response, adapter: TypeAdapter[T]
    ) -> Optional[T]:
        """Like ``_parse``, but an empty body (e.g. 204) decodes to None."""
        if not response.content.strip():
            return None
        return self._parse(response, adapter)

    # Accounts

    async def list_accounts(self) -> list[Account]:
        response = await self._request("GET", "/cloud-accounts")
        return self._parse(response, _accounts_adapter)

    async def get_account(self, account_id: int) -> Account:
        response = await self._request("GET", f"/cloud-accounts/{account_id}")
        return self._parse(response, _account_adapter)

    async def disconnect_account(self, account_id: int) -> None:
        await self._request("DELETE", f"/cloud-accounts/{account_id}")

    async def sync_account(self, account_id: int) -> None:
        await self._request("POST", f"/cloud-accounts/{account_id}/sync")

    async def storage_stats(self) -> StorageStats:
        response = await self._request("GET", "/cloud-accounts/storage/stats")
        return self._parse(response, _stats_adapter)

    def authorize_url(self, provider: ProviderKind, username: Optional[str] = None) -> str:
        """Browser URL that starts the OAuth connect flow for ``provider``.

        Not a JSON call: the caller navigates to it.
        """
        url = f"{settings.backend_root}/oauth2/authorize/{provider.oauth_segment}"
        if username:
            url += f"?username={quote(username, safe='')}"
        return url

    # Listings

    async def list_files(self, account_id: int, path: str = "") -> list[FileEntry]:
        response = await self._request(
            "GET", f"/cloud-accounts/{account_id}/files", params={"path": path}
        )
        return self._parse(response, _files_adapter)

    async def list_all_files(self) -> list[FileEntry]:
        response = await self._request("GET", "/cloud-accounts/files/all")
        return self._parse(response, _files_adapter)

    async def search_files(self, query: str) -> list[FileEntry]:
        response = await self._request(
            "GET", "/cloud-accounts/search", params={"query": query}
        )
        return self._parse(response, _files_adapter)

    # Transfers

    async def upload_file(
        self,
        account_id: int,
        item: UploadItem,
        path: str = "",
        on_progress: Optional[ProgressCallback] = None,
    ) -> FileEntry:
        response = await self._upload(
            f"/cloud-accounts/{account_id}/upload",
            files=[("file", (item.file_name, item.content, item.content_type))],
            data={"path": path} if path else {},
            on_progress=on_progress,
        )
        return self._parse(response, _file_adapter)

    async def upload_files(
        self,
        account_id: int,
        items: Sequence[UploadItem],
        path: str = "",
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[FileEntry]:
        response = await self._upload(
            f"/cloud-accounts/{account_id}/upload/multiple",
            files=[
                ("files", (item.file_name, item.content, item.content_type))
                for item in items
            ],
            data={"path": path} if path else {},
            on_progress=on_progress,
        )
        return self._parse(response, _files_adapter)

    async def download_file(
        self, file_id: int, file_name: Optional[str] = None
    ) -> DownloadResult:
        response = await self._request(
            "GET", f"/cloud-accounts/files/{file_id}/download"
        )
        resolved = (
            filename_from_content_disposition(response.headers.get("content-disposition"))
            or file_name
            or "download"
        )
        return DownloadResult(file_name=resolved, content=response.content)

    async def get_file(self, file_id: int) -> FileEntry:
        response = await self._request("GET", f"/cloud-accounts/files/{file_id}")
        return self._parse(response, _file_adapter)

    async def share_file(self, request: ShareRequest) -> ShareResponse:
        response = await self._request(
            "POST",
            f"/cloud-accounts/files/{request.file_id}/share",
            json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        return self._parse(response, _share_adapter)

    async def preview_file(self, file_id: int) -> PreviewResponse:
        response = await self._request("GET", f"/cloud-accounts/files/{file_id}/preview")
        return self._parse(response, _preview_adapter)

    # Mutations

    async def delete_file(self, file_id: int) -> None:
        await self._request("DELETE", f"/cloud-accounts/files/{file_id}")

    async def batch_delete_files(self, file_ids: Sequence[int]) -> None:
        await self._request(
            "DELETE", "/cloud-accounts/files/batch", json={"fileIds": list(file_ids)}
        )

    async def rename_file(self, file_id: int, new_name: str) -> Optional[FileEntry]:
        response = await self._request(
            "PUT", f"/cloud-accounts/files/{file_id}/rename", json={"newName": new_name}
        )
        return self._parse_optional(response, _file_adapter)

    async def move_file(
        self, file_id: int, target_account_id: int, new_path: str
    ) -> Optional[FileEntry]:
        response = await self._request(
            "PUT",
            f"/cloud-accounts/files/{file_id}/move",
            json={"targetAccountId": target_account_id, "newPath": new_path},
        )
        return self._parse_optional(response, _file_adapter)

    async def copy_file(
        self,
        file_id: int,
        target_account_id: int,
        target_folder_id: Optional[str] = None,
    ) -> Optional[FileEntry]:
        response = await self._request(
            "POST",
            f"/cloud-accounts/files/{file_id}/copy",
            json={
                "targetAccountId": target_account_id,
                "targetFolderId": target_folder_id or "",
            },
        )
        return self._parse_optional(response, _file_adapter)

    async def create_folder(
        self,
        account_id: int,
        folder_name: str,
        parent_folder_id: Optional[str] = None,
    ) -> Optional[FileEntry]:
        response = await self._request(
            "POST",
            f"/cloud-accounts/{account_id}/folder",
            json={"folderName": folder_name, "parentFolderId": parent_folder_id or ""},
        )
        return self._parse_optional(response, _file_adapter)
