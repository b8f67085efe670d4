"""Tagged error types produced at the remote API boundary."""

from enum import Enum
from typing import Any, Optional

import httpx

DEFAULT_ERROR_MESSAGE = "Something went wrong. Please try again."

# Payload fields checked for a human-readable reason, in order
_REASON_FIELDS = ("message", "error", "details")


class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    REMOTE = "remote"
    VALIDATION = "validation"


class CloudError(Exception):
    """Base error carrying a kind tag and a user-facing message."""

    kind: ErrorKind = ErrorKind.REMOTE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class TransportError(CloudError):
    """No response reached us (connection refused, timeout, DNS failure...)."""

    kind = ErrorKind.TRANSPORT


class RemoteError(CloudError):
    """The server answered with a failure status."""

    kind = ErrorKind.REMOTE

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_auth_expired(self) -> bool:
        return self.status_code == 401


class ValidationError(CloudError):
    """Input rejected before any remote call was made."""

    kind = ErrorKind.VALIDATION


def extract_reason(payload: Any) -> Optional[str]:
    """Pick the first non-blank reason string out of an error payload.

    Args:
        payload: Decoded JSON body, or a bare string

    Returns:
        Reason string, or None if the payload carries none
    """
    if isinstance(payload, str):
        return payload.strip() or None
    if not isinstance(payload, dict):
        return None
    for field in _REASON_FIELDS:
        value = payload.get(field)
        if isinstance(value, str) and value.strip():
            return value
    return None


def remote_error_from_response(response: httpx.Response) -> RemoteError:
    """Build a RemoteError from a failed HTTP response."""
    try:
        payload: Any = response.json()
    except ValueError:
        payload = None

    reason = extract_reason(payload)
    if reason is None:
        reason = (
            f"{DEFAULT_ERROR_MESSAGE} (HTTP {response.status_code})"
            if response.status_code
            else DEFAULT_ERROR_MESSAGE
        )
    return RemoteError(reason, status_code=response.status_code)


def transport_error_from_exception(exc: httpx.RequestError) -> TransportError:
    """Build a TransportError from an httpx request failure."""
    detail = str(exc) or type(exc).__name__
    return TransportError(f"Unable to reach the server: {detail}")


def malformed_response_error(response: httpx.Response) -> RemoteError:
    """Build a RemoteError for a success status whose body cannot be decoded."""
    return RemoteError(
        f"Unexpected response from the server (HTTP {response.status_code}).",
        status_code=response.status_code,
    )
