from __future__ import annotations

from enum import Enum

"""Error taxonomy for the sheet / drive clients.

Every failure that reaches an operation boundary is turned into a short
message by describe_failure(); no structured codes cross that boundary.
"""

__all__ = [
    "FailureKind",
    "SheetApiError",
    "AuthError",
    "TransportError",
    "UploadValidationError",
    "AUTH_MESSAGE",
    "is_auth_failure",
    "describe_failure",
]

AUTH_MESSAGE = "Session expired. Please log in again."
_AUTH_STATUSES = {401, 403}
_AUTH_MARKERS = ("authentication", "credentials", "invalid credentials", "oauth")


class FailureKind(Enum):
    CONFIG = "CONFIG"
    AUTH = "AUTH"
    TRANSPORT = "TRANSPORT"
    VALIDATION = "VALIDATION"
    UNKNOWN = "UNKNOWN"


class SheetApiError(Exception):
    """HTTP error returned by the sheets / drive API."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class AuthError(SheetApiError):
    """Bearer token missing, expired or rejected."""


class TransportError(SheetApiError):
    """Network failure or malformed response body."""


class UploadValidationError(ValueError):
    """Payload rejected before upload (not an image / too large)."""


def is_auth_failure(status: int | None, message: str) -> bool:
    if status in _AUTH_STATUSES:
        return True
    lowered = message.lower()
    if "401" in lowered or "403" in lowered:
        return True
    return any(marker in lowered for marker in _AUTH_MARKERS)


def describe_failure(exc: BaseException) -> tuple[FailureKind, str]:
    """Map an exception to (kind, short human readable message)."""
    # 循環 import 回避のため遅延 import
    from ..config.loader import ConfigError
    from ..sheets.decoder import DecodeError

    if isinstance(exc, ConfigError):
        return FailureKind.CONFIG, str(exc)
    if isinstance(exc, AuthError):
        return FailureKind.AUTH, AUTH_MESSAGE
    if isinstance(exc, TransportError):
        return FailureKind.TRANSPORT, f"Network error: {exc.message}. Please retry."
    if isinstance(exc, SheetApiError):
        if is_auth_failure(exc.status, exc.message):
            return FailureKind.AUTH, AUTH_MESSAGE
        return FailureKind.TRANSPORT, exc.message or "Request failed"
    if isinstance(exc, DecodeError):
        return FailureKind.TRANSPORT, f"Could not read sheet data: {exc}"
    if isinstance(exc, (UploadValidationError, ValueError)):
        return FailureKind.VALIDATION, str(exc)
    return FailureKind.UNKNOWN, str(exc) or exc.__class__.__name__
