from __future__ import annotations

import json
import logging
import mimetypes
import time
from pathlib import Path

import httpx

from ..models.upload import UploadResult
from ..sheets.attachments import open_url, thumbnail_url, view_url
from .errors import AuthError, TransportError, UploadValidationError
from .sheets_api import raise_for_api_error

"""Attachment upload to the shared drive folder.

upload_image() does a multipart upload (JSON metadata + binary payload) and
then grants "anyone with the link may view". The permission call is best
effort: once the file is stored the upload counts as a success.
"""

__all__ = [
    "DRIVE_UPLOAD_URL",
    "DRIVE_FILES_URL",
    "MAX_UPLOAD_BYTES",
    "DriveClient",
    "validate_image",
]

logger = logging.getLogger(__name__)

DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files"
DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def validate_image(content: bytes, mime_type: str | None) -> None:
    if not mime_type or not mime_type.startswith("image/"):
        raise UploadValidationError("Please select an image file")
    if len(content) > MAX_UPLOAD_BYTES:
        raise UploadValidationError("File size must be less than 10MB")


class DriveClient:
    def __init__(self, token: str | None, folder_id: str, *, http: httpx.Client | None = None) -> None:
        self.token = token
        self.folder_id = folder_id
        self._owns_http = http is None
        self._http = http or httpx.Client()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> DriveClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _auth_headers(self) -> dict[str, str]:
        if not self.token:
            raise AuthError("authentication required: no access token", status=401)
        return {"Authorization": f"Bearer {self.token}"}

    def upload_file(self, path: Path) -> UploadResult:
        mime_type, _ = mimetypes.guess_type(path.name)
        return self.upload_image(path.read_bytes(), path.name, mime_type)

    def upload_image(self, content: bytes, filename: str, mime_type: str | None) -> UploadResult:
        validate_image(content, mime_type)
        headers = self._auth_headers()
        metadata = {
            "name": f"{int(time.time() * 1000)}_{filename}",
            "mimeType": mime_type,
            "parents": [self.folder_id],
        }
        files = {
            "metadata": (None, json.dumps(metadata), "application/json"),
            "file": (filename, content, mime_type),
        }
        try:
            resp = self._http.post(DRIVE_UPLOAD_URL, params={"uploadType": "multipart"}, headers=headers, files=files)
        except httpx.HTTPError as e:
            raise TransportError(str(e) or e.__class__.__name__) from e
        raise_for_api_error(resp, "Failed to upload file to Google Drive")
        try:
            file_id = resp.json()["id"]
        except (ValueError, KeyError, TypeError) as e:
            raise TransportError(f"malformed upload response: {e}", status=resp.status_code) from e

        permission_set = self._share_with_link(file_id, headers)
        return UploadResult(
            file_id=file_id,
            web_view_link=view_url(file_id),
            thumbnail_link=thumbnail_url(file_id),
            drive_link=open_url(file_id),
            permission_set=permission_set,
        )

    def _share_with_link(self, file_id: str, headers: dict[str, str]) -> bool:
        try:
            resp = self._http.post(
                f"{DRIVE_FILES_URL}/{file_id}/permissions",
                headers=headers,
                json={"role": "reader", "type": "anyone"},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Failed to set file permissions, but upload succeeded: {e}")
            return False
        if not resp.is_success:
            logger.warning(f"Failed to set file permissions, but upload succeeded (status={resp.status_code})")
            return False
        return True
