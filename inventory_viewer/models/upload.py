from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "UploadResult",
]


@dataclass(frozen=True)
class UploadResult:
    """Links for a file stored in the attachment folder."""
    file_id: str
    web_view_link: str
    thumbnail_link: str
    drive_link: str  # value written into the attachment cell
    permission_set: bool = True
