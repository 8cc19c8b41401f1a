from __future__ import annotations

import re
from enum import Enum

from .schema import write_column_for

"""Helpers for attachment links stored in the DR / CBM columns."""

__all__ = [
    "AttachmentKind",
    "extract_file_id",
    "thumbnail_url",
    "view_url",
    "open_url",
    "has_attachment",
]

_FILE_ID_RE = re.compile(r"id=([a-zA-Z0-9_-]+)")


class AttachmentKind(Enum):
    DR = "dr_link"  # delivery receipt
    CBM = "cbm_link"  # cubic-volume measurement

    @property
    def column(self) -> str:
        return write_column_for(self.value)

    @classmethod
    def parse(cls, name: str) -> AttachmentKind:
        try:
            return cls[name.strip().upper()]
        except KeyError as e:
            raise ValueError(f"unknown attachment kind: {name!r} (expected DR or CBM)") from e


def extract_file_id(link: str | None) -> str | None:
    if not link:
        return None
    m = _FILE_ID_RE.search(link)
    return m.group(1) if m else None


def has_attachment(link: str | None) -> bool:
    return bool(link and link.strip())


def thumbnail_url(file_id: str, size: int = 200) -> str:
    return f"https://lh3.googleusercontent.com/d/{file_id}=s{size}"


def view_url(file_id: str) -> str:
    return f"https://drive.google.com/file/d/{file_id}/view"


def open_url(file_id: str) -> str:
    return f"https://drive.google.com/open?id={file_id}"
