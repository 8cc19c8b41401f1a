from __future__ import annotations

import json
import logging
from pathlib import Path

"""Bearer token persistence.

The token itself comes from an external implicit OAuth flow (drive.file and
spreadsheets scopes); this store only keeps it across runs under a fixed key
and forgets it on logout.
"""

__all__ = [
    "TOKEN_KEY",
    "TokenStore",
]

logger = logging.getLogger(__name__)

TOKEN_KEY = "google_access_token"


class TokenStore:
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> str | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(f"token file unreadable, ignoring: {self.path}")
            return None
        token = data.get(TOKEN_KEY) if isinstance(data, dict) else None
        return token or None

    def save(self, token: str) -> None:
        token = token.strip()
        if not token:
            raise ValueError("empty token")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({TOKEN_KEY: token}), encoding="utf-8")

    def clear(self) -> bool:
        """Forget the stored token. Returns True when something was removed."""
        if self.path.exists():
            self.path.unlink()
            return True
        return False

    @property
    def is_authenticated(self) -> bool:
        return self.load() is not None
