"""
Persisted bearer token.

The only state that outlives a session.  Stored as a small JSON document
with an absolute expiry (7 days by default), the on-disk counterpart of the
``hande_token`` cookie.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class TokenStore:
    def __init__(self, path: Path, ttl_days: int = 7):
        self.path = Path(path)
        self.ttl = timedelta(days=ttl_days)

    def set(self, token: str) -> None:
        expires_at = datetime.now(timezone.utc) + self.ttl
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"token": token, "expires_at": expires_at.isoformat()})
        )
        self.path.chmod(0o600)

    def get(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text())
            token = data["token"]
            expires_at = datetime.fromisoformat(data["expires_at"])
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding unreadable token file %s", self.path)
            self.clear()
            return None
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if not isinstance(token, str) or expires_at <= datetime.now(timezone.utc):
            self.clear()
            return None
        return token

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class MemoryTokenStore(TokenStore):
    """Non-persistent variant for tests and throwaway sessions."""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def set(self, token: str) -> None:
        self._token = token

    def get(self) -> Optional[str]:
        return self._token

    def clear(self) -> None:
        self._token = None
