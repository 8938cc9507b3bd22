"""
Persisted session: OAuth token pair plus basic account profile.

On disk this is a flat key-value record:
    {access_token, refresh_token, expires_at_epoch_ms,
     account_email, display_name, avatar_uri}
"""

import json
import logging
from pathlib import Path
from typing import Optional

from ..library.models import Token, Account
from .jsonfile import write_json_atomic

logger = logging.getLogger(__name__)

_KEYS = (
    "access_token",
    "refresh_token",
    "expires_at_epoch_ms",
    "account_email",
    "display_name",
    "avatar_uri",
)


class TokenStore:
    """In-memory key-value session store."""

    def __init__(self):
        self._data: dict = {}

    def load_token(self) -> Optional[Token]:
        """Return the stored token, or None if signed out."""
        access = self._data.get("access_token")
        if not access:
            return None
        return Token(
            access_token=access,
            refresh_token=self._data.get("refresh_token") or None,
            expires_at_ms=int(self._data.get("expires_at_epoch_ms") or 0),
        )

    def save_token(self, token: Token):
        self._data["access_token"] = token.access_token
        self._data["expires_at_epoch_ms"] = token.expires_at_ms
        if token.refresh_token:
            self._data["refresh_token"] = token.refresh_token
        self._write()

    def load_account(self) -> Account:
        return Account(
            email=self._data.get("account_email"),
            display_name=self._data.get("display_name"),
            avatar_uri=self._data.get("avatar_uri"),
        )

    def save_account(self, account: Account):
        self._data["account_email"] = account.email
        self._data["display_name"] = account.display_name
        self._data["avatar_uri"] = account.avatar_uri
        self._write()

    def clear(self):
        self._data = {}
        self._write()

    def _write(self):
        """Persist hook; in-memory store has nothing to do."""


class JsonTokenStore(TokenStore):
    """Session stored in token.json (owner read/write only)."""

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)

    @classmethod
    def load(cls, path: Path) -> "JsonTokenStore":
        store = cls(path)

        if store.path.exists():
            try:
                with open(store.path) as f:
                    data = json.load(f)
                store._data = {k: data.get(k) for k in _KEYS if k in data}
            except (json.JSONDecodeError, IOError) as e:
                logger.warning("Could not read %s, treating as signed out: %s", store.path, e)

        return store

    def _write(self):
        if not self._data:
            if self.path.exists():
                self.path.unlink()
            return

        # mkstemp creates the file 0600, os.replace keeps that mode
        write_json_atomic(self.path, self._data)
