"""
OAuth session management for Drive Sync.

TokenManager owns the access/refresh token pair and hands out a valid
access token, refreshing it shortly before expiry. Session lifecycle:

    ABSENT -> VALID            login
    VALID -> NEAR_EXPIRY       time passes
    NEAR_EXPIRY -> VALID       refresh succeeded
    NEAR_EXPIRY -> INVALID     refresh failed, sign in again
    * -> ABSENT                logout
"""

import logging
import threading
import time
from datetime import timezone
from enum import Enum
from typing import Callable, Optional

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from ..constants import (
    TOKEN_ENDPOINT,
    OAUTH_SCOPES,
    TOKEN_REFRESH_MARGIN_MS,
    DEFAULT_EXPIRES_IN_SECONDS,
    ID_TOKEN_EXPIRY_MS,
)
from ..errors import AuthError, ApiError, ParseError
from ..library.models import Token, Account
from ..results import Result

logger = logging.getLogger(__name__)


class SessionState(Enum):
    ABSENT = "absent"
    VALID = "valid"
    NEAR_EXPIRY = "near_expiry"
    INVALID = "invalid"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _expires_in_ms(data: dict) -> int:
    try:
        seconds = int(data.get("expires_in") or 0)
    except (TypeError, ValueError):
        seconds = 0
    if seconds <= 0:
        seconds = DEFAULT_EXPIRES_IN_SECONDS
    return seconds * 1000


class TokenManager:
    """
    Keeps a valid bearer token, refreshing through the Drive client's token endpoint.

    ensure_valid() is serialized so two near-simultaneous callers cannot both
    spend the same refresh token.
    """

    def __init__(
        self,
        store,
        client,
        client_id: str,
        client_secret: str = "",
        now_ms: Optional[Callable[[], int]] = None,
        margin_ms: int = TOKEN_REFRESH_MARGIN_MS,
    ):
        """
        Args:
            store: TokenStore persisting the session
            client: DriveClient used for code exchange and refresh
            client_id: OAuth client ID
            client_secret: OAuth client secret (empty for installed apps)
            now_ms: Clock (epoch ms), injectable for tests
            margin_ms: Refresh this long before expiry
        """
        self.store = store
        self.client = client
        self.client_id = client_id
        self.client_secret = client_secret
        self.now_ms = now_ms or _now_ms
        self.margin_ms = margin_ms
        self._lock = threading.RLock()
        # Server rejected the access token: refresh even if it looks fresh
        self._rejected = False
        # Refresh failed or is impossible: only a new login helps
        self._refresh_failed = False

    @property
    def access_token(self) -> Optional[str]:
        """Current access token (possibly stale); None when signed out."""
        token = self.store.load_token()
        return token.access_token if token else None

    @property
    def state(self) -> SessionState:
        token = self.store.load_token()
        if token is None:
            return SessionState.ABSENT
        if self._refresh_failed or self._rejected:
            return SessionState.INVALID
        if token.is_fresh(self.now_ms(), self.margin_ms):
            return SessionState.VALID
        return SessionState.NEAR_EXPIRY

    @property
    def needs_login(self) -> bool:
        """True once a refresh has failed; nothing short of login() recovers."""
        return self._refresh_failed

    @property
    def is_signed_in(self) -> bool:
        return self.state in (SessionState.VALID, SessionState.NEAR_EXPIRY)

    def ensure_valid(self) -> Result:
        """
        Make sure the stored access token is usable, refreshing if needed.

        No network call is made while the token has more than margin_ms left
        and the server has not rejected it. Once a refresh has failed, every
        call returns AuthError without touching the network until the next login.
        On failure the stored token is left untouched.
        """
        with self._lock:
            token = self.store.load_token()
            if token is None:
                return Result.failure(AuthError("Not signed in"))

            if self._refresh_failed:
                return Result.failure(AuthError("Session expired, sign in again"))

            if token.is_fresh(self.now_ms(), self.margin_ms) and not self._rejected:
                return Result.success()

            if not token.refresh_token:
                self._refresh_failed = True
                return Result.failure(AuthError("Access token expired and no refresh token is stored"))

            try:
                data = self.client.refresh_token(token.refresh_token, self.client_id, self.client_secret)
            except (ApiError, ParseError) as e:
                logger.error("Token refresh failed: %s", e)
                self._refresh_failed = True
                return Result.failure(AuthError(f"Token refresh failed: {e}"))

            access = data.get("access_token") if isinstance(data, dict) else None
            if not access:
                self._refresh_failed = True
                return Result.failure(AuthError("Empty access token in refresh response"))

            refreshed = Token(
                access_token=access,
                # Refresh responses usually omit the refresh token; keep the old one
                refresh_token=data.get("refresh_token") or token.refresh_token,
                expires_at_ms=self.now_ms() + _expires_in_ms(data),
            )
            self.store.save_token(refreshed)
            self._rejected = False
            logger.debug("Access token refreshed")
            return Result.success()

    def login(
        self,
        id_token: str,
        server_auth_code: Optional[str] = None,
        account: Optional[Account] = None,
    ) -> Result:
        """
        Start a session.

        With a server auth code the code is exchanged for an access + refresh
        pair. Without one, the identity token itself is used as the bearer
        token for a fixed hour; that session cannot be refreshed.
        """
        with self._lock:
            if server_auth_code:
                try:
                    data = self.client.exchange_auth_code(server_auth_code, self.client_id, self.client_secret)
                except (ApiError, ParseError) as e:
                    logger.error("Auth code exchange failed: %s", e)
                    return Result.failure(AuthError(f"Auth code exchange failed: {e}"))

                access = data.get("access_token") if isinstance(data, dict) else None
                if not access:
                    return Result.failure(AuthError("Token endpoint returned no access token"))

                token = Token(
                    access_token=access,
                    refresh_token=data.get("refresh_token") or None,
                    expires_at_ms=self.now_ms() + _expires_in_ms(data),
                )
            elif id_token:
                logger.warning("No server auth code; using identity token directly (no refresh possible)")
                token = Token(access_token=id_token, expires_at_ms=self.now_ms() + ID_TOKEN_EXPIRY_MS)
            else:
                return Result.failure(AuthError("Neither an identity token nor an auth code was supplied"))

            self._start_session(token, account)
            return Result.success((account or Account()).label)

    def login_with_credentials(self, creds: Credentials, account: Optional[Account] = None) -> Result:
        """Adopt credentials obtained from google-auth (e.g. sign_in_interactive)."""
        if not creds or not creds.token:
            return Result.failure(AuthError("Credentials carry no access token"))

        if creds.expiry is not None:
            # google-auth stores expiry as naive UTC
            expires_at = int(creds.expiry.replace(tzinfo=timezone.utc).timestamp() * 1000)
        else:
            expires_at = self.now_ms() + DEFAULT_EXPIRES_IN_SECONDS * 1000

        with self._lock:
            self._start_session(
                Token(access_token=creds.token, refresh_token=creds.refresh_token, expires_at_ms=expires_at),
                account,
            )
        return Result.success((account or Account()).label)

    def _start_session(self, token: Token, account: Optional[Account]):
        self.store.clear()
        self.store.save_account(account or Account())
        self.store.save_token(token)
        self._reset_flags()

    def _reset_flags(self):
        self._rejected = False
        self._refresh_failed = False

    def mark_invalid(self):
        """Flag the access token as rejected by the server (401). The next ensure_valid() refreshes."""
        with self._lock:
            self._rejected = True

    def update_account(self, account: Account):
        with self._lock:
            self.store.save_account(account)

    def logout(self):
        """Forget the session."""
        with self._lock:
            self.store.clear()
            self._reset_flags()


def sign_in_interactive(client_id: str, client_secret: str, scopes: Optional[list[str]] = None) -> Credentials:
    """
    Browser-based sign-in. Opens the consent page and waits on a local redirect.

    Returns:
        google-auth Credentials holding access + refresh tokens
    """
    client_config = {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": TOKEN_ENDPOINT,
            "redirect_uris": ["http://localhost"],
        }
    }
    flow = InstalledAppFlow.from_client_config(client_config, scopes or OAUTH_SCOPES)
    return flow.run_local_server(port=0)
