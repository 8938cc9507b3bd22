"""
Google Drive API client for Drive Sync.

Handles all HTTP interactions with the Drive API and the OAuth endpoints.
Every method is a single request; non-2xx responses raise ApiError and
callers decide whether to retry.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

import requests

from ..constants import (
    DRIVE_API_BASE,
    TOKEN_ENDPOINT,
    IDENTITY_ENDPOINT,
    DEFAULT_PAGE_SIZE,
    FOLDER_MIME_TYPE,
)
from ..errors import ApiError, ParseError
from .utils import build_folders_query, build_audio_files_query

logger = logging.getLogger(__name__)

AUDIO_FILE_FIELDS = "nextPageToken,files(id,name,mimeType,size,modifiedTime,thumbnailLink)"
FOLDER_FIELDS = "nextPageToken,files(id,name)"
METADATA_FIELDS = "id,name,mimeType,size,modifiedTime,thumbnailLink"

TokenSource = Union[str, Callable[[], Optional[str]], None]


@dataclass
class DriveClientConfig:
    """Configuration for DriveClient."""
    api_base: str = DRIVE_API_BASE
    token_endpoint: str = TOKEN_ENDPOINT
    identity_endpoint: str = IDENTITY_ENDPOINT
    timeout: int = 60
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass
class ListPage:
    """One page of a files.list response."""
    items: list[dict] = field(default_factory=list)
    next_page_token: Optional[str] = None


class DriveClient:
    """
    Google Drive API client.

    Holds no session state of its own: the bearer token is read from
    auth_token (a string or a zero-arg callable) on every request.
    """

    def __init__(self, config: Optional[DriveClientConfig] = None, auth_token: TokenSource = None):
        """
        Initialize the Drive client.

        Args:
            config: Client configuration
            auth_token: Access token, or callable returning the current one
        """
        self.config = config or DriveClientConfig()
        self.auth_token = auth_token
        self._api_calls = 0

    @property
    def api_calls(self) -> int:
        """Total API calls made by this client."""
        return self._api_calls

    @property
    def files_url(self) -> str:
        return f"{self.config.api_base}/files"

    def _current_token(self) -> Optional[str]:
        if callable(self.auth_token):
            return self.auth_token()
        return self.auth_token

    def auth_header(self) -> str:
        """Authorization header value for playback/streaming collaborators."""
        return f"Bearer {self._current_token() or ''}"

    def _get_headers(self) -> dict:
        token = self._current_token()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def _request(self, method: str, url: str, authenticated: bool = True, **kwargs) -> dict:
        """Make one request and return the decoded JSON body."""
        timeout = kwargs.pop("timeout", self.config.timeout)
        headers = kwargs.pop("headers", {})
        if authenticated:
            headers = {**self._get_headers(), **headers}

        try:
            response = requests.request(method, url, headers=headers, timeout=timeout, **kwargs)
        except requests.RequestException as e:
            logger.debug("%s %s failed: %s", method, url[:80], e)
            raise ApiError(0, str(e), url) from e

        self._api_calls += 1
        logger.debug("%s %s: %s", method, url[:80], response.status_code)

        if not response.ok:
            raise ApiError(response.status_code, response.text or "", url)

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Invalid JSON from {url[:80]}: {e}") from e

    def _list(self, query: str, fields: str, page_token: Optional[str]) -> ListPage:
        params = {
            "q": query,
            "fields": fields,
            "pageSize": self.config.page_size,
            "orderBy": "name",
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
        }
        if page_token:
            params["pageToken"] = page_token

        data = self._request("GET", self.files_url, params=params)
        if not isinstance(data, dict):
            raise ParseError("files.list response is not an object")

        files = data.get("files")
        items = [f for f in files if isinstance(f, dict)] if isinstance(files, list) else []
        return ListPage(items=items, next_page_token=data.get("nextPageToken") or None)

    def list_folders(self, parent_id: str = "root", page_token: Optional[str] = None) -> ListPage:
        """
        List one page of subfolders of parent_id.

        Args:
            parent_id: Drive folder ID ("root" for My Drive)
            page_token: Token from the previous page, if any

        Returns:
            ListPage of {id, name} dicts
        """
        return self._list(build_folders_query(parent_id), FOLDER_FIELDS, page_token)

    def list_audio_files(self, folder_id: str, page_token: Optional[str] = None) -> ListPage:
        """
        List one page of audio files directly inside folder_id.

        Filtering to audio MIME types happens server side.
        """
        return self._list(build_audio_files_query(folder_id), AUDIO_FILE_FIELDS, page_token)

    def get_file_metadata(self, file_id: str, fields: str = METADATA_FIELDS) -> dict:
        """Get metadata for a single file."""
        return self._request(
            "GET", f"{self.files_url}/{file_id}",
            params={"fields": fields, "supportsAllDrives": "true"},
        )

    def create_folder(self, name: str, parent_id: str = "root") -> dict:
        """Create a folder and return its metadata ({id, name, ...})."""
        body = {"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]}
        return self._request("POST", self.files_url, json=body)

    def exchange_auth_code(
        self,
        auth_code: str,
        client_id: str,
        client_secret: str = "",
        redirect_uri: str = "",
    ) -> dict:
        """Exchange a server auth code for an access + refresh token pair."""
        form = {
            "code": auth_code,
            "client_id": client_id,
            "client_secret": client_secret,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri,
        }
        return self._request("POST", self.config.token_endpoint, authenticated=False, data=form)

    def refresh_token(self, refresh_token: str, client_id: str, client_secret: str = "") -> dict:
        """Get a new access token. The response may or may not include a new refresh token."""
        form = {
            "refresh_token": refresh_token,
            "client_id": client_id,
            "client_secret": client_secret,
            "grant_type": "refresh_token",
        }
        return self._request("POST", self.config.token_endpoint, authenticated=False, data=form)

    def get_identity(self) -> dict:
        """Basic profile (email, name, picture) of the signed-in user."""
        return self._request("GET", self.config.identity_endpoint)

    def stream_url(self, file_id: str) -> str:
        return f"{self.files_url}/{file_id}?alt=media"
