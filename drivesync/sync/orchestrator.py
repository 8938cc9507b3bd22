"""
Sync orchestration for Drive Sync.

SyncOrchestrator is the only entry point for callers (CLI, UI, schedulers).
It sequences token validation, crawling, mapping and catalog reconciliation,
and returns Result values instead of raising.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from google.oauth2.credentials import Credentials

from ..config import SyncSettings
from ..errors import DriveSyncError, AuthError, ApiError, ParseError, SyncCancelled
from ..drive.auth import TokenManager, SessionState
from ..drive.client import DriveClient, DriveClientConfig
from ..drive.traversal import FolderTraversal
from ..library.mapper import map_remote_file
from ..library.models import Account, RemoteFolder, TrackedFolder, RemoteSongRecord
from ..library.reconciler import LibraryReconciler
from ..results import Result, BulkSyncResult
from ..storage.catalog import JsonCatalogStore
from ..storage.folders import TrackedFolders
from ..storage.songs import SongStore
from ..storage.tokens import JsonTokenStore
from .. import paths
from .observable import Observable

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SyncOrchestrator:
    """Keeps the local catalog in step with the user's tracked Drive folders."""

    def __init__(
        self,
        tokens: TokenManager,
        client: DriveClient,
        folders: TrackedFolders,
        songs: SongStore,
        reconciler: LibraryReconciler,
        settings: Optional[SyncSettings] = None,
        now_ms: Optional[Callable[[], int]] = None,
    ):
        self.tokens = tokens
        self.client = client
        self.folders = folders
        self.songs = songs
        self.reconciler = reconciler
        self.settings = settings or SyncSettings()
        self.now_ms = now_ms or _now_ms

        # Single-flight: one sync/remove/logout at a time
        self._sync_lock = threading.RLock()
        self._cancel = threading.Event()

        self.login_state: Observable[SessionState] = Observable(self.tokens.state)
        self.tracked_folders: Observable[list[TrackedFolder]] = Observable(self.folders.folders)

    @classmethod
    def open(cls, settings: Optional[SyncSettings] = None, data_dir: Optional[Path] = None) -> "SyncOrchestrator":
        """Build an orchestrator backed by the JSON stores in the data directory."""
        if data_dir:
            paths.set_data_dir(data_dir)
        settings = settings or SyncSettings.load(paths.get_settings_path())

        token_store = JsonTokenStore.load(paths.get_token_path())
        tokens_ref: dict = {}
        client = DriveClient(
            DriveClientConfig(
                api_base=settings.api_base,
                token_endpoint=settings.token_endpoint,
                identity_endpoint=settings.identity_endpoint,
                timeout=settings.request_timeout,
                page_size=settings.page_size,
            ),
            auth_token=lambda: tokens_ref["manager"].access_token,
        )
        tokens = TokenManager(token_store, client, settings.client_id, settings.client_secret)
        tokens_ref["manager"] = tokens

        return cls(
            tokens=tokens,
            client=client,
            folders=TrackedFolders.load(paths.get_folders_path()),
            songs=SongStore.load(paths.get_songs_path()),
            reconciler=LibraryReconciler(JsonCatalogStore.load(paths.get_catalog_path())),
            settings=settings,
        )

    # --- Auth ---

    @property
    def is_logged_in(self) -> bool:
        return self.tokens.is_signed_in

    @property
    def account(self) -> Account:
        return self.tokens.store.load_account()

    def _publish_login_state(self):
        self.login_state.set(self.tokens.state)

    def _publish_folders(self):
        self.tracked_folders.set(self.folders.folders)

    def login(
        self,
        id_token: str = "",
        server_auth_code: Optional[str] = None,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
        avatar_uri: Optional[str] = None,
    ) -> Result:
        """Sign in with an identity token and/or a server auth code. Value: display label."""
        account = Account(email=email, display_name=display_name, avatar_uri=avatar_uri)
        result = self.tokens.login(id_token, server_auth_code, account)
        if result.ok:
            self._fill_account(account)
            result = Result.success(self.account.label)
        self._publish_login_state()
        return result

    def login_with_credentials(self, creds: Credentials) -> Result:
        """Sign in with google-auth credentials (interactive browser flow)."""
        result = self.tokens.login_with_credentials(creds)
        if result.ok:
            self._fill_account(Account())
            result = Result.success(self.account.label)
        self._publish_login_state()
        return result

    def _fill_account(self, account: Account):
        """Complete the stored profile from the identity endpoint, best effort."""
        if account.email and account.display_name:
            return
        try:
            info = self.client.get_identity()
        except (ApiError, ParseError) as e:
            logger.warning("Could not fetch account profile: %s", e)
            return
        self.tokens.update_account(Account(
            email=account.email or info.get("email"),
            display_name=account.display_name or info.get("name"),
            avatar_uri=account.avatar_uri or info.get("picture"),
        ))

    def _ensure_token(self) -> Result:
        result = self.tokens.ensure_valid()
        self._publish_login_state()
        return result

    def logout(self):
        """Sign out and drop every Drive-sourced row, folder and record."""
        self.cancel()
        with self._sync_lock:
            self.tokens.logout()
            self.songs.clear()
            self.folders.clear()
            self.reconciler.clear()
            self._cancel.clear()
        self._publish_login_state()
        self._publish_folders()
        logger.info("Signed out, Drive library cleared")

    # --- Folder management ---

    def list_remote_folders(self, parent_id: str = "root") -> Result:
        """All subfolders of parent_id (for a folder picker). Value: list[RemoteFolder]."""
        token = self._ensure_token()
        if not token.ok:
            return token

        folders = []
        page_token = None
        try:
            while True:
                page = self.client.list_folders(parent_id, page_token)
                folders.extend(
                    RemoteFolder(folder_id=item["id"], name=item.get("name", ""))
                    for item in page.items if item.get("id")
                )
                page_token = page.next_page_token
                if not page_token:
                    break
        except DriveSyncError as e:
            logger.error("Failed to list Drive folders under %s: %s", parent_id, e)
            return Result.failure(self._classify(e))

        return Result.success(folders)

    def create_tracked_folder(self, parent_id: str = "root") -> Result:
        """Create the music folder on Drive and start tracking it. Value: TrackedFolder."""
        token = self._ensure_token()
        if not token.ok:
            return token

        try:
            data = self.client.create_folder(self.settings.music_folder_name, parent_id)
        except DriveSyncError as e:
            logger.error("Failed to create music folder: %s", e)
            return Result.failure(self._classify(e))

        folder_id = data.get("id") if isinstance(data, dict) else None
        if not folder_id:
            return Result.failure(ParseError("Create folder response has no id"))

        return self.add_tracked_folder(folder_id, data.get("name") or self.settings.music_folder_name)

    def add_tracked_folder(self, folder_id: str, name: str) -> Result:
        """Start tracking a folder (not synced until sync_folder runs). Value: TrackedFolder."""
        folder = self.folders.add_folder(folder_id, name)
        self._publish_folders()
        return Result.success(folder)

    def remove_tracked_folder(self, folder_id: str) -> Result:
        """Stop tracking a folder and remove its songs from the catalog."""
        with self._sync_lock:
            try:
                self.reconciler.reconcile(self.songs.records_replacing(folder_id, []))
                self.songs.remove_folder(folder_id)
                self.folders.remove_folder(folder_id)
            except (DriveSyncError, OSError) as e:
                logger.error("Failed to remove folder %s: %s", folder_id, e)
                return Result.failure(self._classify(e))
        self._publish_folders()
        return Result.success()

    # --- Sync ---

    def cancel(self):
        """Abort any crawl in flight. Nothing from it is committed."""
        self._cancel.set()

    def sync_folder(self, folder_id: str, recursive: bool = True) -> Result:
        """
        Crawl one tracked folder and reconcile the catalog.

        Returns:
            Result whose value is the number of songs found
        """
        with self._sync_lock:
            self._cancel.clear()
            result = self._sync_folder(folder_id, recursive)
        self._publish_folders()
        return result

    def sync_all_tracked_folders(self, recursive: Optional[bool] = None) -> Result:
        """
        Sync every tracked folder in turn. One folder failing doesn't stop the rest.

        Returns:
            Result whose value is a BulkSyncResult
        """
        recursive = self.settings.recursive if recursive is None else recursive

        with self._sync_lock:
            self._cancel.clear()
            tracked = self.folders.folders
            bulk = BulkSyncResult(folder_count=len(tracked))

            auth_error = None

            for folder in tracked:
                if self._cancel.is_set():
                    bulk.failed_folder_count += 1
                    bulk.failures[folder.folder_id] = "Cancelled"
                    continue
                if auth_error is not None:
                    # Signed out for the rest of the pass
                    bulk.failed_folder_count += 1
                    bulk.failures[folder.folder_id] = str(auth_error)
                    continue

                result = self._sync_folder(folder.folder_id, recursive)
                if result.ok:
                    bulk.synced_song_count += result.value
                else:
                    bulk.failed_folder_count += 1
                    bulk.failures[folder.folder_id] = str(result.error)
                    if result.needs_login and self.tokens.needs_login:
                        auth_error = result.error

        self._publish_folders()
        logger.info(
            "Bulk sync: %d folders, %d songs, %d failed",
            bulk.folder_count, bulk.synced_song_count, bulk.failed_folder_count,
        )
        return Result.success(bulk)

    def _sync_folder(self, folder_id: str, recursive: bool) -> Result:
        token = self._ensure_token()
        if not token.ok:
            return token

        try:
            crawl = FolderTraversal(self.client, self._cancel).crawl(folder_id, recursive)
            records = [
                map_remote_file(raw, self.settings.album_name, self.now_ms)
                for raw in crawl.files
            ]
            if self._cancel.is_set():
                raise SyncCancelled("Sync cancelled before commit")

            # Catalog first: a failed catalog write leaves the stored partition as it was
            self.reconciler.reconcile(self.songs.records_replacing(folder_id, records))
            self.songs.replace_folder(folder_id, records)
            self.folders.mark_synced(folder_id, len(records), self.now_ms())
        except SyncCancelled as e:
            logger.info("Sync of %s cancelled, nothing committed", folder_id)
            return Result.failure(e)
        except (DriveSyncError, OSError) as e:
            logger.error("Failed to sync folder %s: %s", folder_id, e)
            return Result.failure(self._classify(e))
        except Exception as e:
            logger.exception("Unexpected error syncing folder %s", folder_id)
            return Result.failure(DriveSyncError(f"Unexpected error: {e}"))

        logger.info(
            "Synced %d songs for folder %s (recursive=%s, %d folders visited)",
            len(records), folder_id, recursive, len(crawl.visited_folder_ids),
        )
        return Result.success(len(records))

    def _classify(self, error: Exception) -> DriveSyncError:
        """Map 401 responses to AuthError; wrap non-package errors."""
        if isinstance(error, ApiError) and error.is_auth_failure:
            self.tokens.mark_invalid()
            self._publish_login_state()
            return AuthError(f"Drive rejected the access token: {error}")
        if isinstance(error, DriveSyncError):
            return error
        return DriveSyncError(str(error))

    # --- Library reads ---

    def get_all_songs(self) -> list[RemoteSongRecord]:
        return self.songs.all_records()

    def get_folder_songs(self, folder_id: str) -> list[RemoteSongRecord]:
        return self.songs.records_for_folder(folder_id)

    def search_songs(self, query: str) -> list[RemoteSongRecord]:
        return self.songs.search(query)

    def stream_url(self, file_id: str) -> str:
        return self.client.stream_url(file_id)

    def auth_header(self) -> str:
        return self.client.auth_header()
