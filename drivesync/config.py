"""
Configuration management for Drive Sync.

Config file: <data dir>/settings.json. Environment variables override the
OAuth client credentials so they never have to be written to disk.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

from .constants import (
    DRIVE_API_BASE,
    TOKEN_ENDPOINT,
    IDENTITY_ENDPOINT,
    OAUTH_CLIENT_ID,
    OAUTH_CLIENT_SECRET,
    DEFAULT_PAGE_SIZE,
    DEFAULT_ALBUM_NAME,
    DEFAULT_MUSIC_FOLDER_NAME,
)

logger = logging.getLogger(__name__)


@dataclass
class SyncSettings:
    """User-tunable settings for the sync engine."""
    client_id: str = OAUTH_CLIENT_ID
    client_secret: str = OAUTH_CLIENT_SECRET
    api_base: str = DRIVE_API_BASE
    token_endpoint: str = TOKEN_ENDPOINT
    identity_endpoint: str = IDENTITY_ENDPOINT
    page_size: int = DEFAULT_PAGE_SIZE
    request_timeout: int = 60
    album_name: str = DEFAULT_ALBUM_NAME
    music_folder_name: str = DEFAULT_MUSIC_FOLDER_NAME
    recursive: bool = True  # Default for bulk sync of tracked folders

    def to_dict(self) -> dict:
        data = asdict(self)
        # Secrets come from the environment, don't persist them
        data.pop("client_secret", None)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SyncSettings":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "SyncSettings":
        """Load settings from file, then apply environment overrides."""
        settings = cls()

        if path and path.exists():
            try:
                with open(path) as f:
                    settings = cls.from_dict(json.load(f))
            except (json.JSONDecodeError, IOError, TypeError) as e:
                logger.warning("Could not load %s, using defaults: %s", path, e)

        settings.client_id = os.environ.get("DRIVESYNC_CLIENT_ID", settings.client_id)
        settings.client_secret = os.environ.get("DRIVESYNC_CLIENT_SECRET", settings.client_secret)
        return settings

    def save(self, path: Path):
        """Save settings to file."""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
