"""
Filesystem locations for Drive Sync state.
"""

import os
import sys
from pathlib import Path
from typing import Optional

DATA_DIR_NAME = ".drive-sync"

_data_dir_override: Optional[Path] = None


def set_data_dir(path: Optional[Path]):
    """Override the data directory (CLI --data-dir, tests)."""
    global _data_dir_override
    _data_dir_override = Path(path) if path else None


def get_data_dir() -> Path:
    """Get (and create) the directory holding tokens, folders and the catalog."""
    if _data_dir_override:
        path = _data_dir_override
    elif os.environ.get("DRIVESYNC_DATA_DIR"):
        path = Path(os.environ["DRIVESYNC_DATA_DIR"])
    elif getattr(sys, "frozen", False):
        path = Path(sys.executable).parent / DATA_DIR_NAME
    else:
        path = Path.home() / DATA_DIR_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_token_path() -> Path:
    return get_data_dir() / "token.json"


def get_folders_path() -> Path:
    return get_data_dir() / "folders.json"


def get_songs_path() -> Path:
    return get_data_dir() / "songs.json"


def get_catalog_path() -> Path:
    return get_data_dir() / "catalog.json"


def get_settings_path() -> Path:
    return get_data_dir() / "settings.json"


def get_log_path() -> Path:
    return get_data_dir() / "sync.log"
