"""
Tracked folder management for Drive Sync.

Stores the remote folders the user chose to sync in folders.json.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from ..library.models import TrackedFolder
from .jsonfile import write_json_atomic

logger = logging.getLogger(__name__)


class TrackedFolders:
    """
    Manages the list of tracked Drive folders.

    With no path the list lives in memory only.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._folders: dict[str, TrackedFolder] = {}

    @classmethod
    def load(cls, path: Path) -> "TrackedFolders":
        """Load tracked folders from file."""
        tracked = cls(path)

        if tracked.path.exists():
            try:
                with open(tracked.path) as f:
                    data = json.load(f)

                for entry in data.get("folders", []):
                    folder = TrackedFolder.from_dict(entry)
                    if folder.folder_id:
                        tracked._folders[folder.folder_id] = folder
            except (json.JSONDecodeError, IOError) as e:
                logger.warning("Could not load %s: %s", tracked.path, e)

        return tracked

    def save(self):
        """Save tracked folders to file."""
        if not self.path:
            return
        write_json_atomic(self.path, {"folders": [f.to_dict() for f in self._folders.values()]})

    @property
    def folders(self) -> list[TrackedFolder]:
        """Tracked folders sorted by name."""
        return sorted(self._folders.values(), key=lambda f: f.name.lower())

    def add_folder(self, folder_id: str, name: str) -> TrackedFolder:
        """Track a folder. Re-adding an existing folder resets its sync stats."""
        folder = TrackedFolder(folder_id=folder_id, name=name)
        self._folders[folder_id] = folder
        self.save()
        return folder

    def remove_folder(self, folder_id: str) -> bool:
        """Stop tracking a folder. Returns False if it wasn't tracked."""
        removed = self._folders.pop(folder_id, None) is not None
        if removed:
            self.save()
        return removed

    def get_folder(self, folder_id: str) -> Optional[TrackedFolder]:
        return self._folders.get(folder_id)

    def has_folder(self, folder_id: str) -> bool:
        return folder_id in self._folders

    def mark_synced(self, folder_id: str, song_count: int, sync_time_ms: int) -> TrackedFolder:
        """Record a successful sync (adds the folder if it went missing meanwhile)."""
        folder = self._folders.get(folder_id) or TrackedFolder(folder_id=folder_id, name="Drive Folder")
        folder.song_count = song_count
        folder.last_sync_time_ms = sync_time_ms
        self._folders[folder_id] = folder
        self.save()
        return folder

    def clear(self):
        self._folders = {}
        self.save()
