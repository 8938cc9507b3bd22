"""
Source-local song records, partitioned by tracked root folder.

A partition is only ever replaced wholesale with the output of a complete
crawl, so a failed or cancelled crawl leaves the previous list intact.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from ..library.models import RemoteSongRecord
from .jsonfile import write_json_atomic

logger = logging.getLogger(__name__)


def _newest_first(partitions: dict) -> list[RemoteSongRecord]:
    records = [r for partition in partitions.values() for r in partition.values()]
    return sorted(records, key=lambda r: r.added_at_ms, reverse=True)


class SongStore:
    """Drive song records keyed by tracked folder id, then composite id."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._by_folder: dict[str, dict[str, RemoteSongRecord]] = {}

    @classmethod
    def load(cls, path: Path) -> "SongStore":
        store = cls(path)

        if store.path.exists():
            try:
                with open(store.path) as f:
                    data = json.load(f)
                for folder_id, records in data.get("folders", {}).items():
                    store._by_folder[folder_id] = {
                        r["composite_id"]: RemoteSongRecord.from_dict(r) for r in records
                    }
            except (json.JSONDecodeError, IOError, KeyError, TypeError) as e:
                logger.warning("Could not load %s: %s", store.path, e)

        return store

    def save(self):
        if not self.path:
            return
        data = {
            "folders": {
                folder_id: [r.to_dict() for r in records.values()]
                for folder_id, records in self._by_folder.items()
            }
        }
        write_json_atomic(self.path, data)

    def replace_folder(self, folder_id: str, records: list[RemoteSongRecord]):
        """Replace everything stored for a tracked folder with a fresh crawl."""
        previous = dict(self._by_folder)
        self._by_folder[folder_id] = {r.composite_id: r for r in records}
        try:
            self.save()
        except OSError:
            self._by_folder = previous
            raise

    def records_replacing(self, folder_id: str, records: list[RemoteSongRecord]) -> list[RemoteSongRecord]:
        """all_records() as it would be after replace_folder(folder_id, records). Stores nothing."""
        partitions = dict(self._by_folder)
        partitions[folder_id] = {r.composite_id: r for r in records}
        return _newest_first(partitions)

    def remove_folder(self, folder_id: str):
        if self._by_folder.pop(folder_id, None) is not None:
            self.save()

    def records_for_folder(self, folder_id: str) -> list[RemoteSongRecord]:
        return sorted(self._by_folder.get(folder_id, {}).values(), key=lambda r: r.title.lower())

    def all_records(self) -> list[RemoteSongRecord]:
        """Every record across folders, newest first."""
        return _newest_first(self._by_folder)

    def search(self, query: str) -> list[RemoteSongRecord]:
        """Case-insensitive substring match on title or artist."""
        needle = query.strip().lower()
        if not needle:
            return []
        return [
            r for r in self.all_records()
            if needle in r.title.lower() or needle in r.artist.lower()
        ]

    def clear(self):
        self._by_folder = {}
        self.save()
