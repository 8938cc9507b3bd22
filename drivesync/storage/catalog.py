"""
Canonical catalog store.

The catalog is shared with other ingestion sources. Rows carry the tag of
the source that wrote them, and this package only reads or deletes rows
carrying its own tag.
"""

import copy
import json
import logging
import threading
from pathlib import Path
from typing import Optional

from ..library.models import ChangeSet
from .jsonfile import write_json_atomic

logger = logging.getLogger(__name__)


def _empty_state() -> dict:
    return {"songs": {}, "albums": {}, "artists": {}, "cross_refs": []}


class CatalogStore:
    """
    In-memory catalog (songs/albums/artists/cross refs keyed by canonical id).

    apply() builds the next state off to the side and swaps it in under a
    lock, so readers never observe a half-applied changeset.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state = _empty_state()

    # --- Reads ---

    def song_ids_for_source(self, source: str) -> set[int]:
        with self._lock:
            return {sid for sid, row in self._state["songs"].items() if row.get("source") == source}

    def get_song(self, song_id: int) -> Optional[dict]:
        with self._lock:
            row = self._state["songs"].get(song_id)
            return dict(row) if row else None

    def get_album(self, album_id: int) -> Optional[dict]:
        with self._lock:
            row = self._state["albums"].get(album_id)
            return dict(row) if row else None

    def get_artist(self, artist_id: int) -> Optional[dict]:
        with self._lock:
            row = self._state["artists"].get(artist_id)
            return dict(row) if row else None

    def songs(self) -> list[dict]:
        with self._lock:
            return [dict(row) for row in self._state["songs"].values()]

    def cross_refs_for_song(self, song_id: int) -> list[dict]:
        with self._lock:
            return [dict(ref) for ref in self._state["cross_refs"] if ref["song_id"] == song_id]

    # --- Writes ---

    def apply(self, changeset: ChangeSet, source: str):
        """Apply upserts and deletes for one source as a single swap."""
        with self._lock:
            new_state = self._next_state(self._state, changeset, source)
            self._commit(new_state)
            self._state = new_state

    def clear_source(self, source: str):
        """Remove every row written by source."""
        with self._lock:
            new_state = copy.deepcopy(self._state)
            doomed = {sid for sid, row in new_state["songs"].items() if row.get("source") == source}
            for sid in doomed:
                del new_state["songs"][sid]
            new_state["cross_refs"] = [r for r in new_state["cross_refs"] if r["song_id"] not in doomed]
            self._prune_orphans(new_state, source)
            self._commit(new_state)
            self._state = new_state

    def insert_song(self, row: dict):
        """Write a single song row as-is (used for rows of other sources)."""
        with self._lock:
            new_state = copy.deepcopy(self._state)
            new_state["songs"][row["id"]] = dict(row)
            self._commit(new_state)
            self._state = new_state

    def _commit(self, state: dict):
        """Persist hook; in-memory store has nothing to do."""

    @classmethod
    def _next_state(cls, state: dict, changeset: ChangeSet, source: str) -> dict:
        new_state = copy.deepcopy(state)
        songs = new_state["songs"]

        for sid in changeset.delete_song_ids:
            row = songs.get(sid)
            if row is not None and row.get("source") != source:
                # Never touch rows owned by another source
                continue
            songs.pop(sid, None)

        for song in changeset.upsert_songs:
            songs[song.id] = song.to_dict()
        for album in changeset.upsert_albums:
            new_state["albums"][album.id] = {**album.to_dict(), "source": source}
        for artist in changeset.upsert_artists:
            new_state["artists"][artist.id] = {**artist.to_dict(), "source": source}

        touched = {song.id for song in changeset.upsert_songs} | set(changeset.delete_song_ids)
        new_state["cross_refs"] = [r for r in new_state["cross_refs"] if r["song_id"] not in touched]
        new_state["cross_refs"].extend(ref.to_dict() for ref in changeset.cross_refs)

        cls._prune_orphans(new_state, source)
        return new_state

    @staticmethod
    def _prune_orphans(state: dict, source: str):
        """Drop this source's albums/artists that no song references anymore."""
        used_albums = {row["album_id"] for row in state["songs"].values()}
        used_artists = {r["artist_id"] for r in state["cross_refs"]}
        used_artists |= {row["artist_id"] for row in state["songs"].values()}

        state["albums"] = {
            aid: row for aid, row in state["albums"].items()
            if row.get("source") != source or aid in used_albums
        }
        state["artists"] = {
            aid: row for aid, row in state["artists"].items()
            if row.get("source") != source or aid in used_artists
        }


class JsonCatalogStore(CatalogStore):
    """Catalog persisted to a JSON file, replaced atomically on every write."""

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)

    @classmethod
    def load(cls, path: Path) -> "JsonCatalogStore":
        store = cls(path)

        if store.path.exists():
            try:
                with open(store.path) as f:
                    data = json.load(f)
                store._state = {
                    "songs": {int(k): v for k, v in data.get("songs", {}).items()},
                    "albums": {int(k): v for k, v in data.get("albums", {}).items()},
                    "artists": {int(k): v for k, v in data.get("artists", {}).items()},
                    "cross_refs": data.get("cross_refs", []),
                }
            except (json.JSONDecodeError, IOError, ValueError) as e:
                logger.warning("Could not load catalog %s, starting empty: %s", store.path, e)

        return store

    def _commit(self, state: dict):
        data = {
            "songs": {str(k): v for k, v in state["songs"].items()},
            "albums": {str(k): v for k, v in state["albums"].items()},
            "artists": {str(k): v for k, v in state["artists"].items()},
            "cross_refs": state["cross_refs"],
        }
        write_json_atomic(self.path, data)
