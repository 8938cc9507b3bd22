"""
Tests for the persisted stores.

Verifies that:
- Token, folder, song and catalog state survive a reload
- Corrupt files are treated as empty rather than crashing
- Catalog writes replace the file atomically
"""

import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from drivesync.library.models import (
    Token,
    Account,
    RemoteSongRecord,
    ChangeSet,
    CanonicalSong,
    ArtistCrossRef,
)
from drivesync.storage import JsonTokenStore, TrackedFolders, SongStore, CatalogStore, JsonCatalogStore


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def record(folder: str, file_id: str, title: str, artist: str = "Artist", added: int = 0) -> RemoteSongRecord:
    return RemoteSongRecord(
        composite_id=RemoteSongRecord.make_composite_id(folder, file_id),
        file_id=file_id,
        scope_folder_id=folder,
        title=title,
        artist=artist,
        album="Google Drive",
        added_at_ms=added,
        modified_at_ms=added,
    )


def song(song_id: int, source: str = "gdrive") -> CanonicalSong:
    return CanonicalSong(
        id=song_id, title=f"Song {song_id}", artist_name="A", artist_id=-8_000_000_000_001,
        album_name="B", album_id=-7_000_000_000_001, content_uri=f"gdrive://{song_id}", source=source,
    )


class TestJsonTokenStore:
    """Tests for JsonTokenStore."""

    def test_persistence(self, temp_dir):
        path = temp_dir / "token.json"
        store = JsonTokenStore.load(path)
        store.save_account(Account(email="me@example.com", display_name="Me"))
        store.save_token(Token("a1", "r1", 12345))

        reloaded = JsonTokenStore.load(path)
        assert reloaded.load_token() == Token("a1", "r1", 12345)
        assert reloaded.load_account().display_name == "Me"

    def test_flat_key_value_layout(self, temp_dir):
        path = temp_dir / "token.json"
        JsonTokenStore.load(path).save_token(Token("a1", "r1", 12345))

        data = json.loads(path.read_text())
        assert data == {"access_token": "a1", "expires_at_epoch_ms": 12345, "refresh_token": "r1"}

    def test_owner_only_permissions(self, temp_dir):
        path = temp_dir / "token.json"
        JsonTokenStore.load(path).save_token(Token("a1"))
        if os.name == "posix":
            assert (path.stat().st_mode & 0o777) == 0o600

    def test_save_without_refresh_keeps_old(self, temp_dir):
        store = JsonTokenStore.load(temp_dir / "token.json")
        store.save_token(Token("a1", "r1", 1))
        store.save_token(Token("a2", None, 2))
        assert store.load_token() == Token("a2", "r1", 2)

    def test_clear_removes_file(self, temp_dir):
        path = temp_dir / "token.json"
        store = JsonTokenStore.load(path)
        store.save_token(Token("a1"))
        store.clear()

        assert not path.exists()
        assert store.load_token() is None

    def test_corrupt_file_means_signed_out(self, temp_dir):
        path = temp_dir / "token.json"
        path.write_text("{not json")
        assert JsonTokenStore.load(path).load_token() is None

    def test_interrupted_write_keeps_session(self, temp_dir):
        path = temp_dir / "token.json"
        store = JsonTokenStore.load(path)
        store.save_token(Token("a1", "r1", 1))

        with patch("drivesync.storage.jsonfile.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.save_token(Token("a2", None, 2))

        assert JsonTokenStore.load(path).load_token() == Token("a1", "r1", 1)


class TestTrackedFolders:
    """Tests for TrackedFolders."""

    def test_persistence(self, temp_dir):
        path = temp_dir / "folders.json"
        folders = TrackedFolders.load(path)
        folders.add_folder("f1", "Rock")
        folders.mark_synced("f1", 12, 999)

        reloaded = TrackedFolders.load(path)
        folder = reloaded.get_folder("f1")
        assert folder.name == "Rock"
        assert folder.song_count == 12
        assert folder.last_sync_time_ms == 999

    def test_sorted_by_name(self):
        folders = TrackedFolders()
        folders.add_folder("2", "zebra")
        folders.add_folder("1", "Alpha")
        assert [f.name for f in folders.folders] == ["Alpha", "zebra"]

    def test_remove(self):
        folders = TrackedFolders()
        folders.add_folder("f1", "Rock")
        assert folders.remove_folder("f1")
        assert not folders.remove_folder("f1")
        assert not folders.has_folder("f1")

    def test_mark_synced_unknown_folder(self):
        folders = TrackedFolders()
        folder = folders.mark_synced("ghost", 3, 10)
        assert folder.name == "Drive Folder"
        assert folders.has_folder("ghost")

    def test_interrupted_write_keeps_previous_file(self, temp_dir):
        path = temp_dir / "folders.json"
        folders = TrackedFolders.load(path)
        folders.add_folder("f1", "Rock")

        with patch("drivesync.storage.jsonfile.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                folders.add_folder("f2", "Jazz")

        assert [f.folder_id for f in TrackedFolders.load(path).folders] == ["f1"]


class TestSongStore:
    """Tests for SongStore."""

    def test_persistence(self, temp_dir):
        path = temp_dir / "songs.json"
        store = SongStore.load(path)
        store.replace_folder("F", [record("F", "f1", "One"), record("F", "f2", "Two")])

        reloaded = SongStore.load(path)
        assert [r.title for r in reloaded.records_for_folder("F")] == ["One", "Two"]

    def test_replace_is_wholesale(self):
        store = SongStore()
        store.replace_folder("F", [record("F", "f1", "One"), record("F", "f2", "Two")])
        store.replace_folder("F", [record("F", "f3", "Three")])
        assert [r.file_id for r in store.records_for_folder("F")] == ["f3"]

    def test_partitions_independent(self):
        store = SongStore()
        store.replace_folder("A", [record("A", "f1", "One")])
        store.replace_folder("B", [record("B", "f1", "One")])
        store.remove_folder("A")

        assert store.records_for_folder("A") == []
        assert [r.composite_id for r in store.all_records()] == ["B_f1"]

    def test_all_records_newest_first(self):
        store = SongStore()
        store.replace_folder("A", [record("A", "old", "Old", added=1), record("A", "new", "New", added=5)])
        assert [r.file_id for r in store.all_records()] == ["new", "old"]

    def test_search(self):
        store = SongStore()
        store.replace_folder("A", [
            record("A", "f1", "One More Time", artist="Daft Punk"),
            record("A", "f2", "Around the World", artist="Daft Punk"),
            record("A", "f3", "Teardrop", artist="Massive Attack"),
        ])

        assert len(store.search("daft")) == 2
        assert [r.file_id for r in store.search("TEAR")] == ["f3"]
        assert store.search("   ") == []

    def test_corrupt_file(self, temp_dir):
        path = temp_dir / "songs.json"
        path.write_text('{"folders": {"F": [{"title": "no key"}]}}')
        assert SongStore.load(path).all_records() == []

    def test_interrupted_write_keeps_previous_file(self, temp_dir):
        """A write that dies before the swap leaves every folder's records readable."""
        path = temp_dir / "songs.json"
        store = SongStore.load(path)
        store.replace_folder("A", [record("A", "a1", "One")])
        store.replace_folder("B", [record("B", "b1", "Two")])
        before = path.read_text()

        with patch("drivesync.storage.jsonfile.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.replace_folder("A", [])

        assert path.read_text() == before
        assert [p.name for p in temp_dir.iterdir()] == ["songs.json"]
        assert [r.file_id for r in store.records_for_folder("A")] == ["a1"]
        reloaded = SongStore.load(path)
        assert {r.composite_id for r in reloaded.all_records()} == {"A_a1", "B_b1"}

    def test_records_replacing_is_a_preview(self):
        store = SongStore()
        store.replace_folder("A", [record("A", "a1", "One", added=1)])
        store.replace_folder("B", [record("B", "b1", "Two", added=2)])

        preview = store.records_replacing("A", [record("A", "a2", "Three", added=3)])

        assert [r.file_id for r in preview] == ["a2", "b1"]
        assert [r.file_id for r in store.records_for_folder("A")] == ["a1"]
        assert [r.file_id for r in store.records_replacing("B", [])] == ["a1"]


class TestJsonCatalogStore:
    """Tests for JsonCatalogStore."""

    def test_persistence_int_keys(self, temp_dir):
        path = temp_dir / "catalog.json"
        catalog = JsonCatalogStore.load(path)
        catalog.apply(ChangeSet(upsert_songs=[song(-6_000_000_000_123)]), "gdrive")

        reloaded = JsonCatalogStore.load(path)
        assert reloaded.song_ids_for_source("gdrive") == {-6_000_000_000_123}
        assert reloaded.get_song(-6_000_000_000_123)["title"] == "Song -6000000000123"

    def test_failed_write_keeps_previous_state(self, temp_dir):
        """If the file replace fails, neither memory nor disk change."""
        path = temp_dir / "catalog.json"
        catalog = JsonCatalogStore.load(path)
        catalog.apply(ChangeSet(upsert_songs=[song(-6_000_000_000_001)]), "gdrive")
        before = path.read_text()

        with patch("drivesync.storage.jsonfile.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                catalog.apply(ChangeSet(delete_song_ids={-6_000_000_000_001}), "gdrive")

        assert catalog.song_ids_for_source("gdrive") == {-6_000_000_000_001}
        assert path.read_text() == before
        assert [p.name for p in temp_dir.iterdir()] == ["catalog.json"]

    def test_foreign_rows_never_deleted(self, temp_dir):
        catalog = JsonCatalogStore.load(temp_dir / "catalog.json")
        catalog.insert_song(song(7, source="local").to_dict())

        catalog.apply(ChangeSet(delete_song_ids={7}), "gdrive")
        catalog.clear_source("gdrive")

        assert catalog.get_song(7)["source"] == "local"

    def test_cross_refs_replaced_per_song(self):
        catalog = CatalogStore()
        sid = -6_000_000_000_001
        catalog.apply(ChangeSet(upsert_songs=[song(sid)], cross_refs=[ArtistCrossRef(sid, 1, True)]), "gdrive")
        catalog.apply(ChangeSet(upsert_songs=[song(sid)], cross_refs=[ArtistCrossRef(sid, 2, True)]), "gdrive")

        assert [r["artist_id"] for r in catalog.cross_refs_for_song(sid)] == [2]

    def test_corrupt_file_starts_empty(self, temp_dir):
        path = temp_dir / "catalog.json"
        path.write_text("garbage")
        assert JsonCatalogStore.load(path).songs() == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
