"""
Tests for canonical ids and catalog reconciliation.
"""

import pytest

from drivesync.constants import SONG_ID_OFFSET, ALBUM_ID_OFFSET, ARTIST_ID_OFFSET
from drivesync.library.ids import (
    stable_hash,
    song_id,
    album_id,
    artist_id,
    in_band,
    parse_artist_names,
)
from drivesync.library.models import RemoteSongRecord, CanonicalSong
from drivesync.library.reconciler import build_changeset, LibraryReconciler
from drivesync.storage import CatalogStore

from fakes import FakeClock


def record(file_id: str, title: str = "Song", artist: str = "Artist", album: str = "Google Drive",
           scope: str = "F", added: int = 1_000) -> RemoteSongRecord:
    return RemoteSongRecord(
        composite_id=RemoteSongRecord.make_composite_id(scope, file_id),
        file_id=file_id,
        scope_folder_id=scope,
        title=title,
        artist=artist,
        album=album,
        added_at_ms=added,
        modified_at_ms=added,
    )


class TestIds:
    """Tests for canonical id derivation."""

    def test_deterministic(self):
        assert song_id("abc") == song_id("abc")
        assert stable_hash("abc") == stable_hash("abc")

    def test_distinct_inputs(self):
        assert song_id("abc") != song_id("abd")

    def test_bands_are_disjoint(self):
        keys = ["a", "b", "some long file id", "Ünïcode", ""]
        for key in keys:
            assert in_band(song_id(key), SONG_ID_OFFSET)
            assert in_band(album_id(key), ALBUM_ID_OFFSET)
            assert in_band(artist_id(key), ARTIST_ID_OFFSET)
            assert not in_band(song_id(key), ALBUM_ID_OFFSET)
            assert not in_band(artist_id(key), ALBUM_ID_OFFSET)

    def test_ids_are_negative(self):
        assert song_id("x") < 0 and album_id("x") < 0 and artist_id("x") < 0

    def test_names_case_insensitive(self):
        assert artist_id("Daft Punk") == artist_id("daft punk")
        assert album_id("Discovery") == album_id("DISCOVERY")

    def test_blank_names_use_unknown(self):
        assert artist_id("") == artist_id("Unknown Artist")
        assert album_id("") == album_id("Unknown Album")


class TestParseArtistNames:
    @pytest.mark.parametrize("raw,expected", [
        ("A, B & C", ["A", "B", "C"]),
        ("A/B;C+D", ["A", "B", "C", "D"]),
        ("Solo", ["Solo"]),
        ("A & a", ["A"]),
        ("", ["Unknown Artist"]),
        ("   ", ["Unknown Artist"]),
        (" , & ", ["Unknown Artist"]),
    ])
    def test_split(self, raw, expected):
        assert parse_artist_names(raw) == expected


class TestBuildChangeset:
    """Tests for build_changeset()."""

    def test_rows_for_one_record(self):
        cs = build_changeset([record("f1", "One More Time", "Daft Punk")], existing_ids=[])

        assert len(cs.upsert_songs) == 1
        song = cs.upsert_songs[0]
        assert song.id == song_id("f1")
        assert song.title == "One More Time"
        assert song.artist_id == artist_id("Daft Punk")
        assert song.album_id == album_id("Google Drive")
        assert song.content_uri == "gdrive://f1"
        assert song.source == "gdrive"
        assert song.parent_directory == "/Cloud/GoogleDrive"
        assert song.date_added_ms == 1_000
        assert cs.delete_song_ids == set()

    def test_multi_artist_cross_refs(self):
        cs = build_changeset([record("f1", artist="A, B & C")], existing_ids=[])

        assert [a.name for a in cs.upsert_artists] == ["A", "B", "C"]
        primaries = [ref for ref in cs.cross_refs if ref.is_primary]
        assert len(cs.cross_refs) == 3
        assert len(primaries) == 1 and primaries[0].artist_id == artist_id("A")
        assert cs.upsert_songs[0].artist_id == artist_id("A")

    def test_album_song_count_recomputed(self):
        records = [
            record("f1", album="X"),
            record("f2", album="X"),
            record("f3", album="Y"),
        ]
        cs = build_changeset(records, existing_ids=[])
        counts = {a.title: a.song_count for a in cs.upsert_albums}
        assert counts == {"X": 2, "Y": 1}

    def test_artist_track_count(self):
        records = [record("f1", artist="A & B"), record("f2", artist="A")]
        cs = build_changeset(records, existing_ids=[])
        counts = {a.name: a.track_count for a in cs.upsert_artists}
        assert counts == {"A": 2, "B": 1}

    def test_missing_ids_deleted(self):
        stale = song_id("gone")
        cs = build_changeset([record("f1")], existing_ids=[song_id("f1"), stale])
        assert cs.delete_song_ids == {stale}

    def test_empty_records_delete_everything(self):
        existing = {song_id("a"), song_id("b")}
        cs = build_changeset([], existing_ids=existing)
        assert cs.delete_song_ids == existing
        assert not cs.upsert_songs

    def test_same_file_two_scopes_one_song(self):
        """The first record for a file wins; no duplicate song rows."""
        cs = build_changeset(
            [record("f1", title="First", scope="A"), record("f1", title="Second", scope="B")],
            existing_ids=[],
        )
        assert [s.title for s in cs.upsert_songs] == ["First"]

    def test_missing_added_time_uses_clock(self):
        cs = build_changeset([record("f1", added=0)], existing_ids=[], now_ms=FakeClock(77))
        assert cs.upsert_songs[0].date_added_ms == 77

    def test_blank_album_is_unknown(self):
        cs = build_changeset([record("f1", album="  ")], existing_ids=[])
        assert cs.upsert_songs[0].album_name == "Unknown Album"

    def test_deterministic(self):
        records = [record("f1", artist="A, B"), record("f2", album="Z")]
        assert build_changeset(records, []) == build_changeset(records, [])


class TestLibraryReconciler:
    """Tests for LibraryReconciler against a CatalogStore."""

    def test_idempotent(self, catalog, clock):
        reconciler = LibraryReconciler(catalog, now_ms=clock)
        records = [record("f1"), record("f2", artist="B")]

        reconciler.reconcile(records)
        first = catalog.songs()
        second_cs = reconciler.reconcile(records)

        assert catalog.songs() == first
        assert second_cs.delete_song_ids == set()

    def test_removed_file_deleted(self, catalog, clock):
        reconciler = LibraryReconciler(catalog, now_ms=clock)
        reconciler.reconcile([record("f1"), record("f2")])
        reconciler.reconcile([record("f1")])

        assert catalog.song_ids_for_source("gdrive") == {song_id("f1")}
        assert catalog.get_song(song_id("f2")) is None

    def test_orphan_album_and_artist_pruned(self, catalog, clock):
        reconciler = LibraryReconciler(catalog, now_ms=clock)
        reconciler.reconcile([record("f1", artist="Keep"), record("f2", artist="Gone", album="Lonely")])
        reconciler.reconcile([record("f1", artist="Keep")])

        assert catalog.get_artist(artist_id("Gone")) is None
        assert catalog.get_album(album_id("Lonely")) is None
        assert catalog.get_artist(artist_id("Keep")) is not None

    def test_other_sources_untouched(self, catalog, clock):
        local = CanonicalSong(
            id=42, title="Local", artist_name="X", artist_id=1,
            album_name="Y", album_id=2, content_uri="content://42", source="local",
        )
        catalog.insert_song(local.to_dict())
        reconciler = LibraryReconciler(catalog, now_ms=clock)

        reconciler.reconcile([record("f1")])
        reconciler.reconcile([])

        assert catalog.get_song(42) == local.to_dict()
        assert catalog.song_ids_for_source("gdrive") == set()

    def test_plan_does_not_write(self, catalog, clock):
        reconciler = LibraryReconciler(catalog, now_ms=clock)
        cs = reconciler.plan([record("f1")])
        assert len(cs.upsert_songs) == 1
        assert catalog.songs() == []

    def test_clear(self, catalog, clock):
        reconciler = LibraryReconciler(catalog, now_ms=clock)
        reconciler.reconcile([record("f1")])
        reconciler.clear()
        assert catalog.song_ids_for_source("gdrive") == set()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
