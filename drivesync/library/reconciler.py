"""
Merges Drive song records into the shared canonical catalog.

Every pass is a full scan-and-diff over the whole source: the new record set
is turned into canonical rows, and any canonical song id previously written
by this source that is not produced again is deleted. Absence from the newest
complete crawl is the only deletion signal.
"""

import logging
import time
from collections import Counter
from typing import Callable, Iterable, Optional

from ..constants import (
    SOURCE_TAG,
    UNKNOWN_ALBUM,
    CATALOG_GENRE,
    CATALOG_PARENT_DIRECTORY,
    CONTENT_URI_SCHEME,
)
from .ids import song_id, album_id, artist_id, parse_artist_names
from .models import (
    RemoteSongRecord,
    CanonicalSong,
    CanonicalAlbum,
    CanonicalArtist,
    ArtistCrossRef,
    ChangeSet,
)

logger = logging.getLogger(__name__)


def build_changeset(
    records: Iterable[RemoteSongRecord],
    existing_ids: Iterable[int],
    now_ms: Optional[Callable[[], int]] = None,
    source: str = SOURCE_TAG,
) -> ChangeSet:
    """
    Compute the catalog changeset for a complete record set.

    Args:
        records: Every song record currently known for the source
        existing_ids: Canonical song ids the catalog holds for the source
        now_ms: Clock used for records without an added time
        source: Source tag written on every song row

    Returns:
        ChangeSet with upserts for all current rows and deletes for stale ids
    """
    clock = now_ms or (lambda: int(time.time() * 1000))

    songs: dict[int, CanonicalSong] = {}
    albums: dict[int, CanonicalAlbum] = {}
    artists: dict[int, CanonicalArtist] = {}
    cross_refs: list[ArtistCrossRef] = []
    artist_credits: Counter = Counter()

    for record in records:
        sid = song_id(record.file_id)
        if sid in songs:
            # Same file reachable from two tracked folders: first one wins
            continue

        artist_names = parse_artist_names(record.artist)
        primary_name = artist_names[0]
        primary_id = artist_id(primary_name)

        for index, name in enumerate(artist_names):
            aid = artist_id(name)
            artists.setdefault(aid, CanonicalArtist(id=aid, name=name))
            artist_credits[aid] += 1
            cross_refs.append(ArtistCrossRef(song_id=sid, artist_id=aid, is_primary=index == 0))

        album_name = record.album.strip() if record.album and record.album.strip() else UNKNOWN_ALBUM
        alb_id = album_id(album_name)
        albums.setdefault(alb_id, CanonicalAlbum(
            id=alb_id,
            title=album_name,
            artist_name=primary_name,
            artist_id=primary_id,
            art_url=record.art_url,
        ))

        songs[sid] = CanonicalSong(
            id=sid,
            title=record.title,
            artist_name=record.artist.strip() or primary_name,
            artist_id=primary_id,
            album_name=album_name,
            album_id=alb_id,
            content_uri=f"{CONTENT_URI_SCHEME}{record.file_id}",
            duration_ms=record.duration_ms,
            art_url=record.art_url,
            genre=CATALOG_GENRE,
            parent_directory=CATALOG_PARENT_DIRECTORY,
            date_added_ms=record.added_at_ms if record.added_at_ms > 0 else clock(),
            mime_type=record.mime_type,
            bitrate=record.bitrate,
            source=source,
        )

    album_counts = Counter(song.album_id for song in songs.values())
    for album in albums.values():
        album.song_count = album_counts[album.id]
    for artist in artists.values():
        artist.track_count = artist_credits[artist.id]

    current_ids = set(songs)
    to_delete = set(existing_ids) - current_ids

    return ChangeSet(
        upsert_songs=list(songs.values()),
        upsert_albums=list(albums.values()),
        upsert_artists=list(artists.values()),
        cross_refs=cross_refs,
        delete_song_ids=to_delete,
    )


class LibraryReconciler:
    """Diffs source records against the catalog and applies the result."""

    def __init__(self, catalog, now_ms: Optional[Callable[[], int]] = None, source: str = SOURCE_TAG):
        """
        Args:
            catalog: CatalogStore shared with other ingestion sources
            now_ms: Clock (epoch ms), injectable for tests
            source: Tag identifying this source's rows in the catalog
        """
        self.catalog = catalog
        self.now_ms = now_ms
        self.source = source

    def plan(self, records: Iterable[RemoteSongRecord]) -> ChangeSet:
        """Compute the changeset without touching the catalog."""
        existing_ids = self.catalog.song_ids_for_source(self.source)
        return build_changeset(records, existing_ids, self.now_ms, self.source)

    def reconcile(self, records: Iterable[RemoteSongRecord]) -> ChangeSet:
        """Compute and atomically apply the changeset. Returns what was applied."""
        changeset = self.plan(records)
        self.catalog.apply(changeset, self.source)
        logger.info(
            "Catalog reconciled: %d songs, %d albums, %d artists upserted, %d deleted",
            len(changeset.upsert_songs), len(changeset.upsert_albums),
            len(changeset.upsert_artists), len(changeset.delete_song_ids),
        )
        return changeset

    def clear(self):
        """Drop every catalog row this source owns (logout)."""
        self.catalog.clear_source(self.source)
