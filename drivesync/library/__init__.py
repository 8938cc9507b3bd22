"""
Song records and catalog reconciliation.
"""

from .models import (
    Token,
    Account,
    TrackedFolder,
    RemoteFolder,
    RawRemoteFile,
    RemoteSongRecord,
    CanonicalSong,
    CanonicalAlbum,
    CanonicalArtist,
    ArtistCrossRef,
    ChangeSet,
)
from .mapper import map_remote_file, split_artist_title, parse_modified_time
from .ids import song_id, album_id, artist_id, parse_artist_names
from .reconciler import LibraryReconciler, build_changeset

__all__ = [
    # Models
    "Token",
    "Account",
    "TrackedFolder",
    "RemoteFolder",
    "RawRemoteFile",
    "RemoteSongRecord",
    "CanonicalSong",
    "CanonicalAlbum",
    "CanonicalArtist",
    "ArtistCrossRef",
    "ChangeSet",
    # Mapping
    "map_remote_file",
    "split_artist_title",
    "parse_modified_time",
    # Ids
    "song_id",
    "album_id",
    "artist_id",
    "parse_artist_names",
    # Reconciliation
    "LibraryReconciler",
    "build_changeset",
]
