"""
Data model for Drive Sync.

Transient crawl output (RawRemoteFile), source-local song records
(RemoteSongRecord) and the canonical catalog rows shared with other
ingestion sources (CanonicalSong/Album/Artist, ArtistCrossRef).
"""

from dataclasses import dataclass, field, asdict
from typing import Optional


@dataclass
class Token:
    """OAuth access/refresh pair. refresh_token survives refreshes that omit it."""
    access_token: str
    refresh_token: Optional[str] = None
    expires_at_ms: int = 0

    def is_fresh(self, now_ms: int, margin_ms: int) -> bool:
        """True if the access token is usable for at least margin_ms more."""
        return bool(self.access_token) and now_ms < self.expires_at_ms - margin_ms


@dataclass
class Account:
    """Basic profile of the signed-in user (display only)."""
    email: Optional[str] = None
    display_name: Optional[str] = None
    avatar_uri: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.email or "User"


@dataclass
class TrackedFolder:
    """A remote folder the user chose to sync."""
    folder_id: str
    name: str
    song_count: int = 0
    last_sync_time_ms: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TrackedFolder":
        return cls(
            folder_id=data.get("folder_id", ""),
            name=data.get("name", ""),
            song_count=data.get("song_count", 0),
            last_sync_time_ms=data.get("last_sync_time_ms", 0),
        )


@dataclass
class RemoteFolder:
    """A folder as returned by the folder listing (picker / traversal)."""
    folder_id: str
    name: str


@dataclass
class RawRemoteFile:
    """One audio file from a listing page, tagged with the folder it was found in."""
    file_id: str
    name: str
    mime_type: str
    size_bytes: int
    modified_time: str
    scope_folder_id: str
    thumbnail_url: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict, scope_folder_id: str) -> "RawRemoteFile":
        """Build from a Drive `files[]` entry. Missing fields get safe defaults."""
        try:
            size = int(data.get("size") or 0)
        except (TypeError, ValueError):
            size = 0
        return cls(
            file_id=data.get("id", ""),
            name=data.get("name") or "Unknown",
            mime_type=data.get("mimeType") or "audio/mpeg",
            size_bytes=size,
            modified_time=data.get("modifiedTime") or "",
            scope_folder_id=scope_folder_id,
            thumbnail_url=data.get("thumbnailLink") or None,
        )


@dataclass
class RemoteSongRecord:
    """Normalized song as stored by this source, keyed by composite_id."""
    composite_id: str
    file_id: str
    scope_folder_id: str
    title: str
    artist: str
    album: str
    duration_ms: int = 0
    art_url: Optional[str] = None
    mime_type: str = "audio/mpeg"
    bitrate: Optional[int] = None
    size_bytes: int = 0
    added_at_ms: int = 0
    modified_at_ms: int = 0

    @staticmethod
    def make_composite_id(scope_folder_id: str, file_id: str) -> str:
        return f"{scope_folder_id}_{file_id}"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "RemoteSongRecord":
        return cls(**data)


@dataclass
class CanonicalSong:
    id: int
    title: str
    artist_name: str
    artist_id: int
    album_name: str
    album_id: int
    content_uri: str
    duration_ms: int = 0
    art_url: Optional[str] = None
    genre: str = ""
    parent_directory: str = ""
    date_added_ms: int = 0
    mime_type: str = ""
    bitrate: Optional[int] = None
    source: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CanonicalAlbum:
    id: int
    title: str
    artist_name: str
    artist_id: int
    song_count: int = 0
    year: int = 0
    art_url: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CanonicalArtist:
    id: int
    name: str
    track_count: int = 0
    image_url: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ArtistCrossRef:
    song_id: int
    artist_id: int
    is_primary: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ChangeSet:
    """Incremental upsert/delete batch, applied atomically to the catalog."""
    upsert_songs: list[CanonicalSong] = field(default_factory=list)
    upsert_albums: list[CanonicalAlbum] = field(default_factory=list)
    upsert_artists: list[CanonicalArtist] = field(default_factory=list)
    cross_refs: list[ArtistCrossRef] = field(default_factory=list)
    delete_song_ids: set[int] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        return not (self.upsert_songs or self.upsert_albums or self.upsert_artists
                    or self.cross_refs or self.delete_song_ids)
