"""
Raw Drive file -> RemoteSongRecord mapping.

Folder listings carry no tags, so artist/title come from the filename
("Artist - Title.ext") and duration is left unknown (0).
"""

import logging
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ..constants import UNKNOWN_ARTIST, DEFAULT_ALBUM_NAME
from .models import RawRemoteFile, RemoteSongRecord

logger = logging.getLogger(__name__)

ARTIST_TITLE_SEPARATOR = " - "
FRACTION_RE = re.compile(r"\.(\d+)(?=[+-]\d{2}:\d{2}$|$)")
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _now_ms() -> int:
    return int(time.time() * 1000)


def strip_extension(filename: str) -> str:
    """Drop the last ".ext" from a filename (no-op when there is none)."""
    if "." not in filename:
        return filename
    stem = filename.rsplit(".", 1)[0]
    return stem or filename


def split_artist_title(filename: str) -> tuple[str, str]:
    """
    Infer (artist, title) from a filename.

    Examples:
        "Daft Punk - One More Time.mp3" -> ("Daft Punk", "One More Time")
        "Interstellar Theme.flac"       -> ("Unknown Artist", "Interstellar Theme")
    """
    stem = strip_extension(filename)
    parts = [p.strip() for p in stem.split(ARTIST_TITLE_SEPARATOR, 1)]
    if len(parts) == 2 and all(parts):
        return parts[0], parts[1]
    return UNKNOWN_ARTIST, stem.strip()


def parse_modified_time(value: str, now_ms: Optional[Callable[[], int]] = None) -> int:
    """
    Parse an RFC3339 UTC timestamp into epoch milliseconds.

    Falls back to the current time on anything unparseable.
    """
    clock = now_ms or _now_ms
    if not value:
        return clock()
    try:
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        # fromisoformat before 3.11 only takes 3 or 6 fractional digits
        text = FRACTION_RE.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return (parsed - EPOCH) // timedelta(milliseconds=1)
    except (ValueError, TypeError):
        logger.debug("Unparseable modifiedTime %r, using current time", value)
        return clock()


def map_remote_file(
    raw: RawRemoteFile,
    album_name: str = DEFAULT_ALBUM_NAME,
    now_ms: Optional[Callable[[], int]] = None,
) -> RemoteSongRecord:
    """Convert one crawled file into a normalized song record."""
    artist, title = split_artist_title(raw.name)
    modified = parse_modified_time(raw.modified_time, now_ms)

    return RemoteSongRecord(
        composite_id=RemoteSongRecord.make_composite_id(raw.scope_folder_id, raw.file_id),
        file_id=raw.file_id,
        scope_folder_id=raw.scope_folder_id,
        title=title,
        artist=artist,
        album=album_name,
        duration_ms=0,
        art_url=raw.thumbnail_url,
        mime_type=raw.mime_type,
        bitrate=None,
        size_bytes=raw.size_bytes,
        added_at_ms=modified,
        modified_at_ms=modified,
    )
