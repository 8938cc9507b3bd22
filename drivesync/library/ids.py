"""
Canonical catalog ids for Drive-sourced rows.

Each entity type gets its own band of negative integers:

    songs    -(6e12 + h)   ->  (-7e12, -6e12]
    albums   -(7e12 + h)   ->  (-8e12, -7e12]
    artists  -(8e12 + h)   ->  (-9e12, -8e12]

with 0 <= h < 1e12, so ids from this source never overlap each other or ids
minted by other sources (positive media-store ids, other reserved bands).
h is derived from SHA-1 so it is stable across processes, unlike hash().
"""

import hashlib
import re

from ..constants import (
    SONG_ID_OFFSET,
    ALBUM_ID_OFFSET,
    ARTIST_ID_OFFSET,
    ID_BAND_WIDTH,
    UNKNOWN_ARTIST,
    UNKNOWN_ALBUM,
)

ARTIST_DELIMITERS = re.compile(r"\s*[,/&;+]\s*")


def stable_hash(key: str) -> int:
    """Deterministic non-negative hash of key, below ID_BAND_WIDTH."""
    digest = hashlib.sha1(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") % ID_BAND_WIDTH


def song_id(file_id: str) -> int:
    return -(SONG_ID_OFFSET + stable_hash(file_id))


def album_id(album_name: str) -> int:
    return -(ALBUM_ID_OFFSET + stable_hash((album_name or UNKNOWN_ALBUM).lower()))


def artist_id(artist_name: str) -> int:
    return -(ARTIST_ID_OFFSET + stable_hash((artist_name or UNKNOWN_ARTIST).lower()))


def in_band(value: int, offset: int) -> bool:
    """True if value lies in the band starting at -offset."""
    return -(offset + ID_BAND_WIDTH) < value <= -offset


def parse_artist_names(raw_artist: str) -> list[str]:
    """
    Split a delimited artist string into distinct names, in order.

    "A, B & C" -> ["A", "B", "C"]. Duplicates are dropped case-insensitively
    (first spelling wins). Blank input yields ["Unknown Artist"].
    """
    if not raw_artist or not raw_artist.strip():
        return [UNKNOWN_ARTIST]

    names = []
    seen = set()
    for part in ARTIST_DELIMITERS.split(raw_artist):
        name = part.strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        names.append(name)

    return names or [UNKNOWN_ARTIST]
