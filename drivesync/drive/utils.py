"""
Drive-related utilities for Drive Sync.
"""

import re

from ..constants import AUDIO_MIME_TYPES, FOLDER_MIME_TYPE


def quote_query_value(value: str) -> str:
    """Escape a value for use inside single quotes in a Drive `q` expression."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_folders_query(parent_id: str) -> str:
    """Query for non-trashed folders directly under parent_id."""
    return (
        f"'{quote_query_value(parent_id)}' in parents"
        f" and mimeType='{FOLDER_MIME_TYPE}' and trashed=false"
    )


def build_audio_files_query(folder_id: str, mime_types=AUDIO_MIME_TYPES) -> str:
    """Query for non-trashed audio files directly under folder_id."""
    mime_filter = " or ".join(f"mimeType='{m}'" for m in mime_types)
    return f"'{quote_query_value(folder_id)}' in parents and ({mime_filter}) and trashed=false"


FOLDER_ID_CHARS = r"[A-Za-z0-9_-]"

# Link shapes Drive hands out for a shared folder; group 1 is the folder id
FOLDER_LINK_PATTERNS = [
    re.compile(rf"drive\.google\.com/drive(?:/u/\d+)?/folders/({FOLDER_ID_CHARS}+)"),
    re.compile(rf"drive\.google\.com/(?:open|embeddedfolderview)\?(?:.*&)?id=({FOLDER_ID_CHARS}+)"),
]
FILE_LINK_PATTERN = re.compile(rf"(?:drive|docs)\.google\.com/(?:file/d|uc\?(?:.*&)?id=)")
RAW_FOLDER_ID = re.compile(rf"^{FOLDER_ID_CHARS}{{10,}}$")


def parse_drive_folder_url(url_or_id: str) -> tuple[str | None, str | None]:
    """
    Extract the folder ID from whatever the user pasted as a music folder.

    Accepts folder share links (with any /u/N account slot, usp or
    resourcekey query), open?id= and embeddedfolderview?id= links, and bare
    IDs of 10+ characters. Links to a single audio file are refused since
    only folders can be tracked.

    Returns:
        (folder_id, None) on success, (None, error_message) otherwise
    """
    text = url_or_id.strip()
    if not text:
        return None, "Paste a Google Drive folder link or folder ID"

    if FILE_LINK_PATTERN.search(text):
        return None, "That's a link to a single file; share the folder holding your music instead"

    for pattern in FOLDER_LINK_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1), None

    if RAW_FOLDER_ID.match(text):
        return text, None

    if "google.com" in text:
        return None, "Unrecognized Google Drive link; copy the folder's share link"
    return None, "Not a Google Drive folder link or ID"
