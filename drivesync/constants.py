"""
Shared constants for Drive Sync.
"""

DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
IDENTITY_ENDPOINT = "https://www.googleapis.com/oauth2/v2/userinfo"

# OAuth client (read-only scope). Override with DRIVESYNC_CLIENT_ID / DRIVESYNC_CLIENT_SECRET.
OAUTH_CLIENT_ID = ""
OAUTH_CLIENT_SECRET = ""
OAUTH_SCOPES = [
    "https://www.googleapis.com/auth/drive.readonly",
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
    "openid",
]

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

# Audio types the file listing is filtered to (server side)
AUDIO_MIME_TYPES = (
    "audio/mpeg", "audio/mp3", "audio/flac", "audio/wav", "audio/x-wav",
    "audio/mp4", "audio/x-m4a", "audio/aac", "audio/ogg",
    "audio/opus", "audio/x-aiff", "audio/alac", "audio/aiff",
    "audio/x-flac", "audio/vnd.wave",
)

DEFAULT_PAGE_SIZE = 100

# Refresh the access token this long before it actually expires
TOKEN_REFRESH_MARGIN_MS = 5 * 60 * 1000
# Used when the token endpoint omits expires_in
DEFAULT_EXPIRES_IN_SECONDS = 3600
# Identity-token fallback session length (no refresh possible)
ID_TOKEN_EXPIRY_MS = 3600 * 1000

# Canonical id bands reserved for this ingestion source
SONG_ID_OFFSET = 6_000_000_000_000
ALBUM_ID_OFFSET = 7_000_000_000_000
ARTIST_ID_OFFSET = 8_000_000_000_000
ID_BAND_WIDTH = 1_000_000_000_000

SOURCE_TAG = "gdrive"
UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"
DEFAULT_ALBUM_NAME = "Google Drive"
CATALOG_GENRE = "Google Drive"
CATALOG_PARENT_DIRECTORY = "/Cloud/GoogleDrive"
CONTENT_URI_SCHEME = "gdrive://"
DEFAULT_MUSIC_FOLDER_NAME = "Drive Sync Music"
