"""
Error types for Drive Sync.

AuthError and ApiError are never retried here; retry policy belongs to
whatever scheduler invokes the sync job.
"""


class DriveSyncError(Exception):
    """Base class for all Drive Sync errors."""


class AuthError(DriveSyncError):
    """No token, or the token could not be refreshed. User must sign in again."""


class ApiError(DriveSyncError):
    """Non-2xx response (or transport failure, status 0) from a remote endpoint."""

    def __init__(self, status: int, body: str = "", url: str = ""):
        self.status = status
        self.body = body
        self.url = url
        super().__init__(f"HTTP {status}: {body[:200]}" if status else f"Request failed: {body[:200]}")

    @property
    def is_auth_failure(self) -> bool:
        return self.status == 401


class ParseError(DriveSyncError):
    """Malformed payload that could not be recovered with a default."""


class SyncCancelled(DriveSyncError):
    """A crawl was cancelled before completing. Nothing was committed."""
