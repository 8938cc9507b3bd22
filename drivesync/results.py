"""
Result values returned across the public API.

Errors from the sync core are returned, not raised, so callers (UI,
schedulers) always get a value back.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from .errors import DriveSyncError, AuthError

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """Success value or error."""
    value: Optional[T] = None
    error: Optional[DriveSyncError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def needs_login(self) -> bool:
        return isinstance(self.error, AuthError)

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, error: DriveSyncError) -> "Result":
        return cls(error=error)


@dataclass
class BulkSyncResult:
    """Outcome of syncing every tracked folder."""
    folder_count: int = 0
    synced_song_count: int = 0
    failed_folder_count: int = 0
    # folder_id -> error message, one entry per failed folder
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def all_succeeded(self) -> bool:
        return self.failed_folder_count == 0
