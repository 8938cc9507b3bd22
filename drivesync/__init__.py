"""
Drive Sync - Keep a local music catalog in step with Google Drive folders.

Crawls the folders a user tracks, turns audio file listings into song
records, and merges them into a catalog shared with other library sources.

Import from submodules directly:
    from drivesync.sync import SyncOrchestrator
    from drivesync.drive import DriveClient, TokenManager
    from drivesync.library import LibraryReconciler
"""

__version__ = "1.0.0"
