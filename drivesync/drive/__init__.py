"""
Google Drive interaction module.

Handles authentication, the API client and folder traversal.
"""

from .auth import TokenManager, SessionState, sign_in_interactive
from .client import DriveClient, DriveClientConfig, ListPage
from .traversal import FolderTraversal, CrawlResult

__all__ = [
    "TokenManager",
    "SessionState",
    "sign_in_interactive",
    "DriveClient",
    "DriveClientConfig",
    "ListPage",
    "FolderTraversal",
    "CrawlResult",
]
