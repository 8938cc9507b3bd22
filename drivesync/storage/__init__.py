"""
Persistence: session tokens, tracked folders, song records and the catalog.

Each store has an in-memory form and a JSON-file form.
"""

from .tokens import TokenStore, JsonTokenStore
from .folders import TrackedFolders
from .songs import SongStore
from .catalog import CatalogStore, JsonCatalogStore

__all__ = [
    "TokenStore",
    "JsonTokenStore",
    "TrackedFolders",
    "SongStore",
    "CatalogStore",
    "JsonCatalogStore",
]
