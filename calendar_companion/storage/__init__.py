"""Chat history persistence."""

from .base import BlobInfo, BlobStore
from .session_store import SessionStore, session_key
from .sqlite_store import SQLiteBlobStore

__all__ = ["BlobInfo", "BlobStore", "SessionStore", "SQLiteBlobStore", "session_key"]
