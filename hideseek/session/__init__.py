"""
Session Module - Shared game records and the commands that change them.

A session is one game shared by every participant:
- Lives in a SessionStore, the only owner of the record
- Changes only through versioned patches
- Streams a full snapshot to watchers after every commit

Sessions are AUTHORITATIVE:
- No participant keeps a private copy of the truth
- Every command re-reads the record before deciding
- Conflicting writes are retried, never merged blindly
"""

from .store import SessionStore, InMemorySessionStore
from .file_store import FileSessionStore
from .collaborators import (
    GeoPositionFeed,
    UploadSink,
    InMemoryUploadSink,
    LocalUploadSink,
    IdentityProvider,
    AnonymousIdentityProvider,
    StaticIdentityProvider,
)
from .manager import SessionManager
from .client import PlayerClient

__all__ = [
    "SessionStore",
    "InMemorySessionStore",
    "FileSessionStore",
    "GeoPositionFeed",
    "UploadSink",
    "InMemoryUploadSink",
    "LocalUploadSink",
    "IdentityProvider",
    "AnonymousIdentityProvider",
    "StaticIdentityProvider",
    "SessionManager",
    "PlayerClient",
]
