"""
Collaborators - Interfaces to the world outside the engine.

- UploadSink: stores answer photos and returns a URL
- IdentityProvider: the anonymous, stable identity of the current user
- GeoPositionFeed: any async iterable of LatLng samples
"""

from __future__ import annotations
import asyncio
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import AsyncIterable

from ..engine_core.state import LatLng
from ..errors import CollaboratorUnavailableError
from ..logging_config import get_logger

logger = get_logger(__name__)

GeoPositionFeed = AsyncIterable[LatLng]


# =============================================================================
# Upload sinks
# =============================================================================

class UploadSink(ABC):
    """Blob storage for photos."""

    @abstractmethod
    async def upload(self, data: bytes, path: str) -> str:
        """Store data under path and return a URL for it."""


class InMemoryUploadSink(UploadSink):
    """Keeps uploads in a dict. URLs use the memory:// scheme."""

    def __init__(self):
        self.blobs: dict[str, bytes] = {}

    async def upload(self, data: bytes, path: str) -> str:
        await asyncio.sleep(0)
        self.blobs[path] = bytes(data)
        return f"memory://{path}"


class LocalUploadSink(UploadSink):
    """
    Writes uploads below base_dir.

    The returned URL is base_url joined with the relative path, so a
    static file server mounted at base_url can serve them.
    """

    def __init__(self, base_dir: str | Path, base_url: str = "/uploads"):
        self.base_dir = Path(base_dir).expanduser().resolve()
        self.base_url = base_url.rstrip("/")
        self.base_dir.mkdir(parents=True, exist_ok=True)

    async def upload(self, data: bytes, path: str) -> str:
        target = (self.base_dir / path).resolve()
        if self.base_dir not in target.parents:
            raise CollaboratorUnavailableError(f"Upload path escapes storage: {path}")
        try:
            await asyncio.to_thread(self._write, target, data)
        except OSError as e:
            logger.error("Upload to %s failed: %s", target, e)
            raise CollaboratorUnavailableError("Photo storage is unavailable") from e
        return f"{self.base_url}/{path.lstrip('/')}"

    @staticmethod
    def _write(target: Path, data: bytes):
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)


# =============================================================================
# Identity
# =============================================================================

class IdentityProvider(ABC):
    """Source of the current user's opaque id."""

    @abstractmethod
    def current_identity(self) -> str:
        """Stable for the lifetime of the session."""


class AnonymousIdentityProvider(IdentityProvider):
    """Generates one random id and keeps returning it."""

    def __init__(self):
        self._user_id = uuid.uuid4().hex

    def current_identity(self) -> str:
        return self._user_id


class StaticIdentityProvider(IdentityProvider):
    """A fixed, externally supplied id (e.g. from a request header)."""

    def __init__(self, user_id: str):
        if not user_id:
            raise ValueError("user_id must not be empty")
        self._user_id = user_id

    def current_identity(self) -> str:
        return self._user_id
