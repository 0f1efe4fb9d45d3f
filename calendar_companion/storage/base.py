"""Blob store port."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List


@dataclass
class BlobInfo:
    """Metadata of a stored object."""

    key: str
    created_at: datetime
    updated_at: datetime

    @property
    def name(self) -> str:
        """Last path segment of the key."""
        return self.key.rsplit("/", 1)[-1]


class BlobStore(ABC):
    """Generic key/value blob storage."""

    @abstractmethod
    async def ensure_namespace(self) -> None:
        """Create the backing container if it does not exist yet."""
        pass

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        """
        Store data under key, creating or overwriting it.

        Args:
            key: Object key
            data: Object content
            content_type: MIME type recorded with the object
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """
        Read an object.

        Raises:
            NotFoundError: If no object is stored under key
        """
        pass

    @abstractmethod
    async def list(self, prefix: str, limit: int) -> List[BlobInfo]:
        """
        List objects whose key starts with prefix, most recently updated first.

        Args:
            prefix: Key prefix
            limit: Maximum number of entries returned
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete an object; returns whether it existed."""
        pass
