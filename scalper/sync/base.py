"""Versioned store interface for optimistic-concurrency replication."""

from abc import ABC, abstractmethod
from typing import Literal, Optional

from pydantic import BaseModel, Field


class VersionedObject(BaseModel):
    """Content of a remote object together with its version token."""

    content: bytes = Field(..., description="Raw object content")
    version: str = Field(..., min_length=1, description="Opaque version token")

    model_config = {"frozen": True}


class PutResult(BaseModel):
    """Outcome of a conditional write."""

    status: Literal["ok", "conflict", "error"] = Field(..., description="Write outcome")
    version: Optional[str] = Field(default=None, description="New version token on success")
    message: str = Field(default="", description="Status message")

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def conflict(self) -> bool:
        return self.status == "conflict"


class VersionedStore(ABC):
    """Abstract remote object with compare-and-swap writes.

    Implementations report transport failures by raising ``httpx.HTTPError``
    (or ``OSError`` for non-HTTP backends) and unusable remote objects by
    raising ``ValueError``; callers decide whether to retry.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short description of the backing object, for logs."""
        pass

    @abstractmethod
    def get(self) -> Optional[VersionedObject]:
        """Read the current object.

        Returns:
            The content and version, or None if the object does not exist.
        """
        pass

    @abstractmethod
    def put(self, content: bytes, expected_version: Optional[str]) -> PutResult:
        """Write the object if its version still matches.

        Args:
            content: New object content.
            expected_version: Version the caller last saw, or None to create.

        Returns:
            PutResult with the new version, or a conflict/error status.
        """
        pass

    def current_version(self) -> Optional[str]:
        """Version token of the current object, or None if absent."""
        obj = self.get()
        return obj.version if obj is not None else None

    def close(self) -> None:
        """Release any connection held by the store."""
        pass
