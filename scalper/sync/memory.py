"""In-process versioned store."""

from typing import Optional

from scalper.sync.base import PutResult, VersionedObject, VersionedStore


class InMemoryVersionedStore(VersionedStore):
    """Versioned store held in memory.

    Versions are increasing integers rendered as strings. Every accepted
    write is appended to ``writes`` so callers can inspect history.
    """

    def __init__(self, content: Optional[bytes] = None):
        self._content: Optional[bytes] = None
        self._revision = 0
        self.writes: list[bytes] = []
        if content is not None:
            self._content = content
            self._revision = 1

    @property
    def name(self) -> str:
        return "memory"

    @property
    def version(self) -> Optional[str]:
        return str(self._revision) if self._content is not None else None

    def get(self) -> Optional[VersionedObject]:
        if self._content is None:
            return None
        return VersionedObject(content=self._content, version=self.version)

    def put(self, content: bytes, expected_version: Optional[str]) -> PutResult:
        if expected_version != self.version:
            return PutResult(
                status="conflict",
                message=f"Expected version {expected_version}, current is {self.version}",
            )
        self._content = content
        self._revision += 1
        self.writes.append(content)
        return PutResult(status="ok", version=self.version)
