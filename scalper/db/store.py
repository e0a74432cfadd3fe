"""Local JSON file store for the ledger record."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from scalper.models import LedgerState

logger = logging.getLogger(__name__)


class LedgerFile:
    """Atomic JSON persistence for a single LedgerState record.

    Writes go to a temporary file in the same directory which is then
    renamed over the target, so a crash mid-write leaves either the old
    or the new record on disk, never a partial one.
    """

    def __init__(self, path: Path):
        """Initialize the ledger file.

        Args:
            path: Path to the JSON ledger file.
        """
        self.path = Path(path)
        self._ensure_dir()

    def _ensure_dir(self) -> None:
        """Ensure the ledger directory exists."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[LedgerState]:
        """Load the ledger record.

        Returns:
            The stored LedgerState, or None if the file is missing or corrupt.
        """
        if not self.path.exists():
            return None

        try:
            return LedgerState.model_validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable ledger file {self.path}: {e}")
            return None

    def save(self, state: LedgerState) -> None:
        """Persist a ledger record atomically.

        Args:
            state: Ledger state to write.
        """
        self.write_bytes(state.model_dump_json(indent=2).encode("utf-8"))

    def read_bytes(self) -> Optional[bytes]:
        """Raw bytes of the stored record, or None if missing."""
        if not self.path.exists():
            return None
        return self.path.read_bytes()

    def write_bytes(self, content: bytes) -> None:
        """Atomically replace the file contents.

        Args:
            content: Bytes to write.
        """
        self._ensure_dir()
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
