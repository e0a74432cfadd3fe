"""Ledger replication to a remote versioned store."""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from scalper.ledger import Ledger
from scalper.models import LedgerState
from scalper.sync.base import VersionedStore

logger = logging.getLogger(__name__)


def _short(version: Optional[str]) -> str:
    return (version or "none")[:7]


class LedgerReplicator:
    """Pulls and pushes the ledger record with optimistic concurrency.

    This is last-writer-wins with a single conflict retry: a conflicting
    push refetches the remote version once and tries again, and a second
    failure drops the push until the next trigger. Local state is never
    rolled back by a failed push.
    """

    def __init__(self, store: VersionedStore, ledger: Ledger):
        """Initialize the replicator.

        Args:
            store: Remote versioned store holding the ledger record.
            ledger: Local ledger to replicate.
        """
        self._store = store
        self._ledger = ledger
        self._version: Optional[str] = None

    @property
    def version(self) -> Optional[str]:
        """Last remote version token this replicator has seen."""
        return self._version

    def pull(self, persist: bool = True) -> bool:
        """Overwrite local state with the remote record if one exists.

        Args:
            persist: Also write adopted state to the local file.

        Returns:
            True if remote state was adopted.
        """
        try:
            obj = self._store.get()
        except (httpx.HTTPError, OSError, ValueError) as e:
            logger.error(f"Ledger pull from {self._store.name} failed: {e}")
            return False

        if obj is None:
            logger.info(f"No remote ledger at {self._store.name}, starting fresh")
            return False

        self._version = obj.version
        try:
            state = LedgerState.model_validate_json(obj.content)
        except ValidationError as e:
            logger.warning(f"Remote ledger (version {_short(obj.version)}) is invalid, ignoring: {e}")
            return False

        self._ledger.replace_state(state, persist=persist)
        logger.info(
            f"Pulled ledger from {self._store.name} (version {_short(obj.version)}, "
            f"balance ${state.balance:.2f})"
        )
        return True

    def restore(self, persist: bool = True) -> bool:
        """Startup restore: remote state if present, else the local file.

        Args:
            persist: Write restored or default state to the local file.

        Returns:
            True if remote state was adopted.
        """
        if self.pull(persist=persist):
            return True
        self._ledger.load(persist=persist)
        return False

    def close(self) -> None:
        self._store.close()

    def _refresh_version(self) -> Optional[str]:
        self._version = self._store.current_version()
        return self._version

    def push(self) -> bool:
        """Replicate the current local state.

        Returns:
            True if the remote store now holds the local state.
        """
        content = self._ledger.state.model_dump_json(indent=2).encode("utf-8")

        try:
            if self._version is None:
                self._refresh_version()

            result = self._store.put(content, self._version)
            if result.conflict:
                logger.warning("Version conflict on ledger push, refetching version and retrying")
                self._refresh_version()
                result = self._store.put(content, self._version)
        except (httpx.HTTPError, OSError, ValueError) as e:
            logger.error(f"Ledger push to {self._store.name} failed: {e}")
            return False

        if not result.ok:
            logger.error(f"Ledger push abandoned ({result.status}): {result.message}")
            return False

        self._version = result.version
        logger.info(f"Ledger synced to {self._store.name} (version {_short(self._version)})")
        return True
