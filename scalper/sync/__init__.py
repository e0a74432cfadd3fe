"""Remote replication of the ledger through versioned stores."""

from scalper.sync.base import PutResult, VersionedObject, VersionedStore
from scalper.sync.github import GitHubContentsStore
from scalper.sync.memory import InMemoryVersionedStore
from scalper.sync.replicator import LedgerReplicator

__all__ = [
    "VersionedStore",
    "VersionedObject",
    "PutResult",
    "GitHubContentsStore",
    "InMemoryVersionedStore",
    "LedgerReplicator",
]
