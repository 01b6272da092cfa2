from typing import Literal

from pydantic import BaseModel


class SyncFailure(BaseModel):
    """A note whose reconciliation failed during a full sync.

    Attributes:
        path:   Vault relative note path.
        action: What was attempted: "create", "update" or "delete".
        error:  Error message of the failure.
    """

    path: str
    action: Literal["create", "update", "delete"]
    error: str


class SyncReport(BaseModel):
    """Outcome of a full reconciliation.

    Attributes:
        created:      Notes indexed for the first time.
        updated:      Notes whose content changed and were re-indexed.
        deleted:      Notes removed from the index because they left the vault.
        unchanged:    Notes skipped because their hash matched the index.
        skipped:      Notes that produced no chunks or changed state while the sweep ran.
        total_chunks: Chunk points written during the sweep.
        failures:     Per-note failures, to be retried.
    """

    created: int = 0
    updated: int = 0
    deleted: int = 0
    unchanged: int = 0
    skipped: int = 0
    total_chunks: int = 0
    failures: list[SyncFailure] = []

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)
