from typing import Literal

from pydantic import BaseModel

JobType = Literal["full-sync", "single-note", "delete-note"]


class IndexSyncJob(BaseModel):
    """A unit of work for the index sync worker.

    Attributes:
        type:    "full-sync", "single-note" or "delete-note".
        path:    Note path, required for the single note jobs.
        content: Known note content for "single-note", read from the vault if None.
        attempt: 1-based attempt counter, raised on every retry.
    """

    type: JobType
    path: str | None = None
    content: str | None = None
    attempt: int = 1

    def describe(self) -> str:
        return self.type if self.path is None else f"{self.type} '{self.path}'"
