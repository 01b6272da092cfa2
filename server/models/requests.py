from typing import Literal

from pydantic import BaseModel, Field


class NoteWebhookRequest(BaseModel):
    """Change notification for a single note.

    Attributes:
        event:   "created", "updated" or "deleted".
        path:    Vault relative note path.
        content: Current raw content, optional for created/updated.
    """

    event: Literal["created", "updated", "deleted"]
    path: str = Field(min_length=1)
    content: str | None = None
