from datetime import datetime

from pydantic import BaseModel


class Note(BaseModel):
    """A single markdown note of the vault.

    Attributes:
        path:        Vault relative POSIX path including the ".md" suffix, e.g. "Notes/Coffee.md".
        content:     Full raw text, including the frontmatter header if any.
        modified_at: Last modification time reported by the store, if known.
    """

    path: str
    content: str
    modified_at: datetime | None = None
