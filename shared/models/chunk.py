"""Pydantic model of a chunk produced from a note."""

from pydantic import BaseModel


class Chunk(BaseModel):
    """A bounded span of note content, the unit of embedding and retrieval.

    Attributes:
        content:      Exact, trimmed text of the chunk (overlap seed included).
        preview:      Human-readable truncation of content (about 200 characters).
        chunk_index:  Zero-based position within the chunk sequence of the note.
        heading:      Nearest section heading active for the chunk, or None.
        content_hash: SHA-256 hex digest of content.
    """

    content: str
    preview: str
    chunk_index: int
    heading: str | None = None
    content_hash: str
