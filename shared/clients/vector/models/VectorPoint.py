"""Payload models stored alongside each vector point of a note."""

from typing import Literal

from pydantic import BaseModel


class ChunkPayload(BaseModel):
    """Payload of a chunk point, used for contextual retrieval.

    Attributes:
        type:            Always "chunk".
        path:            Vault relative path of the note. Indexed as keyword.
        chunk_index:     Zero-based position of the chunk within the note.
        total_chunks:    Number of chunks the note produced in the same pass.
        heading:         Section heading active for the chunk, if any.
        content_preview: Short human-readable preview of the chunk text.
        content_hash:    SHA-256 of the chunk text.
        document_hash:   SHA-256 of the whole note content at index time.
                         Identical across all points of the same note.
        title:           Title of the note.
        tags:            Frontmatter and inline tags of the note.
        updated_at:      ISO-8601 UTC time of the upsert.
    """

    type: Literal["chunk"] = "chunk"
    path: str
    chunk_index: int
    total_chunks: int
    heading: str | None = None
    content_preview: str
    content_hash: str
    document_hash: str
    title: str
    tags: list[str] = []
    updated_at: str


class SummaryPayload(BaseModel):
    """Payload of the single summary point of a note, used for similarity between notes."""

    type: Literal["summary"] = "summary"
    path: str
    document_hash: str
    title: str
    tags: list[str] = []
    summary: str
    updated_at: str
