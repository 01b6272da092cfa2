"""Input models of the vector client write operations."""

from pydantic import BaseModel

from shared.models.chunk import Chunk


class ChunkUpsert(BaseModel):
    """One chunk of a note together with its embedding and note level metadata."""

    chunk: Chunk
    embedding: list[float]
    path: str
    total_chunks: int
    document_hash: str
    title: str
    tags: list[str] = []


class SummaryUpsert(BaseModel):
    """The summary embedding of a note."""

    embedding: list[float]
    path: str
    document_hash: str
    title: str
    tags: list[str] = []
    summary: str
