from pydantic import BaseModel


class IndexedDocument(BaseModel):
    """Index resident projection of one note.

    Attributes:
        path:          Vault relative path of the note.
        document_hash: Hash of the note content at last index time.
        chunk_count:   Number of chunk points currently stored for the note.
        has_summary:   Whether a summary point exists for the note.
    """

    path: str
    document_hash: str
    chunk_count: int = 0
    has_summary: bool = False
