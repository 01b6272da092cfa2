from abc import abstractmethod
from datetime import datetime, timezone
import uuid

from shared.clients.HttpClientInterface import HttpClientInterface
from shared.clients.vector.models.IndexedDocument import IndexedDocument
from shared.clients.vector.models.Upsert import ChunkUpsert, SummaryUpsert
from shared.helper.HelperConfig import HelperConfig


class VectorClientInterface(HttpClientInterface):
    """Vector index holding chunk points and one summary point per note."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "vector"

    ################ POINT IDS ##################
    @staticmethod
    def make_chunk_point_id(path: str, chunk_index: int) -> str:
        """Build a deterministic UUID5 point ID for a chunk of a note.

        Args:
            path (str): Vault relative note path.
            chunk_index (int): Zero-based chunk index within the note.

        Returns:
            str: UUID string usable as point ID.
        """
        return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{path}:chunk:{chunk_index}"))

    @staticmethod
    def make_summary_point_id(path: str) -> str:
        """Build the deterministic UUID5 point ID of the summary point of a note."""
        return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{path}:summary"))

    @staticmethod
    def now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def do_ensure_collection(self, vector_size: int, distance: str = "Cosine") -> bool:
        """Create the collection and its payload index if missing.

        Args:
            vector_size (int): Dimension of the embedding vectors.
            distance (str): Distance metric of the collection.

        Returns:
            bool: True if the collection was created, False if it already existed.
        """
        pass

    @abstractmethod
    async def do_upsert_chunks(self, chunks: list[ChunkUpsert]) -> None:
        """Insert or replace the chunk points of a note.

        Args:
            chunks (list[ChunkUpsert]): Chunks with their embeddings and note metadata.
        """
        pass

    @abstractmethod
    async def do_upsert_summary(self, summary: SummaryUpsert) -> None:
        """Insert or replace the summary point of a note.

        Args:
            summary (SummaryUpsert): Summary embedding and note metadata.
        """
        pass

    @abstractmethod
    async def do_delete_document_chunks(self, path: str) -> None:
        """Delete every point (chunks and summary) of a note. Idempotent.

        Args:
            path (str): Vault relative note path.
        """
        pass

    @abstractmethod
    async def do_get_all_indexed_documents(self) -> dict[str, IndexedDocument]:
        """Return one record per indexed note path.

        Returns:
            dict[str, IndexedDocument]: Indexed notes keyed by path.
        """
        pass

    @abstractmethod
    async def do_get_document_hash(self, path: str) -> str | None:
        """Return the stored document hash of a note.

        Args:
            path (str): Vault relative note path.

        Returns:
            str | None: The hash, or None if the note is not indexed.
        """
        pass
