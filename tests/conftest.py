"""
Shared test fixtures for the vault index bridge.

Provides: helper config bound to a clean environment, in-memory fakes of the
vault, embedding and vector collaborators, and a real in-memory lock client.
"""

import logging

import pytest

from shared.clients.lock.memory.LockClientMemory import LockClientMemory
from shared.clients.vault.VaultClientInterface import VaultClientInterface
from shared.clients.vault.models.Note import Note
from shared.clients.vector.VectorClientInterface import VectorClientInterface
from shared.clients.vector.models.IndexedDocument import IndexedDocument
from shared.clients.vector.models.Upsert import ChunkUpsert, SummaryUpsert
from shared.helper.HelperConfig import HelperConfig
from shared.helper.HelperHash import hash_content

_ENV_PREFIXES = ("VAULT_", "EMBED_", "VECTOR_", "LOCK_", "SYNC_", "JOB_", "APP_", "LOG_")


class FakeVaultClient:
    """Vault backed by a dict of path -> content."""

    normalize_path = staticmethod(VaultClientInterface.normalize_path)

    def __init__(self, notes: dict[str, str] | None = None):
        self.notes: dict[str, str] = dict(notes or {})
        self.get_calls: list[str] = []
        self.fail_listing = False

    async def do_list_notes(self) -> list[Note]:
        if self.fail_listing:
            raise RuntimeError("vault unavailable")
        return [Note(path=path, content=content) for path, content in sorted(self.notes.items())]

    async def do_get_note(self, path: str) -> Note | None:
        self.get_calls.append(path)
        content = self.notes.get(path)
        return Note(path=path, content=content) if content is not None else None


class FakeEmbedClient:
    """Deterministic two-dimensional embeddings, with optional failures per text."""

    embed_distance = "Cosine"

    def __init__(self):
        self.batch_calls: list[list[str]] = []
        self.single_calls: list[str] = []
        self.fail_on: set[str] = set()

    def _vector(self, text: str) -> list[float]:
        for marker in self.fail_on:
            if marker in text:
                raise RuntimeError(f"embedding failed for '{marker}'")
        return [float(len(text)), 1.0]

    async def do_embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        return [self._vector(text) for text in texts]

    async def do_embed(self, text: str) -> list[float]:
        self.single_calls.append(text)
        return self._vector(text)

    async def do_fetch_embedding_vector_size(self) -> int:
        return 2


class FakeVectorClient:
    """Vector index kept in a dict of point id -> point, recording every write."""

    def __init__(self):
        self.points: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.fail_upsert_for: set[str] = set()

    def seed(self, path: str, content: str, chunk_count: int = 1, summary: bool = False) -> None:
        """Put a note into the index as if it had been synced with the given content."""
        document_hash = hash_content(content)
        for index in range(chunk_count):
            self.points[VectorClientInterface.make_chunk_point_id(path, index)] = {
                "type": "chunk", "path": path, "chunk_index": index, "document_hash": document_hash,
            }
        if summary:
            self.points[VectorClientInterface.make_summary_point_id(path)] = {
                "type": "summary", "path": path, "document_hash": document_hash,
            }

    def points_for(self, path: str) -> list[dict]:
        return [point for point in self.points.values() if point["path"] == path]

    def writes(self) -> list[tuple]:
        return [call for call in self.calls if call[0] in ("delete", "upsert_chunks", "upsert_summary")]

    def writes_for(self, path: str) -> list[tuple]:
        return [call for call in self.writes() if call[1] == path]

    async def do_ensure_collection(self, vector_size: int, distance: str = "Cosine") -> bool:
        self.calls.append(("ensure", vector_size, distance))
        return True

    async def do_upsert_chunks(self, chunks: list[ChunkUpsert]) -> None:
        path = chunks[0].path
        self.calls.append(("upsert_chunks", path, len(chunks)))
        if path in self.fail_upsert_for:
            raise RuntimeError(f"upsert failed for '{path}'")
        for item in chunks:
            self.points[VectorClientInterface.make_chunk_point_id(item.path, item.chunk.chunk_index)] = {
                "type": "chunk",
                "path": item.path,
                "chunk_index": item.chunk.chunk_index,
                "document_hash": item.document_hash,
                "content": item.chunk.content,
                "title": item.title,
                "tags": item.tags,
            }

    async def do_upsert_summary(self, summary: SummaryUpsert) -> None:
        self.calls.append(("upsert_summary", summary.path))
        self.points[VectorClientInterface.make_summary_point_id(summary.path)] = {
            "type": "summary",
            "path": summary.path,
            "document_hash": summary.document_hash,
            "summary": summary.summary,
        }

    async def do_delete_document_chunks(self, path: str) -> None:
        self.calls.append(("delete", path))
        self.points = {point_id: point for point_id, point in self.points.items() if point["path"] != path}

    async def do_get_all_indexed_documents(self) -> dict[str, IndexedDocument]:
        self.calls.append(("list_indexed",))
        documents: dict[str, IndexedDocument] = {}
        for point in self.points.values():
            document = documents.setdefault(
                point["path"], IndexedDocument(path=point["path"], document_hash=point["document_hash"])
            )
            if point["type"] == "summary":
                document.has_summary = True
            else:
                document.chunk_count += 1
        return documents

    async def do_get_document_hash(self, path: str) -> str | None:
        for point in self.points.values():
            if point["path"] == path:
                return point["document_hash"]
        return None


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every application variable from the environment."""
    import os

    for key in list(os.environ):
        if key.startswith(_ENV_PREFIXES):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("vault_index.tests")


@pytest.fixture
def helper_config(clean_env, logger) -> HelperConfig:
    return HelperConfig(logger=logger)


@pytest.fixture
def vault_client() -> FakeVaultClient:
    return FakeVaultClient()


@pytest.fixture
def embed_client() -> FakeEmbedClient:
    return FakeEmbedClient()


@pytest.fixture
def vector_client() -> FakeVectorClient:
    return FakeVectorClient()


@pytest.fixture
def lock_client(helper_config) -> LockClientMemory:
    return LockClientMemory(helper_config=helper_config)
