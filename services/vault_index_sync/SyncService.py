"""Synchronisation service.

Keeps the vector index consistent with the vault: chunks each note, embeds
the chunks and the frontmatter summary, and replaces all points of the note
in the vector index. Every write for a path runs under the per-path lock, so
a full sweep and incremental updates of the same note never interleave.
"""

from shared.clients.lock.LockClientInterface import LockClientInterface
from shared.clients.vault.VaultClientInterface import VaultClientInterface
from shared.clients.vector.VectorClientInterface import VectorClientInterface
from shared.clients.vector.models.Upsert import ChunkUpsert, SummaryUpsert
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.HelperHash import hash_content
from services.vault_index_sync.ChunkingService import ChunkingService
from services.vault_index_sync.NoteMetadata import extract_metadata
from services.vault_index_sync.models.SyncReport import SyncFailure, SyncReport

LOCK_KEY_PREFIX = "vault-index:"

# outcomes of a single note within a full sweep
OUTCOME_INDEXED = "indexed"
OUTCOME_EMPTY = "empty"
OUTCOME_UNCHANGED = "unchanged"
OUTCOME_DELETED = "deleted"
OUTCOME_SKIPPED = "skipped"


def lock_key(path: str) -> str:
    return f"{LOCK_KEY_PREFIX}{path}"


class SyncService:
    """Reconciles the vault against the vector index."""

    def __init__(
        self,
        helper_config: HelperConfig,
        vault_client: VaultClientInterface,
        vector_client: VectorClientInterface,
        embed_client: EmbedClientInterface,
        lock_client: LockClientInterface,
        chunking_service: ChunkingService | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._vault_client = vault_client
        self._vector_client = vector_client
        self._embed_client = embed_client
        self._lock_client = lock_client
        self._chunking_service = chunking_service or ChunkingService(helper_config=helper_config)
        self.lock_timeout = float(helper_config.get_number_val("SYNC_LOCK_TIMEOUT_SECONDS", default=30))

    ##########################################
    ############### CORE SYNC ################
    ##########################################

    async def do_full_sync(self) -> SyncReport:
        """Reconcile every note of the vault against the index.

        New and changed notes are re-indexed, unchanged notes are skipped and
        index entries of notes that left the vault are deleted. A failing
        note does not stop the sweep; it is recorded in the report.

        Returns:
            SyncReport: Counts and per-note failures of the sweep.

        Raises:
            Exception: If listing the vault or the index fails.
        """
        self.logging.info("Starting full index sync...")
        notes = await self._vault_client.do_list_notes()
        indexed = await self._vector_client.do_get_all_indexed_documents()
        report = SyncReport()

        for note in notes:
            existing = indexed.get(note.path)
            if existing is not None and existing.document_hash == hash_content(note.content):
                report.unchanged += 1
                continue

            action = "create" if existing is None else "update"
            try:
                outcome, chunk_count = await self._reconcile_listed_note(note.path)
            except Exception as exc:
                self.logging.error("Failed to %s note '%s' in index: %s", action, note.path, exc)
                report.failures.append(SyncFailure(path=note.path, action=action, error=str(exc) or type(exc).__name__))
                continue

            if outcome == OUTCOME_INDEXED:
                if action == "create":
                    report.created += 1
                else:
                    report.updated += 1
                report.total_chunks += chunk_count
            elif outcome == OUTCOME_UNCHANGED:
                report.unchanged += 1
            elif outcome == OUTCOME_DELETED:
                report.deleted += 1
            else:
                report.skipped += 1

        vault_paths = {note.path for note in notes}
        for path in indexed:
            if path in vault_paths:
                continue
            try:
                outcome = await self._reconcile_missing_note(path)
            except Exception as exc:
                self.logging.error("Failed to delete note '%s' from index: %s", path, exc)
                report.failures.append(SyncFailure(path=path, action="delete", error=str(exc) or type(exc).__name__))
                continue
            if outcome == OUTCOME_DELETED:
                report.deleted += 1
            else:
                report.skipped += 1

        log = self.logging.warning if report.has_failures else self.logging.info
        log(
            "Index sync complete: %d created, %d updated, %d deleted, %d unchanged, %d skipped, %d chunks, %d failures.",
            report.created, report.updated, report.deleted, report.unchanged,
            report.skipped, report.total_chunks, len(report.failures),
        )
        return report

    async def do_incremental_sync(self, path: str, content: str | None = None) -> None:
        """Re-index a single note, replacing all of its points.

        Runs under the per-path lock. A missing or empty note is a no-op.

        Args:
            path (str): Vault relative note path, ".md" suffix optional.
            content (str | None): Current note content if known, otherwise read from the vault.

        Raises:
            LockTimeoutError: If the path stays locked for longer than SYNC_LOCK_TIMEOUT_SECONDS.
            Exception: Any embedding or index failure.
        """
        path = self._vault_client.normalize_path(path)
        async with self._lock_client.hold(lock_key(path), timeout=self.lock_timeout):
            if content is None:
                note = await self._vault_client.do_get_note(path)
                content = note.content if note is not None else None

            if not content or not content.strip():
                self.logging.warning("Note '%s' not found or empty, skipping index.", path)
                return

            chunk_count = await self._index_note(path, content, hash_content(content), delete_existing=True)
            self.logging.debug("Indexed single note '%s': %d chunks.", path, chunk_count)

    async def do_delete(self, path: str) -> None:
        """Remove every point of a note from the index, under the per-path lock.

        Args:
            path (str): Vault relative note path, ".md" suffix optional.

        Raises:
            LockTimeoutError: If the path stays locked for too long.
            Exception: Any index failure.
        """
        path = self._vault_client.normalize_path(path)
        async with self._lock_client.hold(lock_key(path), timeout=self.lock_timeout):
            await self._vector_client.do_delete_document_chunks(path)
        self.logging.debug("Deleted note '%s' from index.", path)

    ##########################################
    ############ DOCUMENT SYNC ###############
    ##########################################

    async def _reconcile_listed_note(self, path: str) -> tuple[str, int]:
        """Re-index a note found changed or new by the sweep.

        The note and its indexed hash are read again under the lock, so an
        incremental update that ran since the listing is not overwritten.

        Returns:
            tuple[str, int]: The outcome and the number of chunks written.
        """
        async with self._lock_client.hold(lock_key(path), timeout=self.lock_timeout):
            indexed_hash = await self._vector_client.do_get_document_hash(path)
            note = await self._vault_client.do_get_note(path)

            if note is None:
                # removed after the listing
                if indexed_hash is None:
                    return OUTCOME_SKIPPED, 0
                await self._vector_client.do_delete_document_chunks(path)
                return OUTCOME_DELETED, 0

            document_hash = hash_content(note.content)
            if indexed_hash == document_hash:
                return OUTCOME_UNCHANGED, 0

            chunk_count = await self._index_note(path, note.content, document_hash, delete_existing=indexed_hash is not None)
            return (OUTCOME_INDEXED if chunk_count > 0 else OUTCOME_EMPTY), chunk_count

    async def _reconcile_missing_note(self, path: str) -> str:
        """Delete the points of an indexed note that is gone from the vault."""
        async with self._lock_client.hold(lock_key(path), timeout=self.lock_timeout):
            if await self._vault_client.do_get_note(path) is not None:
                # re-created after the listing, its own notification re-indexes it
                return OUTCOME_SKIPPED
            await self._vector_client.do_delete_document_chunks(path)
        self.logging.debug("Removed deleted note '%s' from index.", path)
        return OUTCOME_DELETED

    async def _index_note(self, path: str, content: str, document_hash: str, delete_existing: bool) -> int:
        """Chunk, embed and write a note. The caller must hold the lock of the path.

        Embeddings are computed before the old points are deleted, so an
        embedding failure leaves the previous index state untouched. After the
        delete the note is either fully written or missing, never mixed.

        Args:
            path (str): Vault relative note path.
            content (str): Raw note content.
            document_hash (str): Hash of content.
            delete_existing (bool): Delete the current points of the path first.

        Returns:
            int: Number of chunk points written.
        """
        chunks = self._chunking_service.chunk_markdown(content)
        if not chunks:
            if delete_existing:
                await self._vector_client.do_delete_document_chunks(path)
            self.logging.debug("Skipping empty note '%s'.", path)
            return 0

        metadata = extract_metadata(path, content)
        embeddings = await self._embed_client.do_embed_batch([chunk.content for chunk in chunks])
        if len(embeddings) != len(chunks):
            raise ValueError(f"Got {len(embeddings)} embeddings for {len(chunks)} chunks of note '{path}'.")
        summary_embedding = await self._embed_client.do_embed(metadata.summary) if metadata.summary else None

        if delete_existing:
            await self._vector_client.do_delete_document_chunks(path)

        await self._vector_client.do_upsert_chunks([
            ChunkUpsert(
                chunk=chunk,
                embedding=embedding,
                path=path,
                total_chunks=len(chunks),
                document_hash=document_hash,
                title=metadata.title,
                tags=metadata.tags,
            )
            for chunk, embedding in zip(chunks, embeddings)
        ])

        if summary_embedding is not None:
            await self._vector_client.do_upsert_summary(SummaryUpsert(
                embedding=summary_embedding,
                path=path,
                document_hash=document_hash,
                title=metadata.title,
                tags=metadata.tags,
                summary=metadata.summary,
            ))

        self.logging.info("Indexed note '%s' ('%s'): %d chunks.", path, metadata.title, len(chunks))
        return len(chunks)
