from shared.clients.vector.VectorClientInterface import VectorClientInterface
from shared.clients.vector.models.IndexedDocument import IndexedDocument
from shared.clients.vector.models.Scroll import ScrollPage
from shared.clients.vector.models.Upsert import ChunkUpsert, SummaryUpsert
from shared.clients.vector.models.VectorPoint import ChunkPayload, SummaryPayload
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

UPSERT_BATCH_SIZE = 100  # max points per upsert call
SCROLL_PAGE_SIZE = 256   # points per scroll page


class VectorClientQdrant(VectorClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._collection_name = self.get_config_val("COLLECTION", default="obsidian-notes", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    def get_collection_name(self) -> str:
        return self._collection_name

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default="obsidian-notes"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": f"{self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_collection(self) -> str:
        return f"/collections/{self._collection_name}"

    def _get_endpoint_check_collection_existence(self) -> str:
        return f"/collections/{self._collection_name}/exists"

    def _get_endpoint_payload_index(self) -> str:
        return f"/collections/{self._collection_name}/index"

    def _get_endpoint_points(self) -> str:
        return f"/collections/{self._collection_name}/points"

    def _get_endpoint_delete_points(self) -> str:
        return f"/collections/{self._collection_name}/points/delete"

    def _get_endpoint_scroll(self) -> str:
        return f"/collections/{self._collection_name}/points/scroll"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    @staticmethod
    def get_path_filter(path: str) -> dict:
        return {"must": [{"key": "path", "match": {"value": path}}]}

    def get_scroll_payload(self, with_payload: bool | list, limit: int, offset: str | int | None = None, filter: dict | None = None) -> dict:
        payload: dict = {
            "limit": limit,
            "with_payload": with_payload,
            "with_vector": False,
        }
        if filter is not None:
            payload["filter"] = filter
        if offset is not None:
            payload["offset"] = offset
        return payload

    def build_chunk_point(self, item: ChunkUpsert, updated_at: str) -> dict:
        payload = ChunkPayload(
            path=item.path,
            chunk_index=item.chunk.chunk_index,
            total_chunks=item.total_chunks,
            heading=item.chunk.heading,
            content_preview=item.chunk.preview,
            content_hash=item.chunk.content_hash,
            document_hash=item.document_hash,
            title=item.title,
            tags=item.tags,
            updated_at=updated_at,
        )
        return {
            "id": self.make_chunk_point_id(item.path, item.chunk.chunk_index),
            "vector": item.embedding,
            "payload": payload.model_dump(),
        }

    def build_summary_point(self, item: SummaryUpsert, updated_at: str) -> dict:
        payload = SummaryPayload(
            path=item.path,
            document_hash=item.document_hash,
            title=item.title,
            tags=item.tags,
            summary=item.summary,
            updated_at=updated_at,
        )
        return {
            "id": self.make_summary_point_id(item.path),
            "vector": item.embedding,
            "payload": payload.model_dump(),
        }

    ##########################################
    ############### REQUESTS #################
    ##########################################

    ################ COLLECTION ##################
    async def do_existence_check(self) -> bool:
        """Check if the collection exists in Qdrant."""
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_check_collection_existence(), raise_on_error=True)
        return bool(resp.json().get("result", {}).get("exists"))

    async def do_ensure_collection(self, vector_size: int, distance: str = "Cosine") -> bool:
        if await self.do_existence_check():
            self.logging.debug("Collection '%s' already exists.", self._collection_name)
            return False

        await self.do_request(
            method="PUT",
            json={"vectors": {"size": vector_size, "distance": distance}},
            endpoint=self._get_endpoint_collection(),
            raise_on_error=True,
        )
        # deletes and lookups filter by path
        await self.do_request(
            method="PUT",
            json={"field_name": "path", "field_schema": "keyword"},
            params={"wait": "true"},
            endpoint=self._get_endpoint_payload_index(),
            raise_on_error=True,
        )
        self.logging.info(
            "Created collection '%s' (size=%d, distance=%s) with keyword index on 'path'.",
            self._collection_name, vector_size, distance,
        )
        return True

    ################ WRITE ##################
    async def _do_upsert_points(self, points: list[dict]) -> None:
        for batch_start in range(0, len(points), UPSERT_BATCH_SIZE):
            batch = points[batch_start: batch_start + UPSERT_BATCH_SIZE]
            await self.do_request(
                method="PUT",
                json={"points": batch},
                params={"wait": "true"},
                endpoint=self._get_endpoint_points(),
                raise_on_error=True,
            )

    async def do_upsert_chunks(self, chunks: list[ChunkUpsert]) -> None:
        if not chunks:
            return
        updated_at = self.now_iso()
        await self._do_upsert_points([self.build_chunk_point(item, updated_at) for item in chunks])

    async def do_upsert_summary(self, summary: SummaryUpsert) -> None:
        await self._do_upsert_points([self.build_summary_point(summary, self.now_iso())])

    async def do_delete_document_chunks(self, path: str) -> None:
        await self.do_request(
            method="POST",
            json={"filter": self.get_path_filter(path)},
            params={"wait": "true"},
            endpoint=self._get_endpoint_delete_points(),
            raise_on_error=True,
        )

    ################ READ ##################
    async def do_scroll(self, with_payload: bool | list, limit: int, offset: str | int | None = None, filter: dict | None = None) -> ScrollPage:
        """Scroll a single page of points.

        Args:
            with_payload (bool | list): Whether to include the payload, or which payload fields.
            limit (int): Maximum number of points of the page.
            offset (str | int | None): Cursor from the previous page, None starts at the beginning.
            filter (dict | None): Optional Qdrant filter.

        Returns:
            ScrollPage: The points of the page and the cursor for the next one.
        """
        resp = await self.do_request(
            method="POST",
            json=self.get_scroll_payload(with_payload, limit, offset, filter),
            endpoint=self._get_endpoint_scroll(),
            raise_on_error=True,
        )
        result = resp.json().get("result") or {}
        return ScrollPage(
            points=result.get("points", []),
            next_page_offset=result.get("next_page_offset"),
        )

    async def do_get_all_indexed_documents(self) -> dict[str, IndexedDocument]:
        documents: dict[str, IndexedDocument] = {}
        offset: str | int | None = None
        page = 1
        while True:
            scroll_page = await self.do_scroll(
                with_payload=["path", "document_hash", "type"],
                limit=SCROLL_PAGE_SIZE,
                offset=offset,
            )
            for point in scroll_page.points:
                payload = point.get("payload") or {}
                path = payload.get("path")
                if not path:
                    continue
                document = documents.get(path)
                if document is None:
                    document = IndexedDocument(path=path, document_hash=payload.get("document_hash") or "")
                    documents[path] = document
                if payload.get("type") == "summary":
                    document.has_summary = True
                else:
                    document.chunk_count += 1
            self.logging.debug(
                "Fetched index page %d from '%s', %d notes so far.", page, self._collection_name, len(documents)
            )
            offset = scroll_page.next_page_offset
            if offset is None:
                break
            page += 1
        return documents

    async def do_get_document_hash(self, path: str) -> str | None:
        scroll_page = await self.do_scroll(
            with_payload=["document_hash"],
            limit=1,
            filter=self.get_path_filter(path),
        )
        if not scroll_page.points:
            return None
        return (scroll_page.points[0].get("payload") or {}).get("document_hash")
