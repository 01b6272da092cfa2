import json

import httpx
import pytest

from shared.clients.vector.VectorClientInterface import VectorClientInterface
from shared.clients.vector.models.Upsert import ChunkUpsert, SummaryUpsert
from shared.clients.vector.qdrant.VectorClientQdrant import VectorClientQdrant
from shared.helper.HelperHash import hash_content
from shared.models.chunk import Chunk


@pytest.fixture
def qdrant_env(clean_env):
    clean_env.setenv("VECTOR_QDRANT_BASE_URL", "http://qdrant:6333")
    clean_env.setenv("VECTOR_QDRANT_COLLECTION", "notes")
    return clean_env


async def _booted(helper_config, handler) -> VectorClientQdrant:
    client = VectorClientQdrant(helper_config=helper_config)
    client._transport = httpx.MockTransport(handler)
    await client.boot()
    return client


def _chunk_upsert(path: str, index: int, total: int) -> ChunkUpsert:
    content = f"chunk {index} of {path}"
    return ChunkUpsert(
        chunk=Chunk(content=content, preview=content, chunk_index=index, heading="Intro", content_hash=hash_content(content)),
        embedding=[0.1, 0.2],
        path=path,
        total_chunks=total,
        document_hash="doc-hash",
        title="Title",
        tags=["tag"],
    )


def test_point_ids_are_deterministic_and_distinct():
    first = VectorClientInterface.make_chunk_point_id("Notes/A.md", 0)
    assert first == VectorClientInterface.make_chunk_point_id("Notes/A.md", 0)
    assert first != VectorClientInterface.make_chunk_point_id("Notes/A.md", 1)
    assert first != VectorClientInterface.make_chunk_point_id("Notes/B.md", 0)
    assert VectorClientInterface.make_summary_point_id("Notes/A.md") not in {
        VectorClientInterface.make_chunk_point_id("Notes/A.md", index) for index in range(10)
    }


def test_base_url_is_required(helper_config, clean_env):
    with pytest.raises(ValueError, match="VECTOR_QDRANT_BASE_URL"):
        VectorClientQdrant(helper_config=helper_config)


@pytest.mark.asyncio
async def test_ensure_collection_creates_collection_and_path_index(helper_config, qdrant_env):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("/exists"):
            return httpx.Response(200, json={"result": {"exists": False}})
        return httpx.Response(200, json={"result": True})

    client = await _booted(helper_config, handler)
    assert await client.do_ensure_collection(768, "Cosine") is True
    await client.close()

    assert [(request.method, request.url.path) for request in requests] == [
        ("GET", "/collections/notes/exists"),
        ("PUT", "/collections/notes"),
        ("PUT", "/collections/notes/index"),
    ]
    assert json.loads(requests[1].content) == {"vectors": {"size": 768, "distance": "Cosine"}}
    assert json.loads(requests[2].content) == {"field_name": "path", "field_schema": "keyword"}


@pytest.mark.asyncio
async def test_ensure_collection_keeps_existing_collection(helper_config, qdrant_env):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"result": {"exists": True}})

    client = await _booted(helper_config, handler)
    assert await client.do_ensure_collection(768) is False
    await client.close()
    assert len(requests) == 1


@pytest.mark.asyncio
async def test_upsert_chunks_builds_payload_and_batches(helper_config, qdrant_env):
    qdrant_env.setenv("VECTOR_QDRANT_API_KEY", "qdrant-key")
    bodies: list[dict] = []
    headers: list[httpx.Headers] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        headers.append(request.headers)
        assert request.url.params["wait"] == "true"
        return httpx.Response(200, json={"result": {"status": "completed"}})

    client = await _booted(helper_config, handler)
    await client.do_upsert_chunks([_chunk_upsert("A.md", index, 150) for index in range(150)])
    await client.close()

    assert [len(body["points"]) for body in bodies] == [100, 50]
    assert headers[0]["api-key"] == "qdrant-key"
    point = bodies[0]["points"][3]
    assert point["id"] == VectorClientInterface.make_chunk_point_id("A.md", 3)
    assert point["vector"] == [0.1, 0.2]
    payload = point["payload"]
    assert payload["type"] == "chunk"
    assert payload["path"] == "A.md"
    assert payload["chunk_index"] == 3
    assert payload["total_chunks"] == 150
    assert payload["heading"] == "Intro"
    assert payload["document_hash"] == "doc-hash"
    assert payload["content_hash"] == hash_content("chunk 3 of A.md")
    assert payload["tags"] == ["tag"]
    assert payload["updated_at"]


@pytest.mark.asyncio
async def test_upsert_summary_uses_summary_point_id(helper_config, qdrant_env):
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"result": {}})

    client = await _booted(helper_config, handler)
    await client.do_upsert_summary(SummaryUpsert(
        embedding=[1.0], path="A.md", document_hash="doc-hash", title="A", summary="About A.",
    ))
    await client.close()

    point = bodies[0]["points"][0]
    assert point["id"] == VectorClientInterface.make_summary_point_id("A.md")
    assert point["payload"]["type"] == "summary"
    assert point["payload"]["summary"] == "About A."


@pytest.mark.asyncio
async def test_delete_filters_by_path(helper_config, qdrant_env):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"result": {}})

    client = await _booted(helper_config, handler)
    await client.do_delete_document_chunks("Notes/A.md")
    await client.close()

    assert requests[0].method == "POST"
    assert requests[0].url.path == "/collections/notes/points/delete"
    assert json.loads(requests[0].content) == {
        "filter": {"must": [{"key": "path", "match": {"value": "Notes/A.md"}}]}
    }


@pytest.mark.asyncio
async def test_get_all_indexed_documents_follows_scroll_cursor(helper_config, qdrant_env):
    pages = {
        None: {"points": [
            {"id": "1", "payload": {"path": "A.md", "document_hash": "ha", "type": "chunk"}},
            {"id": "2", "payload": {"path": "A.md", "document_hash": "ha", "type": "chunk"}},
        ], "next_page_offset": "3"},
        "3": {"points": [
            {"id": "3", "payload": {"path": "A.md", "document_hash": "ha", "type": "summary"}},
            {"id": "4", "payload": {"path": "B.md", "document_hash": "hb", "type": "chunk"}},
        ], "next_page_offset": None},
    }
    offsets: list = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        offsets.append(body.get("offset"))
        assert body["with_vector"] is False
        return httpx.Response(200, json={"result": pages[body.get("offset")]})

    client = await _booted(helper_config, handler)
    documents = await client.do_get_all_indexed_documents()
    await client.close()

    assert offsets == [None, "3"]
    assert set(documents) == {"A.md", "B.md"}
    assert documents["A.md"].document_hash == "ha"
    assert documents["A.md"].chunk_count == 2
    assert documents["A.md"].has_summary is True
    assert documents["B.md"].chunk_count == 1
    assert documents["B.md"].has_summary is False


@pytest.mark.asyncio
async def test_get_document_hash(helper_config, qdrant_env):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        path = body["filter"]["must"][0]["match"]["value"]
        points = [{"id": "1", "payload": {"document_hash": "ha"}}] if path == "A.md" else []
        return httpx.Response(200, json={"result": {"points": points, "next_page_offset": None}})

    client = await _booted(helper_config, handler)
    assert await client.do_get_document_hash("A.md") == "ha"
    assert await client.do_get_document_hash("Missing.md") is None
    await client.close()
