import json

import httpx
import pytest

from shared.clients.HttpClientInterface import ClientRequestError
from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.clients.embed.openai.EmbedClientOpenai import EmbedClientOpenai


def _ollama_handler(requests: list[httpx.Request]):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/api/embed":
            texts = json.loads(request.content)["input"]
            return httpx.Response(200, json={"embeddings": [[float(len(text)), 0.5] for text in texts]})
        if request.url.path == "/api/show":
            return httpx.Response(200, json={"model_info": {"general.architecture": "nomic-bert", "nomic-bert.embedding_length": 768}})
        return httpx.Response(200, text="Ollama is running")
    return handler


@pytest.fixture
def ollama_env(clean_env):
    clean_env.setenv("EMBED_MODEL", "nomic-embed-text")
    clean_env.setenv("EMBED_OLLAMA_BASE_URL", "http://ollama:11434")
    return clean_env


async def _booted(client, handler):
    client._transport = httpx.MockTransport(handler)
    await client.boot()
    return client


##########################################
################# OLLAMA #################
##########################################

def test_ollama_requires_base_url(helper_config, clean_env):
    clean_env.setenv("EMBED_MODEL", "nomic-embed-text")
    with pytest.raises(ValueError, match="EMBED_OLLAMA_BASE_URL"):
        EmbedClientOllama(helper_config=helper_config)


def test_ollama_requires_model(helper_config, clean_env):
    clean_env.setenv("EMBED_OLLAMA_BASE_URL", "http://ollama:11434")
    with pytest.raises(ValueError, match="EMBED_MODEL"):
        EmbedClientOllama(helper_config=helper_config)


@pytest.mark.asyncio
async def test_ollama_embed_batch_splits_requests_and_keeps_order(helper_config, ollama_env):
    ollama_env.setenv("EMBED_BATCH_SIZE", "2")
    requests: list[httpx.Request] = []
    client = await _booted(EmbedClientOllama(helper_config=helper_config), _ollama_handler(requests))

    vectors = await client.do_embed_batch(["a", "bb", "ccc"])
    await client.close()

    assert vectors == [[1.0, 0.5], [2.0, 0.5], [3.0, 0.5]]
    assert [json.loads(request.content)["input"] for request in requests] == [["a", "bb"], ["ccc"]]
    assert json.loads(requests[0].content)["model"] == "nomic-embed-text"
    assert str(requests[0].url) == "http://ollama:11434/api/embed"


@pytest.mark.asyncio
async def test_ollama_sends_bearer_token_when_configured(helper_config, ollama_env):
    ollama_env.setenv("EMBED_OLLAMA_API_KEY", "secret")
    requests: list[httpx.Request] = []
    client = await _booted(EmbedClientOllama(helper_config=helper_config), _ollama_handler(requests))

    await client.do_embed("hello")
    await client.close()

    assert requests[0].headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_ollama_reads_vector_size_from_model_info(helper_config, ollama_env):
    requests: list[httpx.Request] = []
    client = await _booted(EmbedClientOllama(helper_config=helper_config), _ollama_handler(requests))

    assert await client.do_fetch_embedding_vector_size() == 768
    assert json.loads(requests[0].content) == {"name": "nomic-embed-text"}
    await client.close()


@pytest.mark.asyncio
async def test_ollama_error_status_raises(helper_config, ollama_env):
    client = await _booted(
        EmbedClientOllama(helper_config=helper_config),
        lambda request: httpx.Response(500, text="model not loaded"),
    )

    with pytest.raises(ClientRequestError) as excinfo:
        await client.do_embed("hello")
    await client.close()

    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "model not loaded"


@pytest.mark.asyncio
async def test_ollama_vector_count_mismatch_raises(helper_config, ollama_env):
    client = await _booted(
        EmbedClientOllama(helper_config=helper_config),
        lambda request: httpx.Response(200, json={"embeddings": [[1.0]]}),
    )

    with pytest.raises(ValueError, match="returned 1 vectors for 2 texts"):
        await client.do_embed_batch(["a", "b"])
    await client.close()


@pytest.mark.asyncio
async def test_healthcheck_reports_transport_errors(helper_config, ollama_env):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = await _booted(EmbedClientOllama(helper_config=helper_config), handler)
    assert await client.do_healthcheck() is False
    await client.close()


@pytest.mark.asyncio
async def test_request_before_boot_raises(helper_config, ollama_env):
    client = EmbedClientOllama(helper_config=helper_config)
    with pytest.raises(RuntimeError, match="boot"):
        await client.do_embed("hello")


##########################################
################# OPENAI #################
##########################################

@pytest.mark.asyncio
async def test_openai_sorts_embeddings_by_index(helper_config, clean_env):
    clean_env.setenv("EMBED_MODEL", "text-embedding-3-small")
    clean_env.setenv("EMBED_OPENAI_API_KEY", "sk-test")
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"data": [
            {"index": 1, "embedding": [0.2]},
            {"index": 0, "embedding": [0.1]},
        ]})

    client = await _booted(EmbedClientOpenai(helper_config=helper_config), handler)
    vectors = await client.do_embed_batch(["first", "second"])
    await client.close()

    assert vectors == [[0.1], [0.2]]
    assert str(requests[0].url) == "https://api.openai.com/v1/embeddings"
    assert requests[0].headers["Authorization"] == "Bearer sk-test"
    assert await client.do_fetch_embedding_vector_size() == 1536
