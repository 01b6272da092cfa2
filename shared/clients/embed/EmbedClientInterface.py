from abc import abstractmethod

from shared.clients.HttpClientInterface import HttpClientInterface
from shared.helper.HelperConfig import HelperConfig


class EmbedClientInterface(HttpClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config
        self.embed_distance = helper_config.get_string_val(f"{self.get_client_type().upper()}_DISTANCE", default="Cosine")
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL", default=None)
        self.embed_batch_size = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_BATCH_SIZE", default=64))
        if self.embed_batch_size <= 0:
            raise ValueError(f"{self.get_client_type().upper()}_BATCH_SIZE must be greater than 0.")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "embed"

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/api/embed")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: JSON-serialisable request body (e.g. {"model": "...", "input": [...]}).
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Response format differs by backend:
        - Ollama /api/embed: {"embeddings": [[...], [...]]}, already ordered
        - OpenAI-compatible: {"data": [{"embedding": [...], "index": 0}]}, needs sorting

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.

        Raises:
            ValueError: If the response format is invalid or embeddings are empty.
        """
        pass

    @abstractmethod
    async def do_fetch_embedding_vector_size(self) -> int:
        """
        Fetch the output vector dimension of the configured embedding model.

        Returns:
            int: The number of dimensions produced by the embedding model.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def _do_embed_request(self, texts: list[str]) -> list[list[float]]:
        response = await self.do_request(
            method="POST",
            endpoint=self.get_endpoint_embedding(),
            json=self.get_embed_payload(texts),
            raise_on_error=True,
        )
        vectors = self.extract_embeddings_from_response(response.json())
        if len(vectors) != len(texts):
            raise ValueError(
                f"Embedding backend '{self.get_engine_name()}' returned {len(vectors)} vectors for {len(texts)} texts."
            )
        return vectors

    async def do_embed(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text (str): The text to embed.

        Returns:
            list[float]: The embedding vector.

        Raises:
            ClientRequestError: If the backend answers with a non-2xx status.
            ValueError: If the response does not contain a valid embedding.
        """
        vectors = await self._do_embed_request([text])
        return vectors[0]

    async def do_embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts, preserving input order.

        The texts are sent in requests of at most EMBED_BATCH_SIZE items.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            list[list[float]]: One vector per input text, in input order.

        Raises:
            ClientRequestError: If the backend answers with a non-2xx status.
            ValueError: If the number of returned vectors does not match.
        """
        vectors: list[list[float]] = []
        for batch_start in range(0, len(texts), self.embed_batch_size):
            batch = texts[batch_start: batch_start + self.embed_batch_size]
            vectors.extend(await self._do_embed_request(batch))
        self.logging.debug("Embedded %d texts with model '%s'.", len(texts), self.embed_model)
        return vectors
