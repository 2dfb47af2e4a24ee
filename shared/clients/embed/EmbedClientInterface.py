from abc import abstractmethod

import httpx
from shared.clients.ClientInterface import ClientInterface

from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import (
    EmbeddingCountMismatchError,
    EmbeddingDimensionMismatchError,
    EmbeddingEmptyResponseError,
    EmbeddingError,
    EmbeddingRequestError,
    EmbeddingStatusError,
)


class EmbedClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL")
        self.expected_dim: int | None = None
        if helper_config.get_bool_val(f"{self.get_client_type().upper()}_VALIDATE_DIMENSION", default=True):
            self.expected_dim = helper_config.get_int_val(f"{self.get_client_type().upper()}_VECTOR_SIZE", default=768)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "embed"

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        # embedding servers share the OpenAI bearer scheme
        return {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/embeddings")
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
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[tuple[int | None, list[float]]]:
        """Extract (index, vector) pairs from a raw embedding API response.

        The index is the position of the input the vector belongs to, as
        reported by the backend, or None if the backend does not report one.

        Response format differs by backend:
        - OpenAI-compatible: {"data": [{"embedding": [...], "index": 0}]}
        - Ollama /api/embed: {"embeddings": [[...], [...]]}

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[tuple[int | None, list[float]]]: One pair per returned vector, in response order.
        """
        pass

    def order_embeddings(self, pairs: list[tuple[int | None, list[float]]], sent: int) -> list[list[float]]:
        """Re-associate returned vectors with their input positions and validate them.

        Vectors that carry an index are placed at that index, the others keep
        their response position.

        Args:
            pairs (list[tuple[int | None, list[float]]]): The extracted (index, vector) pairs.
            sent (int): Number of texts that were sent.

        Returns:
            list[list[float]]: Vectors aligned with the input order.

        Raises:
            EmbeddingEmptyResponseError: If no vector was returned.
            EmbeddingCountMismatchError: If the number of vectors differs from the number of inputs.
            EmbeddingDimensionMismatchError: If a vector does not have the expected width.
            EmbeddingError: If the backend reports an index out of range or twice.
        """
        if not pairs:
            raise EmbeddingEmptyResponseError()
        if len(pairs) != sent:
            raise EmbeddingCountMismatchError(sent=sent, got=len(pairs))

        ordered: list[list[float] | None] = [None] * sent
        for position, (index, vector) in enumerate(pairs):
            slot = position if index is None else index
            if slot < 0 or slot >= sent:
                raise EmbeddingError(f"Embedding response index {slot} out of range for {sent} inputs")
            if ordered[slot] is not None:
                raise EmbeddingError(f"Embedding response contains index {slot} more than once")
            ordered[slot] = vector

        if self.expected_dim is not None:
            for position, vector in enumerate(ordered):
                if len(vector) != self.expected_dim:
                    raise EmbeddingDimensionMismatchError(expected=self.expected_dim, got=len(vector), position=position)
        return ordered

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Send one embedding request and return the vectors in input order.

        The batch either succeeds as a whole or fails; partial results are
        never returned.

        Args:
            texts (list[str] | str): One or more texts to embed.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the inputs.

        Raises:
            EmbeddingRequestError: On transport failures.
            EmbeddingStatusError: If the backend answers with a non-2xx status.
            EmbeddingEmptyResponseError: If the response carries no vectors.
            EmbeddingCountMismatchError: If the number of vectors differs from the inputs.
            EmbeddingDimensionMismatchError: If a vector has the wrong width.
        """
        texts = [texts] if isinstance(texts, str) else texts
        if not texts:
            return []

        body = self.get_embed_payload(texts)
        try:
            response = await self.do_request(method="POST", endpoint=self.get_endpoint_embedding(), json=body)
        except httpx.HTTPError as e:
            raise EmbeddingRequestError(url=self.get_url(self.get_endpoint_embedding()), cause=e) from e

        if not response.is_success:
            self.logging.error(
                "Embedding request failed: status %d, body: %s",
                response.status_code,
                response.text[:200],
            )
            raise EmbeddingStatusError(status_code=response.status_code, body=response.text[:500])

        try:
            response_data = response.json()
        except ValueError as e:
            raise EmbeddingEmptyResponseError() from e
        if not isinstance(response_data, dict):
            raise EmbeddingEmptyResponseError()

        pairs = self.extract_embeddings_from_response(response_data)
        return self.order_embeddings(pairs, sent=len(texts))
