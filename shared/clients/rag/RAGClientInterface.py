from abc import abstractmethod
from typing import Any
import json

import httpx
from shared.clients.ClientInterface import ClientInterface

from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import ClientStatusError


class RAGClientInterface(ClientInterface):
    """Vector store client. The target collection is passed to every call."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "rag"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_collection(self, collection: str) -> str:
        """
        Returns the endpoint path for reading and creating a collection.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col")
        """
        pass

    @abstractmethod
    def _get_endpoint_points(self, collection: str) -> str:
        """
        Returns the endpoint path for points upsert requests.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col/points")
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self, collection: str) -> str:
        """
        Returns the endpoint path for nearest-neighbour queries.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col/points/query")
        """
        pass

    @abstractmethod
    def _get_endpoint_count(self, collection: str) -> str:
        """Returns the endpoint path for counting points matching a filter.

        Returns:
            str: The endpoint path (e.g. "/collections/my_col/points/count")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        """Builds the request body that creates a collection with one unnamed vector."""
        pass

    @abstractmethod
    def get_upsert_payload(self, points: list[dict[str, Any]]) -> dict:
        """Builds the request body for a batch of {id, vector, payload} points."""
        pass

    @abstractmethod
    def get_search_payload(self, vector: list[float], limit: int, filters: list[dict]) -> dict:
        """
        Builds the backend-specific request payload for a similarity search.

        Args:
            vector (list[float]): The query vector.
            limit (int): Maximum number of hits.
            filters (list[dict]): Conditions every hit must match, e.g. [{"key": "repo", "match": {"value": "core"}}].

        Returns:
            dict: The payload for the search request.
        """
        pass

    @abstractmethod
    def get_count_payload(self, filters: list[dict]) -> dict:
        """Builds the backend-specific request payload for a point count."""
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_vector_params(self, collection_info: dict) -> tuple[int, str] | None:
        """
        Extracts size and distance of the collection's single unnamed vector.

        Args:
            collection_info (dict): The raw response of the collection info endpoint.

        Returns:
            tuple[int, str] | None: (size, distance), or None if the collection
                uses named vectors or the response carries no vector config.
        """
        pass

    @abstractmethod
    def extract_search_hits(self, raw_response: dict) -> list[dict]:
        """
        Extracts the hits from a raw search response.

        Returns:
            list[dict]: One dict per hit with keys "id", "score" and "payload".
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_get_collection(self, collection: str) -> dict | None:
        """Fetch the description of a collection.

        Args:
            collection (str): The collection name.

        Returns:
            dict | None: The raw collection info, or None if the collection does not exist.

        Raises:
            ClientStatusError: On any non-2xx status other than 404.
        """
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_collection(collection))
        if resp.status_code == 404:
            return None
        if not resp.is_success:
            raise ClientStatusError(url=str(resp.request.url), status_code=resp.status_code, body=resp.text[:500])
        return resp.json()

    async def do_create_collection(self, collection: str, vector_size: int, distance: str) -> httpx.Response:
        """Create a collection with a single unnamed vector.

        Args:
            collection (str): The collection name.
            vector_size (int): The size of the vectors in the collection.
            distance (str): The distance metric for the vectors.

        Returns:
            httpx.Response: The response from the create collection request.

        Raises:
            ClientStatusError: If the backend rejects the request.
        """
        return await self.do_request(
            method="PUT",
            json=self.get_create_collection_payload(vector_size, distance),
            endpoint=self._get_endpoint_collection(collection),
            raise_on_error=True,
        )

    async def do_upsert_points(self, collection: str, points: list[dict[str, Any]]) -> httpx.Response:
        """Upsert points into a collection.
        Inserts new points or replaces existing ones if a point with the same ID already exists.

        Args:
            collection (str): The collection name.
            points (list[dict[str, Any]]): The list of points to upsert.

        Returns:
            httpx.Response: The response from the upsert request.

        Raises:
            httpx.HTTPError: On transport failures.
            ClientStatusError: If the backend rejects the batch.
        """
        return await self.do_request(
            method="PUT",
            content=json.dumps(self.get_upsert_payload(points)),
            params={"wait": "true"},
            endpoint=self._get_endpoint_points(collection),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )

    async def do_search(self, collection: str, vector: list[float], limit: int, filters: list[dict] | None = None) -> list[dict]:
        """Return the points closest to the given vector.

        Args:
            collection (str): The collection name.
            vector (list[float]): The query vector.
            limit (int): Maximum number of hits.
            filters (list[dict] | None): Optional payload conditions.

        Returns:
            list[dict]: Hits with "id", "score" and "payload", best first.
        """
        resp = await self.do_request(
            method="POST",
            content=json.dumps(self.get_search_payload(vector, limit, filters or [])),
            endpoint=self._get_endpoint_search(collection),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        return self.extract_search_hits(resp.json())

    async def do_count(self, collection: str, filters: list[dict] | None = None) -> int:
        """Count the total number of points matching the given filters.

        Args:
            collection (str): The collection name.
            filters (list[dict] | None): Filter conditions for the count request.

        Returns:
            int: Total number of matching points.
        """
        resp = await self.do_request(
            method="POST",
            content=json.dumps(self.get_count_payload(filters or [])),
            endpoint=self._get_endpoint_count(collection),
            additional_headers={"Content-Type": "application/json"},
            raise_on_error=True,
        )
        return resp.json().get("result", {}).get("count", 0)
