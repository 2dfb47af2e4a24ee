from typing import Any

from shared.clients.rag.RAGClientInterface import RAGClientInterface


class RAGClientQdrant(RAGClientInterface):
    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": f"{self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_collection(self, collection: str) -> str:
        return f"/collections/{collection}"

    def _get_endpoint_points(self, collection: str) -> str:
        return f"/collections/{collection}/points"

    def _get_endpoint_search(self, collection: str) -> str:
        return f"/collections/{collection}/points/query"

    def _get_endpoint_count(self, collection: str) -> str:
        return f"/collections/{collection}/points/count"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        return {"vectors": {"size": vector_size, "distance": distance}}

    def get_upsert_payload(self, points: list[dict[str, Any]]) -> dict:
        return {"points": points}

    def get_search_payload(self, vector: list[float], limit: int, filters: list[dict]) -> dict:
        payload: dict = {
            "query": vector,
            "limit": limit,
            "with_payload": True,
            "with_vector": False,
        }
        if filters:
            payload["filter"] = {"must": filters}
        return payload

    def get_count_payload(self, filters: list[dict]) -> dict:
        if not filters:
            return {"exact": True}
        return {"filter": {"must": filters}, "exact": True}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_vector_params(self, collection_info: dict) -> tuple[int, str] | None:
        # result.config.params.vectors is {"size", "distance"} for a single unnamed
        # vector and {"<name>": {"size", "distance"}, ...} for named vectors
        vectors = (
            collection_info.get("result", {})
            .get("config", {})
            .get("params", {})
            .get("vectors")
        )
        if not isinstance(vectors, dict) or "size" not in vectors or "distance" not in vectors:
            return None
        return int(vectors["size"]), str(vectors["distance"])

    def extract_search_hits(self, raw_response: dict) -> list[dict]:
        result = raw_response.get("result", {})
        points = result.get("points", []) if isinstance(result, dict) else result
        return [
            {
                "id": point.get("id"),
                "score": float(point.get("score", 0.0)),
                "payload": point.get("payload") or {},
            }
            for point in points
        ]
