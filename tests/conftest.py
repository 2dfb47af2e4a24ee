"""Shared fixtures: environment-backed config and in-memory HTTP backends."""

import json
import logging

import httpx
import pytest

from shared.clients.embed.openai.EmbedClientOpenai import EmbedClientOpenai
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger

VECTOR_SIZE = 4

BASE_ENV = {
    "EMBED_ENGINE": "openai",
    "EMBED_OPENAI_BASE_URL": "http://embed.test/v1",
    "EMBED_MODEL": "test-embed",
    "EMBED_VECTOR_SIZE": str(VECTOR_SIZE),
    "RAG_ENGINE": "qdrant",
    "RAG_QDRANT_BASE_URL": "http://qdrant.test",
    "APP_API_KEY": "secret",
    "INDEX_UPSERT_BACKOFF": "0",
}


class FakeQdrant:
    """Minimal in-memory Qdrant REST API for httpx.MockTransport.

    Set fail_upserts to make the next N point upserts answer 500.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self.fail_upserts = 0
        self.upsert_calls = 0

    def add_collection(self, name: str, vectors: dict) -> None:
        self.collections[name] = {"vectors": vectors, "points": {}}

    def points(self, name: str) -> dict[str, dict]:
        return self.collections[name]["points"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")

        if parts == ["healthz"]:
            return httpx.Response(200, text="healthz check passed")
        if len(parts) < 2 or parts[0] != "collections":
            return httpx.Response(404, json={"status": {"error": "not found"}})

        name = parts[1]
        collection = self.collections.get(name)

        if len(parts) == 2 and request.method == "GET":
            if collection is None:
                return httpx.Response(404, json={"status": {"error": f"Collection `{name}` doesn't exist!"}})
            return httpx.Response(200, json={"result": {"config": {"params": {"vectors": collection["vectors"]}}}, "status": "ok"})

        if len(parts) == 2 and request.method == "PUT":
            body = json.loads(request.content)
            self.add_collection(name, body["vectors"])
            return httpx.Response(200, json={"result": True, "status": "ok"})

        if collection is None:
            return httpx.Response(404, json={"status": {"error": f"Collection `{name}` doesn't exist!"}})

        if parts[2:] == ["points"] and request.method == "PUT":
            self.upsert_calls += 1
            if self.fail_upserts > 0:
                self.fail_upserts -= 1
                return httpx.Response(500, json={"status": {"error": "boom"}})
            for point in json.loads(request.content)["points"]:
                collection["points"][point["id"]] = point
            return httpx.Response(200, json={"result": {"status": "completed"}, "status": "ok"})

        if parts[2:] == ["points", "count"]:
            return httpx.Response(200, json={"result": {"count": len(collection["points"])}, "status": "ok"})

        if parts[2:] == ["points", "query"]:
            body = json.loads(request.content)
            hits = list(collection["points"].values())
            for condition in body.get("filter", {}).get("must", []):
                hits = [p for p in hits if p["payload"].get(condition["key"]) == condition["match"]["value"]]
            result = [
                {"id": p["id"], "score": 1.0 - i * 0.1, "payload": p["payload"]}
                for i, p in enumerate(hits[: body["limit"]])
            ]
            return httpx.Response(200, json={"result": {"points": result}, "status": "ok"})

        return httpx.Response(404, json={"status": {"error": "not found"}})


class FakeEmbedder:
    """OpenAI-compatible /embeddings endpoint returning deterministic vectors.

    With reverse=True the data entries come back in reverse order, each still
    carrying the index of its input.
    """

    def __init__(self, dim: int = VECTOR_SIZE, reverse: bool = False) -> None:
        self.dim = dim
        self.reverse = reverse
        self.batches: list[list[str]] = []

    @staticmethod
    def vector_for(text: str, dim: int = VECTOR_SIZE) -> list[float]:
        return [float(len(text) % 97), float(sum(map(ord, text)) % 101)] + [0.5] * (dim - 2)

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/models"):
            return httpx.Response(200, json={"data": []})
        body = json.loads(request.content)
        texts = body["input"]
        self.batches.append(texts)
        data = [{"index": i, "embedding": self.vector_for(text, self.dim)} for i, text in enumerate(texts)]
        if self.reverse:
            data.reverse()
        return httpx.Response(200, json={"data": data, "model": body["model"]})


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Install the base environment and return it for tests to extend."""
    for key, value in BASE_ENV.items():
        monkeypatch.setenv(key, value)
    return dict(BASE_ENV)


@pytest.fixture
def helper_config(env: dict[str, str]) -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("code_indexer.tests")))


@pytest.fixture
def fake_qdrant() -> FakeQdrant:
    return FakeQdrant()


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def rag_client(helper_config: HelperConfig, fake_qdrant: FakeQdrant) -> RAGClientQdrant:
    client = RAGClientQdrant(helper_config=helper_config)
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(fake_qdrant.handler))
    return client


@pytest.fixture
def embed_client(helper_config: HelperConfig, fake_embedder: FakeEmbedder) -> EmbedClientOpenai:
    client = EmbedClientOpenai(helper_config=helper_config)
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(fake_embedder.handler))
    return client
