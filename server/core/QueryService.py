from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.helper.HelperConfig import HelperConfig
from server.models.requests import SearchRequest
from server.models.responses import SearchResponse, SearchResultItem


class QueryService:
    """Handles semantic code search: embed query -> nearest points -> map results."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        rag_client: RAGClientInterface,
        default_collection: str,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed_client = embed_client
        self._rag_client = rag_client
        self.default_collection = default_collection

    ##########################################
    ############### CORE #####################
    ##########################################

    async def search(self, request: SearchRequest) -> SearchResponse:
        """Embed a query and return the closest code documents.

        Args:
            request (SearchRequest): The search request with query, optional repo filter and limit.

        Returns:
            SearchResponse: The matching documents, best first.
        """
        collection = request.collection or self.default_collection
        self.logging.info(
            "QueryService.search: query='%s', collection='%s', repo=%s, limit=%d",
            request.query, collection, request.repo, request.limit,
        )

        vectors = await self._embed_client.do_embed([request.query])
        query_vector = vectors[0]

        filters = []
        if request.repo:
            filters.append({"key": "repo", "match": {"value": request.repo}})

        hits = await self._rag_client.do_search(
            collection=collection,
            vector=query_vector,
            limit=request.limit,
            filters=filters,
        )

        items: list[SearchResultItem] = []
        for hit in hits:
            payload = hit.get("payload") or {}
            items.append(SearchResultItem(
                id=str(hit.get("id")),
                score=hit.get("score", 0.0),
                repo=str(payload.get("repo", "")),
                file_path=str(payload.get("file_path", "")),
                symbol_name=str(payload.get("symbol_name", "")),
                kind=str(payload.get("kind", "")),
                parent_type=payload.get("parent_type"),
                signature=payload.get("signature"),
                doc_comment=payload.get("doc_comment"),
                line_start=int(payload.get("line_start", 0)),
                line_end=int(payload.get("line_end", 0)),
                code=str(payload.get("code", "")),
            ))

        self.logging.info("QueryService.search: returning %d result(s).", len(items))
        return SearchResponse(query=request.query, collection=collection, results=items, total=len(items))

    async def count(self, collection: str) -> int:
        return await self._rag_client.do_count(collection)
