import httpx
from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import SearchRequest
from server.models.responses import SearchResponse
from shared.models.errors import IndexerError

router = APIRouter(prefix="/query", tags=["query"])


@router.post("")
async def query_code(
    request: Request,
    body: SearchRequest,
    _: None = Depends(verify_api_key),
) -> SearchResponse:
    """Execute a semantic code search against the vector store.

    Args:
        request (Request): FastAPI request (provides app.state.query_service).
        body (SearchRequest): JSON body with query string, optional repo/collection and limit.
        _ (None): Auth dependency result (unused).

    Returns:
        SearchResponse: Matching code documents, best first.

    Raises:
        HTTPException: 502 if the embedding server or the vector store fails.
    """
    query_service = request.app.state.query_service
    try:
        return await query_service.search(body)
    except (IndexerError, httpx.HTTPError) as exc:
        request.app.state.logging.error("Search failed: %s", exc)
        raise HTTPException(status_code=502, detail=f"Search backend failed: {exc}") from exc
