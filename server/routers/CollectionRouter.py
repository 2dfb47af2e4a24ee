import httpx
from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.responses import CountResponse
from shared.models.errors import ClientStatusError

router = APIRouter(prefix="/collections", tags=["collections"])


@router.get("/{name}/count")
async def count_points(
    request: Request,
    name: str,
    _: None = Depends(verify_api_key),
) -> CountResponse:
    """Return the number of points stored in a collection.

    Raises:
        HTTPException: 404 if the collection does not exist, 502 on other backend failures.
    """
    query_service = request.app.state.query_service
    try:
        count = await query_service.count(name)
    except ClientStatusError as exc:
        if exc.status_code == 404:
            raise HTTPException(status_code=404, detail=f"Collection '{name}' not found.") from exc
        raise HTTPException(status_code=502, detail=f"Vector store failed: {exc}") from exc
    except httpx.HTTPError as exc:
        raise HTTPException(status_code=502, detail=f"Vector store unreachable: {exc}") from exc
    return CountResponse(collection=name, count=count)
