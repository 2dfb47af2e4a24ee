import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import IndexRequest
from server.models.responses import IndexAcceptedResponse
from shared.models.errors import IndexerError

router = APIRouter(prefix="/index", tags=["index"])


async def run_index_cycle(request: Request, root: str) -> None:
    """Run one indexing cycle in the background; failures are logged, the next request retries.

    The caller holds app.state.index_lock on behalf of this task; it is released here.
    """
    app_state = request.app.state
    try:
        await app_state.index_service.do_index(root)
    except (IndexerError, httpx.HTTPError, OSError) as exc:
        app_state.logging.error("Background indexing of '%s' failed: %s", root, exc)
    finally:
        app_state.index_lock.release()


@router.post("", status_code=202)
async def trigger_index(
    request: Request,
    body: IndexRequest,
    background_tasks: BackgroundTasks,
    _: None = Depends(verify_api_key),
) -> IndexAcceptedResponse:
    """Schedule a full indexing cycle of a project root.

    Args:
        request (Request): FastAPI request (provides app.state.index_service).
        body (IndexRequest): JSON body with an optional root; defaults to INDEX_ROOT.
        background_tasks (BackgroundTasks): FastAPI background task queue.
        _ (None): Auth dependency result (unused).

    Returns:
        IndexAcceptedResponse: Acknowledgement with the root and target collection.

    Raises:
        HTTPException: 409 if a cycle is already scheduled or running.
    """
    index_lock = request.app.state.index_lock
    if index_lock.locked():
        raise HTTPException(status_code=409, detail="An indexing cycle is already running.")

    root = body.root or request.app.state.index_root
    response = IndexAcceptedResponse(
        status="accepted", root=root, collection=request.app.state.index_service.get_collection_name(root)
    )
    # taken before the response goes out, so a second request cannot slip in before the cycle starts;
    # an unlocked asyncio.Lock is acquired without suspending
    await index_lock.acquire()
    background_tasks.add_task(run_index_cycle, request, root)
    return response
