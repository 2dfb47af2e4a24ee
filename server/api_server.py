"""FastAPI application entry point for the code indexer API."""

import asyncio
import os
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.models.config import IndexConfig
from services.code_index.IndexService import IndexService
from server.core.QueryService import QueryService
from server.routers.CollectionRouter import router as collection_router
from server.routers.IndexRouter import router as index_router
from server.routers.QueryRouter import router as query_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    helper_config = HelperConfig(logger=logging)
    # every request is checked against it, so refuse to start without one
    helper_config.get_string_val("APP_API_KEY")

    index_config = IndexConfig.from_helper_config(helper_config)
    index_root = helper_config.get_string_val("INDEX_ROOT", default=os.getcwd())
    embed_client = EmbedClientManager(helper_config=helper_config).get_client()
    rag_client = RAGClientManager(helper_config=helper_config).get_client()

    async with AsyncExitStack() as clients:
        logging.info("Booting embedding and vector store clients...")
        await clients.enter_async_context(embed_client)
        await clients.enter_async_context(rag_client)
        await check_connections([embed_client, rag_client])

        index_service = IndexService(
            helper_config=helper_config,
            embed_client=embed_client,
            rag_client=rag_client,
            index_config=index_config,
        )
        app.state.logging = logging
        app.state.helper_config = helper_config
        app.state.index_root = index_root
        # held from the moment POST /index schedules a cycle until the cycle ends; 409 meanwhile
        app.state.index_lock = asyncio.Lock()
        app.state.index_service = index_service
        app.state.query_service = QueryService(
            helper_config=helper_config,
            embed_client=embed_client,
            rag_client=rag_client,
            default_collection=index_service.get_collection_name(index_root),
        )
        logging.info("Serving root '%s' (collection '%s').", index_root, index_service.get_collection_name(index_root), color="cyan")

        yield

        logging.info("Shutting down, closing all clients...")


app = FastAPI(
    title="code_indexer",
    description=(
        "Indexes source repositories (Rust, Kotlin, TypeScript, JavaScript) into a vector "
        "store and serves semantic code search via POST /query. "
        "Full re-indexing is triggered via POST /index."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (query_router, index_router, collection_router):
    app.include_router(router)


async def check_connections(clients: list[ClientInterface]) -> None:
    """Fail startup if a backend does not answer its health check.

    Raises:
        RuntimeError: If a backend is not reachable. Neither search nor indexing works without both.
    """
    for client in clients:
        result = await client.do_healthcheck()
        if not result.is_success:
            raise RuntimeError(
                f"{client.get_client_type().upper()} client '{client.__class__.__name__}' is not reachable "
                f"(status {result.status_code})."
            )
        logging.debug("%s backend '%s' is healthy.", client.get_client_type().upper(), client.get_engine_name())


if __name__ == "__main__":
    import uvicorn

    host = os.getenv("APP_HOST", "0.0.0.0")
    port = int(os.getenv("APP_PORT", "8000"))
    logging.info("Starting code_indexer API Server v%s on %s:%d...", app_version, host, port)
    uvicorn.run(app, host=host, port=port)
