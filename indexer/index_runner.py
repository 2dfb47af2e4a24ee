"""Index runner entry point.

Indexes the source repositories below a project root into the vector store.
Every run is a full re-index; point IDs are deterministic, so repeated runs
overwrite the previous points.

Usage:
    python -m indexer.index_runner [root]

The root defaults to INDEX_ROOT, then to the current directory.
"""

import argparse
import asyncio
import os
import sys

import httpx

from services.code_index.IndexService import IndexService
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.config import IndexConfig
from shared.models.errors import ClientStatusError, IndexerError
from shared.models.report import IndexReport


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Index source repositories into the vector store.")
    parser.add_argument("root", nargs="?", default=None, help="Project root (default: INDEX_ROOT or cwd)")
    return parser.parse_args(argv)


async def run_index(helper_config: HelperConfig, root: str) -> IndexReport:
    """Boot the clients, run one indexing cycle and close the clients again."""
    index_config = IndexConfig.from_helper_config(helper_config)
    embed_client = EmbedClientManager(helper_config).get_client()
    rag_client = RAGClientManager(helper_config).get_client()
    index_service = IndexService(
        helper_config=helper_config,
        embed_client=embed_client,
        rag_client=rag_client,
        index_config=index_config,
    )

    async with embed_client, rag_client:
        health = await rag_client.do_healthcheck()
        if not health.is_success:
            raise ClientStatusError(url=str(health.request.url), status_code=health.status_code, body=health.text[:500])
        return await index_service.do_index(root)


async def main(argv: list[str] | None = None) -> int:
    """Run one indexing cycle and return the process exit code."""
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    args = _parse_args(argv)
    root = args.root or config.get_string_val("INDEX_ROOT", default=os.getcwd())

    try:
        report = await run_index(config, root)
    except (IndexerError, httpx.HTTPError, ValueError, OSError) as exc:
        logger.error("Indexing of '%s' failed: %s", root, exc)
        return 1

    logger.info(
        "Indexed %d file(s) from %d repo(s) into '%s': %d document(s), %d skipped file(s).",
        report.files_scanned, len(report.repos), report.collection, report.documents, report.files_skipped,
    )
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
