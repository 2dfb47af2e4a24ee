"""Indexing service.

Runs one full cycle over a project root: verify the collection schema, scan
the repositories, extract and normalize documents, embed them and upsert the
resulting points. Every cycle re-indexes everything; deterministic point IDs
make repeated cycles overwrite instead of duplicate.
"""

import os

from services.code_index.DocNormalizer import DocNormalizer
from services.code_index.EmbeddingBatcher import EmbeddingBatcher
from services.code_index.SchemaGuard import SchemaGuard
from services.code_index.UpsertPipeline import UpsertPipeline, build_points
from services.extraction.DocumentExtractor import DocumentExtractor
from services.scanning.ProjectScanner import ProjectScanner, collection_name_for_root
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import IndexConfig
from shared.models.document import FileEntry, NormalizedDocument, RawDocument
from shared.models.errors import ParseFailedError
from shared.models.report import IndexReport


class IndexService:
    """Orchestrates the indexing pipeline from a project root into one collection."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        rag_client: RAGClientInterface,
        index_config: IndexConfig,
    ) -> None:
        self.logging = helper_config.get_logger()
        self.index_config = index_config
        self._rag_client = rag_client

        self._schema_guard = SchemaGuard(
            helper_config=helper_config,
            rag_client=rag_client,
            vector_size=index_config.vector_size,
            distance=index_config.distance,
        )
        self._scanner = ProjectScanner(helper_config=helper_config, extra_patterns=index_config.ignore_patterns)
        self._extractor = DocumentExtractor(helper_config=helper_config, include_filename_doc=index_config.include_filename_doc)
        self._normalizer = DocNormalizer(max_code_chars=index_config.max_code_chars)
        self._batcher = EmbeddingBatcher(
            helper_config=helper_config,
            embed_client=embed_client,
            batch_size=index_config.embed_batch_size,
        )
        self._upserter = UpsertPipeline(
            helper_config=helper_config,
            rag_client=rag_client,
            batch_size=index_config.upsert_batch_size,
            retries=index_config.upsert_retries,
            backoff=index_config.upsert_backoff,
            backoff_max=index_config.upsert_backoff_max,
        )

    def get_collection_name(self, root: str) -> str:
        return self.index_config.collection or collection_name_for_root(root)

    ##########################################
    ############### CORE INDEX ###############
    ##########################################

    async def do_index(self, root: str) -> IndexReport:
        """Run one indexing cycle over root.

        Args:
            root (str): The project root directory.

        Returns:
            IndexReport: Counts of the finished cycle.

        Raises:
            IncompatibleCollectionError: If the collection exists with another vector shape.
            EmbeddingError: If a batch of embeddings cannot be obtained.
            UpsertFailedError: If a window of points cannot be written.
        """
        collection = self.get_collection_name(root)
        report = IndexReport(collection=collection)
        self.logging.info("Starting indexing cycle: root '%s' → collection '%s'", root, collection, color="cyan")

        # schema check happens before anything is scanned or written
        try:
            await self._schema_guard.ensure_collection(collection)
        except Exception as exc:
            self.logging.error("Indexing '%s' aborted during schema check: %s", collection, exc)
            raise

        entries = self._scan(root, report)
        raw_docs = self._extract(entries, report)
        docs = [self._normalizer.normalize(doc) for doc in raw_docs]
        report.documents = len(docs)
        self.logging.info(
            "Extracted %d document(s) from %d file(s) (%d skipped).",
            report.documents, report.files_scanned, report.files_skipped,
        )
        if not docs:
            self.logging.warning("No documents found below '%s'. Nothing to index.", root)
            return report

        report.points_upserted = await self._embed_and_upsert(collection, docs)
        self.logging.info(
            "Indexing complete for '%s': %d document(s), %d point(s) upserted.",
            collection, report.documents, report.points_upserted, color="green",
        )
        return report

    ##########################################
    ################ STAGES ##################
    ##########################################

    def _scan(self, root: str, report: IndexReport) -> list[FileEntry]:
        try:
            repo_roots = self._scanner.scan_project(root) if self.index_config.index_subprojects else []
            if not repo_roots:
                repo_roots = [os.path.abspath(root)]

            entries: list[FileEntry] = []
            for repo_root in repo_roots:
                repo_name = os.path.basename(repo_root)
                report.repos.append(repo_name)
                entries.extend(self._scanner.scan_repo(repo_root, repo_name=repo_name))
        except OSError as exc:
            self.logging.error("Indexing aborted during scan of '%s': %s", root, exc)
            raise

        report.files_scanned = len(entries)
        return entries

    def _extract(self, entries: list[FileEntry], report: IndexReport) -> list[RawDocument]:
        raw_docs: list[RawDocument] = []
        for entry in entries:
            try:
                raw_docs.extend(self._extractor.extract_file(entry))
            except ParseFailedError as exc:
                # a broken file must not stop the cycle
                self.logging.warning("Skipping %s/%s: %s", entry.repo, entry.file_path, exc.reason)
                report.files_skipped += 1
        return raw_docs

    async def _embed_and_upsert(self, collection: str, docs: list[NormalizedDocument]) -> int:
        try:
            vectors = await self._batcher.embed_documents(docs)
        except Exception as exc:
            self.logging.error("Indexing '%s' aborted during embedding: %s", collection, exc)
            raise

        points = build_points(docs, vectors)
        try:
            return await self._upserter.upsert(collection, points)
        except Exception as exc:
            self.logging.error("Indexing '%s' aborted during upsert: %s", collection, exc)
            raise
