from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import NormalizedDocument


EMBEDDING_TEMPLATE = (
    "repo: {repo}\n"
    "path: {path}\n"
    "type: {kind}\n"
    "symbol: {symbol}\n"
    "parent: {parent}\n"
    "lines: {line_start}-{line_end}\n"
    "\n"
    "[DOC]\n{doc}\n"
    "\n"
    "[SIGNATURE]\n{signature}\n"
    "\n"
    "[CODE]\n{code}"
)


def build_embedding_input(doc: NormalizedDocument) -> str:
    """Render a document into the text that is embedded. Absent fields render as empty strings."""
    return EMBEDDING_TEMPLATE.format(
        repo=doc.repo,
        path=doc.file_path,
        kind=doc.kind.value,
        symbol=doc.symbol_name,
        parent=doc.parent_type or "",
        line_start=doc.line_start,
        line_end=doc.line_end,
        doc=doc.doc_comment or "",
        signature=doc.signature or "",
        code=doc.code,
    )


class EmbeddingBatcher:
    """Embeds documents in fixed-size windows, one request per window."""

    def __init__(self, helper_config: HelperConfig, embed_client: EmbedClientInterface, batch_size: int = 64) -> None:
        if batch_size <= 0:
            raise ValueError(f"Embedding batch size must be positive, got {batch_size}")
        self.logging = helper_config.get_logger()
        self._embed_client = embed_client
        self.batch_size = batch_size

    async def embed_documents(self, docs: list[NormalizedDocument]) -> list[list[float]]:
        """Return one vector per document, aligned with docs.

        Raises:
            EmbeddingError: If any window fails. Vectors of earlier windows are discarded.
        """
        vectors: list[list[float]] = []
        total_windows = (len(docs) + self.batch_size - 1) // self.batch_size
        for window, start in enumerate(range(0, len(docs), self.batch_size), start=1):
            batch = docs[start:start + self.batch_size]
            texts = [build_embedding_input(doc) for doc in batch]
            try:
                vectors.extend(await self._embed_client.do_embed(texts))
            except Exception as exc:
                self.logging.error(
                    "Embedding window %d/%d (documents [%d..%d)) failed: %s",
                    window, total_windows, start, start + len(batch), exc,
                )
                raise
            self.logging.debug("Embedded window %d/%d (%d documents)", window, total_windows, len(batch))
        return vectors
