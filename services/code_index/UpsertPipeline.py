import httpx
from tenacity import AsyncRetrying, RetryCallState, RetryError, retry_if_exception_type, stop_after_attempt, wait_exponential

from services.code_index.identity import deterministic_point_id
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.CodePoint import CodePoint
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import NormalizedDocument
from shared.models.errors import ClientStatusError, UpsertFailedError


def build_points(docs: list[NormalizedDocument], vectors: list[list[float]]) -> list[dict]:
    """Pair each document with its vector as an {id, vector, payload} point.

    Raises:
        ValueError: If docs and vectors are not aligned.
    """
    if len(docs) != len(vectors):
        raise ValueError(f"Cannot build points from {len(docs)} documents and {len(vectors)} vectors")
    return [
        CodePoint.from_document(doc).to_point(
            point_id=deterministic_point_id(doc.repo, doc.file_path, doc.symbol_name, doc.kind.value),
            vector=vector,
        )
        for doc, vector in zip(docs, vectors)
    ]


class UpsertPipeline:
    """Writes points to a collection in consecutive windows with bounded retries.

    A window that fails on every attempt aborts the run; later windows are
    not attempted. Windows already written stay written, which is safe since
    point IDs are deterministic and a re-run overwrites them.
    """

    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface,
        batch_size: int = 64,
        retries: int = 3,
        backoff: float = 0.5,
        backoff_max: float = 8.0,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"Upsert batch size must be positive, got {batch_size}")
        if retries <= 0:
            raise ValueError(f"Upsert retries must be positive, got {retries}")
        self.logging = helper_config.get_logger()
        self._rag_client = rag_client
        self.batch_size = batch_size
        self.retries = retries
        self.backoff = backoff
        self.backoff_max = backoff_max

    ##########################################
    ############### CORE #####################
    ##########################################

    async def upsert(self, collection: str, points: list[dict]) -> int:
        """Upsert all points, window by window.

        Args:
            collection (str): Target collection.
            points (list[dict]): Points as built by build_points().

        Returns:
            int: Number of points written.

        Raises:
            UpsertFailedError: If a window still fails after the last attempt.
        """
        written = 0
        for start in range(0, len(points), self.batch_size):
            window = points[start:start + self.batch_size]
            await self._upsert_window(collection, window, start)
            written += len(window)
            self.logging.debug("Upserted points [%d..%d) into '%s'", start, start + len(window), collection)
        return written

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _upsert_window(self, collection: str, window: list[dict], start: int) -> None:
        end = start + len(window)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retries),
            wait=wait_exponential(multiplier=self.backoff, max=self.backoff_max),
            retry=retry_if_exception_type((httpx.HTTPError, ClientStatusError)),
            before_sleep=lambda state: self._log_retry(state, collection, start, end),
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await self._rag_client.do_upsert_points(collection, window)
        except RetryError as e:
            cause = e.last_attempt.exception()
            self.logging.error(
                "Upsert into '%s' failed on range [%d..%d) after %d attempt(s): %s",
                collection, start, end, e.last_attempt.attempt_number, cause,
            )
            raise UpsertFailedError(
                collection=collection,
                start=start,
                end=end,
                attempts=e.last_attempt.attempt_number,
                cause=cause,
            ) from cause

    def _log_retry(self, state: RetryCallState, collection: str, start: int, end: int) -> None:
        self.logging.warning(
            "Upsert into '%s' failed on range [%d..%d) (attempt %d/%d), retrying in %.2fs: %s",
            collection, start, end, state.attempt_number, self.retries,
            state.next_action.sleep if state.next_action else 0.0,
            state.outcome.exception() if state.outcome else None,
        )
