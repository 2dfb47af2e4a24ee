"""Exception hierarchy of the code indexer.

Hierarchy:
  IndexerError                      base class, never raised directly.
  ParseFailedError                  a source file could not be turned into a syntax tree.
  ClientStatusError                 a backend answered with a non-2xx status.
  IncompatibleCollectionError       the target collection has a different vector shape.
  EmbeddingError                    any failure of an embedding batch.
    EmbeddingRequestError           transport failure (connect, timeout, ...).
    EmbeddingStatusError            non-2xx status from the embedding server.
    EmbeddingEmptyResponseError     the response carried no vectors.
    EmbeddingCountMismatchError     number of vectors != number of inputs.
    EmbeddingDimensionMismatchError a vector has the wrong width.
  UpsertFailedError                 an upsert window failed on every attempt.
"""


class IndexerError(Exception):
    """Base class for all errors raised by the indexing pipeline."""


class ParseFailedError(IndexerError):
    def __init__(self, file_path: str, reason: str) -> None:
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"Could not parse '{file_path}': {reason}")


class ClientStatusError(IndexerError):
    """A backend request returned a non-2xx status code.

    Attributes:
        url (str): The requested URL.
        status_code (int): The HTTP status code returned.
        body (str): The (possibly truncated) response body.
    """

    def __init__(self, url: str, status_code: int, body: str) -> None:
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"Request to {url} failed with status {status_code}: {body}")


class IncompatibleCollectionError(IndexerError):
    def __init__(self, collection: str, expected: str, actual: str) -> None:
        self.collection = collection
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Collection '{collection}' exists with incompatible vector params "
            f"(expected {expected}, found {actual})"
        )


class EmbeddingError(IndexerError):
    """Base class for failures of an embedding batch. No partial results are ever used."""


class EmbeddingRequestError(EmbeddingError):
    def __init__(self, url: str, cause: Exception) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Embedding request to {url} failed: {cause!r}")


class EmbeddingStatusError(EmbeddingError):
    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Embedding server returned {status_code}: {body}")


class EmbeddingEmptyResponseError(EmbeddingError):
    def __init__(self) -> None:
        super().__init__("Empty embedding response")


class EmbeddingCountMismatchError(EmbeddingError):
    def __init__(self, sent: int, got: int) -> None:
        self.sent = sent
        self.got = got
        super().__init__(f"Embedding count mismatch: sent {sent}, got {got}")


class EmbeddingDimensionMismatchError(EmbeddingError):
    def __init__(self, expected: int, got: int, position: int) -> None:
        self.expected = expected
        self.got = got
        self.position = position
        super().__init__(
            f"Embedding dimension mismatch at input {position}: expected {expected}, got {got}"
        )


class UpsertFailedError(IndexerError):
    """An upsert window could not be written after exhausting all retries.

    Attributes:
        collection (str): Target collection.
        start (int): Index of the first point of the failed window.
        end (int): Index one past the last point of the failed window.
        attempts (int): Number of attempts made.
    """

    def __init__(self, collection: str, start: int, end: int, attempts: int, cause: BaseException | None) -> None:
        self.collection = collection
        self.start = start
        self.end = end
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"Upsert into '{collection}' failed on range [{start}..{end}) "
            f"after {attempts} attempt(s): {cause}"
        )
