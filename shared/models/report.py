from pydantic import BaseModel


class IndexReport(BaseModel):
    """Summary of one indexing cycle.

    Attributes:
        collection:      Collection the cycle wrote to.
        repos:           Repository names that were scanned.
        files_scanned:   Source files handed to extraction.
        files_skipped:   Files that could not be parsed.
        documents:       Documents extracted and normalized.
        points_upserted: Points written to the vector store.
    """

    collection: str
    repos: list[str] = []
    files_scanned: int = 0
    files_skipped: int = 0
    documents: int = 0
    points_upserted: int = 0
