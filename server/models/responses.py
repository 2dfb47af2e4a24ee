from pydantic import BaseModel


class SearchResultItem(BaseModel):
    id: str
    score: float
    repo: str
    file_path: str
    symbol_name: str
    kind: str
    parent_type: str | None
    signature: str | None
    doc_comment: str | None
    line_start: int
    line_end: int
    code: str


class SearchResponse(BaseModel):
    query: str
    collection: str
    results: list[SearchResultItem]
    total: int


class IndexAcceptedResponse(BaseModel):
    status: str
    root: str
    collection: str


class CountResponse(BaseModel):
    collection: str
    count: int
