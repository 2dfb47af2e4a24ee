from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    query: str = Field(min_length=1)
    # restrict hits to one repository of the collection
    repo: str | None = None
    # defaults to the collection of INDEX_ROOT
    collection: str | None = None
    limit: int = Field(default=5, ge=1, le=100)


class IndexRequest(BaseModel):
    # defaults to INDEX_ROOT
    root: str | None = None
