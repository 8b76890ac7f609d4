from typing import Any

from pydantic import BaseModel, ConfigDict, Field

RawRecord = dict[str, Any]


class SearchRequest(BaseModel):
    query: str | None = None
    limit: int = Field(default=500, gt=0)


class RemotePage(BaseModel):
    items: list[RawRecord] = Field(default_factory=list)
    next_cursor: str | None = None


class NormalizedFile(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    url: str
    size: int = 0
    path: str = ""
    created_at: str = Field(default="", alias="createdAt")


class CacheEntry(BaseModel):
    data: list[NormalizedFile]
    timestamp: int


class SearchResponse(BaseModel):
    results: list[RawRecord]


class ErrorResponse(BaseModel):
    error: str
