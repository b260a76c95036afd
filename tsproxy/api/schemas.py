from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"


class SearchHit(BaseModel):
    document: dict[str, Any]
    highlight: dict[str, Any] | None = None
    text_match: float | None = None


class SearchResult(BaseModel):
    """Typesense search response, relayed as-is.

    Nested structures whose schema is owned by Typesense (documents,
    highlights, facet counts, request params) are kept as opaque JSON.
    """

    facet_counts: list[Any] | None = None
    found: int | None = None
    hits: list[SearchHit] | None = None
    out_of: int | None = None
    page: int | None = None
    request_params: dict[str, Any] | None = None
    search_time_ms: int | None = None
