from __future__ import annotations

import logging
import re
from urllib.parse import urlencode

from pydantic import ValidationError

from tsproxy.api.schemas import SearchResult
from tsproxy.common.config import Settings
from tsproxy.common.errors import ResultParseError, UpstreamStatusError
from tsproxy.upstream.client import TypesenseClient

log = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
# Typesense rejects per_page above 250
MAX_PAGE_SIZE = 250

# optional sign and ASCII digits; anything past int64 counts as invalid
_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MAX = 2**63 - 1


def _parse_int(raw: str | None) -> int | None:
    if raw is None or not _INT_RE.fullmatch(raw):
        return None
    value = int(raw)
    if not -_INT64_MAX - 1 <= value <= _INT64_MAX:
        return None
    return value


def parse_page(raw: str | None) -> int:
    page = _parse_int(raw)
    if page is None or page < 1:
        return DEFAULT_PAGE
    return page


def parse_page_size(raw: str | None) -> int:
    # out of range falls back to the default, it is not clamped
    size = _parse_int(raw)
    if size is None or not 1 <= size <= MAX_PAGE_SIZE:
        return DEFAULT_PAGE_SIZE
    return size


class SearchProxy:
    def __init__(self, settings: Settings, client: TypesenseClient):
        self.settings = settings
        self.client = client

    def build_params(self, query: str, page: int, page_size: int) -> list[tuple[str, str]]:
        params = [("q", query), ("per_page", str(page_size)), ("page", str(page))]
        if self.settings.search_by_fields:
            params.append(("query_by", self.settings.search_by_fields))
        return params

    def build_url(self, query: str, page: int, page_size: int) -> str:
        base = self.client.search_url(self.settings.collection)
        return f"{base}?{urlencode(self.build_params(query, page, page_size))}"

    async def search(self, query: str, page: int, page_size: int) -> SearchResult:
        url = self.build_url(query, page, page_size)
        log.info("upstream_request", extra={"upstream_url": url})

        # transport and body read failures propagate from the client unchanged
        resp = await self.client.get(url)

        if resp.status_code != 200:
            log.warning(
                "upstream_non_200",
                extra={"upstream_url": url, "upstream_status": resp.status_code, "error": resp.text},
            )
            raise UpstreamStatusError(resp.status_code, resp.text)

        try:
            return SearchResult.model_validate_json(resp.body)
        except ValidationError as e:
            log.error("upstream_parse_failed", extra={"upstream_url": url, "error": str(e)})
            raise ResultParseError("error parsing search results") from e
