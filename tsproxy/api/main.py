from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Query
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from tsproxy.api.deps import get_proxy
from tsproxy.api.middleware import cors_middleware, request_logging_middleware
from tsproxy.api.schemas import HealthResponse
from tsproxy.common.config import Settings
from tsproxy.common.errors import (
    ResultParseError,
    UpstreamReadError,
    UpstreamRequestError,
    UpstreamStatusError,
    UpstreamUnavailable,
)
from tsproxy.proxy.search_service import SearchProxy, parse_page, parse_page_size
from tsproxy.upstream.client import TypesenseClient

log = logging.getLogger(__name__)


def create_app(settings: Settings, client: TypesenseClient | None = None) -> FastAPI:
    """Build the proxy app around an already validated configuration.

    A client may be injected (tests pass one backed by httpx.MockTransport);
    otherwise one is created here and closed when the app shuts down.
    """
    owns_client = client is None
    upstream = client or TypesenseClient(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        try:
            yield
        finally:
            if owns_client:
                await upstream.aclose()

    app = FastAPI(title="Typesense Search Proxy", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.proxy = SearchProxy(settings, upstream)

    # last registered runs first: request logging wraps CORS
    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_logging_middleware)

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.api_route("/search", methods=["GET", "POST"])
    async def search(
        q: str | None = Query(None),
        page: str | None = Query(None),
        page_size: str | None = Query(None, alias="pageSize"),
        proxy: SearchProxy = Depends(get_proxy),
    ) -> Response:
        if not q:
            return PlainTextResponse("Query parameter 'q' is required.", status_code=400)

        try:
            result = await proxy.search(query=q, page=parse_page(page), page_size=parse_page_size(page_size))
        except UpstreamUnavailable as e:
            log.error("upstream_unavailable", extra={"error": str(e)})
            return PlainTextResponse("Failed to connect to search service.", status_code=503)
        except (UpstreamReadError, UpstreamRequestError) as e:
            log.error("upstream_call_failed", extra={"error": str(e)})
            return PlainTextResponse("Internal server error.", status_code=500)
        except UpstreamStatusError as e:
            return PlainTextResponse(f"Typesense search failed: {e.body}", status_code=e.status_code)
        except ResultParseError:
            return PlainTextResponse("Error parsing search results.", status_code=500)

        return Response(
            content=result.model_dump_json(exclude_unset=True),
            media_type="application/json",
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_, exc: Exception):
        log.exception("unhandled_exception", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "internal_server_error"})

    return app
