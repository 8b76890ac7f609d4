import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pdf_chooser.aggregator import HubSpotFilesClient
from pdf_chooser.config import Settings, get_settings
from pdf_chooser.exceptions import ConfigurationError, InvalidResponseError, NetworkError, UpstreamError
from pdf_chooser.logging_config import setup_logging
from pdf_chooser.models import ErrorResponse, SearchRequest, SearchResponse

logger = logging.getLogger(__name__)

SEARCH_ROUTE = "/api/hubspot-search"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def resolve_api_key(settings: Settings) -> str:
    if settings.hubspot_api_key is not None and settings.hubspot_api_key.get_secret_value():
        return settings.hubspot_api_key.get_secret_value()
    raise ConfigurationError("HubSpot API key not configured")


def create_app(settings: Settings | None = None, *, transport: httpx.BaseTransport | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging("pdf_chooser", settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.http_client = httpx.Client(transport=transport, timeout=settings.upstream_timeout_seconds)
        try:
            yield
        finally:
            app.state.http_client.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    def error_response(status_code: int, message: str) -> JSONResponse:
        return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(_: Request, exc: RequestValidationError):
        invalid_fields = [
            ".".join(str(item) for item in error["loc"] if item != "query")
            for error in exc.errors()
        ]
        if invalid_fields:
            message = f"invalid parameters: {', '.join(invalid_fields)}"
        else:
            message = "invalid request parameters"
        return error_response(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_: Request, exc: StarletteHTTPException):
        messages = {404: "Not found", 405: "Method not allowed"}
        message = messages.get(exc.status_code) or str(exc.detail) or "request failed"
        return error_response(exc.status_code, message)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(_: Request, exc: ConfigurationError):
        logger.error("Configuration error: %s", exc)
        return error_response(500, str(exc))

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(_: Request, exc: UpstreamError):
        return error_response(exc.status_code, exc.body)

    @app.exception_handler(NetworkError)
    async def network_error_handler(_: Request, exc: NetworkError):
        logger.error("API error: %s", exc)
        return error_response(500, str(exc))

    @app.exception_handler(InvalidResponseError)
    async def invalid_response_handler(_: Request, exc: InvalidResponseError):
        logger.error("API error: %s", exc)
        return error_response(500, str(exc))

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "environment": settings.app_env}

    @app.options(SEARCH_ROUTE)
    def hubspot_search_preflight() -> Response:
        return Response(status_code=200)

    @app.get(SEARCH_ROUTE, response_model=SearchResponse)
    def hubspot_search(
        request: Request,
        q: str | None = Query(None),
        limit: int = Query(settings.default_limit, gt=0),
    ):
        api_key = resolve_api_key(settings)
        files_client = HubSpotFilesClient(
            api_key,
            base_url=settings.hubspot_base_url,
            http_client=request.app.state.http_client,
        )
        results = files_client.search(SearchRequest(query=q, limit=limit), page_size=settings.page_size)
        return SearchResponse(results=results)

    return app


app = create_app()
