"""FastAPI application for the listing studio."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import ListingStudioError, UpstreamError, ValidationError
from .core.logging import configure_logging
from .routers import documents, listings, uploads
from .services import copywriter
from .services.listing_store import get_listing_store
from .services.templates import build_index_html, build_share_page_html

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    settings.uploads_dir.mkdir(parents=True, exist_ok=True)
    await get_listing_store().initialize()
    if not copywriter.has_credentials():
        logger.warning("GEMINI_API_KEY missing; AI generation disabled.")
    logger.info("Listing studio started (env=%s)", settings.app_env)
    yield


app = FastAPI(title="Listing Studio API", version="0.1.0", lifespan=lifespan)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.mount("/uploads", StaticFiles(directory=settings.uploads_dir, check_dir=False), name="uploads")

app.include_router(listings.router, prefix="/api/listings", tags=["listings"])
app.include_router(documents.router, prefix="/api/documents", tags=["documents"])
app.include_router(uploads.router, prefix="/api/uploads", tags=["uploads"])


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


@app.exception_handler(ListingStudioError)
async def handle_listing_studio_error(request: Request, exc: ListingStudioError) -> JSONResponse:
    if isinstance(exc, UpstreamError):
        logger.error("Upstream failure on %s %s: %s", request.method, request.url.path, exc.message)
        return _error_response(exc.status_code, exc.public_message)
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = ValidationError.public_message
    return _error_response(ValidationError.status_code, message)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(500, "Internal server error.")


@app.get("/", response_class=HTMLResponse, tags=["meta"])
async def index() -> HTMLResponse:
    """Serve the single-page generator UI."""

    return HTMLResponse(content=build_index_html())


@app.get("/share/{listing_id}", response_class=HTMLResponse, tags=["share"])
async def share_page(listing_id: str) -> HTMLResponse:
    """Public page that loads the listing in the browser and links its PDF."""

    return HTMLResponse(content=build_share_page_html(listing_id))


ROBOTS_TXT = "User-agent: *\nAllow: /share/\nDisallow: /api/\nDisallow: /uploads/\n"

FAVICON_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 32 32">'
    '<rect width="32" height="32" rx="6" fill="#111827"/>'
    '<path d="M6 16 16 7l10 9h-3v9h-5v-6h-4v6H9v-9z" fill="#f9fafb"/></svg>'
)


@app.get("/api/health", tags=["meta"])
async def health() -> dict[str, str]:
    """Simple liveness probe."""

    return {"status": "ok"}


@app.head("/", tags=["meta"])
@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    """Uptime monitors probe with HEAD and only read the status code."""

    return Response(status_code=200)


@app.get("/robots.txt", response_class=PlainTextResponse, include_in_schema=False)
async def robots() -> PlainTextResponse:
    """Let crawlers index share pages but not the API or raw uploads."""

    return PlainTextResponse(ROBOTS_TXT)


@app.get("/favicon.ico", include_in_schema=False)
async def favicon() -> Response:
    return Response(content=FAVICON_SVG, media_type="image/svg+xml")
