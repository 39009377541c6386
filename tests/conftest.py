"""Shared fixtures: an isolated store, a fake PDF renderer and an API client."""
from __future__ import annotations

import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("GEMINI_API_KEY", "")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from listing_studio.core.config import settings
from listing_studio.main import app
from listing_studio.services.listing_store import ListingStore, get_listing_store
from listing_studio.services.pdf import RenderedDocument, get_document_renderer
from listing_studio.services.rate_limit import RateLimiter, get_ai_rate_limiter

FAKE_PDF = b"%PDF-1.7\n" + b"0" * 4096 + b"\n%%EOF"


class DummyRenderer:
    """Stands in for the browser-backed renderer and remembers what it was given."""

    def __init__(self) -> None:
        self.rendered_html: list[str] = []

    async def render_pdf(self, html: str, filename: str = "listing.pdf") -> RenderedDocument:
        self.rendered_html.append(html)
        return RenderedDocument(content=FAKE_PDF, filename=filename)


@pytest.fixture
def store(tmp_path) -> ListingStore:
    return ListingStore(tmp_path / "data" / "listings.json")


@pytest.fixture
def uploads_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setattr(settings, "uploads_dir", path)
    return path


@pytest.fixture
def renderer() -> DummyRenderer:
    return DummyRenderer()


@pytest.fixture
def limiter() -> RateLimiter:
    return RateLimiter(max_requests=30, window_seconds=900)


@pytest.fixture
def api(store, renderer, limiter, uploads_dir, monkeypatch):
    monkeypatch.setattr(settings, "gemini_api_key", "", raising=False)
    monkeypatch.setattr(settings, "copywriter_allow_placeholder", False, raising=False)
    app.dependency_overrides[get_listing_store] = lambda: store
    app.dependency_overrides[get_document_renderer] = lambda: renderer
    app.dependency_overrides[get_ai_rate_limiter] = lambda: limiter
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(api):
    transport = ASGITransport(app=api)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
