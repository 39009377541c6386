"""HTTP tests for the PDF flyer endpoints."""
from __future__ import annotations

import os

import pytest

from listing_studio.core.errors import DocumentRenderError
from listing_studio.services.pdf import DocumentRenderer, get_document_renderer


@pytest.mark.asyncio
async def test_pdf_from_request_body(client, renderer) -> None:
    response = await client.post(
        "/api/documents/pdf",
        json={"title": "Sunny Loft", "price": "425000", "agent": {"name": "Dana"}},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="listing.pdf"'
    assert response.content.startswith(b"%PDF")
    assert "Sunny Loft" in renderer.rendered_html[0]
    assert "Presented by <b>Dana</b>" in renderer.rendered_html[0]


@pytest.mark.asyncio
async def test_pdf_from_body_does_not_require_an_id(client, store) -> None:
    response = await client.post("/api/documents/pdf", json={})

    assert response.status_code == 200
    assert await store.read_all() == []


@pytest.mark.asyncio
async def test_pdf_for_unknown_listing_returns_404(client, renderer) -> None:
    response = await client.get("/api/documents/pdf/missing")

    assert response.status_code == 404
    assert response.json() == {"ok": False, "error": "Listing not found."}
    assert renderer.rendered_html == []


@pytest.mark.asyncio
async def test_render_failure_returns_envelope_without_details(client, renderer, monkeypatch) -> None:
    async def broken_render(html, filename="listing.pdf"):
        raise DocumentRenderError("Chromium crashed: /usr/lib/chromium/chrome exited 139")

    monkeypatch.setattr(renderer, "render_pdf", broken_render)

    response = await client.post("/api/documents/pdf", json={"title": "x"})

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "Failed to render PDF."}
    assert "Chromium" not in response.text


@pytest.mark.asyncio
@pytest.mark.skipif(
    os.getenv("LISTING_STUDIO_BROWSER_TESTS") != "1",
    reason="set LISTING_STUDIO_BROWSER_TESTS=1 with Chromium installed to run",
)
async def test_pdf_from_request_body_with_real_browser(client, api) -> None:
    real_renderer = DocumentRenderer(timeout_seconds=60, max_concurrency=1)
    api.dependency_overrides[get_document_renderer] = lambda: real_renderer

    response = await client.post(
        "/api/documents/pdf",
        json={"id": "abc123", "title": "Cozy Bungalow", "price": "350000", "beds": "3"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert len(response.content) > 1024
