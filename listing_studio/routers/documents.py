"""PDF flyer endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from ..core.errors import NotFoundError
from ..schemas.listings import ListingRecord
from ..services.listing_store import ListingStore, get_listing_store
from ..services.pdf import DocumentRenderer, RenderedDocument, get_document_renderer
from ..services.templates import build_flyer_html

router = APIRouter()


def _pdf_response(document: RenderedDocument) -> Response:
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )


@router.post("/pdf")
async def pdf_from_listing(
    listing: ListingRecord,
    renderer: DocumentRenderer = Depends(get_document_renderer),
) -> Response:
    """Render the flyer for a listing supplied in the request body."""

    document = await renderer.render_pdf(build_flyer_html(listing))
    return _pdf_response(document)


@router.get("/pdf/{listing_id}")
async def pdf_from_store(
    listing_id: str,
    store: ListingStore = Depends(get_listing_store),
    renderer: DocumentRenderer = Depends(get_document_renderer),
) -> Response:
    """Render the flyer for a saved listing."""

    listing = await store.get_by_id(listing_id)
    if listing is None:
        raise NotFoundError()

    document = await renderer.render_pdf(build_flyer_html(listing))
    return _pdf_response(document)
