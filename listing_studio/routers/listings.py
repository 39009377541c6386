"""Listing generation and storage endpoints."""
from __future__ import annotations

import csv
import io

from fastapi import APIRouter, Depends, Response

from ..core.config import settings
from ..core.errors import ConfigurationError, NotFoundError
from ..schemas import listings as schemas
from ..services import copywriter
from ..services.listing_store import ListingStore, get_listing_store
from ..services.rate_limit import limit_ai_requests

router = APIRouter()

CSV_COLUMNS: tuple[tuple[str, str], ...] = (
    ("id", "id"),
    ("createdAt", "created_at"),
    ("tone", "tone"),
    ("title", "title"),
    ("address", "address"),
    ("city", "city"),
    ("state", "state"),
    ("price", "price"),
    ("beds", "beds"),
    ("baths", "baths"),
    ("sqft", "sqft"),
    ("yearBuilt", "year_built"),
    ("features", "features"),
    ("description", "description"),
)
CSV_AGENT_COLUMNS: tuple[tuple[str, str], ...] = (
    ("agentName", "name"),
    ("agentBrokerage", "brokerage"),
    ("agentPhone", "phone"),
    ("agentEmail", "email"),
)


@router.post(
    "/generate",
    response_model=schemas.GenerateResponse,
    dependencies=[Depends(limit_ai_requests)],
)
async def generate_listing(facts: schemas.PropertyFacts) -> schemas.GenerateResponse:
    """Write a title and description and return them with a draft record."""

    if not copywriter.has_credentials() and not settings.copywriter_allow_placeholder:
        raise ConfigurationError()

    generated = await copywriter.generate_copy(facts)
    draft = schemas.ListingRecord.model_validate(
        {
            **facts.model_dump(),
            "id": schemas.new_listing_id(),
            "created_at": schemas.utc_now_iso(),
            "title": generated.title,
            "description": generated.description,
        }
    )
    return schemas.GenerateResponse(
        title=generated.title,
        description=generated.description,
        source=generated.source,
        listing=draft.to_json_dict(),
    )


@router.post("", response_model=schemas.ListingResponse)
async def save_listing(
    listing: schemas.ListingRecord,
    store: ListingStore = Depends(get_listing_store),
) -> schemas.ListingResponse:
    """Persist a fully formed listing; the caller supplies the id."""

    saved = await store.save(listing)
    return schemas.ListingResponse(listing=saved.to_json_dict())


@router.get("", response_model=schemas.ListingListResponse)
async def list_listings(store: ListingStore = Depends(get_listing_store)) -> schemas.ListingListResponse:
    records = await store.read_all()
    return schemas.ListingListResponse(listings=[record.to_json_dict() for record in records])


@router.get("/export.csv")
async def export_listings_csv(store: ListingStore = Depends(get_listing_store)) -> Response:
    """Download every stored listing as CSV."""

    records = await store.read_all()
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([header for header, _ in CSV_COLUMNS + CSV_AGENT_COLUMNS])
    for record in records:
        writer.writerow(
            [getattr(record, attr) for _, attr in CSV_COLUMNS]
            + [getattr(record.agent, attr) for _, attr in CSV_AGENT_COLUMNS]
        )

    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="listings.csv"'},
    )


@router.get("/{listing_id}", response_model=schemas.ListingResponse)
async def get_listing(
    listing_id: str,
    store: ListingStore = Depends(get_listing_store),
) -> schemas.ListingResponse:
    record = await store.get_by_id(listing_id)
    if record is None:
        raise NotFoundError()
    return schemas.ListingResponse(listing=record.to_json_dict())


@router.delete("/{listing_id}", response_model=schemas.DeleteResponse)
async def delete_listing(
    listing_id: str,
    store: ListingStore = Depends(get_listing_store),
) -> schemas.DeleteResponse:
    """Remove every record with this id. Unknown ids still succeed."""

    removed = await store.delete_by_id(listing_id)
    return schemas.DeleteResponse(deleted=removed)
