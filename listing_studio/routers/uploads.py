"""Image upload endpoint."""
from __future__ import annotations

from fastapi import APIRouter, File, UploadFile

from ..schemas.listings import UploadResponse
from ..services.blob_store import save_upload

router = APIRouter()


@router.post("", response_model=UploadResponse)
async def upload_image(image: UploadFile = File(...)) -> UploadResponse:
    """Store one jpg/png/webp image and return its ``/uploads/...`` reference."""

    image_url = await save_upload(image)
    return UploadResponse(image_url=image_url)
