"""Local disk storage for uploaded listing images."""
from __future__ import annotations

import asyncio
import logging
import secrets
from pathlib import Path, PurePath

from fastapi import UploadFile

from ..core.config import settings
from ..core.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})
DEFAULT_EXTENSION = ".jpg"
MAX_EXTENSION_LENGTH = 10
PUBLIC_PREFIX = "/uploads/"


def _extension_for(filename: str | None) -> str:
    suffix = PurePath(filename or "").suffix.lower()
    return (suffix or DEFAULT_EXTENSION)[:MAX_EXTENSION_LENGTH]


async def save_upload(
    upload: UploadFile,
    *,
    uploads_dir: Path | None = None,
    max_bytes: int | None = None,
) -> str:
    """Persist one image upload and return its public ``/uploads/...`` reference."""

    limit = max_bytes or settings.upload_max_bytes
    target_dir = uploads_dir or settings.uploads_dir

    if (upload.content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise ValidationError("Only jpg/png/webp allowed.")

    payload = await upload.read(limit + 1)
    if not payload:
        raise ValidationError("No file uploaded.")
    if len(payload) > limit:
        raise ValidationError(f"Image exceeds the {limit // (1024 * 1024)} MB limit.")

    name = secrets.token_hex(16) + _extension_for(upload.filename)
    destination = target_dir / name

    def _write() -> None:
        target_dir.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(payload)

    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, _write)

    logger.info("Stored upload %s (%d bytes)", name, len(payload))
    return PUBLIC_PREFIX + name
