"""JSON-file backed storage for listing records."""
from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError as PydanticValidationError

from ..core.config import settings
from ..core.errors import ValidationError
from ..schemas.listings import ListingRecord, utc_now_iso

logger = logging.getLogger(__name__)


class ListingStore:
    """Whole-file persistence of an ordered list of listing records.

    Every mutation is a full read-modify-write of the backing file. Mutations
    made through one store are serialized by a lock, and each write lands via
    a temp file plus ``os.replace`` so readers never see a half-written file.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._write_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def initialize(self) -> None:
        """Create the backing file with an empty list when it does not exist."""

        await _run_blocking(self._initialize_sync)

    async def read_all(self) -> list[ListingRecord]:
        """Return every stored record; an unreadable file reads as empty."""

        return await _run_blocking(self._read_sync)

    async def write_all(self, records: Iterable[ListingRecord]) -> None:
        """Replace the backing file with ``records``."""

        entries = [record.to_json_dict() for record in records]
        async with self._write_lock:
            await _run_blocking(self._write_sync, entries)

    async def save(self, record: ListingRecord) -> ListingRecord:
        """Prepend ``record`` and persist. Records sharing an id are not merged.

        Stored entries that no longer parse as records are written back as-is.
        """

        if not record.id.strip():
            raise ValidationError("Listing with id is required.")

        if not record.created_at:
            record = record.model_copy(update={"created_at": utc_now_iso()})

        async with self._write_lock:
            entries = await _run_blocking(self._read_raw_sync)
            entries.insert(0, record.to_json_dict())
            await _run_blocking(self._write_sync, entries)

        logger.info("Saved listing %s (%d stored)", record.id, len(entries))
        return record

    async def delete_by_id(self, listing_id: str) -> int:
        """Remove every entry with ``listing_id`` and return how many were removed."""

        async with self._write_lock:
            entries = await _run_blocking(self._read_raw_sync)
            remaining = [entry for entry in entries if _entry_id(entry) != listing_id]
            await _run_blocking(self._write_sync, remaining)

        removed = len(entries) - len(remaining)
        logger.info("Deleted listing %s (%d removed)", listing_id, removed)
        return removed

    async def get_by_id(self, listing_id: str) -> ListingRecord | None:
        records = await _run_blocking(self._read_sync)
        return next((record for record in records if record.id == listing_id), None)

    def _initialize_sync(self) -> None:
        if self._path.exists():
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._write_sync([])
        logger.info("Created empty listing store at %s", self._path)

    def _read_raw_sync(self) -> list[Any]:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as exc:
            logger.warning("Listing store %s is unreadable, treating as empty: %s", self._path, exc)
            return []

        if not isinstance(raw, list):
            logger.warning("Listing store %s does not hold a list, treating as empty", self._path)
            return []
        return raw

    def _read_sync(self) -> list[ListingRecord]:
        return list(_parse_records(self._read_raw_sync(), self._path))

    def _write_sync(self, entries: list[Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(entries, ensure_ascii=False, indent=2)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                tmp_file.write(payload)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.remove(tmp_name)
            except FileNotFoundError:
                pass
            raise


def _parse_records(raw: list[Any], path: Path) -> Iterable[ListingRecord]:
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object entry %d in %s", index, path)
            continue
        try:
            yield ListingRecord.model_validate(item)
        except PydanticValidationError as exc:
            logger.warning("Skipping malformed entry %d in %s: %s", index, path, exc)


def _entry_id(entry: Any) -> str | None:
    if not isinstance(entry, dict) or entry.get("id") is None:
        return None
    return str(entry["id"])


async def _run_blocking(func, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func, *args)


@lru_cache
def get_listing_store() -> ListingStore:
    """FastAPI dependency returning the process-wide store."""

    return ListingStore(settings.listings_path)
