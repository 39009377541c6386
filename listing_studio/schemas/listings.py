"""Schemas for listing records, copy generation and uploads."""
from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_TONE = "MLS (English)"


def new_listing_id() -> str:
    """Return a fresh opaque listing id (24 hex chars)."""

    return secrets.token_hex(12)


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string with a trailing ``Z``."""

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _as_text(value: Any) -> Any:
    """Coerce ``None`` to ``""`` and numbers to their string form."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item).strip() for item in value if item is not None and str(item).strip())
    return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Return the persisted (camelCase) representation."""

        return self.model_dump(by_alias=True)


class AgentInfo(_CamelModel):
    name: str = ""
    brokerage: str = ""
    phone: str = ""
    email: str = ""
    logo_url: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)


class ListingRecord(_CamelModel):
    """One property's marketing content and metadata.

    Every text field defaults to ``""`` so the persisted form never holds
    ``null``. ``id`` is required by the store on save but may be blank here so
    that the rejection happens as a ``ValidationError`` rather than a parse error.
    """

    id: str = ""
    created_at: str = ""
    tone: str = ""
    title: str = ""
    description: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    price: str = ""
    beds: str = ""
    baths: str = ""
    sqft: str = ""
    year_built: str = ""
    features: str = ""
    description_input: str = ""
    image_url: str = ""
    agent: AgentInfo = Field(default_factory=AgentInfo)

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any, info) -> Any:
        if info.field_name == "agent":
            return AgentInfo() if value is None else value
        return _as_text(value)


class PropertyFacts(_CamelModel):
    """Structured facts the copywriter turns into listing text."""

    tone: str = DEFAULT_TONE
    address: str = ""
    city: str = ""
    state: str = ""
    price: str = ""
    beds: str = ""
    baths: str = ""
    sqft: str = ""
    year_built: str = ""
    features: str = ""
    description_input: str = ""
    image_url: str = ""
    agent: AgentInfo = Field(default_factory=AgentInfo)

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any, info) -> Any:
        if info.field_name == "agent":
            return AgentInfo() if value is None else value
        if info.field_name == "tone" and not value:
            return DEFAULT_TONE
        return _as_text(value)


class GenerateResponse(BaseModel):
    ok: bool = True
    title: str
    description: str
    source: str
    listing: dict[str, Any]


class ListingResponse(BaseModel):
    ok: bool = True
    listing: dict[str, Any]


class ListingListResponse(BaseModel):
    ok: bool = True
    listings: list[dict[str, Any]]


class DeleteResponse(BaseModel):
    ok: bool = True
    deleted: int


class UploadResponse(BaseModel):
    ok: bool = True
    image_url: str = Field(serialization_alias="imageUrl")
