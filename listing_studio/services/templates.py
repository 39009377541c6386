"""HTML builders for the PDF flyer, the share page and the generator UI.

Every template is rendered with autoescaping on, so listing fields coming from
users or the language model are always entity-escaped on the way into markup.
Images are only embedded when they live in the local upload directory; the
flyer therefore never needs the network to render.
"""
from __future__ import annotations

import base64
import logging
import re
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import escape

from ..core.config import settings
from ..schemas.listings import ListingRecord

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
UPLOADS_URL_PREFIX = "/uploads/"
DEFAULT_TITLE = "Property Listing"
DEFAULT_TONE_BADGE = "MLS"
SEPARATOR = " • "

# Plain decimal notation only; hex, underscores and "Infinity" pass through.
_DECIMAL_TEXT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)

_MIME_BY_SUFFIX = {
    ".png": "image/png",
    ".webp": "image/webp",
}


@lru_cache
def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["currency"] = format_currency
    env.filters["grouped"] = format_number
    return env


def escape_html(value: object) -> str:
    """Escape ``& < > " '`` in ``value``; ``None`` becomes ``""``."""

    return str(escape("" if value is None else str(value)))


def _whole_number(text: str) -> Decimal | None:
    """Parse ``text`` and round it half-up to an integer, or return ``None``."""

    if not _DECIMAL_TEXT.fullmatch(text):
        return None
    try:
        number = Decimal(text)
        return number.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None


def format_currency(value: object) -> str:
    """Render ``"450000"`` as ``"$450,000"``; anything not a bare number passes through."""

    text = str(value if value is not None else "").strip()
    if not text or "$" in text or "," in text:
        return text
    whole = _whole_number(text)
    if whole is None:
        return text
    sign = "-" if whole < 0 else ""
    return f"{sign}${abs(whole):,}"


def format_number(value: object) -> str:
    """Render ``"1850"`` as ``"1,850"`` under the same pass-through rule."""

    text = str(value if value is not None else "").strip()
    if not text or "," in text:
        return text
    whole = _whole_number(text)
    if whole is None:
        return text
    return f"{whole:,}"


def _mime_for(path: Path) -> str:
    return _MIME_BY_SUFFIX.get(path.suffix.lower(), "image/jpeg")


def image_to_data_uri(reference: str | None, uploads_dir: Path | None = None) -> str | None:
    """Inline a ``/uploads/...`` reference as a base64 data URI.

    Returns ``None`` for external URLs, missing or unreadable files and for
    references that resolve outside the upload directory.
    """

    if not reference or not reference.startswith(UPLOADS_URL_PREFIX):
        return None

    root = (uploads_dir or settings.uploads_dir).resolve()
    try:
        candidate = (root / reference[len(UPLOADS_URL_PREFIX):]).resolve()
        if not candidate.is_relative_to(root) or not candidate.is_file():
            return None
    except (OSError, ValueError):
        return None

    try:
        payload = candidate.read_bytes()
    except OSError as exc:
        logger.warning("Could not read upload %s: %s", candidate, exc)
        return None

    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{_mime_for(candidate)};base64,{encoded}"


def compose_address(listing: ListingRecord) -> str:
    return ", ".join(part for part in (listing.address, listing.city, listing.state) if part)


def _format_timestamp(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{moment.month}/{moment.day}/{moment.year}, {hour}:{moment.minute:02d}:{moment.second:02d} {meridiem}"


def build_flyer_html(
    listing: ListingRecord,
    generated_at: datetime | None = None,
    uploads_dir: Path | None = None,
) -> str:
    """Return the self-contained print document for ``listing``."""

    agent = listing.agent
    stats = SEPARATOR.join(
        part for part in (listing.beds, listing.baths, format_number(listing.sqft)) if part
    )
    footer_contacts = [part for part in (agent.phone, agent.email) if part]

    return _environment().get_template("flyer.html").render(
        listing=listing,
        agent=agent,
        title=listing.title or DEFAULT_TITLE,
        address_line=compose_address(listing),
        tone_badge=listing.tone or DEFAULT_TONE_BADGE,
        hero_image=image_to_data_uri(listing.image_url, uploads_dir),
        logo_image=image_to_data_uri(agent.logo_url, uploads_dir),
        stats_line=stats,
        footer_contacts=footer_contacts,
        generated_label=_format_timestamp(generated_at or datetime.now()),
    )


def build_share_page_html(listing_id: str) -> str:
    """Return the public share page; the listing itself is fetched in the browser."""

    return _environment().get_template("share.html").render(listing_id=listing_id)


def build_index_html() -> str:
    """Return the single-page generator UI."""

    return _environment().get_template("index.html").render()
