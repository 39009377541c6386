"""Tests for the flyer and share page builders."""
from __future__ import annotations

import base64
from datetime import datetime

import pytest

from listing_studio.schemas.listings import AgentInfo, ListingRecord
from listing_studio.services import templates

GENERATED_AT = datetime(2026, 3, 4, 15, 6, 7)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("450000", "$450,000"),
        ("$450,000", "$450,000"),
        ("450,000", "450,000"),
        ("N/A", "N/A"),
        ("450k", "450k"),
        ("  1250000.5 ", "$1,250,001"),
        ("", ""),
        (None, ""),
        ("nan", "nan"),
        ("-5000", "-$5,000"),
        ("0x10", "0x10"),
        ("1_000", "1_000"),
        ("Infinity", "Infinity"),
        ("1e999999999", "1e999999999"),
    ],
)
def test_format_currency(raw, expected) -> None:
    assert templates.format_currency(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1850", "1,850"),
        ("1,850", "1,850"),
        ("approx 1800", "approx 1800"),
        ("0x10", "0x10"),
        ("\u0661\u0662", "\u0661\u0662"),
        ("", ""),
    ],
)
def test_format_number(raw, expected) -> None:
    assert templates.format_number(raw) == expected


def test_escape_html_escapes_markup_and_quotes() -> None:
    assert templates.escape_html("""<a href="x">Tom & 'Jerry'</a>""") == (
        "&lt;a href=&#34;x&#34;&gt;Tom &amp; &#39;Jerry&#39;&lt;/a&gt;"
    )
    assert templates.escape_html(None) == ""


def test_flyer_escapes_injected_markup() -> None:
    listing = ListingRecord(
        id="x1",
        title="<script>alert('t')</script>",
        description='Big & "bright" <b>kitchen</b>',
        address="1 <Main> St",
        agent=AgentInfo(name="<img src=x onerror=alert(1)>", phone="555"),
    )

    html = templates.build_flyer_html(listing, generated_at=GENERATED_AT)

    assert "<script>" not in html
    assert "&lt;script&gt;alert(&#39;t&#39;)&lt;/script&gt;" in html
    assert "Big &amp; &#34;bright&#34; &lt;b&gt;kitchen&lt;/b&gt;" in html
    assert "1 &lt;Main&gt; St" in html
    assert "<img src=x" not in html


def test_flyer_is_deterministic_for_fixed_timestamp() -> None:
    listing = ListingRecord(id="x1", title="Same", price="100")

    first = templates.build_flyer_html(listing, generated_at=GENERATED_AT)
    second = templates.build_flyer_html(listing, generated_at=GENERATED_AT)

    assert first == second
    assert "Generated 3/4/2026, 3:06:07 PM" in first


def test_flyer_sections_and_defaults() -> None:
    listing = ListingRecord(
        id="x1",
        address="12 Elm St",
        city="Austin",
        state="TX",
        price="350000",
        beds="3",
        baths="2",
        sqft="1500",
        agent=AgentInfo(name="Dana", brokerage="Acme Realty", phone="555-0100", email="dana@acme.io"),
    )

    html = templates.build_flyer_html(listing, generated_at=GENERATED_AT)

    assert "Property Listing" in html
    assert "12 Elm St, Austin, TX" in html
    assert ">MLS<" in html
    assert "Presented by <b>Dana</b> • Acme Realty" in html
    assert "$350,000" in html
    assert "3 • 2 • 1,500" in html
    assert "Year Built" not in html
    assert "555-0100" in html and "dana@acme.io" in html


def test_flyer_without_agent_uses_dash_and_shows_year() -> None:
    listing = ListingRecord(id="x1", year_built="1954")

    html = templates.build_flyer_html(listing, generated_at=GENERATED_AT)

    assert "Presented by <b>—</b>" in html
    assert "Year Built" in html and "1954" in html


def test_flyer_inlines_local_uploads_only(uploads_dir) -> None:
    (uploads_dir / "house.png").write_bytes(b"\x89PNG fake")
    (uploads_dir / "logo.webp").write_bytes(b"RIFF fake")
    listing = ListingRecord(
        id="x1",
        image_url="/uploads/house.png",
        agent=AgentInfo(logo_url="/uploads/logo.webp"),
    )

    html = templates.build_flyer_html(listing, generated_at=GENERATED_AT, uploads_dir=uploads_dir)

    assert "data:image/png;base64," + base64.b64encode(b"\x89PNG fake").decode() in html
    assert "data:image/webp;base64," in html


@pytest.mark.parametrize(
    "reference",
    [
        "https://example.com/house.jpg",
        "/uploads/missing.jpg",
        "/uploads/../secret.jpg",
        "/uploads/a\x00b.png",
        "",
        None,
    ],
)
def test_image_to_data_uri_rejects_non_local_or_missing(uploads_dir, reference) -> None:
    (uploads_dir.parent / "secret.jpg").write_bytes(b"secret")

    assert templates.image_to_data_uri(reference, uploads_dir) is None


def test_image_to_data_uri_defaults_to_jpeg(uploads_dir) -> None:
    (uploads_dir / "photo.heic").write_bytes(b"abc")

    assert templates.image_to_data_uri("/uploads/photo.heic", uploads_dir) == "data:image/jpeg;base64,YWJj"


def test_external_image_is_omitted_from_flyer() -> None:
    listing = ListingRecord(id="x1", image_url="https://example.com/house.jpg")

    html = templates.build_flyer_html(listing, generated_at=GENERATED_AT)

    assert "example.com" not in html
    assert 'class="hero"' not in html


def test_share_page_embeds_id_as_safe_script_literal() -> None:
    html = templates.build_share_page_html('abc</script><script>alert(1)</script>')

    assert "</script><script>alert(1)" not in html
    assert "\\u003c/script\\u003e" in html
    assert "/api/listings/" in html
    assert "/api/documents/pdf/" in html


def test_flyer_with_unusable_image_reference_still_renders(uploads_dir) -> None:
    listing = ListingRecord(id="x1", title="Still Here", image_url="/uploads/a\x00b.png")

    html = templates.build_flyer_html(listing, generated_at=GENERATED_AT, uploads_dir=uploads_dir)

    assert "Still Here" in html
    assert 'class="hero"' not in html


def test_share_page_formats_only_plain_decimals() -> None:
    html = templates.build_share_page_html("abc")

    assert "DECIMAL_TEXT.test(text)" in html
