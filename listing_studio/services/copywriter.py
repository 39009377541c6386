"""Listing copy generation built on Gemini."""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..core.config import settings
from ..core.errors import CopywriterError
from ..schemas.listings import DEFAULT_TONE, PropertyFacts

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Property Listing"
MAX_TITLE_LENGTH = 90

SYSTEM_PROMPT = "You generate real estate listing content."

PLACEHOLDER_DESCRIPTION = (
    "GEMINI_API_KEY is not set. Add it to your .env file to enable AI generation.\n\n"
    "(Uploads, saving, sharing and PDF export still work.)"
)

TONE_GUIDANCE = {
    "luxury": "Use an upscale, luxury tone highlighting premium finishes, lifestyle, and exclusivity.",
    "investor": (
        "Write for real estate investors, focusing on ROI potential, rental income, "
        "value-add opportunities, and neighborhood growth."
    ),
    "casual": "Use a friendly, casual tone like a social media post, still professional but relaxed.",
    "spanish": "Write in natural, professional Latin American Spanish suitable for real estate marketing.",
}
DEFAULT_GUIDANCE = "Use a neutral, professional MLS-style real estate tone."

_TITLE_DECORATIONS = re.compile(r"""^(?:#+\s*|\*+|_+|["'“”‘’])+|(?:\*+|_+|["'“”‘’])+$""")
_TITLE_LABEL = re.compile(r"^title\s*:\s*", re.I)


@dataclass(slots=True)
class GeneratedCopy:
    """Title and body text produced for one listing."""

    title: str
    description: str
    source: str
    placeholder: bool = False


def has_credentials() -> bool:
    return bool(settings.gemini_api_key.strip())


def is_spanish(tone: str) -> bool:
    return "spanish" in tone.lower() or "español" in tone.lower()


def _tone_guidance(tone: str) -> str:
    lowered = tone.lower()
    for keyword, guidance in TONE_GUIDANCE.items():
        if keyword in lowered:
            return guidance
    return DEFAULT_GUIDANCE


def build_prompt(facts: PropertyFacts) -> str:
    """Compose the writer prompt from the property facts and tone."""

    tone = facts.tone or DEFAULT_TONE
    language_rule = (
        "Language requirement: Output must be 100% Spanish. Do NOT include English."
        if is_spanish(tone)
        else "Language requirement: Output must be 100% English."
    )

    lines = [
        "You are an expert real estate listing writer.",
        f'Style/Tone: "{tone}"',
        _tone_guidance(tone),
        language_rule,
        "",
        "Rules:",
        "- Use clear, professional language appropriate to the tone.",
        "- Avoid fair-housing violations.",
        "- Use only provided facts; do not invent specifics.",
        "- Output: First line = title. Then a polished description. Then optional bullet highlights.",
        "",
        "Property details:",
        f"Address: {facts.address}",
        f"City/State: {facts.city} {facts.state}".rstrip(),
        f"Price: {facts.price}",
        f"Beds: {facts.beds}",
        f"Baths: {facts.baths}",
        f"Sqft: {facts.sqft}",
        f"Year Built: {facts.year_built}",
        f"Features/Notes: {facts.features}",
        f"Extra description from user: {facts.description_input}",
    ]
    return "\n".join(lines)


def extract_title(text: str) -> str:
    """Return the title line of generated copy.

    The first non-blank line is used after stripping quotes, markdown heading
    and emphasis markers and a leading ``Title:`` label. Lines that end up empty
    or longer than ``MAX_TITLE_LENGTH`` fall back to ``DEFAULT_TITLE``.
    """

    first_line = next((line.strip() for line in text.splitlines() if line.strip()), "")
    candidate = _TITLE_DECORATIONS.sub("", first_line).strip()
    candidate = _TITLE_LABEL.sub("", candidate).strip()
    candidate = _TITLE_DECORATIONS.sub("", candidate).strip()
    if not candidate or len(candidate) > MAX_TITLE_LENGTH:
        return DEFAULT_TITLE
    return candidate


def placeholder_copy() -> GeneratedCopy:
    return GeneratedCopy(
        title=DEFAULT_TITLE,
        description=PLACEHOLDER_DESCRIPTION,
        source="placeholder",
        placeholder=True,
    )


@lru_cache
def _configured_api() -> bool:
    """Configure the Google Generative AI client once."""

    if not has_credentials():
        raise RuntimeError("GEMINI_API_KEY is missing")

    genai.configure(api_key=settings.gemini_api_key)
    return True


_model_cache: Dict[str, genai.GenerativeModel] = {}


def _get_model(name: str) -> genai.GenerativeModel:
    """Return a cached Gemini model instance."""

    _configured_api()
    model_name = name.strip()
    if not model_name:
        raise RuntimeError("Gemini model name was empty")

    if model_name not in _model_cache:
        _model_cache[model_name] = genai.GenerativeModel(model_name, system_instruction=SYSTEM_PROMPT)
    return _model_cache[model_name]


def _candidate_models() -> list[str]:
    candidates: list[str] = []
    for candidate in (settings.gemini_model, *settings.gemini_model_fallbacks):
        candidate = candidate.strip()
        if candidate and candidate not in candidates:
            candidates.append(candidate)
    return candidates


async def generate_copy(facts: PropertyFacts) -> GeneratedCopy:
    """Return a title and description for ``facts``.

    Without credentials this returns a labeled placeholder instead of failing.
    Raises ``CopywriterError`` when no configured model produces text.
    """

    if not has_credentials():
        logger.warning("Gemini API key missing; returning placeholder copy.")
        return placeholder_copy()

    prompt = build_prompt(facts)
    loop = asyncio.get_running_loop()
    last_error: Exception | None = None

    for model_name in _candidate_models():
        def _run_inference(current_model: str = model_name) -> str:
            response = _get_model(current_model).generate_content(
                prompt,
                generation_config={"temperature": settings.gemini_temperature},
            )
            text = getattr(response, "text", "") or ""
            return text.strip()

        try:
            content = await loop.run_in_executor(None, _run_inference)
        except google_exceptions.NotFound as exc:
            logger.warning("Gemini model %s not available: %s", model_name, exc)
            _model_cache.pop(model_name, None)
            last_error = exc
            continue
        except Exception as exc:  # noqa: BLE001
            logger.exception("Gemini generate_content failed for %s", model_name)
            last_error = exc
            continue

        if not content:
            logger.warning("Gemini model %s returned no text", model_name)
            continue

        return GeneratedCopy(title=extract_title(content), description=content, source=model_name)

    raise CopywriterError("No Gemini model produced listing copy") from last_error
