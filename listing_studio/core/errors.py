"""Error taxonomy shared by the services and the HTTP layer."""
from __future__ import annotations


class ListingStudioError(Exception):
    """Base exception for the listing studio backend."""

    status_code = 500
    public_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(ListingStudioError):
    """A request is missing a required field or carries an unusable value."""

    status_code = 400
    public_message = "Invalid request."


class NotFoundError(ListingStudioError):
    """No listing exists for the requested id."""

    status_code = 404
    public_message = "Listing not found."


class RateLimitedError(ListingStudioError):
    """The caller exceeded the AI generation quota."""

    status_code = 429
    public_message = "Too many requests. Please try again later."


class UpstreamError(ListingStudioError):
    """An external collaborator (language model, browser) failed.

    The message is logged, but clients only ever see ``public_message``.
    """

    status_code = 500


class CopywriterError(UpstreamError):
    public_message = "Failed to generate listing."


class DocumentRenderError(UpstreamError):
    public_message = "Failed to render PDF."


class ConfigurationError(ListingStudioError):
    """A credential needed by an AI-dependent endpoint is not configured."""

    status_code = 503
    public_message = "AI generation is disabled (missing GEMINI_API_KEY)."
