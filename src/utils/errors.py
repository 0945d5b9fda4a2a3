"""Custom exception hierarchy for Content Studio.

All application exceptions inherit from :class:`ContentStudioError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "s3", "redis") caused the failure, plus an
HTTP ``status_code`` and a stable ``code`` used by the API error middleware.

The hierarchy is organized by concern:

    ContentStudioError  (base -- catch-all for any content-studio error)
    +-- NotFoundError            (404: documents, podcasts, jobs, ...)
    +-- ForbiddenError           (403: ownership / collaborator checks)
    +-- AuthenticationError      (401: missing or invalid session)
    +-- ConflictError            (409: state-machine and uniqueness clashes)
    +-- ValidationError          (400: bad input that pydantic cannot catch)
    +-- DocumentTooLargeError    (413)
    +-- UnsupportedDocumentFormat (415)
    +-- ProviderError            (502: LLM, TTS, image, research, scraping)
    +-- StorageError             (500: blob backend failures)
    +-- ConfigurationError       (500: startup / missing config)

Services raise these; route handlers never construct HTTP errors for domain
failures.  ``ErrorHandlingMiddleware`` turns them into JSON responses.
"""

from __future__ import annotations


class ContentStudioError(Exception):
    """Base exception for all Content Studio errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        provider_name: str | None = None,
    ) -> None:
        self._message = message or self.default_message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# 404 -- missing entities
# ---------------------------------------------------------------------------


class NotFoundError(ContentStudioError):
    """Raised when a requested entity does not exist."""

    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"
    entity = "Resource"

    def __init__(self, entity_id: str | None = None, message: str | None = None) -> None:
        self.entity_id = entity_id
        if message is None and entity_id is not None:
            message = f"{self.entity} {entity_id} not found"
        super().__init__(message=message)


class DocumentNotFound(NotFoundError):
    code = "DOCUMENT_NOT_FOUND"
    entity = "Document"


class PodcastNotFound(NotFoundError):
    code = "PODCAST_NOT_FOUND"
    entity = "Podcast"


class ScriptNotFound(NotFoundError):
    code = "SCRIPT_NOT_FOUND"
    entity = "Script for podcast"


class VoiceoverNotFound(NotFoundError):
    code = "VOICEOVER_NOT_FOUND"
    entity = "Voiceover"


class InfographicNotFound(NotFoundError):
    code = "INFOGRAPHIC_NOT_FOUND"
    entity = "Infographic"


class SelectionNotFound(NotFoundError):
    code = "SELECTION_NOT_FOUND"
    entity = "Selection"


class JobNotFound(NotFoundError):
    code = "JOB_NOT_FOUND"
    entity = "Job"


class CollaboratorNotFound(NotFoundError):
    code = "COLLABORATOR_NOT_FOUND"
    entity = "Collaborator"


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"
    entity = "User"


# ---------------------------------------------------------------------------
# 401 / 403 -- identity and ownership
# ---------------------------------------------------------------------------


class AuthenticationError(ContentStudioError):
    """Raised when a request carries no valid session."""

    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Authentication required"


class ForbiddenError(ContentStudioError):
    """Raised when the actor may not access or change an entity."""

    status_code = 403
    code = "FORBIDDEN"
    default_message = "You do not have access to this resource"


class NotPodcastOwner(ForbiddenError):
    code = "NOT_PODCAST_OWNER"
    default_message = "Only the podcast owner can perform this action"


class NotPodcastCollaborator(ForbiddenError):
    code = "NOT_PODCAST_COLLABORATOR"
    default_message = "You are not the owner or a collaborator of this podcast"


class NotVoiceoverOwner(ForbiddenError):
    code = "NOT_VOICEOVER_OWNER"
    default_message = "Only the voiceover owner can perform this action"


class NotVoiceoverCollaborator(ForbiddenError):
    code = "NOT_VOICEOVER_COLLABORATOR"
    default_message = "You are not the owner or a collaborator of this voiceover"


class NotInfographicOwner(ForbiddenError):
    code = "NOT_INFOGRAPHIC_OWNER"
    default_message = "Only the infographic owner can perform this action"


# ---------------------------------------------------------------------------
# 409 -- conflicts with current state
# ---------------------------------------------------------------------------


class ConflictError(ContentStudioError):
    """Raised when a request conflicts with the current entity state."""

    status_code = 409
    code = "CONFLICT"
    default_message = "Request conflicts with the current state"


class DocumentAlreadyProcessing(ConflictError):
    code = "DOCUMENT_ALREADY_PROCESSING"
    default_message = "Document is already being processed"


class CollaboratorAlreadyExists(ConflictError):
    code = "COLLABORATOR_ALREADY_EXISTS"
    default_message = "This email is already a collaborator"


class InvalidAudioGenerationError(ConflictError):
    code = "INVALID_AUDIO_GENERATION"
    default_message = "Audio can only be generated from a ready script"


class InvalidSaveError(ConflictError):
    code = "INVALID_SAVE"
    default_message = "Changes can only be saved when the podcast is ready"


class InvalidStatusTransition(ConflictError):
    code = "INVALID_STATUS_TRANSITION"
    default_message = "Invalid status transition"


class EmailAlreadyRegistered(ConflictError):
    code = "EMAIL_ALREADY_REGISTERED"
    default_message = "An account with this email already exists"


# ---------------------------------------------------------------------------
# 4xx -- input validation
# ---------------------------------------------------------------------------


class ValidationError(ContentStudioError):
    """Raised for invalid input that request schemas cannot express."""

    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class NoChangesToSave(ValidationError):
    code = "NO_CHANGES_TO_SAVE"
    default_message = "There are no changes to save"


class InvalidUrlError(ValidationError):
    code = "INVALID_URL"
    default_message = "Invalid URL"


class SelectionTextTooLong(ValidationError):
    code = "SELECTION_TEXT_TOO_LONG"
    default_message = "Selected text is too long"


class DocumentParseError(ValidationError):
    status_code = 422
    code = "DOCUMENT_PARSE_ERROR"
    default_message = "Failed to parse document"


class DocumentTooLargeError(ContentStudioError):
    status_code = 413
    code = "DOCUMENT_TOO_LARGE"
    default_message = "Document exceeds the maximum file size"


class UnsupportedDocumentFormat(ContentStudioError):
    status_code = 415
    code = "UNSUPPORTED_FORMAT"
    default_message = "Unsupported document format"


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------


class ProviderError(ContentStudioError):
    """Base for failures of an external AI or web service."""

    status_code = 502
    code = "PROVIDER_ERROR"
    default_message = "External service call failed"


class LLMError(ProviderError):
    """Raised when an LLM API call fails or returns an unparseable response."""

    code = "LLM_ERROR"
    default_message = "LLM API call failed"


class TTSError(ProviderError):
    """Raised when text-to-speech synthesis fails."""

    code = "TTS_ERROR"
    default_message = "Text-to-speech synthesis failed"


class ImageGenError(ProviderError):
    """Raised when image generation fails."""

    code = "IMAGE_GEN_ERROR"
    default_message = "Image generation failed"


class ImageGenContentFilteredError(ImageGenError):
    """Raised when the image provider refuses a prompt on content-policy grounds."""

    code = "IMAGE_GEN_CONTENT_FILTERED"
    default_message = "Image generation was blocked by the content filter"


class ResearchError(ProviderError):
    """Raised when a deep-research operation fails or times out."""

    code = "RESEARCH_ERROR"
    default_message = "Research failed"


class ScrapeError(ProviderError):
    """Raised when fetching or extracting a web page fails."""

    code = "SCRAPE_ERROR"
    default_message = "Failed to fetch page content"


class ProviderUnavailableError(ProviderError):
    """Raised when an external service or provider is unreachable."""

    status_code = 503
    code = "PROVIDER_UNAVAILABLE"
    default_message = "External service is unavailable"


class StorageError(ContentStudioError):
    """Raised when a blob storage backend operation fails."""

    code = "STORAGE_ERROR"
    default_message = "Storage operation failed"


class StorageNotFoundError(StorageError):
    """Raised when a storage key does not exist."""

    status_code = 404
    code = "STORAGE_NOT_FOUND"
    default_message = "Stored object not found"


class ConfigurationError(ContentStudioError):
    """Raised when configuration is invalid or missing at startup."""

    code = "CONFIGURATION_ERROR"
    default_message = "Invalid or missing configuration"
