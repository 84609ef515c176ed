"""
Videlix Custom Exceptions

Custom exception classes for error handling throughout the Videlix pipeline.
"""

from typing import Optional

from .constants import ProviderErrorKind


class VidelixError(Exception):
    """Base exception for all Videlix errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(VidelixError):
    """Raised when there's an issue with configuration."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""
    pass


# =============================================================================
# CALLER ERRORS
# =============================================================================

class CallerError(VidelixError):
    """Raised for requests that can never succeed; never retried."""
    pass


class NoCredentialsError(CallerError):
    """Raised when a request carries no API keys."""

    def __init__(self):
        super().__init__(
            "No API keys supplied. Add your own Gemini API key to generate content."
        )


class MissingPreviousContentError(CallerError):
    """Raised when a step is requested without the output it builds on."""

    def __init__(self, step: str, required: str):
        message = f"Step '{step}' requires the '{required}' output as previous content"
        super().__init__(message, {"step": step, "required": required})


class InvalidRequestError(CallerError):
    """Raised when a request field has an unsupported value."""
    pass


class ProfileNotFoundError(CallerError):
    """Raised when no profile text exists for a profile/step/language."""

    def __init__(self, profile_id: str, step: str = None, language: str = None):
        message = f"Profile not found: '{profile_id}'"
        details = {"profile_id": profile_id}
        if step:
            details["step"] = step
        if language:
            details["language"] = language
        super().__init__(message, details)


# =============================================================================
# PARSE ERRORS
# =============================================================================

class ParseError(VidelixError):
    """Raised when LLM output cannot be recovered into the expected shape."""

    def __init__(self, reason: str, raw_text: str = "", step: str = None):
        self.excerpt = (raw_text or "")[:200]
        message = f"Failed to parse response: {reason}"
        details = {"excerpt": self.excerpt}
        if step:
            details["step"] = step
        super().__init__(message, details)


# =============================================================================
# LLM ERRORS
# =============================================================================

class LLMError(VidelixError):
    """Base exception for LLM-related errors."""
    pass


class LLMProviderError(LLMError):
    """Raised by a provider adapter, tagged with a ProviderErrorKind."""

    def __init__(
        self,
        provider: str,
        reason: str,
        kind=None,
        status_code: Optional[int] = None
    ):
        message = f"LLM provider '{provider}' error: {reason}"
        self.provider = provider
        self.reason = reason
        self.kind = ProviderErrorKind(kind) if kind else ProviderErrorKind.TRANSIENT
        self.status_code = status_code
        details = {"provider": provider, "kind": self.kind.value}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)


class ContentBlockedError(LLMProviderError):
    """Raised when content is blocked by provider's safety filters."""

    def __init__(self, provider: str, reason: str):
        super().__init__(provider, f"content blocked ({reason})")
        self.is_content_block = True


class GenerationExhaustedError(LLMError):
    """Raised when every model/key combination failed for one request."""

    def __init__(self, last_error: Optional[BaseException], attempts: int, summary: str = ""):
        self.last_error = last_error
        self.attempts = attempts
        message = (
            f"All API keys and models failed after {attempts} attempt(s). "
            f"Please add a working API key."
        )
        if summary:
            message += f" Last error: {summary}"
        super().__init__(message, {"attempts": attempts})


# =============================================================================
# PIPELINE ERRORS
# =============================================================================

class PipelineError(VidelixError):
    """Base exception for pipeline errors."""
    pass


class BatchGenerationError(PipelineError):
    """Raised when one or more batches of a batched generation failed."""

    def __init__(self, failed_batches: list, errors: list):
        message = f"{len(failed_batches)} batch(es) failed: {errors[0] if errors else 'unknown'}"
        super().__init__(message, {"failed_batches": failed_batches})
        self.errors = errors
