"""
LLM Provider Clients

Adapters that send one system + user prompt pair to a model with a given
API key. Failures leave here as LLMProviderError tagged with a
ProviderErrorKind so the key/model policy never has to sniff messages.
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from videlix.core.config import LLMConfig
from videlix.core.constants import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
    JSON_MIME_TYPE,
    ProviderErrorKind,
)
from videlix.core.exceptions import ContentBlockedError, LLMProviderError
from videlix.core.logging_config import get_logger

logger = get_logger("llm.provider")

# genai.configure() sets a process-wide key, so configure + call must not interleave
_genai_lock = threading.Lock()


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling settings for one call."""
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    response_mime_type: Optional[str] = JSON_MIME_TYPE
    timeout: Optional[float] = None

    @classmethod
    def from_llm_config(cls, config: LLMConfig) -> 'GenerationConfig':
        return cls(
            temperature=config.temperature,
            top_p=config.top_p,
            max_output_tokens=config.max_output_tokens,
            response_mime_type=config.response_mime_type or None,
            timeout=config.timeout,
        )

    def to_dict(self) -> dict:
        data = {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "max_output_tokens": self.max_output_tokens,
        }
        if self.response_mime_type:
            data["response_mime_type"] = self.response_mime_type
        return data


class LLMProviderClient(ABC):
    """Base class for LLM providers."""

    name: str = "provider"

    @abstractmethod
    async def generate_text(
        self,
        api_key: str,
        model: str,
        system_prompt: str,
        user_prompt: str,
        config: GenerationConfig
    ) -> str:
        """
        Generate text for one prompt pair.

        Raises:
            LLMProviderError: with `kind` set for every failure
        """
        pass


# =============================================================================
# ERROR CLASSIFICATION
# =============================================================================

_INVALID_KEY_MARKERS = ("leaked", "api_key_invalid", "api key not valid", "api key expired")


def classify_status(status_code: Optional[int], message: str) -> ProviderErrorKind:
    """
    Map an HTTP-like status code and message onto a ProviderErrorKind.

    Without a status code the message alone decides, which is less reliable
    and only used for errors that arrive without one.
    """
    text = (message or "").lower()
    invalid_key = any(marker in text for marker in _INVALID_KEY_MARKERS)

    if status_code == 401:
        return ProviderErrorKind.INVALID_CREDENTIAL
    if status_code == 403:
        return ProviderErrorKind.INVALID_CREDENTIAL if invalid_key else ProviderErrorKind.PERMISSION_DENIED
    if status_code == 429:
        return ProviderErrorKind.RATE_LIMITED
    if status_code == 400:
        if invalid_key:
            return ProviderErrorKind.INVALID_CREDENTIAL
        if "model" in text:
            return ProviderErrorKind.MODEL_UNAVAILABLE
        return ProviderErrorKind.TRANSIENT
    if status_code == 404:
        return ProviderErrorKind.MODEL_UNAVAILABLE
    if status_code is not None:
        return ProviderErrorKind.TRANSIENT

    if invalid_key:
        return ProviderErrorKind.INVALID_CREDENTIAL
    if "429" in text or "quota" in text or "rate limit" in text or "resource exhausted" in text:
        return ProviderErrorKind.RATE_LIMITED
    if "403" in text or "permission denied" in text:
        return ProviderErrorKind.PERMISSION_DENIED
    if "model" in text and ("not found" in text or "404" in text or "not supported" in text):
        return ProviderErrorKind.MODEL_UNAVAILABLE
    return ProviderErrorKind.TRANSIENT


def classify_provider_exception(exc: BaseException, provider: str = "google") -> LLMProviderError:
    """Wrap an SDK exception as an LLMProviderError with its kind."""
    if isinstance(exc, LLMProviderError):
        return exc

    status_code = None
    if isinstance(exc, google_exceptions.GoogleAPICallError):
        code = getattr(exc, "code", None)
        status_code = code if isinstance(code, int) else None
    message = str(exc)
    kind = classify_status(status_code, message)
    return LLMProviderError(provider, message, kind=kind, status_code=status_code)


# =============================================================================
# GEMINI
# =============================================================================

class GeminiProvider(LLMProviderClient):
    """Google Gemini through the google-generativeai SDK."""

    name = "google"

    def _generate_sync(self, api_key: str, model: str, contents: list, config: GenerationConfig):
        request_options = {"timeout": config.timeout} if config.timeout else None
        with _genai_lock:
            genai.configure(api_key=api_key)
            client = genai.GenerativeModel(model)
            return client.generate_content(
                contents,
                generation_config=config.to_dict(),
                request_options=request_options,
            )

    async def generate_text(
        self,
        api_key: str,
        model: str,
        system_prompt: str,
        user_prompt: str,
        config: GenerationConfig
    ) -> str:
        contents = [{
            "role": "user",
            "parts": [{"text": f"System: {system_prompt}"}, {"text": f"User: {user_prompt}"}],
        }]

        try:
            response = await asyncio.to_thread(self._generate_sync, api_key, model, contents, config)
        except Exception as e:
            raise classify_provider_exception(e, self.name) from e

        # finish_reason: 1=STOP, 2=MAX_TOKENS, 3=SAFETY, 4=RECITATION
        if not response.candidates:
            block_reason = "UNKNOWN"
            feedback = getattr(response, "prompt_feedback", None)
            if feedback is not None and getattr(feedback, "block_reason", None):
                block_reason = str(feedback.block_reason)
            logger.warning(f"Gemini blocked content: {block_reason}")
            raise ContentBlockedError(self.name, f"block_reason: {block_reason}")

        candidate = response.candidates[0]
        finish_reason = getattr(candidate, "finish_reason", None)
        if finish_reason in (3, 4):
            block_reason = {3: "SAFETY", 4: "RECITATION"}[finish_reason]
            logger.warning(f"Gemini blocked content: finish_reason={block_reason}")
            raise ContentBlockedError(self.name, f"finish_reason: {block_reason}")

        if not candidate.content or not candidate.content.parts:
            raise LLMProviderError(self.name, f"empty response (finish_reason={finish_reason})")

        try:
            return response.text
        except ValueError as e:
            raise LLMProviderError(self.name, f"no text in response: {e}") from e
