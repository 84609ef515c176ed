"""
API Key Validator

Checks caller-supplied Gemini keys with a minimal generation call before
they are used for real work. Keys never appear in results or logs unmasked.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from videlix.api_keys.masking import hash_api_key, mask_api_key, redact_credentials
from videlix.core.constants import (
    DEFAULT_MODELS,
    ERROR_EXCERPT_LENGTH,
    KEY_VALIDATION_BATCH_SIZE,
    KEY_VALIDATION_DELAY_MS,
    ProviderErrorKind,
)
from videlix.core.exceptions import LLMProviderError
from videlix.core.logging_config import get_logger
from videlix.llm.provider import GenerationConfig, LLMProviderClient
from videlix.pipelines.batch_processor import BatchItemError, process_batches

logger = get_logger("api_keys.validator")

VALIDATION_PROMPT = "Reply with only the word 'OK'"
KEY_PREFIX = "AIza"
MIN_KEY_LENGTH = 30

_VALIDATION_CONFIG = GenerationConfig(temperature=0.0, response_mime_type=None)


@dataclass
class ValidationResult:
    """Outcome of checking one key."""
    key: str = field(repr=False)
    masked_key: str
    valid: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"maskedKey": self.masked_key, "valid": self.valid}
        if self.error:
            data["error"] = self.error
        return data


def has_valid_format(key: str) -> bool:
    return key.startswith(KEY_PREFIX) and len(key) >= MIN_KEY_LENGTH


def _describe_failure(error: BaseException, key: str) -> ValidationResult:
    masked = mask_api_key(key)
    if isinstance(error, LLMProviderError):
        reason = error.reason.lower()
        if error.kind == ProviderErrorKind.RATE_LIMITED:
            return ValidationResult(key, masked, True, "Rate limited (key works)")
        if error.kind == ProviderErrorKind.INVALID_CREDENTIAL:
            if "leaked" in reason:
                return ValidationResult(key, masked, False, "Key reported as leaked")
            if error.status_code == 401:
                return ValidationResult(key, masked, False, "Unauthorized (invalid key)")
            return ValidationResult(key, masked, False, "Invalid API key")
        if error.kind == ProviderErrorKind.PERMISSION_DENIED:
            return ValidationResult(key, masked, False, "Access denied (invalid key)")

    message = redact_credentials(str(error), [key])[:ERROR_EXCERPT_LENGTH]
    return ValidationResult(key, masked, False, message or "Unknown error")


async def validate_api_key(
    key: str,
    provider: LLMProviderClient,
    model: str = DEFAULT_MODELS[0]
) -> ValidationResult:
    """
    Check one key: format first, then a one-word test generation.

    A rate-limited key counts as valid, since it authenticated.
    """
    key = key.strip()
    masked = mask_api_key(key)

    if not has_valid_format(key):
        return ValidationResult(key, masked, False, f"Invalid format (should start with {KEY_PREFIX})")

    try:
        text = await provider.generate_text(key, model, "", VALIDATION_PROMPT, _VALIDATION_CONFIG)
    except Exception as e:
        result = _describe_failure(e, key)
        logger.info(f"Key {masked} check: valid={result.valid} ({result.error})")
        return result

    if not text or not text.strip():
        return ValidationResult(key, masked, False, "Empty response")

    logger.info(f"Key {masked} is valid")
    return ValidationResult(key, masked, True)


async def validate_multiple_keys(
    keys: Sequence[str],
    provider: LLMProviderClient,
    model: str = DEFAULT_MODELS[0],
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
) -> Dict[str, List[ValidationResult]]:
    """
    Validate de-duplicated keys, three at a time with a short pause between groups.

    The checks in a group are gathered, but GeminiProvider serializes its
    calls under a process-wide lock (genai.configure is global), so with
    that provider they run one after another.

    Returns:
        {"valid": [...], "invalid": [...]} in input order
    """
    unique: List[str] = []
    seen = set()
    for key in keys:
        key = key.strip()
        fingerprint = hash_api_key(key)
        if key and fingerprint not in seen:
            seen.add(fingerprint)
            unique.append(key)

    async def worker(batch: List[str], index: int) -> List[ValidationResult]:
        return list(await asyncio.gather(*(validate_api_key(k, provider, model) for k in batch)))

    outcomes = await process_batches(
        unique,
        worker,
        batch_size=KEY_VALIDATION_BATCH_SIZE,
        delay_ms=KEY_VALIDATION_DELAY_MS,
        step="validate",
        sleep=sleep,
    )

    results = [
        _describe_failure(outcome.exception or Exception(outcome.error), outcome.item)
        if isinstance(outcome, BatchItemError) else outcome
        for outcome in outcomes
    ]
    return {
        "valid": [r for r in results if r.valid],
        "invalid": [r for r in results if not r.valid],
    }
