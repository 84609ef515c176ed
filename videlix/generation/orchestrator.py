"""
Generation Orchestrator

Runs one pipeline step: resolves the profile prompt, builds the user
prompt, then walks the (model, API key) matrix until a response parses.
Models are tried most capable first; within a model, keys in caller order.
No pair is tried twice and there is no backoff inside a call, that lives
in retry_with_backoff one layer up.
"""

from typing import Optional

from videlix.api_keys.masking import mask_api_key, redact_credentials
from videlix.core.config import LLMConfig, get_config
from videlix.core.constants import ERROR_EXCERPT_LENGTH, PipelineStep, REQUIRED_PREVIOUS_STEP
from videlix.core.exceptions import (
    GenerationExhaustedError,
    MissingPreviousContentError,
    NoCredentialsError,
)
from videlix.core.logging_config import get_logger
from videlix.generation.models import GenerationRequest, SceneScript, SimpleScript, VideoIdea
from videlix.generation.prompt_builder import build_user_prompt, fill_placeholders
from videlix.generation.response_parser import ParsedContent, parse_response
from videlix.llm.key_policy import KeyModelPolicy, classify_failure
from videlix.llm.provider import GenerationConfig, LLMProviderClient
from videlix.profiles.resolver import ProfileResolver

logger = get_logger("generation.orchestrator")


def has_required_content(request: GenerationRequest) -> bool:
    """Whether the request carries the output its step builds on."""
    content = request.previous_content
    if request.step == PipelineStep.OUTLINE:
        return isinstance(content, VideoIdea)
    if request.step == PipelineStep.SCRIPT:
        return isinstance(content, list) and len(content) > 0
    if request.step == PipelineStep.METADATA:
        return isinstance(content, (SimpleScript, SceneScript))
    return True


class GenerationOrchestrator:
    """
    Single entry point for generating one step's content.

    Args:
        provider: LLM client used for every attempt
        resolver: Profile resolver; built-in profiles only when omitted
        llm_config: Model list and sampling settings; global config when omitted
    """

    def __init__(
        self,
        provider: LLMProviderClient,
        resolver: Optional[ProfileResolver] = None,
        llm_config: Optional[LLMConfig] = None
    ):
        self.provider = provider
        self.resolver = resolver or ProfileResolver()
        self.llm_config = llm_config or get_config().llm
        self.generation_config = GenerationConfig.from_llm_config(self.llm_config)

    async def generate(self, request: GenerationRequest) -> ParsedContent:
        """
        Generate and parse content for `request.step`.

        Raises:
            NoCredentialsError: the request has no API keys
            MissingPreviousContentError: the step's input is absent
            ProfileNotFoundError: no prompt for profile/step/language
            GenerationExhaustedError: every model/key pair failed
        """
        if not request.credentials:
            raise NoCredentialsError()

        step = request.step
        if not has_required_content(request):
            raise MissingPreviousContentError(step.value, REQUIRED_PREVIOUS_STEP[step].value)

        profile_prompt = await self.resolver.resolve_prompt(
            request.profile_id, step, request.language
        )
        system_prompt = fill_placeholders(profile_prompt, request)
        user_prompt = build_user_prompt(request)

        policy = KeyModelPolicy(self.llm_config.models, request.credentials)
        state = policy.initial_state()
        last_error: Optional[BaseException] = None

        while True:
            attempt = policy.next_attempt(state)
            if attempt is None:
                break

            masked_key = mask_api_key(attempt.credential)
            logger.info(
                f"Generating '{step.value}' with {attempt.model} using key {masked_key} "
                f"(attempt {state.attempts + 1}/{policy.max_attempts()})"
            )

            try:
                raw_text = await self.provider.generate_text(
                    attempt.credential,
                    attempt.model,
                    system_prompt,
                    user_prompt,
                    self.generation_config,
                )
                result = parse_response(raw_text, step)
            except Exception as e:
                kind = classify_failure(e)
                last_error = e
                state = policy.record(state, attempt, kind)
                logger.warning(
                    f"Attempt with {attempt.model} / {masked_key} failed ({kind.value}): "
                    f"{self._summarize(e, request)}"
                )
                continue

            state = policy.record(state, attempt, None)
            logger.info(f"Generated '{step.value}' with {attempt.model} using key {masked_key}")
            return result

        summary = self._summarize(last_error, request) if last_error else ""
        logger.error(f"All model/key combinations failed for '{step.value}' after {state.attempts} attempt(s)")
        raise GenerationExhaustedError(last_error, state.attempts, summary)

    @staticmethod
    def _summarize(error: BaseException, request: GenerationRequest) -> str:
        return redact_credentials(str(error), request.credentials)[:ERROR_EXCERPT_LENGTH]
