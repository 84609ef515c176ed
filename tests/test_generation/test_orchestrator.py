"""
Tests for Generation Orchestrator Module

Tests for videlix/generation/orchestrator.py
"""

import pytest

from videlix.core.constants import ProviderErrorKind
from videlix.core.exceptions import (
    GenerationExhaustedError,
    LLMProviderError,
    MissingPreviousContentError,
    NoCredentialsError,
    ProfileNotFoundError,
)
from videlix.generation.models import GenerationRequest, SimpleScript, VideoIdea
from videlix.generation.orchestrator import GenerationOrchestrator
from videlix.profiles.resolver import ProfileResolver
from videlix.profiles.store import InMemoryProfileStore

IDEAS_JSON = '[{"id": "idea_1", "title": "Budget", "hook": "H", "angle": "A"}]'


def rate_limited(key, model, system, user):
    raise LLMProviderError("fake", "429 Resource has been exhausted", kind=ProviderErrorKind.RATE_LIMITED)


def idea_request(credentials, **fields):
    fields.setdefault("profile_id", "youtube-explainer")
    return GenerationRequest(
        step="idea",
        topic="saving money as a student",
        language="en",
        credentials=credentials,
        **fields,
    )


class TestGenerate:
    """Tests for GenerationOrchestrator.generate."""

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self, fake_provider, llm_config):
        provider = fake_provider(lambda *args: IDEAS_JSON)
        orchestrator = GenerationOrchestrator(provider, llm_config=llm_config)

        result = await orchestrator.generate(idea_request(["k1", "k2"]))

        assert result == [VideoIdea(id="idea_1", title="Budget", hook="H", angle="A")]
        assert provider.attempted_pairs == [("model-a", "k1")]

    @pytest.mark.asyncio
    async def test_sends_profile_prompt_and_json_config(self, fake_provider, llm_config):
        provider = fake_provider(lambda *args: IDEAS_JSON)
        orchestrator = GenerationOrchestrator(provider, llm_config=llm_config)

        await orchestrator.generate(idea_request(["k1"]))

        call = provider.calls[0]
        assert "YouTube content strategist" in call["system_prompt"]
        assert call["user_prompt"].startswith("Topic: saving money as a student")
        assert call["config"].response_mime_type == "application/json"
        assert call["config"].max_output_tokens == 8192

    @pytest.mark.asyncio
    async def test_rate_limited_everywhere_exhausts(self, fake_provider, llm_config):
        """One key rate-limited on every model: one attempt per model."""
        provider = fake_provider(rate_limited)
        orchestrator = GenerationOrchestrator(provider, llm_config=llm_config)

        with pytest.raises(GenerationExhaustedError) as exc_info:
            await orchestrator.generate(idea_request(["k1"]))

        assert provider.attempted_pairs == [("model-a", "k1"), ("model-b", "k1"), ("model-c", "k1")]
        assert exc_info.value.attempts == len(llm_config.models)
        assert isinstance(exc_info.value.last_error, LLMProviderError)
        assert "429" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_no_credentials_fails_fast(self, fake_provider, llm_config):
        provider = fake_provider(lambda *args: IDEAS_JSON)
        orchestrator = GenerationOrchestrator(provider, llm_config=llm_config)

        with pytest.raises(NoCredentialsError):
            await orchestrator.generate(idea_request([]))

        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_missing_previous_content(self, fake_provider, llm_config):
        provider = fake_provider(lambda *args: "{}")
        orchestrator = GenerationOrchestrator(provider, llm_config=llm_config)
        request = GenerationRequest(step="script", profile_id="youtube-explainer", credentials=["k1"])

        with pytest.raises(MissingPreviousContentError):
            await orchestrator.generate(request)

        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_empty_outline_counts_as_missing(self, fake_provider, llm_config):
        provider = fake_provider(lambda *args: "{}")
        orchestrator = GenerationOrchestrator(provider, llm_config=llm_config)
        request = GenerationRequest(
            step="script", profile_id="youtube-explainer", previous_content=[], credentials=["k1"]
        )

        with pytest.raises(MissingPreviousContentError):
            await orchestrator.generate(request)

    @pytest.mark.asyncio
    async def test_unknown_profile_not_retried(self, fake_provider, llm_config):
        provider = fake_provider(lambda *args: IDEAS_JSON)
        orchestrator = GenerationOrchestrator(provider, llm_config=llm_config)

        with pytest.raises(ProfileNotFoundError):
            await orchestrator.generate(idea_request(["k1"], profile_id="no-such-profile"))

        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_invalid_key_never_reused(self, fake_provider, llm_config):
        """A revoked key is skipped on every later model."""
        def responder(key, model, system, user):
            if key == "bad":
                raise LLMProviderError("fake", "API key not valid", kind=ProviderErrorKind.INVALID_CREDENTIAL)
            raise LLMProviderError("fake", "quota", kind=ProviderErrorKind.RATE_LIMITED)

        provider = fake_provider(responder)
        orchestrator = GenerationOrchestrator(provider, llm_config=llm_config)

        with pytest.raises(GenerationExhaustedError):
            await orchestrator.generate(idea_request(["bad", "good"]))

        bad_attempts = [pair for pair in provider.attempted_pairs if pair[1] == "bad"]
        assert bad_attempts == [("model-a", "bad")]
        assert len(provider.attempted_pairs) == 4

    @pytest.mark.asyncio
    async def test_every_key_tried_before_next_model(self, fake_provider, llm_config):
        """The next model is only reached after all keys failed on the current one."""
        def responder(key, model, system, user):
            if model == "model-b" and key == "k2":
                return IDEAS_JSON
            raise LLMProviderError("fake", "forbidden", kind=ProviderErrorKind.PERMISSION_DENIED)

        provider = fake_provider(responder)
        orchestrator = GenerationOrchestrator(provider, llm_config=llm_config)

        await orchestrator.generate(idea_request(["k1", "k2", "k3"]))

        assert provider.attempted_pairs == [
            ("model-a", "k1"), ("model-a", "k2"), ("model-a", "k3"),
            ("model-b", "k1"), ("model-b", "k2"),
        ]

    @pytest.mark.asyncio
    async def test_model_unavailable_skips_remaining_keys(self, fake_provider, llm_config):
        def responder(key, model, system, user):
            if model == "model-a":
                raise LLMProviderError("fake", "model not found", kind=ProviderErrorKind.MODEL_UNAVAILABLE)
            return IDEAS_JSON

        provider = fake_provider(responder)
        orchestrator = GenerationOrchestrator(provider, llm_config=llm_config)

        await orchestrator.generate(idea_request(["k1", "k2"]))

        assert provider.attempted_pairs == [("model-a", "k1"), ("model-b", "k1")]

    @pytest.mark.asyncio
    async def test_parse_failure_rotates_key(self, fake_provider, llm_config):
        responses = iter(["not json at all", IDEAS_JSON])
        provider = fake_provider(lambda *args: next(responses))
        orchestrator = GenerationOrchestrator(provider, llm_config=llm_config)

        result = await orchestrator.generate(idea_request(["k1", "k2"]))

        assert result[0].title == "Budget"
        assert provider.attempted_pairs == [("model-a", "k1"), ("model-a", "k2")]

    @pytest.mark.asyncio
    async def test_exhaustion_message_masks_key(self, fake_provider, llm_config):
        key = "AIzaSyD-very-secret-key-1234567890"

        def responder(api_key, model, system, user):
            raise RuntimeError(f"connection reset while using {api_key}")

        orchestrator = GenerationOrchestrator(fake_provider(responder), llm_config=llm_config)

        with pytest.raises(GenerationExhaustedError) as exc_info:
            await orchestrator.generate(idea_request([key]))

        assert key not in exc_info.value.message
        assert "AIzaSyD-...67890" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_uses_store_profile_with_placeholders(self, fake_provider, llm_config, sample_idea):
        store = InMemoryProfileStore([{
            "id": "custom",
            "prompts": {"outline": {"en": "Outline this idea: {selectedIdea}"}},
        }])
        provider = fake_provider(lambda *args: '[{"title": "Part 1"}]')
        orchestrator = GenerationOrchestrator(provider, ProfileResolver(store), llm_config)
        request = GenerationRequest(
            step="outline", profile_id="custom", previous_content=sample_idea, credentials=["k1"]
        )

        result = await orchestrator.generate(request)

        assert result[0].title == "Part 1"
        assert provider.calls[0]["system_prompt"].startswith("Outline this idea: The 50/30/20 Budget")

    @pytest.mark.asyncio
    async def test_metadata_step(self, fake_provider, llm_config, sample_script):
        provider = fake_provider(lambda *args: '{"title": "Budget 101", "tags": ["money"]}')
        orchestrator = GenerationOrchestrator(provider, llm_config=llm_config)
        request = GenerationRequest(
            step="metadata", profile_id="youtube-explainer", previous_content=sample_script, credentials=["k1"]
        )

        result = await orchestrator.generate(request)

        assert result.title == "Budget 101"
        assert isinstance(request.previous_content, SimpleScript)
