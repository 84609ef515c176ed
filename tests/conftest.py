"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Any, Callable, Dict, List

from videlix.core.config import LLMConfig
from videlix.generation.models import OutlineSection, ScriptSection, SimpleScript, VideoIdea
from videlix.llm.provider import LLMProviderClient


class FakeProvider(LLMProviderClient):
    """Provider whose behaviour is a plain function of (key, model, system, user)."""

    name = "fake"

    def __init__(self, responder: Callable[[str, str, str, str], str]):
        self.responder = responder
        self.calls: List[Dict[str, Any]] = []

    async def generate_text(self, api_key, model, system_prompt, user_prompt, config):
        self.calls.append({
            "api_key": api_key,
            "model": model,
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "config": config,
        })
        return self.responder(api_key, model, system_prompt, user_prompt)

    @property
    def attempted_pairs(self) -> List[tuple]:
        return [(call["model"], call["api_key"]) for call in self.calls]


class SleepRecorder:
    """Stand-in for asyncio.sleep that records durations instead of waiting."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Sample configuration for testing."""
    return {
        "project_name": "Videlix",
        "version": "1.0.0",
        "log_level": "DEBUG",
        "llm": {
            "models": ["gemini-2.5-flash", "gemini-2.0-flash"],
            "temperature": 0.5,
            "max_output_tokens": 4096,
        },
        "rate_limits": {
            "batch_size": 4,
            "factory_cooldown_ms": 1000,
        },
        "profiles": {
            "cache_ttl_seconds": 30,
        },
    }


@pytest.fixture
def llm_config() -> LLMConfig:
    """Three-model config so rotation order is observable."""
    return LLMConfig(models=["model-a", "model-b", "model-c"])


@pytest.fixture
def fake_provider() -> Callable[[Callable], FakeProvider]:
    """Factory building a FakeProvider around a responder function."""
    return FakeProvider


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def sample_idea() -> VideoIdea:
    return VideoIdea(
        id="idea_1",
        title="The 50/30/20 Budget",
        hook="You are losing money every week without noticing.",
        angle="A student's first month on a real budget",
    )


@pytest.fixture
def sample_outline() -> List[OutlineSection]:
    return [
        OutlineSection(id="section_1", title="Hook", points=["Where the money goes", "The shock"]),
        OutlineSection(id="section_2", title="The rule", points=["50 needs", "30 wants", "20 savings"]),
    ]


@pytest.fixture
def sample_script() -> SimpleScript:
    return SimpleScript(
        intro="Every student has wondered where their money went.",
        sections=[ScriptSection(heading="The rule", content="Split your income three ways.")],
        outro="Try it for one month.",
        call_to_action="Subscribe for more money tips.",
    )
