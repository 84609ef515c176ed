"""
Tests for Profile Resolver Module

Tests for videlix/profiles/resolver.py and videlix/profiles/store.py
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from videlix.core.constants import Language, PipelineStep, ScriptFormat
from videlix.core.exceptions import InvalidConfigError, ProfileNotFoundError
from videlix.profiles.builtin import get_builtin_profile, list_builtin_profiles
from videlix.profiles.resolver import CacheEntry, ProfileResolver
from videlix.profiles.store import (
    BuiltinProfileStore,
    InMemoryProfileStore,
    JsonFileProfileStore,
    ProfileStore,
)

CUSTOM_PROFILE = {
    "id": "custom",
    "scriptFormat": "scenes",
    "prompts": {"idea": {"en": "Custom idea prompt", "vi": "Gợi ý tùy chỉnh"}},
}


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class CountingStore(ProfileStore):
    """Store that counts lookups and can be switched to failing."""

    def __init__(self, profiles=None):
        self.profiles = {p["id"]: p for p in (profiles or [])}
        self.lookups = 0
        self.fail = False

    async def get_profile_by_id(self, profile_id):
        self.lookups += 1
        if self.fail:
            raise ConnectionError("profile service unreachable")
        return self.profiles.get(profile_id)


class TestProfileResolver:
    """Tests for ProfileResolver."""

    @pytest.mark.asyncio
    async def test_store_prompt_wins(self):
        resolver = ProfileResolver(InMemoryProfileStore([CUSTOM_PROFILE]))

        text = await resolver.resolve_prompt("custom", PipelineStep.IDEA, Language.VI)

        assert text == "Gợi ý tùy chỉnh"

    @pytest.mark.asyncio
    async def test_builtin_fallback_without_store(self):
        text = await ProfileResolver().resolve_prompt("youtube-explainer", "idea", "en")

        assert text.startswith("You are a YouTube content strategist")

    @pytest.mark.asyncio
    async def test_builtin_fallback_for_missing_step(self):
        """A store profile without the step falls back to the built-in with the same id."""
        partial = {"id": "youtube-explainer", "prompts": {"idea": {"en": "Store idea"}}}
        resolver = ProfileResolver(InMemoryProfileStore([partial]))

        idea = await resolver.resolve_prompt("youtube-explainer", "idea", "en")
        outline = await resolver.resolve_prompt("youtube-explainer", "outline", "en")

        assert idea == "Store idea"
        assert outline.startswith("You are a video scriptwriter")

    @pytest.mark.asyncio
    async def test_unknown_profile(self):
        resolver = ProfileResolver(InMemoryProfileStore([CUSTOM_PROFILE]))

        with pytest.raises(ProfileNotFoundError) as exc_info:
            await resolver.resolve_prompt("custom", "outline", "en")

        assert exc_info.value.details["step"] == "outline"

    @pytest.mark.asyncio
    async def test_hits_cached_within_ttl(self):
        store = CountingStore([CUSTOM_PROFILE])
        clock = FakeClock()
        resolver = ProfileResolver(store, ttl=60, clock=clock)

        await resolver.get_profile("custom")
        clock.now += 59
        await resolver.get_profile("custom")

        assert store.lookups == 1

    @pytest.mark.asyncio
    async def test_expired_entry_refetched(self):
        store = CountingStore([CUSTOM_PROFILE])
        clock = FakeClock()
        resolver = ProfileResolver(store, ttl=60, clock=clock)

        await resolver.get_profile("custom")
        clock.now += 61
        await resolver.get_profile("custom")

        assert store.lookups == 2

    @pytest.mark.asyncio
    async def test_misses_are_cached(self):
        store = CountingStore()
        resolver = ProfileResolver(store, clock=FakeClock())

        assert await resolver.get_profile("nope") is None
        assert await resolver.get_profile("nope") is None
        assert store.lookups == 1

    @pytest.mark.asyncio
    async def test_store_failure_falls_back_and_is_not_cached(self):
        store = CountingStore([CUSTOM_PROFILE])
        store.fail = True
        resolver = ProfileResolver(store, clock=FakeClock())

        text = await resolver.resolve_prompt("youtube-explainer", "idea", "en")
        store.fail = False
        profile = await resolver.get_profile("custom")

        assert text.startswith("You are a YouTube content strategist")
        assert profile == CUSTOM_PROFILE
        assert store.lookups == 2

    @pytest.mark.asyncio
    async def test_invalidate(self):
        store = CountingStore([CUSTOM_PROFILE])
        resolver = ProfileResolver(store, clock=FakeClock())

        await resolver.get_profile("custom")
        resolver.invalidate("custom")
        await resolver.get_profile("custom")
        resolver.invalidate()
        await resolver.get_profile("custom")

        assert store.lookups == 3

    @pytest.mark.asyncio
    async def test_script_format(self):
        resolver = ProfileResolver(InMemoryProfileStore([CUSTOM_PROFILE]))

        assert await resolver.resolve_script_format("custom") == ScriptFormat.SCENES
        assert await resolver.resolve_script_format("co-tich-nguoc") == ScriptFormat.SCENES
        assert await resolver.resolve_script_format("youtube-explainer") == ScriptFormat.SIMPLE
        assert await resolver.resolve_script_format("unknown") == ScriptFormat.SIMPLE

    @pytest.mark.asyncio
    async def test_mocked_store(self):
        store = MagicMock(spec=ProfileStore)
        store.get_profile_by_id = AsyncMock(return_value=CUSTOM_PROFILE)
        resolver = ProfileResolver(store, clock=FakeClock())

        await resolver.resolve_prompt("custom", "idea", "en")
        await resolver.resolve_prompt("custom", "idea", "vi")

        store.get_profile_by_id.assert_awaited_once_with("custom")

    def test_cache_entry_expiry(self):
        entry = CacheEntry(profile=None, timestamp=100.0)

        assert not entry.is_expired(60, 160.0)
        assert entry.is_expired(60, 160.5)


class TestProfileStores:
    """Tests for the store implementations."""

    @pytest.mark.asyncio
    async def test_json_file_store(self, temp_dir):
        path = temp_dir / "profiles.json"
        path.write_text(json.dumps({"profiles": [CUSTOM_PROFILE]}), encoding="utf-8")
        store = JsonFileProfileStore(path)

        assert await store.get_profile_by_id("custom") == CUSTOM_PROFILE
        assert await store.get_profile_by_id("other") is None

    @pytest.mark.asyncio
    async def test_json_file_store_accepts_list(self, temp_dir):
        path = temp_dir / "profiles.json"
        path.write_text(json.dumps([CUSTOM_PROFILE]), encoding="utf-8")

        assert await JsonFileProfileStore(path).get_profile_by_id("custom") == CUSTOM_PROFILE

    @pytest.mark.asyncio
    async def test_json_file_store_invalid_json(self, temp_dir):
        path = temp_dir / "profiles.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(InvalidConfigError):
            await JsonFileProfileStore(path).get_profile_by_id("custom")

    def test_in_memory_store_requires_id(self):
        with pytest.raises(ValueError):
            InMemoryProfileStore([{"prompts": {}}])

    def test_builtin_table(self):
        ids = [p["id"] for p in list_builtin_profiles()]

        assert "youtube-explainer" in ids
        assert "co-tich-nguoc" in ids
        assert get_builtin_profile("nope") is None
        assert get_builtin_profile("co-tich-nguoc")["prompts"]["outline"]["vi"]

    @pytest.mark.asyncio
    async def test_builtin_store(self):
        store = BuiltinProfileStore()

        profile = await store.get_profile_by_id("co-tich-nguoc")

        assert profile["scriptFormat"] == "scenes"
