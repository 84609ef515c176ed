"""
Profile Resolver

Turns (profile id, step, language) into system-prompt text. Store lookups
are cached for a short TTL, misses included, and the built-in profile table
backs up a store that is down or incomplete.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from videlix.core.constants import Language, PipelineStep, ScriptFormat
from videlix.core.exceptions import ProfileNotFoundError
from videlix.core.logging_config import get_logger
from videlix.profiles.builtin import get_builtin_profile
from videlix.profiles.store import ProfileStore

logger = get_logger("profiles.resolver")

DEFAULT_CACHE_TTL = 60.0  # seconds


@dataclass
class CacheEntry:
    """A cached store lookup; `profile` is None for a cached miss."""
    profile: Optional[dict]
    timestamp: float

    def is_expired(self, ttl: float, now: float) -> bool:
        return now - self.timestamp > ttl


def _prompt_text(profile: Optional[dict], step: PipelineStep, language: Language) -> Optional[str]:
    if not profile:
        return None
    prompts = profile.get("prompts") or {}
    text = (prompts.get(step.value) or {}).get(language.value)
    return text or None


class ProfileResolver:
    """
    Read-through cache in front of a ProfileStore.

    Args:
        store: External profile store, or None to use built-ins only
        ttl: Seconds a lookup (hit or miss) stays cached
        clock: Monotonic clock in seconds, injectable for tests
    """

    def __init__(
        self,
        store: Optional[ProfileStore] = None,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic
    ):
        self.store = store
        self.ttl = ttl
        self._clock = clock
        self._cache: Dict[str, CacheEntry] = {}

    async def get_profile(self, profile_id: str) -> Optional[dict]:
        """Store profile for `profile_id` (cached), or None."""
        if self.store is None:
            return None

        now = self._clock()
        entry = self._cache.get(profile_id)
        if entry and not entry.is_expired(self.ttl, now):
            return entry.profile

        try:
            profile = await self.store.get_profile_by_id(profile_id)
        except Exception as e:
            # Store outages are not cached so the next call tries again
            logger.warning(f"Profile store lookup failed for '{profile_id}', using built-ins: {e}")
            return None

        self._cache[profile_id] = CacheEntry(profile=profile, timestamp=now)
        if profile is None:
            logger.debug(f"Profile '{profile_id}' not in store")
        return profile

    async def resolve_prompt(self, profile_id: str, step: PipelineStep, language: Language) -> str:
        """
        System-prompt text for one step in one language.

        Raises:
            ProfileNotFoundError: neither the store nor the built-ins have it
        """
        step = PipelineStep(step)
        language = Language(language)

        text = _prompt_text(await self.get_profile(profile_id), step, language)
        if text is None:
            text = _prompt_text(get_builtin_profile(profile_id), step, language)
        if text is None:
            raise ProfileNotFoundError(profile_id, step.value, language.value)
        return text

    async def resolve_script_format(self, profile_id: str) -> ScriptFormat:
        """Script shape the profile produces; simple when unspecified."""
        profile = await self.get_profile(profile_id) or get_builtin_profile(profile_id) or {}
        value = profile.get("scriptFormat", ScriptFormat.SIMPLE.value)
        try:
            return ScriptFormat(value)
        except ValueError:
            logger.warning(f"Unknown scriptFormat '{value}' on profile '{profile_id}'")
            return ScriptFormat.SIMPLE

    def invalidate(self, profile_id: Optional[str] = None) -> None:
        """Drop one cached profile, or the whole cache."""
        if profile_id is None:
            self._cache.clear()
        else:
            self._cache.pop(profile_id, None)
