"""
Profile Stores

Read-only lookups of prompt profiles by id. A profile is a dict shaped like
{"id": ..., "scriptFormat": "simple"|"scenes", "prompts": {step: {lang: text}}}.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Optional

from videlix.core.exceptions import InvalidConfigError
from videlix.core.logging_config import get_logger
from videlix.core.retry import async_retry
from videlix.profiles.builtin import BUILTIN_PROFILES

logger = get_logger("profiles.store")


class ProfileStore(ABC):
    """Interface of the external profile lookup service."""

    @abstractmethod
    async def get_profile_by_id(self, profile_id: str) -> Optional[dict]:
        """Return the profile dict, or None if the store has no such profile."""
        pass


class InMemoryProfileStore(ProfileStore):
    """Profiles held in a dict; mostly for tests and embedding."""

    def __init__(self, profiles: Iterable[dict] = ()):
        self._profiles: Dict[str, dict] = {}
        for profile in profiles:
            self.put(profile)

    def put(self, profile: dict) -> None:
        if "id" not in profile:
            raise ValueError("Profile must have an 'id'")
        self._profiles[profile["id"]] = profile

    async def get_profile_by_id(self, profile_id: str) -> Optional[dict]:
        return self._profiles.get(profile_id)


class BuiltinProfileStore(InMemoryProfileStore):
    """Store serving only the built-in profile table."""

    def __init__(self):
        super().__init__(BUILTIN_PROFILES.values())


class JsonFileProfileStore(ProfileStore):
    """
    Profiles read from a JSON file: {"profiles": [profile, ...]}.

    The file is re-read on every lookup; the resolver's cache sits in front.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @async_retry(max_retries=2, base_delay=0.2, jitter=False, retryable_exceptions=(OSError,))
    async def _load(self) -> Dict[str, dict]:
        text = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidConfigError(f"Invalid JSON in profiles file {self.path}: {e}")

        profiles = data.get("profiles", []) if isinstance(data, dict) else data
        if not isinstance(profiles, list):
            raise InvalidConfigError(f"Profiles file {self.path} must hold a list of profiles")
        return {p["id"]: p for p in profiles if isinstance(p, dict) and "id" in p}

    async def get_profile_by_id(self, profile_id: str) -> Optional[dict]:
        profiles = await self._load()
        logger.debug(f"Loaded {len(profiles)} profiles from {self.path}")
        return profiles.get(profile_id)
