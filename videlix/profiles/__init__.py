"""
Videlix Profiles

Prompt profiles: built-in table, external stores and the cached resolver.
"""

from .builtin import BUILTIN_PROFILES, DEFAULT_PROFILE_ID, SCENE_PROFILE_ID, list_builtin_profiles
from .resolver import ProfileResolver
from .store import ProfileStore, InMemoryProfileStore, BuiltinProfileStore, JsonFileProfileStore

__all__ = [
    'BUILTIN_PROFILES',
    'DEFAULT_PROFILE_ID',
    'SCENE_PROFILE_ID',
    'list_builtin_profiles',
    'ProfileResolver',
    'ProfileStore',
    'InMemoryProfileStore',
    'BuiltinProfileStore',
    'JsonFileProfileStore',
]
