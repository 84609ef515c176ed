"""
Videlix LLM Module

Provider adapters and the key/model rotation policy.
"""

from .key_policy import Attempt, KeyModelPolicy, RotationState, classify_failure
from .provider import GeminiProvider, GenerationConfig, LLMProviderClient, classify_provider_exception

__all__ = [
    'Attempt',
    'KeyModelPolicy',
    'RotationState',
    'classify_failure',
    'GeminiProvider',
    'GenerationConfig',
    'LLMProviderClient',
    'classify_provider_exception',
]
