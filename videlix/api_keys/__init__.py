"""
Videlix API Keys

Masking and validation of caller-supplied API keys.
"""

from .masking import hash_api_key, mask_api_key, redact_credentials

__all__ = [
    'hash_api_key',
    'mask_api_key',
    'redact_credentials',
]
