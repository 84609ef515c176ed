"""
Credential display helpers.

API keys are only ever logged or shown through these helpers.
"""

import hashlib
from typing import Iterable


def mask_api_key(key: str) -> str:
    """AIzaSyAB...xY12z style mask; keys under 10 characters become ***."""
    key = key or ""
    if len(key) < 10:
        return "***"
    return f"{key[:8]}...{key[-5:]}"


def hash_api_key(key: str) -> str:
    """Short stable fingerprint for de-duplicating keys (not a secret)."""
    return hashlib.sha256(key.strip().encode("utf-8")).hexdigest()[:12]


def redact_credentials(text: str, credentials: Iterable[str]) -> str:
    """Replace every occurrence of a credential in `text` with its mask."""
    for key in credentials:
        if key:
            text = text.replace(key, mask_api_key(key))
    return text
