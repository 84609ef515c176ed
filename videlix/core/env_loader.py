"""
Centralized environment variable loading for Videlix.

Loads .env once for the command-line entry point. The generation core never
reads API keys from the environment; the CLI collects the caller's own keys
here and passes them on each request.

Usage:
    from videlix.core.env_loader import ensure_env_loaded, get_api_keys
    ensure_env_loaded()
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

API_KEYS_ENV = "VIDELIX_API_KEYS"

_env_loaded = False


def get_project_root() -> Path:
    """Get the project root directory (where .env is located)."""
    return Path(__file__).parent.parent.parent


def ensure_env_loaded(env_path: Optional[Path] = None) -> bool:
    """
    Ensure environment variables from .env are loaded.

    Args:
        env_path: Explicit .env location; defaults to the working directory,
                  then the project root

    Returns:
        True if a .env was loaded, False if already loaded or not found
    """
    global _env_loaded

    if _env_loaded:
        return False

    candidates = [Path(env_path)] if env_path else [Path.cwd() / ".env", get_project_root() / ".env"]
    for candidate in candidates:
        if candidate.exists():
            load_dotenv(candidate, override=False)
            _env_loaded = True
            return True

    return False


def get_api_keys(env_name: str = API_KEYS_ENV) -> List[str]:
    """
    Read the caller's own API keys (comma or newline separated).

    Returns:
        Keys in listed order, blanks and duplicates removed
    """
    ensure_env_loaded()

    raw = os.getenv(env_name, "")
    keys: List[str] = []
    for part in raw.replace("\n", ",").split(","):
        key = part.strip()
        if key and key not in keys:
            keys.append(key)
    return keys
