"""
Videlix Configuration Management

Dataclass configuration with JSON loading and environment overrides.
API keys are deliberately absent: every request brings its own.
"""

import json
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional

from .exceptions import InvalidConfigError
from .constants import (
    DEFAULT_MODELS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
    DEFAULT_MAX_OUTPUT_TOKENS,
    JSON_MIME_TYPE,
    RATE_LIMITS,
)

DEFAULT_CONFIG_PATH = Path("config/videlix_config.json")


@dataclass
class LLMConfig:
    """Model list and generation settings for the LLM provider."""
    models: List[str] = field(default_factory=lambda: list(DEFAULT_MODELS))
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    response_mime_type: str = JSON_MIME_TYPE
    timeout: int = 120

    @classmethod
    def from_dict(cls, data: dict) -> 'LLMConfig':
        """Create LLMConfig from dictionary."""
        models = data.get('models', list(DEFAULT_MODELS))
        if isinstance(models, str):
            models = [models]
        if not models:
            raise InvalidConfigError("llm.models must list at least one model")
        return cls(
            models=list(models),
            temperature=data.get('temperature', DEFAULT_TEMPERATURE),
            top_p=data.get('top_p', DEFAULT_TOP_P),
            max_output_tokens=data.get('max_output_tokens', DEFAULT_MAX_OUTPUT_TOKENS),
            response_mime_type=data.get('response_mime_type', JSON_MIME_TYPE),
            timeout=data.get('timeout', 120)
        )


@dataclass
class RateLimitConfig:
    """Pacing for batches, factory cooldowns and backoff (milliseconds)."""
    batch_size: int = RATE_LIMITS["BATCH_SIZE"]
    batch_delay_ms: int = RATE_LIMITS["BATCH_DELAY_MS"]
    factory_cooldown_ms: int = RATE_LIMITS["FACTORY_COOLDOWN_MS"]
    retry_delay_ms: int = RATE_LIMITS["RETRY_DELAY_MS"]
    max_retries: int = RATE_LIMITS["MAX_RETRIES"]
    pause_poll_ms: int = RATE_LIMITS["PAUSE_POLL_MS"]

    @classmethod
    def from_dict(cls, data: dict) -> 'RateLimitConfig':
        config = cls()
        for name in asdict(config):
            if name in data:
                value = data[name]
                if not isinstance(value, int) or value < 0:
                    raise InvalidConfigError(
                        f"rate_limits.{name} must be a non-negative integer",
                        {"value": value}
                    )
                setattr(config, name, value)
        if config.batch_size < 1:
            raise InvalidConfigError("rate_limits.batch_size must be at least 1")
        return config


@dataclass
class ProfileConfig:
    """Profile lookup settings."""
    cache_ttl_seconds: float = 60.0
    profiles_path: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'ProfileConfig':
        path = data.get('profiles_path')
        return cls(
            cache_ttl_seconds=float(data.get('cache_ttl_seconds', 60.0)),
            profiles_path=Path(path) if path else None
        )


@dataclass
class VidelixConfig:
    """Main configuration class for Videlix."""

    project_name: str = "Videlix"
    version: str = "1.0.0"
    log_level: str = "INFO"
    logs_dir: Path = field(default_factory=lambda: Path("logs"))

    llm: LLMConfig = field(default_factory=LLMConfig)
    rate_limits: RateLimitConfig = field(default_factory=RateLimitConfig)
    profiles: ProfileConfig = field(default_factory=ProfileConfig)

    @classmethod
    def from_dict(cls, data: dict) -> 'VidelixConfig':
        """Create VidelixConfig from dictionary."""
        config = cls()

        config.project_name = data.get('project_name', config.project_name)
        config.version = data.get('version', config.version)
        config.log_level = data.get('log_level', config.log_level)
        if 'logs_dir' in data:
            config.logs_dir = Path(data['logs_dir'])

        if 'llm' in data:
            config.llm = LLMConfig.from_dict(data['llm'])
        if 'rate_limits' in data:
            config.rate_limits = RateLimitConfig.from_dict(data['rate_limits'])
        if 'profiles' in data:
            config.profiles = ProfileConfig.from_dict(data['profiles'])

        return config

    def apply_env_overrides(self) -> 'VidelixConfig':
        """Apply VIDELIX_MODELS / VIDELIX_LOG_LEVEL if set."""
        models = os.getenv("VIDELIX_MODELS")
        if models:
            self.llm.models = [m.strip() for m in models.split(",") if m.strip()]
        log_level = os.getenv("VIDELIX_LOG_LEVEL")
        if log_level:
            self.log_level = log_level.upper()
        return self

    def to_dict(self) -> dict:
        data = asdict(self)
        data['logs_dir'] = str(self.logs_dir)
        path = self.profiles.profiles_path
        data['profiles']['profiles_path'] = str(path) if path else None
        return data


def load_config(config_path: Path = None) -> VidelixConfig:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to configuration file. If None, uses default.

    Returns:
        Loaded VidelixConfig instance (defaults if the file is missing)
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        return VidelixConfig().apply_env_overrides()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in config file: {e}")

    if not isinstance(data, dict):
        raise InvalidConfigError("Config file must contain a JSON object")

    return VidelixConfig.from_dict(data).apply_env_overrides()


def save_config(config: VidelixConfig, config_path: Path) -> None:
    """Write configuration to a JSON file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config.to_dict(), f, indent=2)


# Global config instance
_config: Optional[VidelixConfig] = None


def get_config() -> VidelixConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[VidelixConfig]) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
