"""
Configuration management for the fitness coach router.

This module provides configuration loading and validation using environment variables
and .env files. It defines the SystemConfig dataclass and ConfigManager for secure
credential handling and validation. No variable is required: without any provider
API keys the engine runs on local knowledge only.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

from .models import ApiFormat, ProviderConfig


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing required values."""
    pass


@dataclass
class CacheConfig:
    """Response cache configuration."""
    ttl_seconds: int = 3600
    max_size: int = 100


@dataclass
class ProviderSettings:
    """Static settings for one external provider."""
    name: str
    base_url: str
    model: str
    api_key: str
    quota_per_day: int
    api_format: ApiFormat = ApiFormat.OPENAI
    timeout_seconds: float = 30.0

    def to_provider_config(self) -> ProviderConfig:
        """Create the mutable runtime state for this provider."""
        return ProviderConfig(
            name=self.name,
            base_url=self.base_url,
            model=self.model,
            api_key=self.api_key,
            quota_per_day=self.quota_per_day,
            api_format=self.api_format,
            timeout_seconds=self.timeout_seconds
        )


@dataclass
class SystemConfig:
    """Complete system configuration containing all subsystem configs."""
    cache: CacheConfig = field(default_factory=CacheConfig)
    providers: List[ProviderSettings] = field(default_factory=list)
    log_level: str = "INFO"
    log_dir: str = "logs"
    max_tokens: int = 1000


# (name, env prefix, base url, default model, default daily quota, format)
_PROVIDER_DEFAULTS = [
    ("OpenRouter", "OPENROUTER", "https://openrouter.ai/api/v1",
     "deepseek/deepseek-chat-v3-0324:free", 200, ApiFormat.OPENAI),
    ("Groq", "GROQ", "https://api.groq.com/openai/v1",
     "llama-3.1-8b-instant", 1000, ApiFormat.OPENAI),
    ("GoogleAI", "GOOGLE_AI", "https://generativelanguage.googleapis.com/v1beta",
     "gemini-1.5-flash", 1500, ApiFormat.GEMINI),
]


class ConfigManager:
    """Manages configuration loading and validation."""

    @staticmethod
    def load(env_file: Optional[str] = None) -> SystemConfig:
        """
        Load configuration from environment variables and .env file.

        Args:
            env_file: Optional path to .env file. If None, looks for .env in current directory.

        Returns:
            SystemConfig: Validated configuration object.

        Raises:
            ConfigurationError: If configuration values are invalid.
        """
        # Load .env file if it exists (but don't override existing env vars)
        env_path = Path(env_file) if env_file else Path('.env')
        if env_path.exists():
            load_dotenv(env_path, override=False)

        try:
            cache_config = CacheConfig(
                ttl_seconds=ConfigManager._get_int_env('CACHE_TTL_SECONDS', 3600),
                max_size=ConfigManager._get_int_env('CACHE_MAX_SIZE', 100)
            )
            if cache_config.ttl_seconds <= 0 or cache_config.max_size <= 0:
                raise ConfigurationError("CACHE_TTL_SECONDS and CACHE_MAX_SIZE must be positive")

            timeout = ConfigManager._get_float_env('PROVIDER_TIMEOUT_SECONDS', 30.0)
            if timeout <= 0:
                raise ConfigurationError(f"PROVIDER_TIMEOUT_SECONDS must be positive, got: {timeout}")

            providers = [
                ProviderSettings(
                    name=name,
                    base_url=os.getenv(f'{prefix}_BASE_URL', base_url),
                    model=os.getenv(f'{prefix}_MODEL', model),
                    api_key=os.getenv(f'{prefix}_API_KEY', ''),
                    quota_per_day=ConfigManager._get_int_env(f'{prefix}_DAILY_QUOTA', quota),
                    api_format=api_format,
                    timeout_seconds=timeout
                )
                for name, prefix, base_url, model, quota, api_format in _PROVIDER_DEFAULTS
            ]

            log_level = os.getenv('LOG_LEVEL', 'INFO')
            if log_level not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
                raise ConfigurationError(f"LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL, got: {log_level}")

            return SystemConfig(
                cache=cache_config,
                providers=providers,
                log_level=log_level,
                log_dir=os.getenv('LOG_DIR', 'logs'),
                max_tokens=ConfigManager._get_int_env('PROVIDER_MAX_TOKENS', 1000)
            )

        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration value: {e}")

    @staticmethod
    def _get_int_env(key: str, default: int) -> int:
        """
        Get integer environment variable with default.

        Args:
            key: Environment variable name.
            default: Default value if not set.

        Returns:
            int: Environment variable value as integer.

        Raises:
            ConfigurationError: If value cannot be converted to integer.
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"Environment variable '{key}' must be an integer, got: {value}")

    @staticmethod
    def _get_float_env(key: str, default: float) -> float:
        """Get float environment variable with default."""
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return float(value)
        except ValueError:
            raise ConfigurationError(f"Environment variable '{key}' must be a number, got: {value}")
