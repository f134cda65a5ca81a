"""
API Relay Gateway Settings
Pydantic-based configuration with support for env vars and config files.
"""

from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ROUTES: Dict[str, str] = {
    "/discord": "https://discord.com/api",
    "/telegram": "https://api.telegram.org",
    "/openai": "https://api.openai.com",
    "/claude": "https://api.anthropic.com",
    "/gemini": "https://generativelanguage.googleapis.com",
    "/meta": "https://www.meta.ai/api",
    "/groq": "https://api.groq.com/openai",
    "/xai": "https://api.x.ai",
    "/cohere": "https://api.cohere.ai",
    "/huggingface": "https://api-inference.huggingface.co",
    "/together": "https://api.together.xyz",
    "/novita": "https://api.novita.ai",
    "/portkey": "https://api.portkey.ai",
    "/fireworks": "https://api.fireworks.ai",
    "/openrouter": "https://openrouter.ai/api",
    "/cerebras": "https://api.cerebras.ai",
}

# Paths proxied as a whole rather than by prefix
DEFAULT_EXACT_ROUTES: Dict[str, str] = {
    "/get": "https://httpbin.org/get",
}


class Settings(BaseSettings):
    """
    Gateway settings.

    Usage:
        from src.config import get_settings

        settings = get_settings()
        print(settings.port)
        print(settings.routes["/openai"])

    Route tables can be overridden with JSON objects, e.g.
    GATEWAY_ROUTES='{"/openai": "https://api.openai.com"}'.
    """

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_",
        env_file=".env.local",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=2233)
    log_level: str = Field(default="INFO")

    # Upstream client
    upstream_timeout: Optional[float] = Field(default=None)
    max_connections: int = Field(default=100)

    # Routing
    routes: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_ROUTES))
    exact_routes: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_EXACT_ROUTES)
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("upstream_timeout", mode="before")
    @classmethod
    def parse_timeout(cls, v):
        # An empty value means "no timeout"
        if isinstance(v, str) and not v.strip():
            return None
        return v


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: The gateway settings
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Reload settings (clears cache).

    Returns:
        Settings: Fresh settings instance
    """
    get_settings.cache_clear()
    return get_settings()
