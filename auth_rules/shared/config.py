"""
Shared configuration management for the authorization rule codec.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_MAX_DEPTH = 32
# Decoding recurses once per nesting level; stay well under the interpreter's recursion limit
MAX_DEPTH_LIMIT = 128


class CodecConfig(BaseSettings):
    """Codec configuration, read from AUTH_RULES_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_RULES_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Decoding limits
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH)

    # Observability
    enable_metrics: bool = Field(default=True)

    @field_validator("max_depth")
    @classmethod
    def _positive_depth(cls, value: int) -> int:
        if not 1 <= value <= MAX_DEPTH_LIMIT:
            raise ValueError(f"max_depth must be between 1 and {MAX_DEPTH_LIMIT}")
        return value


@lru_cache(maxsize=1)
def get_config() -> CodecConfig:
    """Get the process-wide codec configuration."""
    return CodecConfig()


def resolve_max_depth(max_depth: Optional[int] = None) -> int:
    """Explicit bound if given, otherwise the configured one."""
    if max_depth is None:
        return get_config().max_depth
    if not 1 <= max_depth <= MAX_DEPTH_LIMIT:
        raise ValueError(f"max_depth must be between 1 and {MAX_DEPTH_LIMIT}")
    return max_depth
