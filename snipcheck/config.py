"""Configuration management using Pydantic settings."""

import os
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LANGUAGES = ("js", "javascript", "mjs", "cjs", "es6")


class Config(BaseSettings):
    """Settings read from the environment.

    Only the evaluation timeout can be overridden (``SNIPCHECK_TIMEOUT``).
    """

    model_config = SettingsConfigDict(
        env_prefix="SNIPCHECK_",
        case_sensitive=False,
        extra="ignore",
    )

    timeout: float = Field(
        default=2.0,
        gt=0,
        description="Per-snippet execution bound in seconds",
    )


class VerifyOptions(BaseModel):
    """Options for a single verification run, usually built by the CLI."""

    timeout: float = Field(
        default=2.0,
        gt=0,
        description="Per-snippet execution bound in seconds",
    )
    workers: Optional[int] = Field(
        default=None,
        ge=1,
        description="Worker pool size (defaults to available CPUs)",
    )
    languages: tuple[str, ...] = Field(
        default=DEFAULT_LANGUAGES,
        description="Fence languages that are verified",
    )
    max_memory: Optional[int] = Field(
        default=None,
        gt=0,
        description="Heap cap per sandbox in bytes",
    )
    progress: bool = Field(
        default=False,
        description="Show a progress bar on stderr",
    )

    @property
    def pool_size(self) -> int:
        """Number of worker threads to use."""
        if self.workers is not None:
            return self.workers
        return os.cpu_count() or 1

    @classmethod
    def from_config(cls, config: "Config", **overrides) -> "VerifyOptions":
        """Build options seeded from settings, dropping ``None`` overrides."""
        values = {"timeout": config.timeout}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset global config (mainly for testing)."""
    global _config
    _config = None
