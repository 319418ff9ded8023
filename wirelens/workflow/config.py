"""Configuration helpers for the analysis pipeline."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


@dataclass
class Settings:
    """Container for environment-driven settings."""

    environment: str = field(default_factory=lambda: os.getenv("WIRELENS_ENVIRONMENT", "development"))
    log_level: str = field(default_factory=lambda: os.getenv("WIRELENS_LOG_LEVEL", "INFO").upper())
    # Number of images analysed at the same time
    max_concurrency: int = field(default_factory=lambda: _env_int("WIRELENS_MAX_CONCURRENCY", 4))
    # Seconds allowed for one preprocessor call; 0 disables the limit
    preprocess_timeout_seconds: float = field(
        default_factory=lambda: _env_float("WIRELENS_PREPROCESS_TIMEOUT", 60.0)
    )

    @property
    def preprocess_timeout(self) -> Optional[float]:
        return self.preprocess_timeout_seconds if self.preprocess_timeout_seconds > 0 else None

    def validate(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if self.preprocess_timeout_seconds < 0:
            raise ValueError("preprocess_timeout_seconds must be non-negative")
        if self.log_level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unsupported log level {self.log_level!r}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    settings = Settings()
    settings.validate()
    return settings
