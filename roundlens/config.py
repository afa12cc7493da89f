"""
RoundLens — Configuration Management

Pydantic Settings: loads from environment / .env. Only ambient concerns live
here (logging, soft limits); the analysis constants are fixed in
``roundlens.constants``.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library configuration loaded from ROUNDLENS_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ROUNDLENS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Logging ──
    log_level: str = "INFO"
    log_json: bool = False

    # ── Soft limits (warn, never enforce) ──
    max_pattern_length: int = 12
    max_catalog_size: int = 500
    slow_analysis_ms: float = 250.0


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — created once, reused everywhere."""
    return Settings()
