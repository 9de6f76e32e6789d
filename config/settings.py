"""Pydantic Settings: typed configuration with .env auto-loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    service_port: int = 5000
    cors_origins: list[str] = ["*"]
    debug: bool = False
    log_level: str = "INFO"

    # ── Document store ───────────────────────────────────────
    document_store_type: str = "memory"  # "memory" or "redis"
    redis_url: str = ""  # e.g. redis://:password@host:6379/0
    store_update_retries: int = 10  # optimistic-lock retries per atomic update

    # ── Submission policy ────────────────────────────────────
    # Reject a second submission by the same grader for an overlapping
    # set of graded students.
    enforce_unique_targets: bool = False
    # Account roles that may edit, regrade and adjust any submission.
    privileged_roles: list[str] = ["Faculty member", "admin"]


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for application settings."""
    return Settings()
