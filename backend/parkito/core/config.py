# backend/parkito/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_PENDING_KEY_PREFIX

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    # Hosted backend (auth, tables, edge functions)
    supabase_project_url: str = Field(
        default="http://localhost:54321",
        description="Base URL of the hosted backend project",
    )
    supabase_anon_key: SecretStr = Field(
        default=SecretStr(""),
        description="Public API key sent as the apikey header",
    )
    functions_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for edge function and table calls",
    )

    # Session drafts
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis URL for session drafts; in-memory storage when unset",
    )
    pending_key_prefix: str = Field(
        default=DEFAULT_PENDING_KEY_PREFIX,
        description="Key prefix of per-parking availability drafts",
    )
    pending_draft_ttl_seconds: int = Field(
        default=12 * 60 * 60,
        description="Sliding lifetime of a draft session",
    )

    # Parking info cache
    parking_info_cache_ttl_seconds: int = Field(
        default=60,
        description="How long fetched parking info and availability rows stay cached",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("supabase_project_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


settings = Settings()
