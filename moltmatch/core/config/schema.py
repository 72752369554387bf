"""MoltMatch configuration schema — YAML + Pydantic + env override."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ════════════════════════════════════════════════════════════
# SUB-CONFIGS (nested BaseModel)
# ════════════════════════════════════════════════════════════


class NetworkConfig(BaseModel):
    """Moltbook API access."""

    api_base: str = "https://www.moltbook.com/api/v1"
    timeout_s: float = 10.0
    feed_sort: str = "new"
    feed_limit: int = 25
    search_query: str | None = None  # set → discover via /search instead of the feed


class DiscoveryConfig(BaseModel):
    max_candidates: int = Field(default=15, ge=1)


class ConversationConfig(BaseModel):
    """Synthetic reply delay window, [min, max) in milliseconds."""

    min_delay_ms: int = 1200
    max_delay_ms: int = 3700

    @model_validator(mode="after")
    def _check_window(self) -> ConversationConfig:
        if self.min_delay_ms < 0 or self.max_delay_ms <= self.min_delay_ms:
            raise ValueError("conversation delay window must satisfy 0 <= min < max")
        return self


class DatabaseConfig(BaseModel):
    path: str = "data/moltmatch.db"
    snapshot_key: str = "moltmatch-data"


# ════════════════════════════════════════════════════════════
# ROOT CONFIG (BaseSettings, env + .env support)
# ════════════════════════════════════════════════════════════


class Config(BaseSettings):
    """
    Root configuration.

    Priority: env vars > .env > YAML (init kwargs) > defaults

    Env override examples:
        MOLTMATCH_NETWORK__API_BASE=http://localhost:9000/api/v1
        MOLTMATCH_DATABASE__PATH=data/prod.db
        MOLTMATCH_CONVERSATION__MAX_DELAY_MS=5000
    """

    model_config = SettingsConfigDict(
        env_prefix="MOLTMATCH_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    network: NetworkConfig = Field(default_factory=NetworkConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # YAML arrives as init kwargs, env still wins over it
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @property
    def db_path(self) -> Path:
        return Path(self.database.path)
