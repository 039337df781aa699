"""Application settings and configuration.

This module defines all configuration options for the TipTune plays service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="TipTune Plays", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./tiptune_plays.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    database_pool_timeout_seconds: float = Field(
        default=10.0,
        alias="DATABASE_POOL_TIMEOUT_SECONDS",
    )

    # Network origin hashing; the raw caller address is never stored.
    ip_hash_salt: str = Field(default="tip-tune-salt", alias="IP_HASH_SALT")

    # Play classification rules
    minimum_listen_seconds: int = Field(default=30, ge=0, alias="MINIMUM_LISTEN_SECONDS")
    max_listen_seconds: int = Field(default=86_400, gt=0, alias="MAX_LISTEN_SECONDS")

    # Duplicate suppression windows, one per dedup key
    dedup_user_window_seconds: int = Field(
        default=3600, ge=0, alias="DEDUP_USER_WINDOW_SECONDS"
    )
    dedup_session_window_seconds: int = Field(
        default=3600, ge=0, alias="DEDUP_SESSION_WINDOW_SECONDS"
    )
    dedup_ip_window_seconds: int = Field(
        default=3600, ge=0, alias="DEDUP_IP_WINDOW_SECONDS"
    )

    # Advisory locking around classify+persist (off by default for throughput)
    play_lock_enabled: bool = Field(default=False, alias="PLAY_LOCK_ENABLED")
    play_lock_ttl_seconds: float = Field(default=5.0, gt=0, alias="PLAY_LOCK_TTL_SECONDS")
    play_lock_timeout_seconds: float = Field(
        default=2.0, gt=0, alias="PLAY_LOCK_TIMEOUT_SECONDS"
    )
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # Analytics
    top_tracks_max_limit: int = Field(default=100, gt=0, alias="TOP_TRACKS_MAX_LIMIT")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
