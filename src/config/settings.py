"""Application settings and configuration."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The instance is frozen: the signing secret and token lifetimes are read once at
    startup and never mutated while the process runs.
    """

    # Application (hardcoded constants)
    app_name: str = "Cruiser Aviation API"
    app_version: str = "0.1.0"

    # Environment-specific settings
    debug: bool = False
    environment: str  # development, staging, production

    # Database
    database_url: str
    database_pool_size: int = 10
    database_max_overflow: int = 20
    database_pool_timeout: int = 30
    database_pool_recycle: int = 3600
    database_echo: bool = False

    # API
    api_prefix: str = "/api"

    # Security
    secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "cruiser-aviation"
    jwt_audience: str = "cruiser-app"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 30
    refresh_token_reuse_detection: bool = False

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_default: str = "100/minute"
    rate_limit_auth: str = "10/minute"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"development", "staging", "production"}
        env = str(v).lower()
        if env not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}, got {env}")
        return env

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Require a signing secret long enough for HS256."""
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format value."""
        fmt = v.lower()
        if fmt not in {"json", "text"}:
            raise ValueError(f"Log format must be 'json' or 'text', got {fmt}")
        return fmt

    @property
    def is_sqlite(self) -> bool:
        """True when the configured database is SQLite (tests, local runs)."""
        return self.database_url.startswith("sqlite")


settings = Settings()  # type: ignore[call-arg]
