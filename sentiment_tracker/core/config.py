"""Core configuration management using Pydantic settings."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional, List


# Valid log levels
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/sentiment_tracker.db"
    create_tables_on_startup: bool = False

    # Logging
    log_level: str = "INFO"

    # Sessions
    session_cookie_name: str = "session_id"
    session_ttl_minutes: int = 10080  # 7 days
    cookie_secure: bool = False

    # OpenID Connect identity provider
    oidc_issuer: str = "http://localhost:9000"
    oidc_client_id: str = "sentiment-tracker"
    oidc_client_secret: Optional[str] = None
    oidc_redirect_uri: str = "http://localhost:8000/api/auth/callback"
    oidc_scope: str = "openid email profile"

    # Frontend Configuration
    frontend_url: str = "http://localhost:3000"

    # API Configuration
    backend_port: int = 8000

    # CORS Configuration
    cors_origins: str = "http://localhost:3000"  # Comma-separated list of allowed origins

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        upper_v = v.upper()
        if upper_v not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}")
        return upper_v

    @field_validator('session_ttl_minutes')
    @classmethod
    def validate_session_ttl(cls, v: int) -> int:
        """Sessions must live for at least one minute."""
        if v < 1:
            raise ValueError("session_ttl_minutes must be at least 1")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string to list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
