"""Application configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="Appointment Platform", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_prefix: str = Field(default="/api", alias="API_PREFIX")

    # Server
    service: str = Field(
        default="appointments",
        alias="SERVICE",
        description="Which service `python -m app.main` runs: appointments or notifications",
    )
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Databases (one per service, never shared)
    database_url: str = Field(..., alias="DATABASE_URL")
    notification_database_url: str = Field(..., alias="NOTIFICATION_DATABASE_URL")

    # JWT verification (tokens are issued by the identity provider)
    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=30, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Identity provider
    auth_service_url: str = Field(default="http://localhost:3001", alias="AUTH_SERVICE_URL")
    identity_me_path: str = Field(default="/api/auth/me", alias="IDENTITY_ME_PATH")
    identity_timeout: float = Field(default=5.0, alias="IDENTITY_TIMEOUT")

    # Event delivery
    notification_service_url: str = Field(
        default="http://localhost:3003",
        alias="NOTIFICATION_SERVICE_URL",
    )
    event_delivery_timeout: float = Field(default=5.0, alias="EVENT_DELIVERY_TIMEOUT")
    service_shared_secret: str | None = Field(
        default=None,
        alias="SERVICE_SHARED_SECRET",
        description="Secret required on service-to-service endpoints when set",
    )

    # Notification retention
    notification_retention_days: int = Field(default=30, alias="NOTIFICATION_RETENTION_DAYS")
    notification_cleanup_interval_seconds: int = Field(
        default=0,
        alias="NOTIFICATION_CLEANUP_INTERVAL_SECONDS",
        description="Run the retention sweep periodically; 0 disables it",
    )

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @property
    def events_url(self) -> str:
        """Ingest endpoint of the notification service."""
        return f"{self.notification_service_url.rstrip('/')}{self.api_prefix}/events"

    @property
    def notification_cleanup_path(self) -> str:
        """Retention sweep endpoint, relative to the notification service root."""
        return f"{self.api_prefix}/notifications/cleanup"

    @property
    def identity_me_url(self) -> str:
        """Identity provider endpoint returning the caller's profile."""
        return f"{self.auth_service_url.rstrip('/')}{self.identity_me_path}"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance
settings = get_settings()
