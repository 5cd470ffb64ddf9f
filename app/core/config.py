"""Application settings loaded from environment variables."""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "School Attendance API"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # JWT
    jwt_secret_key: str = "change-me-in-production-very-secret-key"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24  # 24 hours

    # PostgreSQL
    postgres_host: str = "127.0.0.1"
    postgres_port: int = 5432
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "attendance_db"
    # Full SQLAlchemy async URL; overrides the postgres_* fields when set
    database_url: str | None = None

    # Object storage (local directory served under storage_public_url)
    storage_root: str = "storage"
    storage_public_url: str = "http://localhost:8000/storage"

    # External signature verification service
    ai_base_url: str = "http://localhost:8081"
    ai_timeout_seconds: float = 30.0
    signature_match_threshold: float = 0.7

    # Rows per page when materializing rosters
    roster_page_size: int = Field(default=1000, gt=0)
    # Rosters resolved at once by one request; keep below the pool size
    roster_concurrency: int = Field(default=4, gt=0)

    @property
    def database_url_async(self) -> str:
        """SQLAlchemy URL with the asyncpg driver (used by the app)."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def database_url_sync(self) -> str:
        """URL for synchronous tooling (psql, migrations)."""
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
