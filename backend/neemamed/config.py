from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./neemamed.db",
        env="DATABASE_URL",
    )

    # Record store
    storage_backend: str = Field(default="sql", env="STORAGE_BACKEND")  # "sql" | "memory"
    storage_key_prefix: str = Field(default="neemamed_", env="STORAGE_KEY_PREFIX")
    # Roughly the capacity of browser local storage
    memory_quota_bytes: int = Field(default=5 * 1024 * 1024, env="MEMORY_QUOTA_BYTES")
    seed_demo_data: bool = Field(default=True, env="SEED_DEMO_DATA")

    # Sessions
    session_ttl_seconds: int = Field(default=86400, env="SESSION_TTL_SECONDS")
    jwt_secret_key: str = Field(
        default="dev-secret-key-change-in-production",
        env="JWT_SECRET_KEY",
    )

    # HTTP
    cors_origins: list[str] = Field(default=["*"], env="CORS_ORIGINS")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
