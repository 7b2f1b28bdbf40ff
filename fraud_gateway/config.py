"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./fraud_gateway.db"

    # Service
    service_name: str = "fraud-gateway"
    log_level: str = "INFO"

    # Scoring
    velocity_window_seconds: int = 600
    velocity_threshold: int = 3
    stack_time_bands: bool = False  # Let late-night and unusual-hour rules both fire

    # Profile storage: raise instead of falling back to in-memory state
    fail_on_storage_error: bool = False
    profile_cache_size: int = 10_000

    history_limit: int = 20


settings = Settings()
