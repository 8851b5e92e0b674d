from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # TTL for the system_config cache used by ConfigProvider
    system_config_cache_seconds: int = Field(600, alias="SYSTEM_CONFIG_CACHE_SECONDS")

    refund_recalc_enabled: bool = Field(False, alias="REFUND_RECALC_ENABLED")
    refund_recalc_interval_minutes: int = Field(1440, alias="REFUND_RECALC_INTERVAL_MINUTES")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
