from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for bloomd.
    Values can be overridden via BLOOMD_* environment variables or a .env file.
    The filter geometry is read once at startup and never changes afterwards.
    """

    model_config = SettingsConfigDict(env_prefix="BLOOMD_", env_file=".env", extra="ignore")

    app_name: str = "bloomd"

    # Filter geometry: expected element count and target false positive rate.
    expected_elements: int = Field(default=100_000, ge=1)
    false_positive_rate: float = Field(default=0.01, gt=0.0, lt=1.0)

    host: str = "::1"
    port: int = Field(default=50051, ge=1, le=65535)

    log_level: str = "INFO"


# create a single settings instance we can import everywhere
settings = Settings()
