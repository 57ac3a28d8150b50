"""Application configuration via pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True
    )

    # App
    debug: bool = False

    # Affinity API v2 (bearer token)
    affinity_v2_token: str = ""
    affinity_api_url: str = "https://api.affinity.co/v2"
    http_timeout: float = 30.0

    # Target list and field ids
    affinity_list_id: int = 300305
    affinity_field_min: str = "field-5140816"
    affinity_field_max: str = "field-5140817"
    affinity_field_probability: str = "field-5150465"
    affinity_field_ev: str = "field-5305096"

    # EV computation
    zero_as_missing: bool = True

    # Read-after-write verification
    verify_max_attempts: int = 4
    verify_base_delay_ms: int = 200


settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the process-wide settings."""
    return settings
