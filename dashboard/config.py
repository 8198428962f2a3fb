"""All settings, loaded from the environment or the .env file."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # App
    app_env: str = "development"
    log_level: str = "INFO"
    log_file: str = ""

    # Backend record source
    backend_api_url: str = "https://ponce-patient-backend.vercel.app"
    request_timeout: float = 30

    # Dashboard behavior
    items_per_page: int = 25
    provider_storage_path: str = "~/.dashboard/provider.json"

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def api_base_url(self) -> str:
        return self.backend_api_url.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
