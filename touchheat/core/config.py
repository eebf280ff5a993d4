"""Service configuration."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables (and .env when present)."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    redis_url: str = "redis://localhost:6379/0"

    # snippets post cross-origin from customer pages
    allowed_origins_str: str = "*"

    @property
    def allowed_origins(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins_str.split(",") if o.strip()]

    ingest_path: str = "/api/ingest"
    heatmap_bucket_size: int = 20

    debug: bool = False
    environment: str = "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
