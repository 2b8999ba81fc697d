from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CustomSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


class AppSettings(CustomSettings):
    LOG_LEVEL: str = Field(default="INFO")
    JSON_LOGS: bool = Field(default=False)


class MongoSettings(CustomSettings):
    MONGODB_URL: str = Field(default="mongodb://localhost:27017")
    MONGODB_DB: str = Field(default="chatService")
    MONGODB_SERVER_SELECTION_TIMEOUT_MS: int = Field(default=5000)


class PaginationSettings(CustomSettings):
    """Defaults applied by the HTTP layer when a client omits `limit`.

    Env vars:
    - DEFAULT_PAGE_SIZE
    - MAX_PAGE_SIZE
    """

    DEFAULT_PAGE_SIZE: int = Field(default=10)
    MAX_PAGE_SIZE: int = Field(default=100)


class Settings(BaseModel):
    APP: AppSettings = Field(default_factory=AppSettings)
    MONGO: MongoSettings = Field(default_factory=MongoSettings)
    PAGINATION: PaginationSettings = Field(default_factory=PaginationSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()
