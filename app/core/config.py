from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    PROJECT_NAME: str = "Product Catalog API"
    API_PREFIX: str = ""

    DATABASE_URL: str = Field(...)

    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE_PATH: Optional[str] = Field(default=None)

    CORS_ORIGINS: str = Field(default="*")

    DEFAULT_LOCALE: Literal["es", "en"] = Field(default="es")

    STORAGE_BACKEND: Literal["cloudinary", "local"] = Field(default="cloudinary")
    CLOUDINARY_CLOUD_NAME: Optional[str] = Field(default=None)
    CLOUDINARY_API_KEY: Optional[str] = Field(default=None)
    CLOUDINARY_API_SECRET: Optional[str] = Field(default=None)
    MEDIA_ROOT: str = Field(default="media")
    PRODUCTS_FOLDER: str = Field(default="products")

    @field_validator("API_PREFIX")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def cors_origins(self) -> list[str]:
        # Handle wildcard (allow all origins)
        value = self.CORS_ORIGINS.strip().strip('"\'')
        if value == "*":
            return ["*"]
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    @property
    def media_root(self) -> Path:
        path = Path(self.MEDIA_ROOT)
        if not path.is_absolute():
            path = BASE_DIR / path
        return path


load_dotenv(ENV_FILE)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


class ClientSettings(BaseSettings):
    """Settings for app.client, which talks to the API over HTTP and needs no database."""

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    PRODUCTS_API_URL: str = Field(default="http://localhost:3001")
    PRODUCTS_API_TIMEOUT: float = Field(default=10.0, gt=0)
    DEFAULT_LOCALE: Literal["es", "en"] = Field(default="es")
    FEED_PAGE_SIZE: int = Field(default=5, ge=1)
    SEARCH_DEBOUNCE_SECONDS: float = Field(default=0.3, ge=0)
    QUERY_STALE_SECONDS: int = Field(default=60, ge=1)


@lru_cache
def get_client_settings() -> ClientSettings:
    return ClientSettings()
