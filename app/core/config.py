# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - JWT_SECRET (signs admin access tokens)
      - ADMIN_EMAIL / ADMIN_PASSWORD (the single admin credential)

    Required for image uploads:
      - SUPABASE_URL
      - SUPABASE_SERVICE_ROLE_KEY (Storage writes bypass RLS)

    Policy switches:
      - BLOCK_REFERENCED_CATEGORY_DELETE: refuse to delete a category that
        products still point at.
      - EMPTY_FIELD_CLEARS: on product update, an empty form field clears a
        nullable value instead of being ignored.
    """

    PROJECT_NAME: str = "Noor Fabrics Catalog API"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./catalog.db"

    # Admin token signing
    JWT_SECRET: str
    JWT_ALG: str = "HS256"
    JWT_EXPIRE_HOURS: int = 24

    # Single admin credential
    ADMIN_EMAIL: str
    ADMIN_PASSWORD: str
    ADMIN_NAME: str = "Admin User"

    # Supabase Storage (product images)
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    STORAGE_BUCKET: str = "assets"
    STORAGE_FOLDER: str = "products"

    MAX_PRODUCT_IMAGES: int = 3
    MAX_IMAGE_BYTES: int = 10 * 1024 * 1024  # 10 MiB per image

    BLOCK_REFERENCED_CATEGORY_DELETE: bool = True
    EMPTY_FIELD_CLEARS: bool = True

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() in {"dev", "development", "local"}


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
