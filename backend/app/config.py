from pydantic_settings import BaseSettings
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    APP_NAME: str = "basic-shop-api"
    APP_VERSION: str = "v1"
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"
    # Maximum size of a single uploaded file, in bytes (2 MiB).
    FILE_LIMIT: int = 2 * 1024 * 1024
    # Directory for the per-day request journal files.
    LOG_DIR: str = "./assets/logs"

    # DATABASE_URL is validated lazily by app.database so that modules can be
    # imported (tests, alembic --sql) without a configured database.
    DATABASE_URL: str = ""
    DB_MAX_CONNECTIONS: int = 25
    DB_STATEMENT_TIMEOUT_MS: int = 30000
    DB_TX_TIMEOUT_MS: int = 15000

    # One secret per token kind. Access and refresh tokens never share a key.
    JWT_SECRET_KEY: str = "access-secret-change-in-production"
    JWT_REFRESH_KEY: str = "refresh-secret-change-in-production"
    JWT_ADMIN_KEY: str = "admin-secret-change-in-production"
    JWT_API_KEY: str = "apikey-secret-change-in-production"
    # Token lifetimes in seconds.
    JWT_ACCESS_EXPIRES: int = 86400
    JWT_REFRESH_EXPIRES: int = 604800
    JWT_ISSUER: str = "basicshop-api"

    # Supabase Storage configuration for product images and transfer slips.
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None  # Anon key
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None  # Service role key
    STORAGE_BUCKET: str = "basic-shop"
    STORAGE_TIMEOUT_SECONDS: int = 60
    STORAGE_WORKERS: int = 5

    class Config:
        env_file = None
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def storage_key(self) -> Optional[str]:
        return self.SUPABASE_SERVICE_ROLE_KEY or self.SUPABASE_KEY


settings = Settings()
