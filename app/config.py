from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    # database: either a full URL or the postgres parts
    DATABASE_URL: Optional[str] = None
    postgres_user: Optional[str] = None
    postgres_password: str = ""
    postgres_db: str = "videostore"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # session tokens
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # payment gateway
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    CURRENCY: str = "INR"

    # email
    BREVO_API_KEY: Optional[str] = None
    MAIL_FROM: str = "no-reply@example.com"
    STORE_NAME: str = "Video Store"
    EMAIL_MAX_ATTEMPTS: int = 5

    # media
    MEDIA_DIR: str = "uploads"
    MAX_UPLOAD_MB: int = 100

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # unset disables /api/auth/create-admin
    ADMIN_BOOTSTRAP_KEY: Optional[str] = None

    # access token policies
    PURCHASE_TOKEN_TTL_DAYS: int = 7
    PURCHASE_TOKEN_MAX_DOWNLOADS: int = 5
    PREVIEW_TOKEN_TTL_DAYS: int = 365
    PREVIEW_TOKEN_MAX_DOWNLOADS: int = 1000

    ORDER_EXPIRY_MINUTES: int = 30

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.postgres_user:
            encoded_password = quote_plus(self.postgres_password)
            return (
                f"postgresql+psycopg2://{self.postgres_user}:"
                f"{encoded_password}@{self.postgres_host}:"
                f"{self.postgres_port}/{self.postgres_db}"
            )
        return "sqlite:///./videostore.db"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
