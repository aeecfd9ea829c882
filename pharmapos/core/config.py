# pharmapos/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal

class Settings(BaseSettings):
    # App
    ENV: str = "development"
    DEBUG: bool = False

    # Security
    SECRET_KEY: str
    ALGORITHM: Literal["HS256"] = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Database
    DATABASE_URL: str

    # Frontend
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Sale engine
    # Longest a sale may wait on a stock row held by a concurrent sale
    SALE_LOCK_TIMEOUT_MS: int = 5000
    SALE_MAX_ATTEMPTS: int = 3
    SALE_RETRY_BACKOFF_MS: int = 50

    # Catalogue CSV loaded at startup when the file exists
    MEDICINE_CSV_PATH: str | None = None



    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
    )


settings = Settings()
