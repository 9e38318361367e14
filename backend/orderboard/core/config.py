from pydantic_settings import BaseSettings
from typing import List
import logging
import os


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "orderboard"
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = False
    TESTING: bool = False

    # Database (used by the "database" mirror backend)
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite+aiosqlite:///./orderboard.db"
    )

    # Persistence mirror: none | database | supabase
    MIRROR_BACKEND: str = os.getenv("MIRROR_BACKEND", "none")
    MIRROR_TIMEOUT_SECONDS: float = 5.0
    HYDRATE_ON_STARTUP: bool = True

    # Supabase (PostgREST) hosted table
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    SUPABASE_TABLE: str = "pedidos"

    # Server-Sent Events
    SSE_KEEPALIVE_SECONDS: float = 15.0
    SSE_QUEUE_SIZE: int = 100
    SSE_RETRY_MS: int = 5000

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:8080", "http://127.0.0.1:5173"]

    class Config:
        env_file = ".env"


settings = Settings()

logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(settings.APP_NAME)
