# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./shop.db"

    # Extra origin allowed by CORS next to the local dev servers
    FRONTEND_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    # When enabled, order status changes must follow the lifecycle table
    STRICT_ORDER_TRANSITIONS: bool = False

    # Account created by populate_db.py
    SEED_ADMIN_EMAIL: str = "admin@example.com"
    SEED_ADMIN_PASSWORD: str = "change-me-admin"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
