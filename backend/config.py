# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480
    REMEMBER_ME_EXPIRE_DAYS: int = 30
    DATABASE_URL: str = "sqlite:///./storefront.db"

    FRONTEND_URL: str = ""
    LOG_LEVEL: str = "INFO"

    # Sales tax applied on top of the cart subtotal
    TAX_RATE: float = 0.16
    BCRYPT_ROUNDS: int = 12

    # Product images uploaded by vendors
    UPLOAD_DIR: str = "static/uploads"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
