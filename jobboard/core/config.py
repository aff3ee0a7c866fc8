from pydantic_settings import BaseSettings
from typing import List
import os

class Settings(BaseSettings):
    PROJECT_NAME: str = "MUNext Job Board"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-here")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./jobboard.db")

    ALLOWED_HOSTS: List[str] = ["http://localhost:5173", "http://localhost:3000", "http://localhost:8000"]

    # File storage
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")
    PUBLIC_STORAGE_URL: str = os.getenv("PUBLIC_STORAGE_URL", "http://localhost:8000/storage")
    MAX_RESUME_SIZE_MB: int = int(os.getenv("MAX_RESUME_SIZE_MB", "5"))
    MAX_LOGO_SIZE_MB: int = int(os.getenv("MAX_LOGO_SIZE_MB", "2"))

    # Admin bootstrap
    SEED_ADMIN: bool = os.getenv("SEED_ADMIN", "false").lower() == "true"
    ADMIN_NAME: str = os.getenv("ADMIN_NAME", "Admin User")
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@munext.com")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "abcd1234")

    class Config:
        case_sensitive = True

settings = Settings()
