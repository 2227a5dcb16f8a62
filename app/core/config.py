# app/core/config.py - Application settings loaded from environment / .env

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    APP_NAME: str = "amazon-clone-api"

    # Required settings: the app refuses to start without them
    SECRET_KEY: str
    DATABASE_URL: str

    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    RESET_TOKEN_EXPIRE_MINUTES: int = 60

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Frontend
    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: str = "http://localhost:5173"

    # Mail
    MAIL_PROVIDER: Optional[str] = None  # "smtp" or "console"; picked from ENVIRONMENT when unset
    MAIL_USER: Optional[str] = None
    MAIL_PASS: Optional[str] = None
    MAIL_RECEIVER: Optional[str] = None
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: int = 10

    # Profile
    MAX_AVATAR_LENGTH: int = 500000

    # Product images
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_REGION: str = "us-east-2"
    AWS_BUCKET_NAME: Optional[str] = None
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_IMAGE_TYPES: str = "image/jpeg,image/png,image/webp"

    # Optional admin account created at startup
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None
    ADMIN_USERNAME: str = "admin"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @field_validator("SECRET_KEY")
    @classmethod
    def secret_key_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("SECRET_KEY must be set to a non-empty value")
        return v

    @property
    def mail_provider(self) -> str:
        if self.MAIL_PROVIDER:
            return self.MAIL_PROVIDER.lower()
        return "smtp" if self.ENVIRONMENT.lower() == "production" else "console"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def allowed_image_types(self) -> List[str]:
        return [t.strip() for t in self.ALLOWED_IMAGE_TYPES.split(",") if t.strip()]

settings = Settings()
