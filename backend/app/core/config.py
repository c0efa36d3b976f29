from typing import List, Union
from pydantic import validator
from pydantic_settings import BaseSettings
import secrets

class Settings(BaseSettings):
    PROJECT_NAME: str = "CaringSparks API"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Auth
    JWT_SECRET: str = secrets.token_urlsafe(32)
    JWT_REFRESH_SECRET: str = secrets.token_urlsafe(32)
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    REFRESH_COOKIE_NAME: str = "refreshToken"
    PASSWORD_RESET_EXPIRE_MINUTES: int = 10
    BCRYPT_ROUNDS: int = 12

    # Database
    DATABASE_URL: str = "sqlite:///./marketplace.db"

    # Redis / Celery
    REDIS_URL: str = "redis://localhost:6379"

    # CORS
    ALLOWED_ORIGIN: str = "http://localhost:3000"
    FRONTEND_URL: str = "http://localhost:3000"

    @validator("FRONTEND_URL", pre=True)
    def strip_trailing_slash(cls, v: Union[str, None]) -> str:
        return (v or "").rstrip("/")

    @property
    def cors_origins(self) -> List[str]:
        # Comma-separated list in ALLOWED_ORIGIN
        return [i.strip() for i in self.ALLOWED_ORIGIN.split(",") if i.strip()]

    # Email (SMTP)
    EMAIL_USER: str = ""
    EMAIL_PASS: str = ""
    EMAIL_FROM_NAME: str = "CaringSparks Team"
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_TIMEOUT: int = 30
    ADMIN_EMAIL: str = ""

    # WhatsApp (Twilio)
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_WHATSAPP_NUMBER: str = ""
    TWILIO_API_URL: str = "https://api.twilio.com/2010-04-01"
    TWILIO_REQUEST_TIMEOUT: int = 15

    # Payments (Flutterwave)
    FLUTTERWAVE_SECRET_KEY: str = ""
    FLUTTERWAVE_API_URL: str = "https://api.flutterwave.com/v3"
    PAYMENT_REQUEST_TIMEOUT: int = 30  # seconds

    # Object storage (Cloudinary)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    CLOUDINARY_API_URL: str = "https://api.cloudinary.com/v1_1"
    UPLOAD_REQUEST_TIMEOUT: int = 60
    MAX_UPLOAD_SIZE_MB: int = 10

    # Campaign rules
    REVIEW_COMMENT_MAX_LENGTH: int = 1000
    DEFAULT_PAGE_SIZE: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
