from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Development
    DEV_MODE: bool = Field(default=True, description="Enable debug mode")

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./parkwell.db", description="Database connection URL")
    ASYNC_DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./parkwell.db", description="Async database URL")

    # FastAPI
    FASTAPI_HOST: str = Field(default="localhost", description="FastAPI host")
    FASTAPI_PORT: int = Field(default=8000, description="FastAPI port")
    API_PREFIX: str = Field(default="/api", description="Prefix for every REST route")
    FRONTEND_URL: str = Field(default="http://localhost:5173", description="SPA origin, used for CORS and links")
    APP_NAME: str = Field(default="ParkWell Systems", description="Name printed on tickets and e-mails")

    # Logging
    LOG_LEVEL: Optional[str] = Field(default=None, description="Overrides the DEV_MODE log level")
    LOG_FILE: Optional[str] = Field(default=None, description="Also write logs to this file")

    # Auth
    JWT_SECRET: str = Field(default="change-me-in-production", description="HS256 signing secret")
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT signing algorithm")
    TOKEN_EXPIRES_MINUTES: int = Field(default=60 * 24, description="Access token lifetime")
    RESET_OTP_EXPIRES_MINUTES: int = Field(default=10, description="Password reset OTP lifetime")

    # E-mail (SendGrid)
    SENDGRID_API_KEY: Optional[str] = Field(default=None, description="SendGrid API key")
    SENDER_EMAIL: Optional[str] = Field(default=None, description="From address for outgoing e-mail")

    # Bootstrap admin account created by init_database
    ADMIN_DEFAULT_EMAIL: str = Field(default="admin@parkwell.app", description="Initial admin e-mail")
    ADMIN_DEFAULT_PASSWORD: str = Field(default="Admin#12345", description="Initial admin password")


# Create settings instance
settings = Settings()
