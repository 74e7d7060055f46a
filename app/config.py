"""Application configuration settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "healthcare_directory"

    # OpenAI - demo responses are served when the key is missing or a placeholder
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4"
    OPENAI_EXTRACTION_MODEL: str = "gpt-3.5-turbo"

    # Google Maps - demo data is served when the key is missing or a placeholder
    GOOGLE_MAPS_API_KEY: Optional[str] = None

    # JWT
    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30

    # Application
    APP_NAME: str = "Healthcare Directory API"
    API_PREFIX: str = "/api"
    PORT: int = 5000

    # CORS
    BACKEND_CORS_ORIGINS: str = '["http://localhost:3000", "http://localhost:5173"]'

    # File uploads
    UPLOAD_DIR: str = "/tmp/healthcare_uploads"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from JSON string."""
        try:
            return json.loads(self.BACKEND_CORS_ORIGINS)
        except (TypeError, ValueError):
            return ["http://localhost:3000"]

    @property
    def has_openai_credential(self) -> bool:
        """True when the OpenAI key looks like a real secret key."""
        key = self.OPENAI_API_KEY
        return bool(key) and key.startswith("sk-") and "placeholder" not in key

    @property
    def has_maps_credential(self) -> bool:
        """True when the Google Maps key is set and not a template value."""
        key = self.GOOGLE_MAPS_API_KEY
        return bool(key) and "placeholder" not in key and "your-" not in key


settings = Settings()
