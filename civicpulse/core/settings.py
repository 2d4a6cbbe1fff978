"""
Core settings and environment variables for CivicPulse.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "CivicPulse"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    FIREBASE_STORAGE_BUCKET: Optional[str] = None  # Issue photos are stored here

    # Access tokens (bearer JWT returned by /auth/login)
    JWT_SECRET: str = "dev-secret-change"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24  # 1 day

    # In-memory database for local development and tests
    USE_MOCK_DB: bool = False

    # AI Configuration
    AI_ENABLED: bool = True  # If False, analyzers always use the heuristic fallbacks
    GROQ_API_KEY: Optional[str] = None
    GROQ_API_BASE_URL: str = "https://api.groq.com/openai/v1"
    GROQ_TEXT_MODEL: str = "llama-3.3-70b-versatile"
    GROQ_VISION_MODEL: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    AI_TIMEOUT_SECONDS: float = 10.0  # AI inference timeout

    # Severity fusion weights (text dominates, vision often degrades to neutral)
    TEXT_SEVERITY_WEIGHT: float = 0.8
    IMAGE_SEVERITY_WEIGHT: float = 0.2

    # Email notifications (SMTP)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    EMAIL_FROM: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


# Global settings instance
settings = Settings()
