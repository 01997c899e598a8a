"""
Configuration settings for the study-notes backend.
Loads environment variables and provides application-wide settings.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Gemini Configuration (empty key = AI structuring disabled)
    GEMINI_API_KEY: str = ""
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_MODEL: str = "gemini-2.5-flash-lite"
    GEMINI_TIMEOUT: int = 60  # seconds per request
    GEMINI_TEMPERATURE: float = 0.2

    # Segmentation Configuration
    MIN_SUBTOPIC_CHARS: int = 20  # bodies must be strictly longer than this
    FALLBACK_CHUNK_CHARS: int = 500
    AI_INPUT_MAX_CHARS: int = 30000  # document text sent to Gemini is cut here

    # Notes Generation Configuration
    NOTES_BATCH_SIZE: int = 4
    NOTES_BATCH_DELAY_SECONDS: float = 2.0

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # OCR Configuration
    TESSERACT_CMD: str = "/usr/bin/tesseract"

    # Upload Configuration
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10 MB
    SUPPORTED_MIME_TYPES: List[str] = [
        "application/pdf",
        "text/plain",
        "image/png",
        "image/jpeg",
        "image/webp",
    ]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def gemini_configured(self) -> bool:
        """True when a Gemini API key is available."""
        return bool(self.GEMINI_API_KEY.strip())

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into a list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]


# Global settings instance
settings = Settings()
