"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "CAT Exam API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Admin endpoints (item parameter initialization)
    ADMIN_TOKEN: str = Field(
        default="",
        description="Admin API token for maintenance endpoints (required for admin endpoints)",
    )

    # Computerized Adaptive Testing defaults.
    # Session-level values may be overridden per test at creation time.
    CAT_DEFAULT_TEST_TITLE: str = "NCLEX CAT Simulation"
    CAT_DEFAULT_MIN_QUESTIONS: int = Field(default=75, ge=1)
    CAT_DEFAULT_MAX_QUESTIONS: int = Field(default=145, ge=1)
    CAT_DEFAULT_PASSING_STANDARD: float = 0.0
    # Number of question ids linked to a CAT test when it is created
    CAT_POOL_SIZE: int = Field(default=300, ge=1)
    # Unanswered pool items evaluated per selection (bounded latency on large pools)
    CAT_SELECTION_SHORTLIST_SIZE: int = Field(default=50, ge=1)
    # |theta - passing_standard| required to stop between min and max questions
    CAT_CONFIDENCE_MARGIN: float = Field(default=1.0, gt=0.0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_question_bounds(self) -> Self:
        """Validate that the default question bounds are consistent."""
        if self.CAT_DEFAULT_MIN_QUESTIONS > self.CAT_DEFAULT_MAX_QUESTIONS:
            raise ValueError(
                f"CAT_DEFAULT_MIN_QUESTIONS ({self.CAT_DEFAULT_MIN_QUESTIONS}) must not "
                f"exceed CAT_DEFAULT_MAX_QUESTIONS ({self.CAT_DEFAULT_MAX_QUESTIONS})"
            )
        return self


settings = Settings()
