"""
Lexi Configuration Module
=========================
Centralized configuration management using Pydantic Settings.
All environment variables are validated and typed.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses Pydantic v2 settings management for type safety and validation.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # === Application ===
    app_name: str = Field(default="Lexi Risk Engine", description="Service name")
    app_version: str = Field(default="1.0.0", description="Service version")

    # === Extraction ===
    max_file_size_mb: int = Field(default=20, description="Maximum upload size in MB")
    extraction_timeout_seconds: float = Field(
        default=30.0,
        description="Seconds before a document decode is abandoned"
    )

    # === Analysis Policy ===
    allow_low_quality_text: bool = Field(
        default=False,
        description="Analyze text that fails the quality gate instead of rejecting it"
    )
    max_concurrent_analyses: int = Field(
        default=4,
        description="Upper bound on documents analyzed at once in a batch"
    )
    catalog_path: Path | None = Field(
        default=None,
        description="Optional JSON file with extra risk rules"
    )

    # === Server Configuration ===
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Debug mode")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed by the CORS middleware"
    )

    # === Logging ===
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Store the level upper-cased so it maps onto logging constants."""
        return v.upper()

    @field_validator("max_concurrent_analyses")
    @classmethod
    def ensure_positive_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_concurrent_analyses must be at least 1")
        return v

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are loaded only once.
    """
    settings = Settings()
    return settings


# Supported document media types
PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MEDIA_TYPE = "text/plain"

SUPPORTED_MEDIA_TYPES = [PDF_MEDIA_TYPE, DOCX_MEDIA_TYPE, TEXT_MEDIA_TYPE]

# Extraction and quality thresholds
MIN_TEXT_LENGTH = 50
MAX_SPECIAL_CHAR_RATIO = 0.3
MIN_AVG_WORD_LENGTH = 2
MAX_AVG_WORD_LENGTH = 20

# Upper bound on text posted directly for analysis or quality checks
MAX_TEXT_CHARACTERS = 1_000_000

# Used for the estimated reading time in reports
WORDS_PER_MINUTE = 200

# Risk level definitions
RISK_LEVELS = {
    "critical": {"rank": 4, "color": "#FF0000", "label": "Critical Risk"},
    "high": {"rank": 3, "color": "#FF6B00", "label": "High Risk"},
    "medium": {"rank": 2, "color": "#FFB800", "label": "Medium Risk"},
    "low": {"rank": 1, "color": "#00C853", "label": "Low Risk"},
    "minimal": {"rank": 0, "color": "#00E676", "label": "Minimal Risk"}
}

# Number of high-severity findings that escalates a report to critical
CRITICAL_ESCALATION_COUNT = 3
