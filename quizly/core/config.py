from typing import List

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application Information
    app_name: str = Field(default="Quizly")
    app_description: str = Field(default="Classroom quiz sessions with timed answers")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=True)
    production: bool = Field(default=False)

    # Database Configuration
    database_url: str = Field(default="sqlite:///./quizly.db")
    database_echo: bool = Field(default=False)

    # Quiz Sessions
    session_ttl_minutes: int = Field(default=30, ge=1)
    min_question_seconds: float = Field(default=1.0, ge=0)
    max_question_seconds: float = Field(default=600.0, gt=0)
    score_per_correct: int = Field(default=1, ge=1)
    leaderboard_limit: int = Field(default=5, ge=1)

    # Student Validation
    min_name_length: int = Field(default=2)
    max_name_length: int = Field(default=255)

    # Security Settings
    cors_allowed_origins: List[str] = Field(default=["http://localhost:3000"])

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_storage_uri: str = Field(default="memory://")
    default_rate_limit: str = Field(default="100/minute")
    answer_rate_limit: str = Field(default="30/minute")

    # Logging
    log_level: str = Field(default="info")
    log_file: str = Field(default="logs/app.log")

    # Seeding
    seed_on_startup: bool = Field(default=False)

    # ============================
    # Generic comma-separated parser
    # ============================
    @staticmethod
    def _parse_csv(value, default):
        if isinstance(value, str):
            items = [x.strip() for x in value.split(",") if x.strip()]
            return items if items else default
        if isinstance(value, list):
            return value
        return default

    @field_validator("cors_allowed_origins", mode="before")
    def validate_cors(cls, v):
        return cls._parse_csv(v, ["http://localhost:3000"])

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


def load_settings():
    try:
        settings = Settings()
        print("✅ Settings loaded successfully!")
        return settings
    except ValidationError as e:
        print("❌ Validation Error:", e)
        raise


settings = load_settings()
