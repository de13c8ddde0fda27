# backend/app/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

from .constants import BRAND_NAME


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    app_name: str = Field(default=f"{BRAND_NAME} Scheduling", description="Service title")
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./scheduling.db",
        description="SQLAlchemy URL for the scheduling database",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Time handling
    default_timezone: str = Field(
        default="America/Lima",
        description="Timezone assigned to users that never chose one",
    )
    default_class_duration: int = Field(
        default=60,
        description="Class length in minutes when a booking has no course",
    )

    # Reschedule policy
    max_reschedules: int = Field(default=2, description="Student reschedules allowed per booking")
    reschedule_min_lead_hours: float = Field(
        default=24,
        description="A class cannot be moved once it starts within this many hours",
    )
    reschedule_retry_attempts: int = Field(
        default=3,
        description="Attempts before giving up on a booking being moved concurrently",
    )
    reschedule_retry_backoff_seconds: float = Field(
        default=0.05,
        description="Base backoff between concurrent reschedule retries",
    )

    # Class access window
    teacher_join_early_minutes: int = Field(
        default=10,
        description="How early a teacher may enter the classroom",
    )
    student_join_early_minutes: int = Field(
        default=0,
        description="How early a student may enter the classroom",
    )
    end_warning_minutes: int = Field(
        default=5,
        description="Show the class-ending warning when this many minutes remain",
    )

    # Monitoring
    slow_operation_threshold_seconds: float = Field(
        default=1.0,
        description="Service operations slower than this are logged as warnings",
    )
    log_level: str = Field(default="INFO", description="Root log level")
    expose_internal_errors: bool = Field(
        default=False,
        description="Put unhandled exception text in 500 responses (never in production)",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        if value not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @field_validator(
        "default_class_duration",
        "max_reschedules",
        "reschedule_retry_attempts",
        "teacher_join_early_minutes",
        "student_join_early_minutes",
        "end_warning_minutes",
    )
    @classmethod
    def _validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @field_validator("reschedule_min_lead_hours", "reschedule_retry_backoff_seconds")
    @classmethod
    def _validate_non_negative_float(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @model_validator(mode="after")
    def _validate_durations(self) -> "Settings":
        if self.default_class_duration == 0:
            raise ValueError("default_class_duration must be positive")
        if self.reschedule_retry_attempts == 0:
            self.reschedule_retry_attempts = 1
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
