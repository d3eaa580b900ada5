from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Any, Dict, Literal, Optional
from functools import lru_cache
import logging
from dotenv import load_dotenv

from .exceptions import ConfigurationError

# Explicitly load .env file to ensure environment variables are available
load_dotenv()

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    APP_ENV: Literal["production", "development"] = Field(
        default="development",
        description="Application environment"
    )
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level"
    )
    LOG_FORMAT: Literal["json", "development", "auto"] = Field(
        default="auto",
        description="Log output format; auto uses JSON in production"
    )

    # Admission control for the unauthenticated third-party APIs
    GEOCODING_MAX_CONCURRENT: int = Field(default=1, ge=1, description="Maximum in-flight provider requests")
    GEOCODING_RETRY_DELAY_MIN: float = Field(default=2.0, ge=0, description="Lower bound of limiter re-poll delay (s)")
    GEOCODING_RETRY_DELAY_MAX: float = Field(default=4.0, ge=0, description="Upper bound of limiter re-poll delay (s)")

    # Provider chain
    GEOCODING_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0, description="Per-attempt provider timeout")
    GEOCODING_ADVANCE_DELAY: float = Field(default=1.0, ge=0, description="Pause before trying the next provider (s)")
    GEOCODING_SETTLE_DELAY_MIN: float = Field(default=1.0, ge=0, description="Lower bound of the pre-request debounce (s)")
    GEOCODING_SETTLE_DELAY_MAX: float = Field(default=3.0, ge=0, description="Upper bound of the pre-request debounce (s)")
    GEOCODING_LANGUAGE: str = Field(default="en", description="Preferred locality language for providers that accept one")
    GEOCODING_USER_AGENT: str = Field(
        default="pinmap/1.0 (map pinning app)",
        description="User-Agent sent to every geocoding provider"
    )
    LOCATIONIQ_API_KEY: Optional[str] = None

    # Forward address search
    GEOCODING_SEARCH_URL: str = Field(
        default="https://nominatim.openstreetmap.org/search",
        description="Nominatim-compatible search endpoint"
    )
    GEOCODING_SEARCH_LIMIT: int = Field(default=5, ge=1, le=50, description="Maximum address suggestions per query")
    GEOCODING_SEARCH_MIN_QUERY_LENGTH: int = Field(default=3, ge=1, description="Shorter queries are not sent")
    GEOCODING_SEARCH_DEBOUNCE: float = Field(default=0.5, ge=0, description="Quiet period before a suggestion lookup (s)")

    # Cache and labels
    GEOCODING_CACHE_PRECISION: int = Field(default=4, ge=0, le=8, description="Decimal places kept in cache keys")
    UNKNOWN_LABEL: str = Field(default="Unknown", min_length=1, description="Sentinel for unresolved place names")

    # Map gestures
    GESTURE_DRAG_THRESHOLD_PX: float = Field(default=5.0, ge=0, description="Movement in pixels that turns a tap into a drag")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding='utf-8',
        extra="ignore"
    )

    @field_validator('LOCATIONIQ_API_KEY', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty strings from the environment as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def retry_delay(self) -> tuple:
        return (self.GEOCODING_RETRY_DELAY_MIN, self.GEOCODING_RETRY_DELAY_MAX)

    @property
    def settle_delay(self) -> tuple:
        return (self.GEOCODING_SETTLE_DELAY_MIN, self.GEOCODING_SETTLE_DELAY_MAX)


def validate_geocoding_configuration(settings: Settings) -> None:
    """
    Validate geocoding configuration.

    Critical errors prevent startup, warnings are logged but allow continuation.

    Raises:
        ConfigurationError: For the first critical configuration error found
    """
    critical_errors = []
    warnings = []

    if settings.GEOCODING_RETRY_DELAY_MIN > settings.GEOCODING_RETRY_DELAY_MAX:
        critical_errors.append((
            "GEOCODING_RETRY_DELAY_MIN",
            "must not exceed GEOCODING_RETRY_DELAY_MAX"
        ))
    if settings.GEOCODING_SETTLE_DELAY_MIN > settings.GEOCODING_SETTLE_DELAY_MAX:
        critical_errors.append((
            "GEOCODING_SETTLE_DELAY_MIN",
            "must not exceed GEOCODING_SETTLE_DELAY_MAX"
        ))
    if not settings.UNKNOWN_LABEL.strip():
        critical_errors.append(("UNKNOWN_LABEL", "must contain non-whitespace characters"))

    if not settings.LOCATIONIQ_API_KEY:
        warnings.append(
            "LOCATIONIQ_API_KEY not provided. LocationIQ will be left out of the provider chain."
        )
    if settings.GEOCODING_MAX_CONCURRENT > 2:
        warnings.append(
            f"GEOCODING_MAX_CONCURRENT={settings.GEOCODING_MAX_CONCURRENT} is high for free-tier "
            "geocoding APIs and may trigger rate limiting"
        )

    if critical_errors:
        for field, reason in critical_errors:
            logger.error(f"Configuration error in {field}: {reason}")
        field, reason = critical_errors[0]
        raise ConfigurationError(field, reason)

    for warning in warnings:
        logger.warning(warning)

    logger.info(
        "Configuration summary",
        extra={
            "app_env": settings.APP_ENV,
            "max_concurrent": settings.GEOCODING_MAX_CONCURRENT,
            "timeout_seconds": settings.GEOCODING_TIMEOUT_SECONDS,
            "cache_precision": settings.GEOCODING_CACHE_PRECISION,
            "locationiq_enabled": bool(settings.LOCATIONIQ_API_KEY),
            "validation_status": "complete"
        }
    )


def runtime_config_summary(settings: Settings) -> Dict[str, Any]:
    """Summarise the effective configuration for the CLI and logs"""
    return {
        "environment": settings.APP_ENV,
        "max_concurrent": settings.GEOCODING_MAX_CONCURRENT,
        "timeout_seconds": settings.GEOCODING_TIMEOUT_SECONDS,
        "retry_delay_seconds": list(settings.retry_delay),
        "settle_delay_seconds": list(settings.settle_delay),
        "advance_delay_seconds": settings.GEOCODING_ADVANCE_DELAY,
        "cache_precision": settings.GEOCODING_CACHE_PRECISION,
        "language": settings.GEOCODING_LANGUAGE,
        "locationiq_enabled": bool(settings.LOCATIONIQ_API_KEY),
    }


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide validated settings."""
    settings = Settings()
    validate_geocoding_configuration(settings)
    return settings
