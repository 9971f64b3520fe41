"""Configuration schema with Pydantic for type safety and validation."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import Config


class Environment(str, Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""


class LabyrinthConfig(BaseModel):
    """Labyrinth page generation settings."""

    corpus: str = Field(min_length=1, description="Path to the corpus file")
    base_path: str = Field(min_length=1, description="URI prefix for labyrinth links")
    block_size: Optional[str] = None
    total_size: Optional[str] = None
    page_title: str = Field(default="Replicant EPHI")
    stylesheet: str = Field(default="/css/style.css", min_length=1)

    @field_validator("base_path")
    @classmethod
    def validate_base_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("base_path must be an absolute URI path")
        return value

    @field_validator("block_size", "total_size")
    @classmethod
    def validate_size(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            parsed = int(value.strip())
        except ValueError:
            raise ValueError(f"size must be a positive integer, got {value!r}") from None
        if parsed <= 0:
            raise ValueError(f"size must be a positive integer, got {parsed}")
        return value


class ServiceConfig(BaseModel):
    """Complete labyrinth service configuration."""

    log_level: LogLevel = Field(default=LogLevel.INFO)
    debug: bool = Field(default=False)
    app_env: Environment = Field(default=Environment.PRODUCTION)
    host: str = Field(default="127.0.0.1", min_length=1)
    port: int = Field(default=8080, ge=1, le=65535)
    honeypot_log_file: str = Field(min_length=1)
    labyrinth: LabyrinthConfig

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value


def validate_config(config: Config) -> ServiceConfig:
    """Validate a loaded :class:`Config`, raising ``ConfigValidationError``."""
    try:
        return ServiceConfig(
            log_level=config.LOG_LEVEL,
            debug=config.DEBUG,
            app_env=config.APP_ENV,
            host=config.LABYRINTH_HOST,
            port=config.LABYRINTH_API_PORT,
            honeypot_log_file=config.HONEYPOT_LOG_FILE,
            labyrinth=LabyrinthConfig(
                corpus=config.LABYRINTH_CORPUS,
                base_path=config.LABYRINTH_BASE_PATH,
                block_size=config.LABYRINTH_BLOCK_SIZE,
                total_size=config.LABYRINTH_TOTAL_SIZE,
                page_title=config.LABYRINTH_PAGE_TITLE,
                stylesheet=config.LABYRINTH_STYLESHEET,
            ),
        )
    except ValidationError as e:
        raise ConfigValidationError(str(e)) from e
