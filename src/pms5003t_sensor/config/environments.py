from enum import Enum

from pydantic_settings import BaseSettings


class Environment(str, Enum):
    PRODUCTION = "production"
    DEVELOPMENT = "development"
    TESTING = "testing"


class Settings(BaseSettings):
    """Configuration settings for the PMS5003T sensor driver."""

    # Environment
    ENVIRONMENT: Environment = Environment.DEVELOPMENT

    # Serial line
    PMS_PORT: str = "/dev/serial0"
    PMS_BAUDRATE: int = 9600
    PMS_TIMEOUT_SEC: float = 2.0

    # Sensor timing
    PASSIVE_SETTLE_SEC: float = 0.1
    WAKE_TIMEOUT_SEC: float = 4.0

    # Polling
    DEVICE_ID: str = "pms5003t-01"
    READ_INTERVAL_SEC: float = 10
    MAX_READ_FAILURES: int = 2

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


def get_settings() -> Settings:
    """Get settings based on environment."""
    import os

    # Set environment-specific defaults
    env = os.getenv("PMS5003T_ENV", "development").lower()

    if env == "production":
        return Settings(ENVIRONMENT=Environment.PRODUCTION, LOG_LEVEL="WARNING")
    elif env == "testing":
        return Settings(
            ENVIRONMENT=Environment.TESTING,
            PMS_PORT="loop://",
            DEVICE_ID="test-device",
            PASSIVE_SETTLE_SEC=0.0,
            WAKE_TIMEOUT_SEC=0.5,
            READ_INTERVAL_SEC=0.1,
            LOG_LEVEL="DEBUG",
        )
    else:
        return Settings(ENVIRONMENT=Environment.DEVELOPMENT, LOG_LEVEL="DEBUG")
