"""
Module: settings.py
Description: Application configuration using pydantic-settings.

Loads AWS credentials and queue tuning parameters from environment
variables with validation and defaults. Supports .env files for local
development.
"""

from typing import Optional

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqscli.exceptions import ConfigurationError

# Hard per-request item limit of SendMessageBatch / DeleteMessageBatch / ReceiveMessage
SQS_MAX_BATCH_SIZE = 10

# Longest visibility timeout SQS accepts, in seconds
SQS_MAX_VISIBILITY_TIMEOUT = 43200


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    # AWS settings
    aws_access_key_id: str = Field(
        ...,
        min_length=1,
        description="AWS access key ID"
    )
    aws_secret_access_key: SecretStr = Field(
        ...,
        description="AWS secret access key"
    )
    aws_session_token: Optional[SecretStr] = Field(
        default=None,
        description="Optional AWS session token for temporary credentials"
    )
    aws_region: str = Field(default="us-west-2", description="AWS region")
    aws_endpoint_url: Optional[str] = Field(
        default=None,
        description="Override SQS endpoint URL (local emulators)"
    )

    # SQS settings
    sqs_batch_size: int = Field(
        default=SQS_MAX_BATCH_SIZE,
        ge=1,
        le=SQS_MAX_BATCH_SIZE,
        description="Messages per receive/send/delete call"
    )
    sqs_visibility_timeout: int = Field(
        default=10,
        ge=0,
        le=SQS_MAX_VISIBILITY_TIMEOUT,
        description="Seconds received messages stay hidden from other consumers"
    )
    sqs_wait_time_seconds: int = Field(
        default=0,
        ge=0,
        le=20,
        description="Receive wait time; 0 means short polling"
    )
    sqs_delay_seconds: int = Field(
        default=1,
        ge=0,
        le=900,
        description="Delivery delay applied to messages re-sent to standard queues"
    )

    @field_validator('aws_secret_access_key')
    @classmethod
    def validate_secret(cls, v: SecretStr) -> SecretStr:
        """Reject empty secret keys."""
        if not v.get_secret_value():
            raise ValueError("aws_secret_access_key must be a non-empty string")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()


def load_settings(**overrides) -> Settings:
    """
    Load settings from the environment.

    Args:
        **overrides: Values taking precedence over the environment

    Returns:
        Validated Settings instance

    Raises:
        ConfigurationError: If credentials are missing or a value is invalid
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        missing = [
            str(error['loc'][0]).upper()
            for error in e.errors()
            if error['type'] == 'missing' and error['loc']
        ]
        if missing:
            raise ConfigurationError(
                f"Missing connection credentials: {', '.join(missing)}"
            ) from e
        raise ConfigurationError(f"Invalid configuration: {e}") from e
