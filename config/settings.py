"""
Configuration settings for the Cosmos DB analytical storage tool.

This module centralizes all configuration values and provides a single source of truth for all
configurable parameters.

The global `config` instance is built without validation so that importing it never fails;
the entry point calls `config.validate()` inside its error handling.
"""

import os
from typing import Callable, Optional


class Config:
    """
    Central configuration class for the analytical storage tool.

    This class consolidates retry policy, remote client selection,
    Azure CLI settings and logging parameters.
    """

    # Application (sent as the user agent of the Azure SDK backend)
    APP_NAME: str = "Cosmos-Analytical-Storage-Disabler"
    APP_VERSION: str = "1.0"

    # Retry Configuration (applies to every remote call, enumeration and mutation alike)
    MAX_RETRIES: int = 5
    RETRY_DELAY_SECONDS: float = 5.0

    # Remote client settings
    CLIENT_BACKEND: str = "cli"
    SUPPORTED_BACKENDS: tuple = ("cli", "sdk")
    AZ_CLI_PATH: str = "az"
    AZ_COMMAND_TIMEOUT: int = 300
    AZURE_SUBSCRIPTION_ID: Optional[str] = None

    # Logging Configuration
    # Retry diagnostics are WARNING records, so no level above WARNING is offered.
    LOG_LEVEL: str = "INFO"
    SUPPORTED_LOG_LEVELS: tuple = ("DEBUG", "INFO", "WARNING")
    LOG_FILE: str = "logs/disable_analytical_storage.log"
    LOG_MAX_BYTES: int = 5 * 1024 * 1024  # 5MB
    LOG_BACKUP_COUNT: int = 3

    def __init__(self, validate: bool = True):
        """
        Initialize configuration by loading from environment variables.

        Args:
            validate (bool): Raise ValueError right away on invalid values. When False,
                problems are kept until validate() is called.
        """
        self._errors: list[str] = []
        self._load_from_env()
        if validate:
            self.validate()

    @property
    def USER_AGENT(self) -> str:
        return f"{self.APP_NAME}/{self.APP_VERSION}"

    def _env_number(self, name: str, cast: Callable[[str], float]):
        """Parse a numeric environment variable, recording a readable error if it is malformed."""
        value = os.getenv(name)
        if not value:
            return None
        try:
            return cast(value)
        except ValueError:
            self._errors.append(f"{name} must be a number, got '{value}'")
            return None

    def _load_from_env(self):
        """Load configuration values from environment variables."""
        # Retry settings
        max_retries = self._env_number("COSMOS_MAX_RETRIES", int)
        if max_retries is not None:
            self.MAX_RETRIES = max_retries

        retry_delay = self._env_number("COSMOS_RETRY_DELAY_SECONDS", float)
        if retry_delay is not None:
            self.RETRY_DELAY_SECONDS = retry_delay

        # Client settings
        backend = os.getenv("COSMOS_CLIENT_BACKEND")
        if backend:
            self.CLIENT_BACKEND = backend.lower()

        az_cli_path = os.getenv("AZ_CLI_PATH")
        if az_cli_path:
            self.AZ_CLI_PATH = az_cli_path

        az_timeout = self._env_number("AZ_COMMAND_TIMEOUT", int)
        if az_timeout is not None:
            self.AZ_COMMAND_TIMEOUT = az_timeout

        subscription_id = os.getenv("AZURE_SUBSCRIPTION_ID")
        if subscription_id:
            self.AZURE_SUBSCRIPTION_ID = subscription_id

        # Logging settings
        log_level = os.getenv("LOG_LEVEL")
        if log_level:
            self.LOG_LEVEL = log_level.upper()

        log_file = os.getenv("ANALYTICAL_STORAGE_LOG_FILE")
        if log_file:
            self.LOG_FILE = log_file

    def validate(self):
        """
        Validate configuration values.

        Raises:
            ValueError: If a configured value is malformed or out of range.
        """
        if self._errors:
            raise ValueError("; ".join(self._errors))

        if self.MAX_RETRIES < 1:
            raise ValueError(
                f"COSMOS_MAX_RETRIES must be at least 1, got {self.MAX_RETRIES}"
            )

        if self.RETRY_DELAY_SECONDS < 0:
            raise ValueError(
                f"COSMOS_RETRY_DELAY_SECONDS cannot be negative, got {self.RETRY_DELAY_SECONDS}"
            )

        if self.CLIENT_BACKEND not in self.SUPPORTED_BACKENDS:
            raise ValueError(
                f"COSMOS_CLIENT_BACKEND must be one of {self.SUPPORTED_BACKENDS}, "
                f"got '{self.CLIENT_BACKEND}'"
            )

        if self.LOG_LEVEL not in self.SUPPORTED_LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {self.SUPPORTED_LOG_LEVELS}, got '{self.LOG_LEVEL}'"
            )

    def validate_for_sdk_operations(self, subscription_id: str | None = None) -> str:
        """
        Validate configuration needed by the Azure SDK backend.

        Args:
            subscription_id: Explicit subscription id (e.g. from the command line)

        Returns:
            str: The subscription id to use

        Raises:
            ValueError: If no subscription id is available.
        """
        resolved = subscription_id or self.AZURE_SUBSCRIPTION_ID
        if not resolved:
            raise ValueError(
                "AZURE_SUBSCRIPTION_ID environment variable is required for the sdk backend. "
                "Please set it in your .env file or pass --subscription-id."
            )
        return resolved


# Global configuration instance, validated by the entry point
config = Config(validate=False)
