"""Configuration Manager for Mindstore.

Centralized configuration loading from environment variables with sensible defaults.
All configuration is validated at load time to fail fast on invalid values.
"""

import os
from dataclasses import dataclass

from mindstore.core.exceptions import ConfigurationError

DEFAULT_API_URL = "http://localhost:3001/api"


@dataclass
class Config:
    """Client configuration loaded from environment variables.

    Optional (with defaults):
        api_url: Base URL of the content API, including the /api prefix.
        user_id: Identifier of the signed-in user whose library is shown.
        page_size: Items requested per library page.
        poll_interval: Seconds between refreshes while items are pending.
        request_timeout: Read timeout for API requests, in seconds.
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR).
    """

    api_url: str = DEFAULT_API_URL
    user_id: str | None = None
    page_size: int = 10
    poll_interval: float = 5.0
    request_timeout: float = 30.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.api_url = self.api_url.rstrip("/")
        if not self.api_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"MINDSTORE_API_URL must be an http(s) URL, got '{self.api_url}'"
            )

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_log_levels:
            raise ConfigurationError(
                f"Invalid LOG_LEVEL '{self.log_level}'. "
                f"Must be one of: {', '.join(sorted(valid_log_levels))}"
            )
        self.log_level = self.log_level.upper()

        if self.page_size < 1:
            raise ConfigurationError("MINDSTORE_PAGE_SIZE must be at least 1")
        if self.poll_interval <= 0:
            raise ConfigurationError("MINDSTORE_POLL_INTERVAL must be positive")
        if self.request_timeout <= 0:
            raise ConfigurationError("MINDSTORE_REQUEST_TIMEOUT must be positive")

        if self.user_id is not None and not self.user_id.strip():
            self.user_id = None

    @property
    def api_base(self) -> str:
        """Server root without the /api prefix (stream endpoints live here)."""
        if self.api_url.endswith("/api"):
            return self.api_url[: -len("/api")]
        return self.api_url


def load_config() -> Config:
    """Load configuration from environment variables.

    Returns:
        Config object with all settings loaded.

    Raises:
        ConfigurationError: If a value is malformed or out of range.
    """

    def get_float(key: str, default: float) -> float:
        value = os.environ.get(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            raise ConfigurationError(f"{key} must be a valid number, got '{value}'")

    def get_int(key: str, default: int) -> int:
        value = os.environ.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"{key} must be a valid integer, got '{value}'")

    return Config(
        api_url=os.environ.get("MINDSTORE_API_URL", DEFAULT_API_URL),
        user_id=os.environ.get("MINDSTORE_USER_ID"),
        page_size=get_int("MINDSTORE_PAGE_SIZE", 10),
        poll_interval=get_float("MINDSTORE_POLL_INTERVAL", 5.0),
        request_timeout=get_float("MINDSTORE_REQUEST_TIMEOUT", 30.0),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )


_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Loads configuration on first call and caches it for subsequent calls.
    Use reset_config() to force a reload.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration so the next get_config() reloads it."""
    global _config
    _config = None
