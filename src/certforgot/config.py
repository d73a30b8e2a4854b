"""
Process configuration and environment variables.

Process-level settings are read by pydantic-settings from CERTFORGOT_*
environment variables, then from a .env file, then from the defaults
below. Field log_level maps to CERTFORGOT_LOG_LEVEL, and so on.

The per-certificate configuration file (sources, installers, state
backend) is a separate YAML document, see certforgot.models.config.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Process-wide settings.

    Example:
        # .env or environment:
        CERTFORGOT_LOG_LEVEL=DEBUG
        CERTFORGOT_CONFIG_PATH=/etc/certforgot/certforgot.yaml
    """

    model_config = SettingsConfigDict(
        env_prefix="CERTFORGOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================================================
    # LOGGING SETTINGS
    # ============================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss.SSS} {level: <8} trace_id={extra[trace_id]} {name}:{line} {message}",  # noqa: E501
        description="Loguru format string for the text sink",
    )
    log_json: bool = Field(
        default=False,
        description="Emit one JSON object per record instead of formatted text",
    )
    logger_enqueue: bool = Field(
        default=False, description="Write records through a background queue"
    )
    library_log_level: str = Field(
        default="WARNING",
        description="Minimum level forwarded from Azure SDK, httpx and SQLAlchemy",
    )

    # ============================================================================
    # CERTIFICATE CONFIGURATION
    # ============================================================================
    config_path: str = Field(
        default="certforgot.yaml",
        description="Path to the YAML certificate configuration file",
    )

    # ============================================================================
    # BACKEND SETTINGS
    # ============================================================================
    http_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for HTTPS certificate inspection",
    )
    state_blob_name: str = Field(
        default="certforgot_state.yaml",
        description="Blob name used by the Azure Blob state backend",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get process settings (LRU cached).

    The .env file is read once per process; call
    get_settings.cache_clear() to pick up changes.
    """
    return Settings()
