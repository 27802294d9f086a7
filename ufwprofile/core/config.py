"""
Application configuration settings.

Central configuration module using Pydantic BaseSettings with environment variable support.
Loads from .env file and environment variables.
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if it exists (python-dotenv)
env_path = Path(".env")
if env_path.exists():
    load_dotenv(dotenv_path=env_path)

# Diagnostics toggle relayed to the re-executed process on privilege escalation
BACKTRACE_ENV_VAR = "UFWPROFILE_BACKTRACE"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # App settings
    APP_NAME: str = "ufwprofile"
    APP_ENV: str = Field(default="local")
    DEBUG: bool = Field(default=False)

    # External tools
    UFW_BINARY: str = Field(
        default="ufw",
        description="Firewall management executable (name on PATH or absolute path)",
    )
    SUDO_BINARY: str = Field(
        default="/usr/bin/sudo",
        description="Privilege elevation helper used for fallback invocations and re-execution",
    )

    # Profile output
    APPLICATIONS_DIR: str = Field(
        default="/etc/ufw/applications.d",
        description="Directory UFW reads application profiles from",
    )
    PROFILE_FILE_PREFIX: str = Field(default="ufw-")
    STRICT_PORT_RANGES: bool = Field(
        default=False,
        description="Only accept <low>:<high> port ranges, rejecting bare port numbers",
    )

    # Environment variables relayed through sudo when re-executing as root
    ESCALATION_ENV_PREFIXES: Union[str, List[str]] = Field(default_factory=list)

    @field_validator("ESCALATION_ENV_PREFIXES")
    @classmethod
    def parse_env_prefixes(cls, v):
        """Parse ESCALATION_ENV_PREFIXES from string or list."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # If not JSON, treat as comma-separated
                return [prefix.strip() for prefix in v.split(",") if prefix.strip()]
        return v

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    LOG_FILE: Optional[str] = Field(
        default=None,
        description="Optional path of a rotating log file; console only when unset",
    )

    # API Authentication
    API_KEY: Optional[str] = Field(
        default=None,
        description="API key required by the apply endpoint. Leave empty to disable authentication.",
    )

    def is_auth_enabled(self) -> bool:
        """Check if an API key is configured and not empty."""
        return self.API_KEY is not None and self.API_KEY.strip() != ""


# Create global settings instance
@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
