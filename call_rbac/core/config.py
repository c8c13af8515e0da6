"""Configuration management for the call gate."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from ``CALL_RBAC_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CALL_RBAC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Engine
    max_calls: int = Field(
        default=10, description="Maximum number of calls accepted by a single set_calls"
    )
    super_accounts: list[str] = Field(
        default_factory=list,
        description="Signed accounts that hold the super authority in addition to root. "
        'Set as JSON, e.g. CALL_RBAC_SUPER_ACCOUNTS=\'["ops"]\'',
    )

    # State persistence
    state_path: Path | None = Field(
        default=None, description="JSON state file. State is in-memory only when unset"
    )
    state_encryption_key: str | None = Field(
        default=None, description="Fernet key for encrypting the state file at rest"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Path | None = Field(default=None, description="Optional log file")

    # HTTP API
    api_host: str = Field(default="127.0.0.1", description="HTTP API bind host")
    api_port: int = Field(default=8080, description="HTTP API bind port")
    api_key: str | None = Field(
        default=None, description="Bearer key required on every API request when set"
    )
    super_token: str | None = Field(
        default=None,
        description="Value of the X-Super-Token header that makes an API request a root "
        "origin. Root access over HTTP is disabled when unset.",
    )
    dispatcher: str | None = Field(
        default=None,
        description="Import path ('module:attribute') of the dispatcher used by the API server",
    )

    @field_validator("max_calls")
    @classmethod
    def validate_max_calls(cls, v: int) -> int:
        """Reject negative limits."""
        if v < 0:
            raise ValueError("max_calls must be >= 0")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the logging level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level
