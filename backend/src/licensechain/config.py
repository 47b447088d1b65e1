"""
Application configuration loaded from environment variables.

All configuration is validated at startup to fail fast on misconfiguration.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with validation.
    
    All settings are loaded from environment variables with the same name.
    Use .env file for local development.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )
    
    # Authorization
    admin_identity: str = Field(
        description="Account identity allowed to approve, reject and revoke licenses"
    )
    
    # Ledger
    ledger_backend: Literal["memory", "sql"] = Field(
        default="memory",
        description="Ledger gateway implementation to use"
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./licensechain.db",
        description="SQLAlchemy async URL for the SQL ledger backend"
    )
    ledger_enforces_uniqueness: bool = Field(
        default=False,
        description="Ledger rejects duplicate registration numbers at write time"
    )
    ledger_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for a single ledger round trip, including finality"
    )
    license_validity_days: int = Field(
        default=365,
        ge=1,
        description="Validity window stamped by self-hosted ledgers on approval"
    )
    
    # Registration numbers
    revoked_registration_policy: Literal["reusable", "retired"] = Field(
        default="reusable",
        description="Whether a revoked record frees its registration number"
    )
    
    # Storage
    storage_path: Path = Field(
        default=Path("./storage"),
        description="Local path for the content-addressed document store"
    )
    
    # Server
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed error messages"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )
    
    @field_validator("admin_identity")
    @classmethod
    def _admin_identity_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("admin_identity must not be blank")
        return value
    
    @property
    def reuse_revoked_numbers(self) -> bool:
        """True when revoked records free their registration number."""
        return self.revoked_registration_policy == "reusable"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.
    
    Settings are loaded once at startup and cached for subsequent calls.
    This ensures consistent configuration across the application lifecycle.
    """
    return Settings()
